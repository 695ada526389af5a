"""BGEN genotype file reading and writing, matrix utilities and genetic association helpers."""

__version__ = "1.0.14"