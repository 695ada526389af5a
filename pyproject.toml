[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scopa"
version = "1.0.14"
description = "BGEN genotype file reading and writing, matrix utilities and genetic association helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["bgen", "genotype", "gwas", "genetics", "hardy-weinberg", "imputation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["scopa"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
