"""Run settings: input and output file names, options and filters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Settings:
    """Options for one analysis run."""

    version: str = "1.0.14"
    debug_mode: bool = False
    err_nr: int = 0
    threshold: float = 0.95
    pheno_list: list[str] = field(default_factory=list)
    input_gen_file: str = ""
    input_sample_file: str = ""
    input_excl_file: str = ""
    output_root: str = "scopa"
    output_result: str = ""
    output_log: str = ""
    output_betas: str = ""
    output_error: str = ""
    missing_code: str = "NA"
    exclusion_list: dict[str, int] = field(default_factory=dict)
    remove_missing: bool = False
    print_all: bool = False
    print_complex: bool = False
    print_betas: bool = False
    print_covariance: bool = False
    chromosome: int = 0
    samples: list[Any] = field(default_factory=list)

    def create_output(self) -> None:
        """Derive the output file names from ``output_root``."""
        self.output_result = self.output_root + ".result"
        self.output_log = self.output_root + ".log"
        self.output_betas = self.output_root + ".betas"
        self.output_error = self.output_root + ".err"