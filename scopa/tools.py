"""Text and allele helpers and the Hardy-Weinberg equilibrium test."""

from __future__ import annotations

import math
import re

_NUMERIC_ALLELES = {"1": "A", "2": "C", "3": "G", "4": "T"}
_BASES = frozenset("ACGT")
_COMPLEMENTS = {"A": "T", "C": "G", "G": "C", "T": "A"}


def tokenize(text: str, delimiters: str = " ") -> list[str]:
    """Split ``text`` on any of ``delimiters``; tabs and carriage returns count as spaces."""
    cleaned = text.replace("\r", " ").replace("\t", " ")
    if not delimiters:
        return [cleaned] if cleaned else []
    pattern = "[" + re.escape(delimiters) + "]"
    return [token for token in re.split(pattern, cleaned) if token]


def check_alleles(allele1: str, allele2: str) -> tuple[str, str] | None:
    """Normalise numeric allele codes to bases.

    Returns the pair of bases, or None if either is not a base or both are the same.
    """
    first = _NUMERIC_ALLELES.get(allele1, allele1)
    second = _NUMERIC_ALLELES.get(allele2, allele2)
    if first not in _BASES or second not in _BASES or first == second:
        return None
    return first, second


def flip(allele: str) -> str:
    """Return the complementary base, or "N" for anything else."""
    return _COMPLEMENTS.get(allele, "N")


def pheno_mask(variant: int, size: int) -> list[bool]:
    """Binary digits of ``variant`` over ``size`` places, most significant first."""
    mask = [False] * max(size, 0)
    remaining = variant
    for place in range(len(mask)):
        weight = 1 << (size - 1 - place)
        if remaining >= weight:
            mask[place] = True
            remaining -= weight
    return mask


def chi_square_cdf_1df(x: float) -> float:
    """Cumulative chi-square distribution with one degree of freedom."""
    if x < 0:
        raise ValueError("chi-square statistic must not be negative")
    return math.erf(math.sqrt(x / 2.0))


def hwe(aa: float, ab: float, bb: float) -> str:
    """Hardy-Weinberg equilibrium p-value from genotype counts, as text, or "NA"."""
    total = aa + ab + bb
    if total <= 0 or aa < 0 or ab < 0 or bb < 0:
        return "NA"
    freq = (2 * aa + ab) / (2 * total)
    expected = (
        freq * freq * total,
        2 * freq * (1 - freq) * total,
        (1 - freq) * (1 - freq) * total,
    )
    if any(e == 0 for e in expected):
        return "NA"
    chi = sum((o - e) ** 2 / e for o, e in zip((aa, ab, bb), expected))
    p = 1 - chi_square_cdf_1df(chi)
    return f"{p:g}"