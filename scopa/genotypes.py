"""Shared genotype value types: ordering and value kinds, and the missing value marker."""

from __future__ import annotations

from enum import IntEnum


class OrderType(IntEnum):
    """How the values stored for one sample are ordered."""

    UNKNOWN = 0
    UNORDERED_LIST = 1
    ORDERED_LIST = 2
    PER_UNORDERED_GENOTYPE = 3
    PER_ORDERED_HAPLOTYPE = 4
    PER_UNORDERED_HAPLOTYPE = 5
    PER_PHASED_HAPLOTYPE_PER_ALLELE = 6
    PER_ALLELE = 7
    PER_SAMPLE = 8


class ValueType(IntEnum):
    """What kind of quantity a stored value represents."""

    UNKNOWN = 0
    PROBABILITY = 1
    ALLELE_INDEX = 2
    DOSAGE = 3


class MissingValue:
    """Marker for a value that is not present; all instances are equal."""

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MissingValue):
            return NotImplemented
        return True

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, MissingValue):
            return NotImplemented
        return False

    def __le__(self, other: object) -> bool:
        if not isinstance(other, MissingValue):
            return NotImplemented
        return True

    def __hash__(self) -> int:
        return hash(MissingValue)

    def __str__(self) -> str:
        return "NA"

    def __repr__(self) -> str:
        return "MissingValue()"


MISSING = MissingValue()