"""Parsing of the genotype probability data stored in BGEN data blocks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Union

from scopa.bgen_io import (
    BGenError,
    Context,
    FlagMask,
    Layout,
    read_genotype_data_block,
    uncompress_probability_data,
)
from scopa.genotypes import MISSING, MissingValue, OrderType

Value = Union[float, MissingValue]

_V10_FACTOR = 10000.0
_V11_FACTOR = 32768.0
_MAX_BITS = 32
_SUM_TOLERANCE = 1.00000001


@dataclass(frozen=True)
class SampleProbabilities:
    """The probability values reported for one sample at one variant."""

    ploidy: int
    number_of_alleles: int
    order_type: OrderType
    values: tuple[Value, ...]

    @property
    def missing(self) -> bool:
        """True when the sample's data is missing."""
        return bool(self.values) and all(isinstance(v, MissingValue) for v in self.values)

    @property
    def phased(self) -> bool:
        """True when the values are per-haplotype probabilities."""
        return self.order_type == OrderType.PER_PHASED_HAPLOTYPE_PER_ALLELE


def n_choose_k(n: int, k: int) -> int:
    """Binomial coefficient of ``n`` and ``k``."""
    if k < 0:
        raise ValueError("k must not be negative")
    if k == 0:
        return 1
    result = n - k + 1
    for i in range(2, k + 1):
        result = (n - k + i) * result // i
    return result


def conversion_factor(flags: int) -> float:
    """Scale dividing stored integers into probabilities for layouts 1.0 and 1.1."""
    layout = flags & FlagMask.LAYOUT
    if layout == Layout.V10:
        return _V10_FACTOR
    if layout == Layout.V11:
        return _V11_FACTOR
    raise BGenError(f"layout 0x{layout:x} does not use a conversion factor")


def _parse_v11(data: bytes, context: Context) -> list[SampleProbabilities]:
    n = context.number_of_samples
    if len(data) != 6 * n:
        raise BGenError(f"expected {6 * n} bytes of probability data, got {len(data)}")
    factor = conversion_factor(context.flags)
    samples = []
    for offset in range(0, 6 * n, 6):
        values = tuple(
            int.from_bytes(data[offset + g : offset + g + 2], "little") / factor
            for g in (0, 2, 4)
        )
        samples.append(
            SampleProbabilities(
                ploidy=2,
                number_of_alleles=2,
                order_type=OrderType.PER_UNORDERED_GENOTYPE,
                values=values,
            )
        )
    return samples


class _BitReader:
    """Reads fixed-width values from a little-endian bit stream."""

    def __init__(self, data: bytes, start: int, bits: int) -> None:
        self._data = data
        self._pos = start
        self._bits = bits
        self._mask = (1 << bits) - 1
        self._buffer = 0
        self._size = 0

    def read(self) -> float:
        while self._size < self._bits and self._pos < len(self._data):
            self._buffer |= self._data[self._pos] << self._size
            self._pos += 1
            self._size += 8
        if self._size < self._bits:
            raise BGenError("probability data ended early")
        value = (self._buffer & self._mask) / self._mask
        self._buffer >>= self._bits
        self._size -= self._bits
        return value


def _parse_v12(data: bytes, context: Context) -> list[SampleProbabilities]:
    if len(data) < 8:
        raise BGenError("probability data block is too short")
    number_of_samples = int.from_bytes(data[0:4], "little")
    number_of_alleles = int.from_bytes(data[4:6], "little")
    if number_of_samples != context.number_of_samples:
        raise BGenError(
            f"data block lists {number_of_samples} samples, header has "
            f"{context.number_of_samples}"
        )
    if len(data) < 8 + number_of_samples + 2:
        raise BGenError("probability data block is too short")
    if number_of_alleles < 1:
        raise BGenError("variant has no alleles")
    ploidy_bytes = data[8 : 8 + number_of_samples]
    phased = bool(data[8 + number_of_samples] & 0x1)
    bits = data[9 + number_of_samples]
    if not 0 < bits <= _MAX_BITS:
        raise BGenError(f"unsupported number of bits {bits}")
    order_type = (
        OrderType.PER_PHASED_HAPLOTYPE_PER_ALLELE
        if phased
        else OrderType.PER_UNORDERED_GENOTYPE
    )
    reader = _BitReader(data, 10 + number_of_samples, bits)
    samples = []
    for ploidy_byte in ploidy_bytes:
        ploidy = ploidy_byte & 0x3F
        missing = bool(ploidy_byte & 0x80)
        if phased:
            value_count = ploidy * number_of_alleles
            stored_count = value_count - ploidy
        else:
            value_count = n_choose_k(ploidy + number_of_alleles - 1, number_of_alleles - 1)
            stored_count = value_count - 1
        values: list[Value] = []
        if missing:
            for _ in range(stored_count):
                reader.read()
            values = [MISSING] * value_count
        else:
            total = 0.0
            for h in range(stored_count):
                value = reader.read()
                values.append(value)
                total += value
                group_done = (
                    (h + 1) % (number_of_alleles - 1) == 0
                    if phased
                    else h + 1 == stored_count
                )
                if group_done:
                    if total > _SUM_TOLERANCE:
                        raise BGenError(f"probabilities sum to {total}, above 1")
                    values.append(1.0 - total)
                    total = 0.0
        samples.append(
            SampleProbabilities(
                ploidy=ploidy,
                number_of_alleles=number_of_alleles,
                order_type=order_type,
                values=tuple(values),
            )
        )
    return samples


def parse_probability_data(data: bytes, context: Context) -> list[SampleProbabilities]:
    """Parse uncompressed probability data into one entry per sample."""
    data = bytes(data)
    if context.layout() in (Layout.V10, Layout.V11):
        return _parse_v11(data, context)
    return _parse_v12(data, context)


def read_and_parse_genotype_data_block(
    stream: BinaryIO, context: Context
) -> list[SampleProbabilities]:
    """Read, uncompress and parse the genotype data block at the stream position."""
    raw = read_genotype_data_block(stream, context)
    return parse_probability_data(uncompress_probability_data(context, raw), context)