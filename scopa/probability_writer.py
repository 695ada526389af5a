"""Encoding of genotype probabilities into BGEN genotype data blocks."""

from __future__ import annotations

import math
import zlib
from typing import BinaryIO, Iterable, Sequence, Union

from scopa.bgen_io import BGenError, Context, Layout, write_little_endian
from scopa.genotypes import MissingValue, OrderType, ValueType
from scopa.probability_reader import conversion_factor, n_choose_k

Value = Union[float, MissingValue]

_MAX_PLOIDY = 63
_MAX_V11_VALUE = 65535.0
_SUPPORTED_ORDER_TYPES = (
    OrderType.PER_UNORDERED_GENOTYPE,
    OrderType.PER_PHASED_HAPLOTYPE_PER_ALLELE,
)


def _check_bits(number_of_bits: int) -> int:
    if not 1 <= number_of_bits <= 32:
        raise ValueError(f"number of bits must be between 1 and 32, got {number_of_bits}")
    return number_of_bits


class _BitWriter:
    """Packs fixed-width values into a little-endian bit stream."""

    def __init__(self, bits: int) -> None:
        self._bits = bits
        self._limit = 1 << bits
        self._data = 0
        self._offset = 0
        self.output = bytearray()

    def write(self, value: int) -> None:
        if not 0 <= value < self._limit:
            raise ValueError(f"value {value} does not fit in {self._bits} bits")
        self._data |= value << self._offset
        self._offset += self._bits
        while self._offset >= 32:
            self.output += (self._data & 0xFFFFFFFF).to_bytes(4, "little")
            self._data >>= 32
            self._offset -= 32

    def flush(self) -> None:
        if self._offset > 0:
            self.output += self._data.to_bytes((self._offset + 7) // 8, "little")
        self._data = 0
        self._offset = 0


def round_probs_to_scaled_simplex(probs: Sequence[float], number_of_bits: int) -> list[int]:
    """Scale probabilities to ``number_of_bits`` integers, keeping their sum.

    Values are rounded up in decreasing order of fractional part until the
    total of the fractional parts is used up; the rest are rounded down.
    """
    scale = float((1 << _check_bits(number_of_bits)) - 1)
    scaled = [p * scale for p in probs]
    total_fraction = sum(v - math.floor(v) for v in scaled)
    upper = math.floor(total_fraction + 0.5)
    order = sorted(
        range(len(scaled)),
        key=lambda i: scaled[i] - math.floor(scaled[i]),
        reverse=True,
    )
    result = [0] * len(scaled)
    for rank, i in enumerate(order):
        result[i] = math.ceil(scaled[i]) if rank < upper else math.floor(scaled[i])
    return result


def _expected_entries(ploidy: int, number_of_alleles: int, phased: bool) -> int:
    if phased:
        return ploidy * number_of_alleles
    return n_choose_k(ploidy + number_of_alleles - 1, number_of_alleles - 1)


class ProbabilityDataWriter:
    """Builds an uncompressed layout 1.2 probability data block sample by sample."""

    def __init__(self, number_of_bits: int = 16) -> None:
        self.number_of_bits = _check_bits(number_of_bits)
        self._number_of_samples: int | None = None
        self._reset(0, 0)

    def _reset(self, number_of_samples: int, number_of_alleles: int) -> None:
        self._number_of_alleles = number_of_alleles
        self._ploidy_bytes = bytearray()
        self._order_type: OrderType | None = None
        self._writer = _BitWriter(self.number_of_bits)
        self._current: int | None = None
        self._next_sample = 0
        self._entries = 0
        self._values: list[float] = []
        self._missing = False
        self._finalised = False
        self._min_ploidy = 0 if number_of_samples == 0 else _MAX_PLOIDY
        self._max_ploidy = 0

    def initialise(self, number_of_samples: int, number_of_alleles: int) -> None:
        """Start a block for the given number of samples and alleles."""
        if number_of_samples < 0 or number_of_samples > 0xFFFFFFFF:
            raise ValueError(f"invalid number of samples {number_of_samples}")
        if not 1 <= number_of_alleles <= 0xFFFF:
            raise ValueError(f"invalid number of alleles {number_of_alleles}")
        self._number_of_samples = number_of_samples
        self._reset(number_of_samples, number_of_alleles)

    def _require_initialised(self) -> int:
        if self._number_of_samples is None:
            raise RuntimeError("writer has not been initialised")
        return self._number_of_samples

    def _sample_complete(self) -> bool:
        if self._current is None:
            return True
        return (
            len(self._ploidy_bytes) == self._current + 1
            and len(self._values) == self._entries
        )

    def set_sample(self, index: int) -> bool:
        """Move to sample ``index``; samples must be visited in order."""
        total = self._require_initialised()
        if self._finalised:
            raise RuntimeError("writer has already been finalised")
        if index != self._next_sample or index >= total:
            raise ValueError(f"expected sample {self._next_sample}, got {index}")
        if not self._sample_complete():
            raise ValueError(f"sample {self._current} is incomplete")
        self._current = index
        self._next_sample += 1
        return True

    def set_number_of_entries(
        self,
        ploidy: int,
        number_of_entries: int,
        order_type: OrderType,
        value_type: ValueType,
    ) -> None:
        """Declare the ploidy and number of values of the current sample."""
        self._require_initialised()
        if self._current is None or len(self._ploidy_bytes) != self._current:
            raise ValueError("set_sample must be called before set_number_of_entries")
        if not 0 <= ploidy <= _MAX_PLOIDY:
            raise ValueError(f"ploidy {ploidy} is out of range")
        if order_type not in _SUPPORTED_ORDER_TYPES:
            raise ValueError(f"unsupported order type {order_type!r}")
        if self._order_type is None:
            self._order_type = OrderType(order_type)
        elif self._order_type != order_type:
            raise BGenError("all samples must share one order type")
        if value_type != ValueType.PROBABILITY:
            raise BGenError("only probability values can be written")
        phased = order_type == OrderType.PER_PHASED_HAPLOTYPE_PER_ALLELE
        expected = _expected_entries(ploidy, self._number_of_alleles, phased)
        if number_of_entries != expected:
            raise ValueError(
                f"ploidy {ploidy} with {self._number_of_alleles} alleles needs "
                f"{expected} entries, got {number_of_entries}"
            )
        self._ploidy_bytes.append(ploidy)
        self._min_ploidy = min(self._min_ploidy, ploidy)
        self._max_ploidy = max(self._max_ploidy, ploidy)
        self._entries = number_of_entries
        self._values = []
        self._missing = False

    def set_value(self, index: int, value: Value) -> None:
        """Set value ``index`` of the current sample, a probability or MissingValue."""
        if self._current is None or len(self._ploidy_bytes) != self._current + 1:
            raise ValueError("set_number_of_entries must be called before set_value")
        if len(self._values) >= self._entries:
            raise ValueError("too many values for this sample")
        if index != len(self._values):
            raise ValueError(f"expected value {len(self._values)}, got {index}")
        is_missing = isinstance(value, MissingValue)
        if self._values and is_missing != self._missing:
            raise ValueError("either all or none of a sample's values must be missing")
        self._missing = is_missing
        self._values.append(0.0 if is_missing else float(value))
        if len(self._values) == self._entries:
            self._bake()

    def _groups(self) -> list[list[float]]:
        if self._order_type == OrderType.PER_PHASED_HAPLOTYPE_PER_ALLELE:
            k = self._number_of_alleles
            return [self._values[i : i + k] for i in range(0, len(self._values), k)]
        return [self._values]

    def _bake(self) -> None:
        for group in self._groups():
            if self._missing:
                stored = [0] * (len(group) - 1)
            else:
                stored = round_probs_to_scaled_simplex(group, self.number_of_bits)[:-1]
            for value in stored:
                self._writer.write(value)
        if self._missing:
            self._ploidy_bytes[-1] |= 0x80

    def finalise(self) -> None:
        """Complete the block once every sample has been written."""
        total = self._require_initialised()
        if self._finalised:
            return
        if len(self._ploidy_bytes) != total or not self._sample_complete():
            raise ValueError(
                f"only {len(self._ploidy_bytes)} of {total} samples were written"
            )
        self._writer.flush()
        self._finalised = True

    def to_bytes(self) -> bytes:
        """The finished, uncompressed probability data block."""
        total = self._require_initialised()
        if not self._finalised:
            raise RuntimeError("writer has not been finalised")
        phased = self._order_type == OrderType.PER_PHASED_HAPLOTYPE_PER_ALLELE
        return b"".join(
            (
                total.to_bytes(4, "little"),
                self._number_of_alleles.to_bytes(2, "little"),
                bytes((self._min_ploidy, self._max_ploidy)),
                bytes(self._ploidy_bytes),
                bytes((1 if phased else 0, self.number_of_bits)),
                bytes(self._writer.output),
            )
        )


def _triples(context: Context, probabilities: Iterable[Sequence[float]]) -> list[tuple[float, float, float]]:
    triples = []
    for entry in probabilities:
        values = tuple(float(v) for v in entry)
        if len(values) != 3:
            raise ValueError("each sample needs exactly three genotype probabilities")
        triples.append(values)
    if len(triples) != context.number_of_samples:
        raise ValueError(
            f"{len(triples)} samples given, header has {context.number_of_samples}"
        )
    return triples


def _to_v11_integer(value: float, factor: float) -> int:
    scaled = min(max(value * factor, 0.0), _MAX_V11_VALUE)
    return math.floor(scaled + 0.5)


def _write_v11(context: Context, triples: list[tuple[float, float, float]]) -> bytes:
    factor = conversion_factor(context.flags)
    out = bytearray()
    for triple in triples:
        for value in triple:
            out += _to_v11_integer(value, factor).to_bytes(2, "little")
    return bytes(out)


def _write_v12(
    context: Context, triples: list[tuple[float, float, float]], number_of_bits: int
) -> bytes:
    writer = _BitWriter(number_of_bits)
    ploidy_bytes = bytearray()
    for triple in triples:
        missing = all(v == 0.0 for v in triple)
        ploidy_bytes.append(2 | (0x80 if missing else 0))
        if missing:
            stored = [0, 0]
        else:
            total = sum(triple)
            if not 0.99 <= total < 1.01:
                raise ValueError(f"genotype probabilities sum to {total}, not 1")
            normalised = [v / total for v in triple]
            stored = round_probs_to_scaled_simplex(normalised, number_of_bits)[:-1]
        for value in stored:
            writer.write(value)
    writer.flush()
    return b"".join(
        (
            context.number_of_samples.to_bytes(4, "little"),
            (2).to_bytes(2, "little"),
            bytes((2, 2)),
            bytes(ploidy_bytes),
            bytes((0, number_of_bits)),
            bytes(writer.output),
        )
    )


def write_uncompressed_snp_probability_data(
    context: Context,
    probabilities: Iterable[Sequence[float]],
    number_of_bits: int = 16,
) -> bytes:
    """Encode (AA, AB, BB) probabilities of every sample as an uncompressed block.

    In layout 1.2 a sample whose three probabilities are all zero is written
    as missing.
    """
    _check_bits(number_of_bits)
    layout = context.layout()
    if layout not in (Layout.V11, Layout.V12):
        raise BGenError("only layouts 1.1 and 1.2 can be written")
    triples = _triples(context, probabilities)
    if layout == Layout.V11:
        return _write_v11(context, triples)
    return _write_v12(context, triples, number_of_bits)


def write_snp_probability_data(
    stream: BinaryIO,
    context: Context,
    probabilities: Iterable[Sequence[float]],
    number_of_bits: int = 16,
) -> None:
    """Write the genotype data block of one variant, compressing it if the header says so."""
    data = write_uncompressed_snp_probability_data(context, probabilities, number_of_bits)
    layout = context.layout()
    if context.compressed():
        compressed = zlib.compress(data)
        if layout == Layout.V12:
            write_little_endian(stream, len(compressed) + 4, 4)
            write_little_endian(stream, len(data), 4)
        else:
            write_little_endian(stream, len(compressed), 4)
        stream.write(compressed)
    else:
        if layout == Layout.V12:
            write_little_endian(stream, len(data), 4)
        stream.write(data)