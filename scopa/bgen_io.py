"""Reading and writing the header, sample and variant blocks of BGEN files."""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from enum import IntEnum
from typing import BinaryIO

from scopa.compression import zlib_uncompress

FIXED_HEADER_SIZE = 20
SAMPLE_IDENTIFIERS = 0x80000000

_MAX_ID_LENGTH = 0xFFFF
_MAX_ALLELE_LENGTH = 0xFFFFFFFF
_VALID_MAGICS = (b"bgen", b"\x00\x00\x00\x00")

_V10_CHROMOSOMES = {code: f"{code:02d}" for code in range(1, 23)}
_V10_CHROMOSOMES.update({23: "0X", 24: "0Y", 253: "XY", 254: "MT"})


class BGenError(Exception):
    """Raised when BGEN data is malformed or truncated."""

    def __init__(self, message: str = "BGenError") -> None:
        super().__init__(message)


class FlagMask(IntEnum):
    """Bit masks applied to the header flags."""

    NO_FLAGS = 0x0
    COMPRESSED_SNP_BLOCKS = 0x1
    LAYOUT = 0x3C


class Layout(IntEnum):
    """Layout versions stored in the header flags."""

    V10 = 0x0
    V11 = 0x4
    V12 = 0x8


@dataclass
class Context:
    """The information held in a BGEN header block."""

    number_of_samples: int = 0
    number_of_variants: int = 0
    magic: bytes = b"bgen"
    free_data: bytes = b""
    flags: int = 0

    def layout(self) -> Layout:
        """The layout encoded in the flags."""
        value = self.flags & FlagMask.LAYOUT
        try:
            return Layout(value)
        except ValueError:
            raise BGenError(f"unknown layout 0x{value:x}") from None

    def compressed(self) -> bool:
        """Whether genotype data blocks are zlib compressed."""
        return bool(self.flags & FlagMask.COMPRESSED_SNP_BLOCKS)

    def header_size(self) -> int:
        """Size in bytes of the header block, not counting the flags."""
        return len(self.free_data) + FIXED_HEADER_SIZE


@dataclass(frozen=True)
class Variant:
    """Identifying data of one variant."""

    snpid: str
    rsid: str
    chromosome: str
    position: int
    alleles: tuple[str, ...] = field(default_factory=tuple)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count) if count > 0 else b""
    if data is None or len(data) != count:
        raise BGenError(f"expected {count} bytes, stream ended early")
    return data


def read_little_endian(stream: BinaryIO, size: int) -> int:
    """Read an unsigned little-endian integer of ``size`` bytes."""
    return int.from_bytes(_read_exact(stream, size), "little")


def write_little_endian(stream: BinaryIO, value: int, size: int) -> None:
    """Write ``value`` as an unsigned little-endian integer of ``size`` bytes."""
    try:
        stream.write(int(value).to_bytes(size, "little"))
    except OverflowError:
        raise ValueError(f"{value} does not fit in {size} unsigned bytes") from None


def read_length_prefixed(stream: BinaryIO, size: int) -> bytes:
    """Read a length of ``size`` bytes followed by that many bytes of data."""
    length = read_little_endian(stream, size)
    return _read_exact(stream, length)


def write_length_prefixed(stream: BinaryIO, data: bytes, size: int) -> None:
    """Write the length of ``data`` in ``size`` bytes, then the data itself."""
    write_little_endian(stream, len(data), size)
    stream.write(bytes(data))


def read_offset(stream: BinaryIO) -> int:
    """Read the offset of the first variant from the start of the file."""
    return read_little_endian(stream, 4)


def write_offset(stream: BinaryIO, offset: int) -> None:
    """Write the offset of the first variant."""
    write_little_endian(stream, offset, 4)


def read_header_block(stream: BinaryIO) -> Context:
    """Read a header block and return its contents."""
    header_size = read_little_endian(stream, 4)
    if header_size < FIXED_HEADER_SIZE:
        raise BGenError(f"header size {header_size} is below {FIXED_HEADER_SIZE}")
    number_of_variants = read_little_endian(stream, 4)
    number_of_samples = read_little_endian(stream, 4)
    magic = _read_exact(stream, 4)
    free_data = _read_exact(stream, header_size - FIXED_HEADER_SIZE)
    flags = read_little_endian(stream, 4)
    if magic not in _VALID_MAGICS:
        raise BGenError(f"bad magic number {magic!r}")
    return Context(
        number_of_samples=number_of_samples,
        number_of_variants=number_of_variants,
        magic=magic,
        free_data=free_data,
        flags=flags,
    )


def write_header_block(stream: BinaryIO, context: Context) -> None:
    """Write a header block taken from ``context``."""
    if len(context.magic) != 4:
        raise ValueError("magic must be exactly four bytes")
    write_little_endian(stream, context.header_size(), 4)
    write_little_endian(stream, context.number_of_variants, 4)
    write_little_endian(stream, context.number_of_samples, 4)
    stream.write(bytes(context.magic))
    stream.write(bytes(context.free_data))
    write_little_endian(stream, context.flags, 4)


def read_sample_identifier_block(stream: BinaryIO, context: Context) -> list[str]:
    """Read the sample identifier block and return the identifiers in order."""
    block_size = read_little_endian(stream, 4)
    number_of_samples = read_little_endian(stream, 4)
    if number_of_samples != context.number_of_samples:
        raise BGenError(
            f"sample block lists {number_of_samples} samples, header has "
            f"{context.number_of_samples}"
        )
    bytes_read = 8
    identifiers = []
    for _ in range(number_of_samples):
        raw = read_length_prefixed(stream, 2)
        bytes_read += 2 + len(raw)
        identifiers.append(_decode(raw))
    if bytes_read != block_size:
        raise BGenError(f"sample block size {block_size} does not match {bytes_read}")
    return identifiers


def write_sample_identifier_block(
    stream: BinaryIO, context: Context, sample_ids: list[str]
) -> int:
    """Write the sample identifier block and return its size in bytes."""
    encoded = [_encode(sample_id) for sample_id in sample_ids]
    if len(encoded) != context.number_of_samples:
        raise ValueError(
            f"{len(encoded)} identifiers given for {context.number_of_samples} samples"
        )
    for raw in encoded:
        if len(raw) > _MAX_ID_LENGTH:
            raise ValueError("sample identifier is too long")
    block_size = 8 + sum(2 + len(raw) for raw in encoded)
    write_little_endian(stream, block_size, 4)
    write_little_endian(stream, context.number_of_samples, 4)
    for raw in encoded:
        write_length_prefixed(stream, raw, 2)
    return block_size


def _read_v10_snp(stream: BinaryIO, context: Context) -> Variant | None:
    try:
        number_of_samples = read_little_endian(stream, 4)
    except BGenError:
        return None
    if number_of_samples != context.number_of_samples:
        raise BGenError("variant sample count does not match the header")
    max_id_size = read_little_endian(stream, 1)
    identifiers = []
    for _ in range(2):
        raw = read_length_prefixed(stream, 1)
        if len(raw) > max_id_size:
            raise BGenError("identifier longer than the declared maximum")
        _read_exact(stream, max_id_size - len(raw))
        identifiers.append(_decode(raw))
    chromosome_code = read_little_endian(stream, 1)
    position = read_little_endian(stream, 4)
    first = _decode(read_length_prefixed(stream, 1))
    second = _decode(read_length_prefixed(stream, 1))
    return Variant(
        snpid=identifiers[0],
        rsid=identifiers[1],
        chromosome=_V10_CHROMOSOMES.get(chromosome_code, "NA"),
        position=position,
        alleles=(first, second),
    )


def read_snp_identifying_data(stream: BinaryIO, context: Context) -> Variant | None:
    """Read the identifying data of the next variant.

    Returns None when the first field cannot be read (end of data); raises
    BGenError when the record is only partly present.
    """
    layout = context.layout()
    if layout == Layout.V10:
        return _read_v10_snp(stream, context)
    if layout == Layout.V11:
        try:
            number_of_samples = read_little_endian(stream, 4)
        except BGenError:
            return None
        if number_of_samples != context.number_of_samples:
            raise BGenError("variant sample count does not match the header")
        snpid = read_length_prefixed(stream, 2)
    else:
        try:
            snpid = read_length_prefixed(stream, 2)
        except BGenError:
            return None
    rsid = read_length_prefixed(stream, 2)
    chromosome = read_length_prefixed(stream, 2)
    position = read_little_endian(stream, 4)
    number_of_alleles = read_little_endian(stream, 2) if layout == Layout.V12 else 2
    alleles = tuple(
        _decode(read_length_prefixed(stream, 4)) for _ in range(number_of_alleles)
    )
    return Variant(
        snpid=_decode(snpid),
        rsid=_decode(rsid),
        chromosome=_decode(chromosome),
        position=position,
        alleles=alleles,
    )


def write_snp_identifying_data(
    stream: BinaryIO, context: Context, variant: Variant
) -> None:
    """Write the identifying data of a biallelic variant."""
    layout = context.layout()
    if layout not in (Layout.V11, Layout.V12):
        raise BGenError("only layouts 1.1 and 1.2 can be written")
    if len(variant.alleles) != 2:
        raise ValueError("only biallelic variants can be written")
    snpid = _encode(variant.snpid)
    rsid = _encode(variant.rsid)
    chromosome = _encode(variant.chromosome)
    if len(snpid) > _MAX_ID_LENGTH or len(rsid) > _MAX_ID_LENGTH:
        raise ValueError("variant identifier is too long")
    alleles = []
    for which, allele in zip(("first", "second"), variant.alleles):
        raw = _encode(allele)
        if len(raw) > _MAX_ALLELE_LENGTH:
            warnings.warn(
                f"at SNP {variant.snpid} {variant.rsid} pos={variant.position}, "
                f"truncating {which} allele of size {len(raw)}",
                stacklevel=2,
            )
            raw = raw[: _MAX_ALLELE_LENGTH - 3] + b"..."
        alleles.append(raw)

    if layout == Layout.V11:
        write_little_endian(stream, context.number_of_samples, 4)
    write_length_prefixed(stream, snpid, 2)
    write_length_prefixed(stream, rsid, 2)
    write_length_prefixed(stream, chromosome, 2)
    write_little_endian(stream, variant.position, 4)
    if layout == Layout.V12:
        write_little_endian(stream, 2, 2)
    for raw in alleles:
        write_length_prefixed(stream, raw, 4)


def ignore_genotype_data_block(stream: BinaryIO, context: Context) -> None:
    """Skip past the genotype data block at the current position."""
    if context.compressed():
        size = read_little_endian(stream, 4)
    else:
        size = 6 * context.number_of_samples
    _read_exact(stream, size)


def read_genotype_data_block(stream: BinaryIO, context: Context) -> bytes:
    """Read the raw (possibly compressed) probability data of one variant."""
    if context.layout() == Layout.V12 or context.compressed():
        payload_size = read_little_endian(stream, 4)
    else:
        payload_size = 6 * context.number_of_samples
    return _read_exact(stream, payload_size)


def uncompress_probability_data(context: Context, data: bytes) -> bytes:
    """Uncompress a genotype data block, or return it unchanged if not compressed."""
    data = bytes(data)
    if not context.compressed():
        return data
    if context.layout() == Layout.V11:
        expected_size = 6 * context.number_of_samples
        payload = data
    else:
        if len(data) < 4:
            raise BGenError("compressed block is missing its uncompressed size")
        expected_size = int.from_bytes(data[:4], "little")
        payload = data[4:]
    try:
        result = zlib_uncompress(payload, expected_size)
    except ValueError as exc:
        raise BGenError(str(exc)) from exc
    if len(result) != expected_size:
        raise BGenError(
            f"uncompressed {len(result)} bytes, expected {expected_size}"
        )
    return result