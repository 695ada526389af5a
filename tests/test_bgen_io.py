import io
import zlib

import pytest

from scopa.bgen_io import (
    BGenError,
    Context,
    FlagMask,
    Layout,
    Variant,
    ignore_genotype_data_block,
    read_genotype_data_block,
    read_header_block,
    read_length_prefixed,
    read_little_endian,
    read_offset,
    read_sample_identifier_block,
    read_snp_identifying_data,
    uncompress_probability_data,
    write_header_block,
    write_length_prefixed,
    write_little_endian,
    write_offset,
    write_sample_identifier_block,
    write_snp_identifying_data,
)


def _stream(data=b""):
    return io.BytesIO(data)


def test_write_little_endian_byte_order():
    out = _stream()
    write_little_endian(out, 0x01020304, 4)
    assert out.getvalue() == b"\x04\x03\x02\x01"


def test_little_endian_round_trip():
    out = _stream()
    write_little_endian(out, 65535, 2)
    write_little_endian(out, 7, 1)
    out.seek(0)
    assert read_little_endian(out, 2) == 65535
    assert read_little_endian(out, 1) == 7


def test_write_little_endian_overflow():
    with pytest.raises(ValueError):
        write_little_endian(_stream(), 256, 1)


def test_read_little_endian_short_stream():
    with pytest.raises(BGenError):
        read_little_endian(_stream(b"\x01\x02"), 4)


def test_length_prefixed_round_trip():
    out = _stream()
    write_length_prefixed(out, b"rs123", 2)
    assert out.getvalue()[:2] == (5).to_bytes(2, "little")
    out.seek(0)
    assert read_length_prefixed(out, 2) == b"rs123"


def test_length_prefixed_truncated():
    with pytest.raises(BGenError):
        read_length_prefixed(_stream(b"\x05\x00ab"), 2)


def test_offset_round_trip():
    out = _stream()
    write_offset(out, 1234)
    out.seek(0)
    assert read_offset(out) == 1234


def test_context_properties():
    ctx = Context(flags=Layout.V12 | FlagMask.COMPRESSED_SNP_BLOCKS)
    assert ctx.layout() == Layout.V12
    assert ctx.compressed() is True
    assert Context().header_size() == 20
    assert Context(free_data=b"abc").header_size() == 23


def test_context_unknown_layout():
    with pytest.raises(BGenError):
        Context(flags=0x3C).layout()


def test_header_accepts_zero_magic():
    ctx = Context(number_of_samples=1, magic=b"\x00\x00\x00\x00", flags=Layout.V12)
    out = _stream()
    write_header_block(out, ctx)
    out.seek(0)
    assert read_header_block(out).magic == b"\x00\x00\x00\x00"


def test_header_rejects_bad_magic():
    out = _stream()
    write_header_block(out, Context(magic=b"nope"))
    out.seek(0)
    with pytest.raises(BGenError):
        read_header_block(out)


def test_header_rejects_small_size():
    out = _stream()
    write_little_endian(out, 12, 4)
    out.write(b"\x00" * 20)
    out.seek(0)
    with pytest.raises(BGenError):
        read_header_block(out)


def test_header_truncated():
    out = _stream()
    write_header_block(out, Context())
    data = out.getvalue()[:-2]
    with pytest.raises(BGenError):
        read_header_block(_stream(data))


def test_sample_identifiers_round_trip():
    ids = ["sample_1", "s2", ""]
    ctx = Context(number_of_samples=len(ids))
    out = _stream()
    size = write_sample_identifier_block(out, ctx, ids)
    assert size == len(out.getvalue())
    out.seek(0)
    assert read_sample_identifier_block(out, ctx) == ids


def test_sample_identifiers_count_mismatch_on_write():
    with pytest.raises(ValueError):
        write_sample_identifier_block(_stream(), Context(number_of_samples=2), ["a"])


def test_sample_identifiers_count_mismatch_on_read():
    out = _stream()
    write_sample_identifier_block(out, Context(number_of_samples=1), ["a"])
    out.seek(0)
    with pytest.raises(BGenError):
        read_sample_identifier_block(out, Context(number_of_samples=2))


@pytest.mark.parametrize("layout", [Layout.V11, Layout.V12])
def test_snp_round_trip(layout):
    ctx = Context(number_of_samples=4, flags=layout)
    variant = Variant("SNP1", "rs42", "01", 123456, ("A", "GT"))
    out = _stream()
    write_snp_identifying_data(out, ctx, variant)
    out.seek(0)
    assert read_snp_identifying_data(out, ctx) == variant
    assert read_snp_identifying_data(out, ctx) is None


def test_snp_v11_sample_count_mismatch():
    out = _stream()
    write_snp_identifying_data(
        out, Context(number_of_samples=4, flags=Layout.V11),
        Variant("a", "b", "1", 1, ("A", "C")),
    )
    out.seek(0)
    with pytest.raises(BGenError):
        read_snp_identifying_data(out, Context(number_of_samples=5, flags=Layout.V11))


def test_snp_truncated_record():
    ctx = Context(number_of_samples=1, flags=Layout.V12)
    out = _stream()
    write_snp_identifying_data(out, ctx, Variant("a", "b", "1", 1, ("A", "C")))
    with pytest.raises(BGenError):
        read_snp_identifying_data(_stream(out.getvalue()[:-1]), ctx)


def test_snp_v12_multiallelic():
    ctx = Context(number_of_samples=1, flags=Layout.V12)
    out = _stream()
    write_length_prefixed(out, b"id", 2)
    write_length_prefixed(out, b"rs", 2)
    write_length_prefixed(out, b"22", 2)
    write_little_endian(out, 99, 4)
    write_little_endian(out, 3, 2)
    for allele in (b"A", b"C", b"TT"):
        write_length_prefixed(out, allele, 4)
    out.seek(0)
    variant = read_snp_identifying_data(out, ctx)
    assert variant.alleles == ("A", "C", "TT")
    assert variant.position == 99
    assert variant.chromosome == "22"


def test_snp_v10_layout():
    ctx = Context(number_of_samples=2, flags=Layout.V10)
    out = _stream()
    write_little_endian(out, 2, 4)
    write_little_endian(out, 4, 1)
    write_length_prefixed(out, b"ab", 1)
    out.write(b"\x00\x00")
    write_length_prefixed(out, b"rs1", 1)
    out.write(b"\x00")
    write_little_endian(out, 23, 1)
    write_little_endian(out, 500, 4)
    write_length_prefixed(out, b"A", 1)
    write_length_prefixed(out, b"G", 1)
    out.seek(0)
    variant = read_snp_identifying_data(out, ctx)
    assert variant == Variant("ab", "rs1", "0X", 500, ("A", "G"))
    assert read_snp_identifying_data(out, ctx) is None


def test_snp_v10_unknown_chromosome():
    ctx = Context(number_of_samples=1, flags=Layout.V10)
    out = _stream()
    write_little_endian(out, 1, 4)
    write_little_endian(out, 0, 1)
    write_length_prefixed(out, b"", 1)
    write_length_prefixed(out, b"", 1)
    write_little_endian(out, 200, 1)
    write_little_endian(out, 1, 4)
    write_length_prefixed(out, b"A", 1)
    write_length_prefixed(out, b"C", 1)
    out.seek(0)
    assert read_snp_identifying_data(out, ctx).chromosome == "NA"


def test_write_snp_rejects_v10():
    with pytest.raises(BGenError):
        write_snp_identifying_data(
            _stream(), Context(flags=Layout.V10), Variant("a", "b", "1", 1, ("A", "C"))
        )


def test_write_snp_rejects_multiallelic():
    with pytest.raises(ValueError):
        write_snp_identifying_data(
            _stream(), Context(flags=Layout.V12), Variant("a", "b", "1", 1, ("A", "C", "G"))
        )


def test_read_genotype_block_v11_uncompressed():
    ctx = Context(number_of_samples=2, flags=Layout.V11)
    payload = bytes(range(12))
    stream = _stream(payload + b"rest")
    assert read_genotype_data_block(stream, ctx) == payload
    assert stream.read() == b"rest"


def test_read_genotype_block_v12_uncompressed():
    ctx = Context(number_of_samples=2, flags=Layout.V12)
    out = _stream()
    write_length_prefixed(out, b"payload", 4)
    out.seek(0)
    assert read_genotype_data_block(out, ctx) == b"payload"


def test_read_genotype_block_truncated():
    ctx = Context(number_of_samples=2, flags=Layout.V11)
    with pytest.raises(BGenError):
        read_genotype_data_block(_stream(b"\x00" * 5), ctx)


def test_ignore_genotype_block_compressed():
    ctx = Context(number_of_samples=2, flags=Layout.V11 | FlagMask.COMPRESSED_SNP_BLOCKS)
    out = _stream()
    write_length_prefixed(out, b"xyz", 4)
    out.write(b"next")
    out.seek(0)
    ignore_genotype_data_block(out, ctx)
    assert out.read() == b"next"


def test_ignore_genotype_block_uncompressed():
    ctx = Context(number_of_samples=1, flags=Layout.V11)
    stream = _stream(b"\x01" * 6 + b"tail")
    ignore_genotype_data_block(stream, ctx)
    assert stream.read() == b"tail"


def test_uncompress_passthrough():
    ctx = Context(number_of_samples=1, flags=Layout.V12)
    assert uncompress_probability_data(ctx, b"abc") == b"abc"


def test_uncompress_v11():
    ctx = Context(number_of_samples=2, flags=Layout.V11 | FlagMask.COMPRESSED_SNP_BLOCKS)
    raw = bytes(range(12))
    assert uncompress_probability_data(ctx, zlib.compress(raw)) == raw


def test_uncompress_v12():
    ctx = Context(number_of_samples=2, flags=Layout.V12 | FlagMask.COMPRESSED_SNP_BLOCKS)
    raw = b"probability data"
    block = len(raw).to_bytes(4, "little") + zlib.compress(raw)
    assert uncompress_probability_data(ctx, block) == raw


def test_uncompress_size_mismatch():
    ctx = Context(number_of_samples=2, flags=Layout.V11 | FlagMask.COMPRESSED_SNP_BLOCKS)
    with pytest.raises(BGenError):
        uncompress_probability_data(ctx, zlib.compress(b"short"))


def test_uncompress_corrupt():
    ctx = Context(number_of_samples=1, flags=Layout.V12 | FlagMask.COMPRESSED_SNP_BLOCKS)
    with pytest.raises(BGenError):
        uncompress_probability_data(ctx, (6).to_bytes(4, "little") + b"garbage")


def test_read_then_uncompress_full_block():
    ctx = Context(number_of_samples=3, flags=Layout.V12 | FlagMask.COMPRESSED_SNP_BLOCKS)
    raw = b"\x00" * 30
    compressed = zlib.compress(raw)
    out = _stream()
    write_little_endian(out, len(compressed) + 4, 4)
    write_little_endian(out, len(raw), 4)
    out.write(compressed)
    out.seek(0)
    block = read_genotype_data_block(out, ctx)
    assert uncompress_probability_data(ctx, block) == raw