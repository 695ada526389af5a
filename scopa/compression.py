"""zlib compression helpers for genotype data blocks."""

from __future__ import annotations

import zlib


def zlib_compress(data: bytes, prefix: bytes = b"") -> bytes:
    """Compress ``data`` at the best compression level, placed after ``prefix``."""
    return bytes(prefix) + zlib.compress(bytes(data), zlib.Z_BEST_COMPRESSION)


def zlib_uncompress(data: bytes, expected_size: int | None = None) -> bytes:
    """Uncompress ``data``; if ``expected_size`` is given the result may not exceed it."""
    try:
        if expected_size is None:
            return zlib.decompress(bytes(data))
        decompressor = zlib.decompressobj()
        result = decompressor.decompress(bytes(data), expected_size)
        if decompressor.unconsumed_tail or not decompressor.eof:
            if decompressor.unconsumed_tail:
                raise ValueError(
                    f"uncompressed data exceeds the expected size of {expected_size} bytes"
                )
            raise ValueError("compressed data is incomplete")
        return result
    except zlib.error as exc:
        raise ValueError(f"cannot uncompress data: {exc}") from exc