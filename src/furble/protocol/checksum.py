"""Adler-32 checksum used to verify DLC uploads."""

from __future__ import annotations

import zlib

ADLER32_INITIAL = 1


def adler32(data: bytes, value: int = ADLER32_INITIAL) -> int:
    """Compute the Adler-32 checksum of ``data``.

    Args:
        data: Bytes to checksum
        value: Running checksum to continue from (default: 1, a fresh start)

    Returns:
        Unsigned 32-bit checksum; 1 for empty input
    """
    return zlib.adler32(bytes(data), value) & 0xFFFFFFFF
