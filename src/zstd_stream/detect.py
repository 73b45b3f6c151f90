"""Stream-type detection for zstd data."""

from __future__ import annotations

from .constants import MAGIC_BYTES


def is_zstd_stream(data: bytes | bytearray | memoryview) -> bool:
    """
    Check whether a buffer starts with the zstd frame magic number.

    Pure function: only the first four bytes are inspected.

    Args:
        data: The leading bytes of a candidate stream.

    Returns:
        True if at least four bytes are present and they are 28 B5 2F FD.
    """
    # Buffers shorter than the magic number can never match.
    if len(data) < len(MAGIC_BYTES):
        return False
    return bytes(data[: len(MAGIC_BYTES)]) == MAGIC_BYTES
