"""
Constants for the zstd decompression stream.

Reference: https://github.com/facebook/zstd/blob/dev/doc/zstd_compression_format.md
"""

from __future__ import annotations

from typing_extensions import Final

# ===========================================================================
# Frame Format
# ===========================================================================
#
# Every zstd frame starts with a 4-byte little-endian magic number. Sniffing
# these bytes is enough to tell a zstd stream apart from other formats
# before a decode session is built for it.

MAGIC_NUMBER: Final[int] = 0xFD2FB528
"""Magic number opening every zstd frame, as a little-endian 32-bit value."""

MAGIC_BYTES: Final[bytes] = MAGIC_NUMBER.to_bytes(4, "little")
"""The magic number as it appears on the wire: 28 B5 2F FD."""

# ===========================================================================
# Native Library
# ===========================================================================

LIBRARY_NAME: Final[str] = "zstd"
"""Short name handed to ``ctypes.util.find_library``."""

LIBRARY_FALLBACK_NAMES: Final[tuple[str, ...]] = (
    "libzstd.so.1",
    "libzstd.so",
    "libzstd.1.dylib",
    "libzstd.dylib",
    "libzstd.dll",
    "zstd.dll",
)
"""Platform file names tried when ``find_library`` comes back empty.

``ctypes.CDLL`` resolves bare names through the system loader search path,
so these cover the common Linux, macOS and Windows installs.
"""

LIBRARY_ENV_VAR: Final[str] = "ZSTD_STREAM_LIBRARY"
"""Environment variable holding an explicit path to the shared library."""

# ===========================================================================
# Stream I/O
# ===========================================================================

DEFAULT_COPY_CHUNK_SIZE: Final[int] = 128 * 1024
"""Decompressed bytes requested per read when pumping a stream to a sink.

Matches the codec's recommended output chunk size (``ZSTD_DStreamOutSize``,
128 KiB), which lets each read drain a full block in one call.
"""
