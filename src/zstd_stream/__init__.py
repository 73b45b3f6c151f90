"""Streaming zstd decompression over arbitrary byte sources.

Zstandard is a fast lossless compression algorithm developed at Facebook.
This package decompresses it lazily: compressed bytes are pulled from the
underlying source only as decompressed bytes are requested.

Usage::

    import zstd_stream

    # Decompress a file as a stream
    with zstd_stream.open("archive.tar.zst") as fh:
        header = fh.read(512)

    # Wrap any binary source
    with zstd_stream.ZstdReader(sock.makefile("rb")) as reader:
        for line in io.BufferedReader(reader):
            ...

    # One-shot
    original = zstd_stream.decompress(compressed)

Decompression is delegated to the native libzstd through ctypes.

Format reference:
https://github.com/facebook/zstd/blob/dev/doc/zstd_compression_format.md
"""

from __future__ import annotations

from .api import copy_stream, decompress, library_version, open
from .buffers import TransferBuffer
from .config import ReaderConfig
from .constants import MAGIC_BYTES, MAGIC_NUMBER
from .detect import is_zstd_stream
from .exceptions import (
    CodecError,
    CodecInitError,
    LibraryNotFoundError,
    SourceReadError,
    UnsupportedOperation,
    UseAfterClose,
    ZstdStreamError,
)
from .reader import StreamState, ZstdReader
from .session import DecodeSession, NativeDecodeSession, SessionState

__all__ = [
    # Streaming API
    "ZstdReader",
    "StreamState",
    "open",
    # One-shot helpers
    "decompress",
    "copy_stream",
    # Codec session
    "DecodeSession",
    "NativeDecodeSession",
    "SessionState",
    "TransferBuffer",
    # Utilities
    "is_zstd_stream",
    "library_version",
    "MAGIC_BYTES",
    "MAGIC_NUMBER",
    # Configuration
    "ReaderConfig",
    # Exceptions
    "ZstdStreamError",
    "CodecInitError",
    "LibraryNotFoundError",
    "CodecError",
    "SourceReadError",
    "UnsupportedOperation",
    "UseAfterClose",
]
