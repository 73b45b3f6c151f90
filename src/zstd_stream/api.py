"""
High-level helpers built on ``ZstdReader``.

These cover the common cases (files, in-memory buffers, pumping a stream
into a sink) without having to assemble readers by hand.
"""

from __future__ import annotations

import builtins
import io
import logging
import os
from typing import IO, Any

from .config import ReaderConfig
from .constants import DEFAULT_COPY_CHUNK_SIZE
from .exceptions import UnsupportedOperation
from .native.library import load_library
from .reader import ZstdReader

logger = logging.getLogger(__name__)

_READ_MODES: frozenset[str] = frozenset({"r", "rb", "rt"})


def open(
    file: str | os.PathLike[str] | IO[bytes],
    mode: str = "rb",
    *,
    closefd: bool = True,
    config: ReaderConfig | None = None,
    encoding: str | None = None,
    errors: str | None = None,
    newline: str | None = None,
) -> io.BufferedReader | io.TextIOWrapper:
    """
    Open a zstd-compressed file for reading.

    Args:
        file: A path, or a binary file object positioned at compressed data.
        mode: ``"rb"`` (or ``"r"``) for bytes, ``"rt"`` for text.
        closefd: When ``file`` is a file object, close it with the stream.
            Paths opened here are always closed.
        config: Reader tuning.
        encoding: Text encoding, text mode only.
        errors: Text error handling, text mode only.
        newline: Newline translation, text mode only.

    Returns:
        A buffered binary stream, or a text stream in ``"rt"`` mode.

    Raises:
        UnsupportedOperation: If ``mode`` asks for writing or appending.
        ValueError: If text options are given in binary mode.
    """
    if mode not in _READ_MODES:
        raise UnsupportedOperation(f"open(mode={mode!r})")
    if mode != "rt" and (encoding is not None or errors is not None or newline is not None):
        raise ValueError("encoding, errors and newline are only valid in text mode")

    if isinstance(file, (str, bytes, os.PathLike)):
        source: IO[bytes] = builtins.open(file, "rb")
        closefd = True
    else:
        source = file

    reader = ZstdReader(source, closefd=closefd, config=config)
    buffered = io.BufferedReader(reader)
    if mode == "rt":
        return io.TextIOWrapper(buffered, encoding, errors, newline)
    return buffered


def decompress(
    data: bytes | bytearray | memoryview, *, config: ReaderConfig | None = None
) -> bytes:
    """
    Decompress an in-memory zstd stream.

    Concatenated frames decompress to the concatenation of their contents.

    Args:
        data: Compressed bytes.
        config: Reader tuning.

    Returns:
        The decompressed bytes.

    Raises:
        CodecError: If the data is not valid zstd.
    """
    with ZstdReader(io.BytesIO(data), config=config) as reader:
        return reader.readall()


def copy_stream(
    source: Any,
    destination: Any,
    *,
    chunk_size: int = DEFAULT_COPY_CHUNK_SIZE,
    config: ReaderConfig | None = None,
) -> int:
    """
    Decompress everything from ``source`` into ``destination``.

    Neither stream is closed.

    Args:
        source: Binary file object yielding compressed bytes.
        destination: Binary file object accepting ``write``.
        chunk_size: Decompressed bytes requested per read.
        config: Reader tuning.

    Returns:
        Total decompressed bytes written.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    total = 0
    buffer = bytearray(chunk_size)
    view = memoryview(buffer)
    with ZstdReader(source, closefd=False, config=config) as reader:
        while True:
            count = reader.readinto(buffer)
            if count == 0:
                break
            destination.write(view[:count])
            total += count

    logger.debug("Copied %d decompressed bytes", total)
    return total


def library_version(config: ReaderConfig | None = None) -> str:
    """Version string of the zstd library the readers would use."""
    path = config.library_path if config is not None else ReaderConfig().library_path
    return load_library(path).version_string()
