"""Test helpers for zstd_stream unit tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from zstd_stream.native import is_library_available

from .doubles import (
    ERROR_STATUS,
    CallRecord,
    ChunkedSource,
    FailingSource,
    FlakySource,
    FlushingSession,
    NonBlockingSource,
    PassthroughSession,
    ReadOnlySource,
    TrickleStream,
)

Compress = Callable[..., bytes]
"""Signature of the ``compress`` fixture: data, level, then keyword options."""

requires_libzstd = pytest.mark.skipif(
    not is_library_available(),
    reason="native libzstd shared library not found",
)
"""Skip marker for tests that drive the real native codec."""


def read_all(reader: object, size: int) -> bytes:
    """Drain ``reader`` with fixed-size ``read`` calls until it returns nothing."""
    parts = []
    while True:
        piece = reader.read(size)  # type: ignore[attr-defined]
        if not piece:
            return b"".join(parts)
        parts.append(piece)


__all__ = [
    "Compress",
    "ERROR_STATUS",
    "CallRecord",
    "ChunkedSource",
    "FailingSource",
    "FlakySource",
    "FlushingSession",
    "NonBlockingSource",
    "PassthroughSession",
    "ReadOnlySource",
    "TrickleStream",
    "read_all",
    "requires_libzstd",
]
