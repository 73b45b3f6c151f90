"""
ctypes mirrors of the zstd streaming buffer structures, and memory pinning.

The library describes both sides of a streaming call with the same shape::

    typedef struct { const void* src; size_t size; size_t pos; } ZSTD_inBuffer;
    typedef struct {       void* dst; size_t size; size_t pos; } ZSTD_outBuffer;

``size`` is set by the caller. ``pos`` is in/out: the library advances it
by the number of bytes consumed (input) or written (output).
"""

from __future__ import annotations

import ctypes
from collections.abc import Iterator
from contextlib import contextmanager


class ZSTD_inBuffer(ctypes.Structure):
    """Native descriptor for compressed input."""

    _fields_ = [
        ("src", ctypes.c_void_p),
        ("size", ctypes.c_size_t),
        ("pos", ctypes.c_size_t),
    ]


class ZSTD_outBuffer(ctypes.Structure):
    """Native descriptor for decompressed output."""

    _fields_ = [
        ("dst", ctypes.c_void_p),
        ("size", ctypes.c_size_t),
        ("pos", ctypes.c_size_t),
    ]


@contextmanager
def pinned(view: memoryview | None) -> Iterator[int | None]:
    """
    Pin a writable memory region and yield its address.

    ``from_buffer`` exports the buffer of the backing object for as long as
    the ctypes array lives. While exported, a ``bytearray`` refuses to be
    resized (``BufferError``), so the address stays valid for the native call
    made inside the ``with`` block. The export ends on exit.

    Args:
        view: The region to pin. None or an empty view yields None (NULL).

    Yields:
        The address of the first byte, or None.
    """
    if view is None or len(view) == 0:
        yield None
        return

    array = (ctypes.c_char * len(view)).from_buffer(view)
    try:
        yield ctypes.addressof(array)
    finally:
        del array
