"""Exception hierarchy for the zstd decompression stream."""

from __future__ import annotations

import io


class ZstdStreamError(Exception):
    """
    Base exception for all zstd stream errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class CodecInitError(ZstdStreamError):
    """
    Raised when a decode session cannot be created or initialized.

    Fatal for the session being built. Surfaced straight from the reader's
    constructor; there is no retry.
    """


class LibraryNotFoundError(CodecInitError):
    """
    Raised when the native zstd shared library cannot be loaded.

    Attributes:
        candidates: The library names and paths that were tried, in order.
    """

    def __init__(self, candidates: list[str]) -> None:
        self.candidates = candidates
        super().__init__(f"Could not load libzstd (tried: {', '.join(candidates) or 'nothing'})")


class CodecError(ZstdStreamError):
    """
    Raised when a streaming codec call reports an error status.

    Once raised by a reader, the decode session is treated as corrupted:
    every later read raises again instead of touching the session.

    Attributes:
        code: The raw status value returned by the codec.
        name: The codec's description of the error.
    """

    def __init__(self, code: int, name: str) -> None:
        self.code = code
        self.name = name
        super().__init__(f"zstd error {code:#x}: {name}")


class SourceReadError(ZstdStreamError):
    """
    Raised when the underlying source fails while refilling the staging buffer.

    The original exception is chained as ``__cause__``.

    Attributes:
        detail: What went wrong with the source.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Source read failed during decompression refill: {detail}")


class UnsupportedOperation(ZstdStreamError, io.UnsupportedOperation):
    """
    Raised for write, seek and truncate on a read-only decompression stream.

    Also an ``io.UnsupportedOperation``, so generic ``io`` callers catch it.

    Attributes:
        operation: The name of the rejected operation.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation}() is not supported on a zstd decompression stream")


class UseAfterClose(ZstdStreamError, ValueError):
    """
    Raised when an operation is attempted on a closed reader or released session.

    Also a ``ValueError``, matching what ``io`` raises for closed files.

    Attributes:
        operation: The name of the rejected operation.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"I/O operation {operation}() on closed zstd stream")
