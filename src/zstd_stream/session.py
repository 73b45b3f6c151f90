"""
Decode sessions: stateful handles to the streaming decompressor.

A session wraps one native decode context. Calls on it are not
independent: each ``decompress`` continues where the previous one left
off, so a session belongs to exactly one stream.


LIFECYCLE
---------
::

    CREATED --init--> INITIALIZED --release--> RELEASED

Creation and initialization both happen in the constructor. A failure in
either raises ``CodecInitError`` and frees whatever was allocated. Release
is idempotent. Any other operation after release raises ``UseAfterClose``.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import TracebackType
from typing import Protocol

from typing_extensions import Self

from .buffers import TransferBuffer
from .exceptions import CodecError, CodecInitError, UseAfterClose
from .native.library import ZstdLibrary, load_library
from .native.structs import ZSTD_inBuffer, ZSTD_outBuffer, pinned

logger = logging.getLogger(__name__)


class DecodeSession(Protocol):
    """The codec surface a decompression reader depends on."""

    @property
    def input_size(self) -> int:
        """Recommended capacity of the compressed staging buffer."""
        ...

    @property
    def output_size(self) -> int:
        """Recommended size of one decompressed read."""
        ...

    def decompress(self, output: TransferBuffer, input: TransferBuffer) -> int:
        """Run one decode step, advancing ``output.pos`` and ``input.pos``."""
        ...

    def is_error(self, status: int) -> bool:
        """Whether a status returned by ``decompress`` encodes an error."""
        ...

    def error_name(self, status: int) -> str:
        """Readable description of an error status."""
        ...

    def release(self) -> None:
        """Free the session. Safe to call more than once."""
        ...


class SessionState(Enum):
    """Lifecycle state of a native decode session."""

    CREATED = "created"
    INITIALIZED = "initialized"
    RELEASED = "released"


class NativeDecodeSession:
    """
    A decode session backed by ``ZSTD_DStream`` from the native library.

    Usage::

        with NativeDecodeSession() as session:
            status = session.decompress(output, input)
            if session.is_error(status):
                raise CodecError(status, session.error_name(status))
    """

    def __init__(self, library: ZstdLibrary | None = None) -> None:
        """
        Create and initialize a native decode context.

        Args:
            library: The loaded library. None loads the default one.

        Raises:
            CodecInitError: If the context cannot be allocated or initialized.
        """
        self._library = library if library is not None else load_library()
        self._handle = self._library.create_decode_session()
        if not self._handle:
            raise CodecInitError("ZSTD_createDStream returned NULL")
        self._state = SessionState.CREATED

        status = self._library.init_decode_session(self._handle)
        if self._library.is_error(status):
            name = self._library.error_name(status)
            self._library.free_decode_session(self._handle)
            self._handle = 0
            self._state = SessionState.RELEASED
            raise CodecInitError(f"ZSTD_initDStream failed: {name}")
        self._state = SessionState.INITIALIZED

        logger.debug("Created decode session %#x", self._handle)

    def __repr__(self) -> str:
        return f"NativeDecodeSession(state={self._state.value})"

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        return self._state

    @property
    def input_size(self) -> int:
        """``ZSTD_DStreamInSize``: one compressed block plus its header."""
        return self._library.recommended_input_size()

    @property
    def output_size(self) -> int:
        """``ZSTD_DStreamOutSize``: one full decompressed block."""
        return self._library.recommended_output_size()

    def _require_live(self, operation: str) -> None:
        if self._state is SessionState.RELEASED:
            raise UseAfterClose(operation)

    def decompress(self, output: TransferBuffer, input: TransferBuffer) -> int:
        """
        Run one ``ZSTD_decompressStream`` step.

        Both regions stay pinned for the duration of the native call.
        On return ``output.pos`` holds the bytes written and ``input.pos``
        the bytes consumed.

        Returns:
            The raw status. Zero means a frame was completely decoded and
            flushed; other non-error values hint at how many more input
            bytes the current frame needs.
        """
        self._require_live("decompress")

        with pinned(output.data) as out_address, pinned(input.data) as in_address:
            out_struct = ZSTD_outBuffer(out_address, output.size, output.pos)
            in_struct = ZSTD_inBuffer(in_address, input.size, input.pos)
            status = self._library.decompress(self._handle, out_struct, in_struct)

        output.pos = out_struct.pos
        input.pos = in_struct.pos
        return status

    def is_error(self, status: int) -> bool:
        return self._library.is_error(status)

    def error_name(self, status: int) -> str:
        return self._library.error_name(status)

    def release(self) -> None:
        """
        Free the native decode context.

        Raises:
            CodecError: If the library reports an error while freeing.
        """
        if self._state is SessionState.RELEASED:
            return

        handle, self._handle = self._handle, 0
        self._state = SessionState.RELEASED
        status = self._library.free_decode_session(handle)
        logger.debug("Released decode session %#x", handle)

        if self._library.is_error(status):
            raise CodecError(status, self._library.error_name(status))
