"""
Incremental zstd decompression over an arbitrary byte source.

``ZstdReader`` turns a pull-based source of compressed bytes into a
pull-based stream of decompressed bytes. Nothing is read ahead of demand:
each ``readinto`` pulls just enough compressed input to fill the caller's
buffer.


WHY A LOOP?
-----------
One codec call rarely maps to one read:

  1. The codec may stop before consuming all offered input (output full).
  2. The codec may consume input without producing output (buffered inside).
  3. The source may return short reads, down to one byte at a time.

So the reader keeps two cursors of its own (the unread span of the staging
buffer, and the fill level of the caller's buffer) and keeps calling the
codec until the caller's buffer is full or the stream is over.


STREAM STATES
-------------
::

    ACTIVE ---refill returns 0 bytes---> SOURCE_DRAINED
    SOURCE_DRAINED ---codec produces 0---> STREAM_FINISHED
    any ---codec error status or source failure---> FAILED

ACTIVE
    Compressed input is pulled from the source whenever the staging buffer
    runs dry.

SOURCE_DRAINED
    The source has nothing left, but the codec may still hold decompressed
    bytes. It is called with an EMPTY input view, which asks it to flush,
    until a call produces nothing. Source exhaustion alone is not the end of
    the stream.

STREAM_FINISHED
    Terminal. Every read returns 0 without touching source or codec.

FAILED
    Terminal. After a codec error the session may be corrupted; after a
    source failure the input position is unknown. Either way every read
    raises the stored error again.
"""

from __future__ import annotations

import io
import logging
from enum import Enum
from typing import Any, NoReturn, Protocol

from .buffers import TransferBuffer
from .config import ReaderConfig
from .exceptions import (
    CodecError,
    SourceReadError,
    UnsupportedOperation,
    UseAfterClose,
)
from .native.library import load_library
from .session import DecodeSession, NativeDecodeSession

logger = logging.getLogger(__name__)


class Source(Protocol):
    """A sequential binary source. ``readinto`` is preferred when present."""

    def read(self, size: int = -1, /) -> bytes | None:
        """Read up to ``size`` bytes."""
        ...


class StreamState(Enum):
    """Where the reader is in the life of the stream."""

    ACTIVE = "active"
    SOURCE_DRAINED = "source_drained"
    STREAM_FINISHED = "stream_finished"
    FAILED = "failed"


class ZstdReader(io.RawIOBase):
    """
    A read-only raw stream of decompressed bytes.

    Usage::

        with open("data.zst", "rb") as fh, ZstdReader(fh) as reader:
            header = reader.read(16)
            for line in io.BufferedReader(reader):
                ...

    The reader owns its decode session and, unless ``closefd=False``, its
    source. Closing the reader releases both exactly once.

    Not thread-safe. At most one read may be in flight at a time.
    """

    def __init__(
        self,
        source: Source,
        *,
        closefd: bool = True,
        session: DecodeSession | None = None,
        config: ReaderConfig | None = None,
    ) -> None:
        """
        Wrap a compressed source.

        Args:
            source: Binary file-like object yielding compressed bytes.
            closefd: Close ``source`` when the reader is closed.
            session: Decode session to drive. None creates a native one.
            config: Reader tuning. None uses the defaults.

        Raises:
            CodecInitError: If the decode session cannot be created. The
                source is closed first unless ``closefd=False``.
        """
        super().__init__()
        self._source = source
        self._closefd = closefd
        self._config = config if config is not None else ReaderConfig()
        self._session: DecodeSession | None = None

        # Close everything acquired so far if construction fails part-way.
        try:
            if session is None:
                session = NativeDecodeSession(load_library(self._config.library_path))
            self._session = session

            capacity = self._config.staging_size or session.input_size
            self._staging = bytearray(capacity)
        except BaseException:
            self.close()
            raise

        # Unread span of the staging buffer is [cursor, valid_length).
        self._cursor = 0
        self._valid_length = 0

        self._state = StreamState.ACTIVE
        self._failure: CodecError | SourceReadError | None = None
        self._failure_reported = False
        self._last_status = 0
        self._produced_total = 0

        self._input = TransferBuffer()
        self._output = TransferBuffer()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> StreamState:
        """Current stream state."""
        return self._state

    @property
    def truncated(self) -> bool:
        """
        Whether the stream finished in the middle of a frame.

        A nonzero status from the last codec call that made progress means
        the frame still expected input when the source ran out.
        """
        return self._state is StreamState.STREAM_FINISHED and self._last_status != 0

    def _require_open(self, operation: str) -> None:
        if self.closed:
            raise UseAfterClose(operation)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def readable(self) -> bool:
        self._require_open("readable")
        return True

    def readinto(self, buffer: Any) -> int:
        """
        Decompress into ``buffer``.

        Args:
            buffer: Writable bytes-like object receiving decompressed bytes.

        Returns:
            Bytes written, between 0 and ``len(buffer)``. 0 means the end of
            the stream has been reached (or ``buffer`` is empty).

        Raises:
            UseAfterClose: If the reader is closed.
            SourceReadError: If the source fails while refilling. When this
                call already produced bytes, they are returned first and the
                error is raised by the next call instead, so output never has
                a gap. The reader is FAILED either way.
            CodecError: If the codec reports an error. Bytes already written
                into ``buffer`` by this call are not reported.
        """
        self._require_open("readinto")

        target = memoryview(buffer).cast("B")
        remaining = len(target)

        # Zero-length requests never touch the source or the codec.
        if remaining == 0:
            return 0

        if self._state is StreamState.STREAM_FINISHED:
            return 0
        if self._failure is not None:
            self._raise_failure(self._failure)

        session = self._session
        if session is None:
            raise UseAfterClose("readinto")
        produced_total = 0

        while remaining > 0:
            # Step 1: Make sure there is staged input, unless the source is done.
            available = self._valid_length - self._cursor
            if available <= 0 and self._state is StreamState.ACTIVE:
                try:
                    available = self._refill()
                except SourceReadError as e:
                    self._state = StreamState.FAILED
                    self._failure = e
                    if produced_total == 0:
                        self._failure_reported = True
                        raise
                    # Hand out what was decoded before the failure; the next
                    # call reports it.
                    logger.debug("Deferring source failure after %d bytes: %s", produced_total, e)
                    break

            # Step 2: Describe both sides of the call.
            #
            # A drained source is signalled with an EMPTY input view.
            # That is the codec's cue to flush what it still holds.
            if self._state is StreamState.SOURCE_DRAINED:
                self._input.bind(None)
            else:
                span = memoryview(self._staging)[self._cursor : self._cursor + available]
                self._input.bind(span)
            self._output.bind(target[produced_total : produced_total + remaining])

            # Step 3: Run the codec. The views never outlive the call.
            try:
                status = session.decompress(self._output, self._input)
            finally:
                self._input.release()
                self._output.release()

            if session.is_error(status):
                self._fail(CodecError(status, session.error_name(status)))

            # Calls that move neither cursor report a hint for the *next*
            # frame, not the one in progress.
            if self._output.pos or self._input.pos:
                self._last_status = status

            # Step 4: Account for the output.
            #
            # Zero output only ends the stream once the source is drained.
            # While input is still coming, the codec may legitimately be
            # buffering internally.
            produced = self._output.pos
            if produced == 0 and self._state is StreamState.SOURCE_DRAINED:
                self._finish()
                break

            produced_total += produced
            remaining -= produced

            # Step 5: Account for the input. Nothing to advance when drained.
            if self._state is StreamState.SOURCE_DRAINED:
                continue
            self._cursor += self._input.pos

        self._produced_total += produced_total
        return produced_total

    def _refill(self) -> int:
        """
        Pull compressed bytes from the source into the start of the staging buffer.

        Returns:
            Bytes now available. 0 means the source is drained.
        """
        try:
            count = self._read_source()
        except Exception as e:
            raise SourceReadError(f"{type(e).__name__}: {e}") from e

        if count <= 0:
            logger.debug("Compressed source drained after %d output bytes", self._produced_total)
            self._state = StreamState.SOURCE_DRAINED
            return 0

        self._cursor = 0
        self._valid_length = count
        return count

    def _read_source(self) -> int:
        """Fill the staging buffer from the source, returning the byte count."""
        readinto = getattr(self._source, "readinto", None)
        if readinto is not None:
            count = readinto(self._staging)
        else:
            chunk = self._source.read(len(self._staging))
            if chunk is None:
                count = None
            else:
                count = len(chunk)
                self._staging[:count] = chunk

        # None is what non-blocking sources return when no data is ready yet.
        if count is None:
            raise BlockingIOError("source has no data available")
        return count

    def _finish(self) -> None:
        self._state = StreamState.STREAM_FINISHED
        logger.debug("Decompression stream finished after %d bytes", self._produced_total)
        if self.truncated and self._config.warn_on_truncation:
            logger.warning(
                "Compressed source ended mid-frame; decompressed output may be incomplete"
            )

    def _fail(self, error: CodecError) -> NoReturn:
        self._state = StreamState.FAILED
        self._failure = error
        self._failure_reported = True
        raise error

    def _raise_failure(self, failure: CodecError | SourceReadError) -> NoReturn:
        """Raise the stored failure: itself if still unreported, else a fresh copy."""
        if not self._failure_reported:
            self._failure_reported = True
            raise failure
        if isinstance(failure, CodecError):
            raise CodecError(failure.code, failure.name) from failure
        raise SourceReadError(failure.detail) from failure

    # ------------------------------------------------------------------
    # Position
    # ------------------------------------------------------------------

    def tell(self) -> int:
        """Number of decompressed bytes returned so far."""
        self._require_open("tell")
        return self._produced_total

    def seekable(self) -> bool:
        self._require_open("seekable")
        return False

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        raise UnsupportedOperation("seek")

    def truncate(self, size: int | None = None) -> int:
        raise UnsupportedOperation("truncate")

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def writable(self) -> bool:
        self._require_open("writable")
        return False

    def write(self, data: Any) -> int:
        raise UnsupportedOperation("write")

    def flush(self) -> None:
        """No-op: a read-only stream has nothing to flush."""
        self._require_open("flush")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def fileno(self) -> int:
        raise UnsupportedOperation("fileno")

    def close(self) -> None:
        """
        Release the decode session and, if owned, the source.

        Idempotent. The source is closed even if releasing the session fails.
        """
        if self.closed:
            return

        session, self._session = self._session, None
        try:
            if session is not None:
                session.release()
        finally:
            try:
                if self._closefd:
                    close = getattr(self._source, "close", None)
                    if close is not None:
                        close()
            finally:
                super().close()
