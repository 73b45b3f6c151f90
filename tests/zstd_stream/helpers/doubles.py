"""
Test doubles for the decompression reader.

Each double provides a minimal, inspectable implementation of one
collaborator: a decode session or a compressed byte source.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

from zstd_stream.buffers import TransferBuffer
from zstd_stream.exceptions import UseAfterClose

ERROR_STATUS = 2**64 - 20
"""Status reported by scripted sessions on failure (zstd's corruption_detected)."""


@dataclass(frozen=True, slots=True)
class CallRecord:
    """What one ``decompress`` call was offered."""

    input_size: int
    output_size: int
    input_is_null: bool


class PassthroughSession:
    """
    Identity "codec": decompressed bytes equal compressed bytes.

    Lets reader tests use plain bytes as the compressed stream and still
    exercise every cursor of the read loop.

    Tunables:
        max_consume: Cap on input bytes taken per call.
        lag: Hold output until this many bytes are buffered (or input ends).
        error_on_call: 1-based index of the call that reports an error.
    """

    def __init__(
        self,
        *,
        input_size: int = 16,
        output_size: int = 16,
        max_consume: int | None = None,
        lag: int = 0,
        error_on_call: int | None = None,
    ) -> None:
        """Initialize with an empty internal buffer and call log."""
        self._input_size = input_size
        self._output_size = output_size
        self.max_consume = max_consume
        self.lag = lag
        self.error_on_call = error_on_call
        self.pending = bytearray()
        self.calls: list[CallRecord] = []
        self.release_count = 0

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def output_size(self) -> int:
        return self._output_size

    @property
    def released(self) -> bool:
        return self.release_count > 0

    def decompress(self, output: TransferBuffer, input: TransferBuffer) -> int:
        """Move input into the internal buffer, then emit what the lag allows."""
        if self.released:
            raise UseAfterClose("decompress")
        self.calls.append(CallRecord(input.size, output.size, input.data is None))

        if self.error_on_call == len(self.calls):
            return ERROR_STATUS

        # Consume.
        if input.data is not None:
            take = input.size - input.pos
            if self.max_consume is not None:
                take = min(take, self.max_consume)
            self.pending += input.data[input.pos : input.pos + take]
            input.pos += take

        # Produce.
        draining = input.data is None
        if draining or len(self.pending) >= self.lag:
            count = min(len(self.pending), output.size - output.pos)
            assert output.data is not None
            output.data[output.pos : output.pos + count] = self.pending[:count]
            del self.pending[:count]
            output.pos += count

        return len(self.pending)

    def is_error(self, status: int) -> bool:
        return status == ERROR_STATUS

    def error_name(self, status: int) -> str:
        return "Corrupted block detected"

    def release(self) -> None:
        self.release_count += 1


class FlushingSession(PassthroughSession):
    """
    Session that keeps producing on empty-input calls.

    Every call with input consumes it silently. Once input is empty, each
    call emits the next scripted tail chunk, then reports zero bytes.
    """

    def __init__(self, tail: list[bytes], **kwargs: object) -> None:
        """Initialize with the chunks to emit after the source drains."""
        super().__init__(**kwargs)  # type: ignore[arg-type]
        self.tail = list(tail)

    def decompress(self, output: TransferBuffer, input: TransferBuffer) -> int:
        if self.released:
            raise UseAfterClose("decompress")
        self.calls.append(CallRecord(input.size, output.size, input.data is None))

        if input.data is not None:
            input.pos = input.size
            return 1

        if not self.tail:
            return 0
        chunk = self.tail.pop(0)
        assert output.data is not None
        output.data[: len(chunk)] = chunk
        output.pos = len(chunk)
        return 1 if self.tail else 0

    @property
    def flush_calls(self) -> int:
        """Number of calls made with an empty input view."""
        return sum(1 for call in self.calls if call.input_is_null)


class ChunkedSource:
    """
    Compressed source returning at most ``chunk`` bytes per read.

    Tracks reads and close calls for later inspection.
    """

    def __init__(self, data: bytes, chunk: int | None = None) -> None:
        """Initialize positioned at the start of ``data``."""
        self._data = data
        self._pos = 0
        self.chunk = chunk
        self.reads = 0
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def readinto(self, buffer: bytearray) -> int:
        """Copy the next short read into ``buffer``."""
        self.reads += 1
        count = min(len(buffer), len(self._data) - self._pos)
        if self.chunk is not None:
            count = min(count, self.chunk)
        buffer[:count] = self._data[self._pos : self._pos + count]
        self._pos += count
        return count

    def close(self) -> None:
        self.close_count += 1


class ReadOnlySource:
    """Source exposing only ``read()``, like many socket and pipe wrappers."""

    def __init__(self, data: bytes, chunk: int = 3) -> None:
        """Initialize positioned at the start of ``data``."""
        self._data = data
        self._pos = 0
        self.chunk = chunk

    def read(self, size: int = -1) -> bytes:
        count = min(size, self.chunk)
        piece = self._data[self._pos : self._pos + count]
        self._pos += len(piece)
        return piece


class FailingSource(ChunkedSource):
    """Source that raises after serving ``good_reads`` reads."""

    def __init__(self, data: bytes, *, good_reads: int = 0, chunk: int | None = None) -> None:
        """Initialize with the number of reads to serve before failing."""
        super().__init__(data, chunk)
        self.good_reads = good_reads

    def readinto(self, buffer: bytearray) -> int:
        if self.reads >= self.good_reads:
            self.reads += 1
            raise ConnectionResetError("peer reset the connection")
        return super().readinto(buffer)


class NonBlockingSource:
    """Source that has no data ready, as a non-blocking raw stream reports it."""

    def readinto(self, buffer: bytearray) -> None:
        return None


class FlakySource(ChunkedSource):
    """Source whose ``fail_on_read``-th read raises once; later reads succeed."""

    def __init__(self, data: bytes, *, fail_on_read: int, chunk: int | None = None) -> None:
        """Initialize with the 1-based index of the read that fails."""
        super().__init__(data, chunk)
        self.fail_on_read = fail_on_read

    def readinto(self, buffer: bytearray) -> int:
        if self.reads + 1 == self.fail_on_read:
            self.reads += 1
            raise InterruptedError("read interrupted by signal")
        return super().readinto(buffer)


class TrickleStream(io.RawIOBase):
    """Raw stream handing out one byte per read, like a slow pipe."""

    def __init__(self, data: bytes) -> None:
        """Initialize positioned at the start of ``data``."""
        super().__init__()
        self._data = data
        self._pos = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray) -> int:
        if self._pos >= len(self._data) or len(buffer) == 0:
            return 0
        buffer[0] = self._data[self._pos]
        self._pos += 1
        return 1
