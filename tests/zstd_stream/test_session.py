"""Tests for native decode sessions."""

from __future__ import annotations

import pytest

from tests.zstd_stream.helpers import ERROR_STATUS, Compress, requires_libzstd
from zstd_stream import (
    CodecError,
    CodecInitError,
    NativeDecodeSession,
    SessionState,
    TransferBuffer,
    UseAfterClose,
)
from zstd_stream.native import load_library


class FakeLibrary:
    """Stand-in for ZstdLibrary that scripts lifecycle outcomes."""

    def __init__(
        self,
        *,
        handle: int = 0x1000,
        init_status: int = 0,
        free_status: int = 0,
    ) -> None:
        """Initialize with the values each lifecycle call returns."""
        self.handle = handle
        self.init_status = init_status
        self.free_status = free_status
        self.freed: list[int] = []

    def create_decode_session(self) -> int:
        return self.handle

    def init_decode_session(self, handle: int) -> int:
        return self.init_status

    def free_decode_session(self, handle: int) -> int:
        self.freed.append(handle)
        return self.free_status

    def is_error(self, status: int) -> bool:
        return status == ERROR_STATUS

    def error_name(self, status: int) -> str:
        return "Allocation error : not enough memory"


class TestLifecycle:
    """Create, initialize, release."""

    def test_initialized_after_construction(self) -> None:
        """A constructed session is ready for use."""
        session = NativeDecodeSession(FakeLibrary())  # type: ignore[arg-type]
        assert session.state is SessionState.INITIALIZED

    def test_null_handle_raises(self) -> None:
        """A NULL context from the library is an init error."""
        with pytest.raises(CodecInitError, match="NULL"):
            NativeDecodeSession(FakeLibrary(handle=0))  # type: ignore[arg-type]

    def test_init_error_frees_context(self) -> None:
        """A failing init frees the half-built context before raising."""
        library = FakeLibrary(init_status=ERROR_STATUS)
        with pytest.raises(CodecInitError, match="not enough memory"):
            NativeDecodeSession(library)  # type: ignore[arg-type]
        assert library.freed == [0x1000]

    def test_release_once(self) -> None:
        """Releasing twice frees the context once."""
        library = FakeLibrary()
        session = NativeDecodeSession(library)  # type: ignore[arg-type]
        session.release()
        session.release()
        assert library.freed == [0x1000]
        assert session.state is SessionState.RELEASED

    def test_release_error_raises_once(self) -> None:
        """A failing free raises, and the session still counts as released."""
        library = FakeLibrary(free_status=ERROR_STATUS)
        session = NativeDecodeSession(library)  # type: ignore[arg-type]
        with pytest.raises(CodecError):
            session.release()
        session.release()
        assert library.freed == [0x1000]

    def test_context_manager_releases(self) -> None:
        """Leaving the with block releases the session."""
        library = FakeLibrary()
        with NativeDecodeSession(library) as session:  # type: ignore[arg-type]
            assert session.state is SessionState.INITIALIZED
        assert library.freed == [0x1000]

    def test_decompress_after_release(self) -> None:
        """Using a released session fails loudly."""
        session = NativeDecodeSession(FakeLibrary())  # type: ignore[arg-type]
        session.release()
        with pytest.raises(UseAfterClose):
            session.decompress(TransferBuffer(), TransferBuffer())


@requires_libzstd
class TestNativeSession:
    """Driving the real libzstd."""

    def test_size_hints(self) -> None:
        """The library recommends non-trivial buffer sizes."""
        with NativeDecodeSession() as session:
            assert session.input_size > 0
            assert session.output_size >= 128 * 1024

    def test_single_step(self, compress: Compress) -> None:
        """One call with ample output decodes a small frame."""
        frame = compress(b"hello, zstd")
        source = TransferBuffer()
        target = TransferBuffer()
        source.bind(memoryview(bytearray(frame)))
        out = bytearray(64)
        target.bind(memoryview(out))

        with NativeDecodeSession() as session:
            status = session.decompress(target, source)

        assert not session.is_error(status)
        assert status == 0
        assert source.pos == len(frame)
        assert bytes(out[: target.pos]) == b"hello, zstd"

    def test_output_limited_call(self, compress: Compress) -> None:
        """With little output space the codec stops early and keeps state."""
        data = b"abcdefgh" * 100
        frame = compress(data)
        staging = bytearray(frame)
        produced = bytearray()

        with NativeDecodeSession() as session:
            consumed = 0
            for _ in range(10_000):
                source = TransferBuffer()
                source.bind(memoryview(staging)[consumed:])
                out = bytearray(10)
                target = TransferBuffer()
                target.bind(memoryview(out))
                status = session.decompress(target, source)
                assert not session.is_error(status)
                consumed += source.pos
                produced += out[: target.pos]
                if status == 0:
                    break

        assert bytes(produced) == data

    def test_corrupt_input_reports_error(self) -> None:
        """Garbage input yields an error status with a name."""
        source = TransferBuffer()
        source.bind(memoryview(bytearray(b"not a zstd frame at all")))
        target = TransferBuffer()
        target.bind(memoryview(bytearray(64)))

        with NativeDecodeSession() as session:
            status = session.decompress(target, source)
            assert session.is_error(status)
            assert session.error_name(status)

    def test_empty_input_is_accepted(self) -> None:
        """A NULL, zero-sized input is a valid call."""
        target = TransferBuffer()
        target.bind(memoryview(bytearray(16)))
        with NativeDecodeSession() as session:
            status = session.decompress(target, TransferBuffer())
            assert not session.is_error(status)
        assert target.pos == 0

    def test_explicit_library(self) -> None:
        """A session can be bound to an explicitly loaded library."""
        library = load_library()
        with NativeDecodeSession(library) as session:
            assert session.state is SessionState.INITIALIZED
