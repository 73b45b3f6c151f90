"""
Shared pytest fixtures for zstd_stream tests.

Compressed fixtures are produced with the ``zstandard`` package, which
bundles its own encoder and does not depend on the library under test.
"""

from __future__ import annotations

import random
from collections.abc import Callable

import pytest
import zstandard


@pytest.fixture
def compress() -> Callable[..., bytes]:
    """Compress bytes into a single zstd frame."""

    def _compress(data: bytes, level: int = 3, *, content_size: bool = True) -> bytes:
        compressor = zstandard.ZstdCompressor(level=level, write_content_size=content_size)
        if content_size:
            return compressor.compress(data)
        # Streaming compression leaves the content size out of the frame header.
        chunker = compressor.compressobj()
        return chunker.compress(data) + chunker.flush()

    return _compress


@pytest.fixture(scope="session")
def sample_data() -> bytes:
    """About 1 MiB of mixed compressible and incompressible bytes."""
    rng = random.Random(0x5EED)
    text = b"".join(
        b"line %06d: the quick brown fox jumps over the lazy dog\n" % i for i in range(8000)
    )
    noise = rng.randbytes(256 * 1024)
    runs = b"\x00" * 300_000 + b"\xff" * 50_000
    return text + noise + runs + text[:12345]
