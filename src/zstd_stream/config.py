"""
Configuration for the zstd decompression stream.

Environment settings are read once at import. Per-reader knobs live on
``ReaderConfig``, whose defaults pick up the environment.
"""

from __future__ import annotations

import logging
import os

from pydantic import Field

from .base import StrictBaseModel
from .constants import LIBRARY_ENV_VAR

_SUPPORTED_LOG_LEVELS: list[str] = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

ZSTD_STREAM_LIBRARY: str | None = os.environ.get(LIBRARY_ENV_VAR) or None
"""Explicit path to the zstd shared library, or None to search for it."""

ZSTD_STREAM_LOG_LEVEL = os.environ.get("ZSTD_STREAM_LOG_LEVEL", "INFO").upper()
"""Default log level for the command-line entry point."""

if ZSTD_STREAM_LOG_LEVEL not in _SUPPORTED_LOG_LEVELS:
    raise ValueError(
        f"Invalid ZSTD_STREAM_LOG_LEVEL environment variable: '{ZSTD_STREAM_LOG_LEVEL}'. "
        f"Supported values: {_SUPPORTED_LOG_LEVELS}"
    )


def default_log_level() -> int:
    """Numeric logging level selected by ``ZSTD_STREAM_LOG_LEVEL``."""
    return logging.getLevelName(ZSTD_STREAM_LOG_LEVEL)


class ReaderConfig(StrictBaseModel):
    """
    Tuning knobs for a single decompression reader.

    All fields are optional. An empty config reproduces the codec's own
    recommendations.
    """

    staging_size: int | None = Field(default=None, gt=0)
    """
    Capacity of the staging buffer for compressed input, in bytes.

    None uses the codec's recommended input chunk size
    (``ZSTD_DStreamInSize``, one block plus its header).

    Smaller values are valid and only cost more refills.
    """

    library_path: str | None = ZSTD_STREAM_LIBRARY
    """
    Path to the zstd shared library.

    Defaults to ``ZSTD_STREAM_LIBRARY``; None searches the system loader path.
    """

    warn_on_truncation: bool = True
    """Log a warning when the source ends in the middle of a frame."""
