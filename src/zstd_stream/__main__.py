"""
zstd stream command-line entry point.

Decompress zstd data from a file or stdin, streaming it to a file or stdout.

Usage::

    python -m zstd_stream decompress archive.tar.zst -o archive.tar
    python -m zstd_stream decompress - < data.zst | tar xf -
    python -m zstd_stream info archive.tar.zst

Commands:
    decompress INPUT   Decompress INPUT ("-" for stdin)
        -o, --output     Destination file (default: stdout)
        --chunk-size     Decompressed bytes per read
        --force          Decompress even if the magic number is missing
    info INPUT         Report whether INPUT looks like zstd data

Options:
    -v, --verbose      Enable debug logging
    --no-color         Disable colored logging output
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import IO

from .api import copy_stream, library_version
from .config import default_log_level
from .constants import DEFAULT_COPY_CHUNK_SIZE, MAGIC_BYTES
from .detect import is_zstd_stream
from .exceptions import ZstdStreamError

logger = logging.getLogger(__name__)

LOG_HANDLER_NAME = "zstd_stream"
"""Name of the stderr handler installed by ``setup_logging``."""


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        timestamp = self.formatTime(record, self.datefmt)
        colored_time = f"{self.CYAN}{timestamp}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"

        return f"{colored_time} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure stderr logging with optional colors."""
    level = logging.DEBUG if verbose else default_log_level()

    handler = logging.StreamHandler()
    handler.set_name(LOG_HANDLER_NAME)
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    # Repeated calls replace the handler instead of stacking another one.
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == LOG_HANDLER_NAME]:
        root.removeHandler(existing)
        existing.close()
    root.setLevel(level)
    root.addHandler(handler)


def _open_input(name: str) -> IO[bytes]:
    """Open INPUT as a binary stream. "-" is stdin."""
    if name == "-":
        return sys.stdin.buffer
    return Path(name).open("rb")


def _read_head(source: IO[bytes]) -> bytes:
    """
    Read up to the magic number's length from the start of ``source``.

    Pipes deliver short reads, so keep reading until the magic number is
    complete or the input ends.
    """
    head = b""
    while len(head) < len(MAGIC_BYTES):
        chunk = source.read(len(MAGIC_BYTES) - len(head))
        if not chunk:
            break
        head += chunk
    return head


class _PrefixedSource:
    """Replays bytes already read from a stream ahead of the rest of it."""

    def __init__(self, head: bytes, rest: IO[bytes]) -> None:
        self._head = head
        self._rest = rest

    def read(self, size: int = -1, /) -> bytes:
        if self._head:
            if size < 0 or size >= len(self._head):
                chunk, self._head = self._head, b""
            else:
                chunk, self._head = self._head[:size], self._head[size:]
            return chunk
        return self._rest.read(size)


def run_decompress(
    input_name: str,
    output_path: Path | None,
    chunk_size: int = DEFAULT_COPY_CHUNK_SIZE,
    force: bool = False,
) -> int:
    """
    Decompress INPUT into OUTPUT (stdout when None).

    Returns:
        Process exit status.
    """
    try:
        source = _open_input(input_name)
    except OSError as e:
        logger.error("Cannot open %s: %s", input_name, e)
        return 1

    try:
        try:
            head = _read_head(source)
        except OSError as e:
            logger.error("Cannot read %s: %s", input_name, e)
            return 1
        if not force and not is_zstd_stream(head):
            logger.error("%s is not zstd data (magic %s)", input_name, head.hex() or "<empty>")
            return 1

        # The decoder still needs the magic number, so hand it back.
        compressed = _PrefixedSource(head, source)
        if output_path is None:
            total = copy_stream(compressed, sys.stdout.buffer, chunk_size=chunk_size)
            sys.stdout.buffer.flush()
        else:
            with output_path.open("wb") as destination:
                total = copy_stream(compressed, destination, chunk_size=chunk_size)
    except ZstdStreamError as e:
        logger.error("Decompression failed: %s", e)
        return 1
    except OSError as e:
        logger.error("Cannot write %s: %s", output_path or "<stdout>", e)
        return 1
    finally:
        if source is not sys.stdin.buffer:
            source.close()

    logger.info("Decompressed %s: %d bytes", input_name, total)
    return 0


def run_info(input_name: str) -> int:
    """Print format and library information for INPUT."""
    try:
        source = _open_input(input_name)
    except OSError as e:
        logger.error("Cannot open %s: %s", input_name, e)
        return 1

    try:
        head = _read_head(source)
    finally:
        if source is not sys.stdin.buffer:
            source.close()

    print(f"{input_name}: {'zstd' if is_zstd_stream(head) else 'not zstd'}")
    try:
        print(f"libzstd: {library_version()}")
    except ZstdStreamError as e:
        logger.error("%s", e)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="zstd_stream",
        description="Streaming zstd decompression",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    decompress_parser = commands.add_parser("decompress", help="Decompress a zstd stream")
    decompress_parser.add_argument("input", help='Compressed input file ("-" for stdin)')
    decompress_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Destination file (default: stdout)",
    )
    decompress_parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_COPY_CHUNK_SIZE,
        help=f"Decompressed bytes per read (default: {DEFAULT_COPY_CHUNK_SIZE})",
    )
    decompress_parser.add_argument(
        "--force",
        action="store_true",
        help="Decompress even if the zstd magic number is missing",
    )

    info_parser = commands.add_parser("info", help="Report format information")
    info_parser.add_argument("input", help='Input file ("-" for stdin)')

    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.no_color)

    if args.command == "decompress":
        if args.chunk_size <= 0:
            parser.error("--chunk-size must be positive")
        return run_decompress(args.input, args.output, args.chunk_size, args.force)
    return run_info(args.input)


if __name__ == "__main__":
    raise SystemExit(main())
