"""Native zstd library binding."""

from .library import ZstdLibrary, is_library_available, load_library
from .structs import ZSTD_inBuffer, ZSTD_outBuffer, pinned

__all__ = [
    "ZSTD_inBuffer",
    "ZSTD_outBuffer",
    "ZstdLibrary",
    "is_library_available",
    "load_library",
    "pinned",
]
