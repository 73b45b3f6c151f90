"""
ctypes binding for the native zstd library.

Only the streaming decompression surface is bound, plus the handful of
introspection calls needed around it.


BOUND FUNCTIONS
---------------
Session lifecycle::

    ZSTD_DStream* ZSTD_createDStream(void);
    size_t        ZSTD_initDStream(ZSTD_DStream* zds);
    size_t        ZSTD_freeDStream(ZSTD_DStream* zds);

Streaming call::

    size_t ZSTD_decompressStream(ZSTD_DStream* zds,
                                 ZSTD_outBuffer* output,
                                 ZSTD_inBuffer* input);

Sizing hints::

    size_t ZSTD_DStreamInSize(void);
    size_t ZSTD_DStreamOutSize(void);

Introspection::

    unsigned    ZSTD_isError(size_t code);
    const char* ZSTD_getErrorName(size_t code);
    unsigned    ZSTD_versionNumber(void);


LOOKUP ORDER
------------
  1. An explicit path (``ReaderConfig.library_path`` or ``ZSTD_STREAM_LIBRARY``).
  2. ``ctypes.util.find_library("zstd")``.
  3. Platform file names resolved by the system loader.

Reference: https://facebook.github.io/zstd/zstd_manual.html
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
from functools import lru_cache

from ..constants import LIBRARY_FALLBACK_NAMES, LIBRARY_NAME
from ..exceptions import LibraryNotFoundError
from .structs import ZSTD_inBuffer, ZSTD_outBuffer

logger = logging.getLogger(__name__)


class ZstdLibrary:
    """
    A loaded zstd shared library with typed function prototypes.

    Each method is a thin wrapper over one exported C function.
    Handles are plain integers (``c_void_p`` values); 0 is NULL.
    """

    def __init__(self, dll: ctypes.CDLL, path: str) -> None:
        """Declare the prototypes of every bound function on ``dll``."""
        self.path = path
        self._dll = dll

        # Without explicit restypes ctypes assumes C int, truncating size_t
        # status codes and pointers on 64-bit platforms.
        dll.ZSTD_versionNumber.argtypes = []
        dll.ZSTD_versionNumber.restype = ctypes.c_uint

        dll.ZSTD_isError.argtypes = [ctypes.c_size_t]
        dll.ZSTD_isError.restype = ctypes.c_uint

        dll.ZSTD_getErrorName.argtypes = [ctypes.c_size_t]
        dll.ZSTD_getErrorName.restype = ctypes.c_char_p

        dll.ZSTD_createDStream.argtypes = []
        dll.ZSTD_createDStream.restype = ctypes.c_void_p

        dll.ZSTD_initDStream.argtypes = [ctypes.c_void_p]
        dll.ZSTD_initDStream.restype = ctypes.c_size_t

        dll.ZSTD_freeDStream.argtypes = [ctypes.c_void_p]
        dll.ZSTD_freeDStream.restype = ctypes.c_size_t

        dll.ZSTD_decompressStream.argtypes = [
            ctypes.c_void_p,
            ctypes.POINTER(ZSTD_outBuffer),
            ctypes.POINTER(ZSTD_inBuffer),
        ]
        dll.ZSTD_decompressStream.restype = ctypes.c_size_t

        dll.ZSTD_DStreamInSize.argtypes = []
        dll.ZSTD_DStreamInSize.restype = ctypes.c_size_t

        dll.ZSTD_DStreamOutSize.argtypes = []
        dll.ZSTD_DStreamOutSize.restype = ctypes.c_size_t

    def __repr__(self) -> str:
        return f"ZstdLibrary(path={self.path!r}, version={self.version_string()!r})"

    def version_number(self) -> int:
        """Library version as ``major * 10000 + minor * 100 + patch``."""
        return self._dll.ZSTD_versionNumber()

    def version_string(self) -> str:
        """Library version formatted as ``major.minor.patch``."""
        n = self.version_number()
        return f"{n // 10000}.{(n % 10000) // 100}.{n % 100}"

    def is_error(self, status: int) -> bool:
        """Whether a size_t status returned by the library encodes an error."""
        return bool(self._dll.ZSTD_isError(status))

    def error_name(self, status: int) -> str:
        """Readable name of the error encoded in ``status``."""
        name = self._dll.ZSTD_getErrorName(status)
        return name.decode("ascii", "replace") if name else "unknown error"

    def create_decode_session(self) -> int:
        """Allocate a decode context. Returns 0 when allocation failed."""
        return self._dll.ZSTD_createDStream() or 0

    def init_decode_session(self, handle: int) -> int:
        """Reset a decode context to the start of a new frame."""
        return self._dll.ZSTD_initDStream(handle)

    def free_decode_session(self, handle: int) -> int:
        """Release a decode context. Freeing NULL is a no-op in the library."""
        return self._dll.ZSTD_freeDStream(handle)

    def decompress(self, handle: int, output: ZSTD_outBuffer, input: ZSTD_inBuffer) -> int:
        """Run one streaming decode step, updating both ``pos`` fields in place."""
        return self._dll.ZSTD_decompressStream(handle, ctypes.byref(output), ctypes.byref(input))

    def recommended_input_size(self) -> int:
        """Recommended size for the compressed input buffer."""
        return self._dll.ZSTD_DStreamInSize()

    def recommended_output_size(self) -> int:
        """Recommended size for the decompressed output buffer."""
        return self._dll.ZSTD_DStreamOutSize()


def _candidates(path: str | None) -> list[str]:
    """Library names to try, in lookup order."""
    if path:
        return [path]
    found = ctypes.util.find_library(LIBRARY_NAME)
    names = [found] if found else []
    return names + [name for name in LIBRARY_FALLBACK_NAMES if name != found]


@lru_cache(maxsize=None)
def load_library(path: str | None = None) -> ZstdLibrary:
    """
    Load and cache the zstd shared library.

    Args:
        path: Explicit library path. None searches the loader path.

    Returns:
        The loaded library. Repeated calls with the same path share one object.

    Raises:
        LibraryNotFoundError: If no candidate could be loaded or a candidate
            lacks the streaming decompression symbols.
    """
    tried: list[str] = []
    for candidate in _candidates(path):
        tried.append(candidate)
        try:
            dll = ctypes.CDLL(candidate)
            library = ZstdLibrary(dll, candidate)
        except (OSError, AttributeError) as e:
            # OSError: not loadable. AttributeError: some other "zstd" without our symbols.
            logger.debug("Skipping zstd library candidate %s: %s", candidate, e)
            continue

        logger.debug("Loaded zstd %s from %s", library.version_string(), candidate)
        return library

    raise LibraryNotFoundError(tried)


def is_library_available(path: str | None = None) -> bool:
    """Whether ``load_library(path)`` would succeed."""
    try:
        load_library(path)
    except LibraryNotFoundError:
        return False
    return True
