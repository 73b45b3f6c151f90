"""
Transfer buffer descriptors exchanged with the codec.

A descriptor does not own bytes. It is a view over someone else's memory
plus two cursors:

  - size: how many bytes the region holds (input) or may receive (output).
  - pos: how many of them the codec consumed (input) or produced (output).

The reader keeps one descriptor per side and rebinds it before every codec
call. After the call it reads ``pos`` and drops the view, so a descriptor
never holds on to memory past the single call it describes.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TransferBuffer:
    """A {data, size, pos} view handed to one streaming codec call."""

    data: memoryview | None = None
    """The described region. None stands for a NULL pointer."""

    size: int = 0
    """Total bytes in the region."""

    pos: int = 0
    """Bytes consumed or produced by the most recent call."""

    def bind(self, data: memoryview | None) -> None:
        """
        Point the descriptor at a new region and rewind its cursor.

        Binding None describes an empty region (NULL pointer, zero size).
        """
        self.data = data
        self.size = 0 if data is None else len(data)
        self.pos = 0

    def release(self) -> None:
        """Drop the view while keeping ``size`` and ``pos`` readable."""
        self.data = None

    @property
    def remaining(self) -> int:
        """Bytes not yet consumed or produced."""
        return self.size - self.pos
