"""Translate pointer (mouse) coordinates into cursor positions."""

from __future__ import annotations

from typing import Optional

from multicursor.buffer.protocols import HostBuffer
from multicursor.buffer.validation import clamp_position
from multicursor.core.state import Position


def pointer_position(
    row: int,
    col: int,
    coladd: Optional[int] = None,
    *,
    virtualedit: bool = False,
    buffer: Optional[HostBuffer] = None,
) -> Position:
    """Position under the pointer.

    ``coladd`` (cells past the end of the text) is only kept when virtual
    editing is on. With a ``buffer`` the result is clamped into the text.
    """

    offset = (coladd or 0) if virtualedit else 0
    position = Position(row, col, offset)
    if buffer is not None:
        position = clamp_position(buffer, position)
    return position


__all__ = ["pointer_position"]
