"""Bounds checks shared by the buffer and the replay executor."""

from __future__ import annotations

from multicursor.core.state import Position

from .protocols import BufferValidationError, HostBuffer


def ensure_position(buffer: HostBuffer, position: Position) -> Position:
    row, col = position.row, position.col
    if row < 0 or row >= buffer.line_count():
        raise BufferValidationError("Row out of range", position=position)
    if col < 0 or col > len(buffer.get_line(row)):
        raise BufferValidationError("Column out of range", position=position)
    return position


def clamp_position(buffer: HostBuffer, position: Position) -> Position:
    max_row = max(0, buffer.line_count() - 1)
    row = max(0, min(position.row, max_row))
    col = max(0, min(position.col, len(buffer.get_line(row))))
    return Position(row, col, position.offset)
