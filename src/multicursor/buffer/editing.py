"""Text operations shared by the replay primitives and the reference injector."""

from __future__ import annotations

from typing import List, Tuple

from multicursor.core.positions import ordered
from multicursor.core.state import Position, SelectionKind

from .protocols import HostBuffer
from .registers import RegisterValue


def linewise_span(buffer: HostBuffer, first_row: int, last_row: int) -> Tuple[Position, Position]:
    """Span removing whole lines ``first_row..last_row`` including one newline.

    Deleting every line of the buffer leaves a single empty line behind.
    """

    if last_row + 1 < buffer.line_count():
        return Position(first_row, 0), Position(last_row + 1, 0)
    if first_row > 0:
        prev_len = len(buffer.get_line(first_row - 1))
        return Position(first_row - 1, prev_len), Position(last_row, len(buffer.get_line(last_row)))
    return Position(first_row, 0), Position(last_row, len(buffer.get_line(last_row)))


def put_value(
    buffer: HostBuffer, position: Position, value: RegisterValue, *, before: bool = False
) -> Position:
    """Paste ``value`` next to ``position`` and return where the cursor lands.

    Linewise values open new lines below (or above) the cursor's line and land
    on the first pasted line. Charwise values go after the character under the
    cursor (or at it) and land on the last pasted character.
    """

    row = position.row
    line = buffer.get_line(row)
    if value.linewise:
        if before:
            at = Position(row, 0)
            buffer.apply_edit(at, at, value.text + "\n")
            return Position(row, 0)
        at = Position(row, len(line))
        buffer.apply_edit(at, at, "\n" + value.text)
        return Position(row + 1, 0)

    col = position.col
    if not before and line:
        col = min(col + 1, len(line))
    at = Position(row, col)
    if not value.text:
        return at
    new_end = buffer.apply_edit(at, at, value.text)
    return Position(new_end.row, max(new_end.col - 1, 0))


def selection_spans(
    buffer: HostBuffer, anchor: Position, active: Position, kind: SelectionKind
) -> List[Tuple[Position, Position]]:
    """Spans removed when deleting a selection, bottom-up so each stays valid."""

    start, end = ordered(anchor, active)
    if kind == "linewise":
        return [linewise_span(buffer, start.row, end.row)]
    if kind == "blockwise":
        left, right = sorted((anchor.col, active.col))
        spans = []
        for row in range(end.row, start.row - 1, -1):
            line_len = len(buffer.get_line(row))
            spans.append((Position(row, min(left, line_len)), Position(row, min(right, line_len))))
        return spans
    if kind == "none":
        return []
    return [(start, end)]


def selection_text(
    buffer: HostBuffer, anchor: Position, active: Position, kind: SelectionKind
) -> str:
    start, end = ordered(anchor, active)
    if kind == "linewise":
        return "\n".join(buffer.get_line(row) for row in range(start.row, end.row + 1))
    if kind == "blockwise":
        left, right = sorted((anchor.col, active.col))
        return "\n".join(buffer.get_line(row)[left:right] for row in range(start.row, end.row + 1))
    if kind == "none":
        return ""
    return buffer.get_text(start, end)


def first_non_blank(line: str) -> int:
    stripped = len(line) - len(line.lstrip(" \t"))
    return min(stripped, max(len(line) - 1, 0)) if line.strip() else 0


__all__ = [
    "linewise_span",
    "put_value",
    "selection_spans",
    "selection_text",
    "first_non_blank",
]
