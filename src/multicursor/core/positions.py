"""Pure helpers over positions and ranges."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .state import Position

Range = Tuple[Position, Position]


class OverlapState(str, Enum):
    DISJOINT = "disjoint"
    TOUCHING = "touching"
    OVERLAPPING = "overlapping"
    IDENTICAL = "identical"


@dataclass(frozen=True, slots=True)
class Edit:
    """A replaced span: ``[start, old_end)`` became ``[start, new_end)``."""

    start: Position
    old_end: Position
    new_end: Position


def byte_to_col(line: str, byte_index: int) -> int:
    """Character column for a UTF-8 byte offset into ``line``."""

    if byte_index <= 0:
        return 0
    encoded = line.encode("utf-8")
    if byte_index >= len(encoded):
        return len(line)
    return len(encoded[:byte_index].decode("utf-8", errors="ignore"))


def col_to_byte(line: str, col: int) -> int:
    if col <= 0:
        return 0
    return len(line[:col].encode("utf-8"))


def compare(a: Position, b: Position) -> int:
    if a == b:
        return 0
    return -1 if a < b else 1


def ordered(a: Position, b: Position) -> Range:
    return (a, b) if a <= b else (b, a)


def contains(rng: Range, pos: Position) -> bool:
    start, end = ordered(*rng)
    return start <= pos <= end


def ranges_overlap(a: Range, b: Range) -> bool:
    a_start, a_end = ordered(*a)
    b_start, b_end = ordered(*b)
    return a_start < b_end and b_start < a_end


def ranges_touch(a: Range, b: Range) -> bool:
    a_start, a_end = ordered(*a)
    b_start, b_end = ordered(*b)
    return a_end == b_start or b_end == a_start


def classify_overlap(a: Range, b: Range, *, same_anchor: bool = True) -> OverlapState:
    """Relation of two ranges; ``same_anchor`` lets callers veto IDENTICAL."""

    if ordered(*a) == ordered(*b):
        if a == b and same_anchor:
            return OverlapState.IDENTICAL
        return OverlapState.OVERLAPPING
    if ranges_overlap(a, b):
        return OverlapState.OVERLAPPING
    if ranges_touch(a, b):
        return OverlapState.TOUCHING
    return OverlapState.DISJOINT


def shift_position(pos: Position, edit: Edit) -> Position:
    """Where ``pos`` lands once ``edit`` is applied to the text.

    Positions before the edit stay, positions inside the replaced span
    collapse onto its start, positions at or after its end follow the text.
    """

    if pos < edit.start:
        return pos
    if pos < edit.old_end:
        return edit.start
    if pos.row == edit.old_end.row:
        return Position(
            edit.new_end.row, edit.new_end.col + (pos.col - edit.old_end.col), pos.offset
        )
    return Position(pos.row + (edit.new_end.row - edit.old_end.row), pos.col, pos.offset)


def end_of_text(start: Position, text: str) -> Position:
    """Position right after ``text`` once inserted at ``start``."""

    lines = text.split("\n")
    if len(lines) == 1:
        return Position(start.row, start.col + len(text))
    return Position(start.row + len(lines) - 1, len(lines[-1]))


__all__ = [
    "Range",
    "Edit",
    "OverlapState",
    "byte_to_col",
    "col_to_byte",
    "compare",
    "ordered",
    "contains",
    "ranges_overlap",
    "ranges_touch",
    "classify_overlap",
    "shift_position",
    "end_of_text",
]
