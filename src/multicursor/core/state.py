"""Position, selection and mode values shared by every cursor component."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, NamedTuple, Optional

SelectionKind = Literal["none", "charwise", "linewise", "blockwise"]

NORMAL = "normal"
INSERT = "insert"
VISUAL = "visual"
VISUAL_LINE = "visual_line"
VISUAL_BLOCK = "visual_block"

MODES: tuple[str, ...] = (NORMAL, INSERT, VISUAL, VISUAL_LINE, VISUAL_BLOCK)

_KIND_BY_MODE: dict[str, SelectionKind] = {
    NORMAL: "none",
    INSERT: "none",
    VISUAL: "charwise",
    VISUAL_LINE: "linewise",
    VISUAL_BLOCK: "blockwise",
}

_MODE_BY_KIND: dict[str, str] = {
    "charwise": VISUAL,
    "linewise": VISUAL_LINE,
    "blockwise": VISUAL_BLOCK,
}


class Position(NamedTuple):
    """0-based ``(row, col)`` plus a sub-column offset for virtual edit."""

    row: int
    col: int
    offset: int = 0

    def with_col(self, col: int) -> "Position":
        return Position(self.row, col, self.offset)

    def with_row(self, row: int) -> "Position":
        return Position(row, self.col, self.offset)


@dataclass(frozen=True, slots=True)
class Selection:
    anchor: Position
    active: Position
    kind: SelectionKind = "charwise"

    @property
    def is_empty(self) -> bool:
        return self.kind == "none"

    @property
    def start(self) -> Position:
        return min(self.anchor, self.active)

    @property
    def end(self) -> Position:
        return max(self.anchor, self.active)

    @property
    def is_multiline(self) -> bool:
        return self.anchor.row != self.active.row


@dataclass(frozen=True, slots=True)
class CursorState:
    """Everything a host needs to treat one cursor as the real one."""

    position: Position
    anchor: Position
    mode: str = NORMAL

    @property
    def selection(self) -> Selection:
        return Selection(self.anchor, self.position, kind_for_mode(self.mode))


def kind_for_mode(mode: str) -> SelectionKind:
    try:
        return _KIND_BY_MODE[mode]
    except KeyError as exc:
        raise ValueError(f"Unknown cursor mode '{mode}'") from exc


def mode_for_kind(kind: SelectionKind, *, fallback: str = NORMAL) -> str:
    return _MODE_BY_KIND.get(kind, fallback)


def is_visual(mode: str) -> bool:
    return kind_for_mode(mode) != "none"


def as_position(value: Optional[tuple]) -> Position:
    """Coerce ``(row, col)`` / ``(row, col, offset)`` tuples into a Position."""

    if value is None:
        raise ValueError("position cannot be None")
    if isinstance(value, Position):
        return value
    if len(value) == 2:
        return Position(int(value[0]), int(value[1]))
    if len(value) == 3:
        return Position(int(value[0]), int(value[1]), int(value[2] or 0))
    raise ValueError(f"Cannot build a position from {value!r}")


__all__ = [
    "SelectionKind",
    "Position",
    "Selection",
    "CursorState",
    "NORMAL",
    "INSERT",
    "VISUAL",
    "VISUAL_LINE",
    "VISUAL_BLOCK",
    "MODES",
    "kind_for_mode",
    "mode_for_kind",
    "is_visual",
    "as_position",
]
