"""Cursor records and the handles actions use to address them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Tuple

from multicursor.buffer.registers import UNNAMED, RegisterBank

from .errors import MultiCursorError
from .options import FeedOptions, MatchOptions
from .positions import Range, ordered
from .replay import (
    Custom,
    DeleteRange,
    DeleteSelection,
    Feed,
    InsertText,
    Move,
    Put,
    ReplaceSelection,
    Search,
    Yank,
)
from .state import (
    MODES,
    NORMAL,
    CursorState,
    Position,
    Selection,
    SelectionKind,
    as_position,
    is_visual,
    kind_for_mode,
    mode_for_kind,
)

if TYPE_CHECKING:
    from multicursor.buffer.protocols import HostBuffer

    from .registry import CursorRegistry
    from .replay import Primitive

_WORD = re.compile(r"\w+")

IdentityKey = Tuple[Position, SelectionKind, Optional[Position]]


@dataclass(slots=True)
class CursorRecord:
    """Arena entry owned by a registry; handles look it up by ``id``."""

    id: int
    position: Position
    anchor: Position
    mode: str = NORMAL
    enabled: bool = True
    registers: RegisterBank = field(default_factory=RegisterBank)

    @property
    def kind(self) -> SelectionKind:
        return kind_for_mode(self.mode)

    @property
    def selection(self) -> Selection:
        return Selection(self.anchor, self.position, self.kind)

    @property
    def state(self) -> CursorState:
        return CursorState(position=self.position, anchor=self.anchor, mode=self.mode)

    def identity(self) -> IdentityKey:
        kind = self.kind
        return (self.position, kind, self.anchor if kind != "none" else None)

    def copy(self, *, new_id: Optional[int] = None) -> "CursorRecord":
        return CursorRecord(
            id=self.id if new_id is None else new_id,
            position=self.position,
            anchor=self.anchor,
            mode=self.mode,
            enabled=self.enabled,
            registers=self.registers.copy(),
        )


class Cursor:
    """Handle to one cursor in a registry.

    Handles stay valid while their record exists; once the cursor is deleted
    every method raises ``StaleCursorError``. Writers return the handle so
    calls chain (``cursor.clone().set_position(p).select()``).
    """

    __slots__ = ("_registry", "id")

    def __init__(self, registry: "CursorRegistry", cursor_id: int) -> None:
        self._registry = registry
        self.id = cursor_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cursor):
            return NotImplemented
        return self._registry is other._registry and self.id == other.id

    def __hash__(self) -> int:
        return hash((id(self._registry), self.id))

    def __repr__(self) -> str:
        if not self._registry.contains(self.id):
            return f"Cursor(id={self.id}, deleted)"
        record = self._record
        flags = "main" if self.is_main else ("on" if record.enabled else "off")
        return f"Cursor(id={self.id}, pos={tuple(record.position)}, mode={record.mode}, {flags})"

    @property
    def _record(self) -> CursorRecord:
        return self._registry.require(self.id)

    # -- queries ---------------------------------------------------------

    @property
    def alive(self) -> bool:
        return self._registry.contains(self.id)

    @property
    def position(self) -> Position:
        return self._record.position

    @property
    def row(self) -> int:
        return self._record.position.row

    @property
    def col(self) -> int:
        return self._record.position.col

    @property
    def anchor(self) -> Position:
        return self._record.anchor

    @property
    def mode(self) -> str:
        return self._record.mode

    @property
    def selection(self) -> Selection:
        return self._record.selection

    @property
    def state(self) -> CursorState:
        return self._record.state

    @property
    def registers(self) -> RegisterBank:
        return self._record.registers

    @property
    def has_selection(self) -> bool:
        return is_visual(self._record.mode)

    @property
    def at_visual_start(self) -> bool:
        record = self._record
        return record.position < record.anchor

    @property
    def is_main(self) -> bool:
        return self._record.id == self._registry.main_id

    @property
    def is_enabled(self) -> bool:
        return self._record.enabled

    def identity(self) -> IdentityKey:
        return self._record.identity()

    def selection_range(self) -> Range:
        """Ordered, end-exclusive text span covered by the selection."""

        record = self._record
        start, end = ordered(record.anchor, record.position)
        if record.kind == "linewise":
            buffer = self._buffer()
            return Position(start.row, 0), Position(end.row, len(buffer.get_line(end.row)))
        return start, end

    def get_line(self) -> str:
        return self._buffer().get_line(self.row)

    def get_lines(self) -> List[str]:
        """Selected text split per line; an empty selection yields ``[""]``."""

        record = self._record
        buffer = self._buffer()
        start, end = ordered(record.anchor, record.position)
        kind = record.kind
        if kind == "linewise":
            return [buffer.get_line(row) for row in range(start.row, end.row + 1)]
        if kind == "blockwise":
            left, right = _block_columns(record)
            return [
                buffer.get_line(row)[left:right] for row in range(start.row, end.row + 1)
            ]
        if kind == "none":
            return [""]
        return buffer.get_text(start, end).split("\n")

    def cursor_word(self) -> str:
        """Keyword under the cursor, or the next one on the line."""

        col = self.col
        for match in _WORD.finditer(self.get_line()):
            if match.end() > col:
                return match.group(0)
        return ""

    def overlapped_cursor(self) -> Optional["Cursor"]:
        return self._registry.overlapping(self.id)

    # -- writers ---------------------------------------------------------

    def set_position(self, position: Sequence[int]) -> "Cursor":
        """Move the active end; point cursors drag their anchor along."""

        pos = as_position(tuple(position))
        record = self._record
        record.position = pos
        if not is_visual(record.mode):
            record.anchor = pos
        self._registry.touch()
        return self

    def set_anchor(self, position: Sequence[int]) -> "Cursor":
        self._record.anchor = as_position(tuple(position))
        self._registry.touch()
        return self

    def set_selection(
        self,
        anchor: Sequence[int],
        active: Sequence[int],
        kind: Optional[SelectionKind] = None,
    ) -> "Cursor":
        record = self._record
        record.anchor = as_position(tuple(anchor))
        record.position = as_position(tuple(active))
        if kind is not None:
            record.mode = mode_for_kind(kind)
        elif not is_visual(record.mode):
            record.mode = mode_for_kind("charwise")
        self._registry.touch()
        return self

    def set_mode(self, mode: str) -> "Cursor":
        if mode not in MODES:
            raise ValueError(f"Unknown cursor mode '{mode}'")
        record = self._record
        if is_visual(record.mode) and not is_visual(mode):
            record.anchor = record.position
        record.mode = mode
        return self

    def clone(self) -> "Cursor":
        return self._registry.clone(self.id)

    def delete(self) -> None:
        self._registry.delete(self.id)

    def disable(self) -> "Cursor":
        self._registry.set_enabled(self.id, False)
        return self

    def enable(self) -> "Cursor":
        self._registry.set_enabled(self.id, True)
        return self

    def select(self) -> "Cursor":
        """Make this cursor the main one."""

        self._registry.set_main(self.id)
        return self

    def split_by_visual_line(self) -> List["Cursor"]:
        """Replace a selection with one cursor per covered line.

        Every piece keeps the selection kind and direction. The piece on the
        active end's row inherits main, and the original is deleted. Point
        cursors are returned unchanged.
        """

        record = self._record
        if record.kind == "none":
            return [self]

        start, end = ordered(record.anchor, record.position)
        backwards = record.position < record.anchor
        if start.row == end.row:
            pieces = [self.clone()]
        else:
            buffer = self._buffer()
            pieces = []
            for row in range(start.row, end.row + 1):
                lo, hi = _line_span(record, row, start, end, len(buffer.get_line(row)))
                if record.kind == "blockwise":
                    backwards = record.position.col < record.anchor.col
                lo_pos, hi_pos = Position(row, lo), Position(row, hi)
                piece = self.clone()
                if backwards:
                    piece.set_selection(hi_pos, lo_pos)
                else:
                    piece.set_selection(lo_pos, hi_pos)
                pieces.append(piece)

        if self.is_main:
            heir = next(
                (piece for piece in pieces if piece.row == record.position.row),
                pieces[0],
            )
            heir.select()
        self.delete()
        return pieces

    def set_lines(self, lines: Sequence[str]) -> "Cursor":
        """Replace the selected text, keeping the new text selected."""

        self.perform(ReplaceSelection(tuple(lines)))
        return self

    # -- replay ----------------------------------------------------------

    def perform(self, primitive: "Primitive") -> Any:
        return self._registry.require_executor().perform(self, primitive)

    def feedkeys(self, keys: str, options: Optional[FeedOptions] = None) -> "Cursor":
        self.perform(Feed(keys, options or FeedOptions()))
        return self

    def move(self, token: str, options: Optional[FeedOptions] = None) -> "Cursor":
        self.perform(Move(token, options or FeedOptions()))
        return self

    def search(
        self,
        pattern: str,
        direction: int = 1,
        options: Optional[MatchOptions] = None,
    ) -> Optional[Position]:
        return self.perform(Search(pattern, direction, options))

    def insert_text(self, text: str) -> "Cursor":
        self.perform(InsertText(text))
        return self

    def delete_range(self, start: Sequence[int], end: Sequence[int]) -> str:
        return self.perform(
            DeleteRange(as_position(tuple(start)), as_position(tuple(end)))
        )

    def delete_selection(self, register: str = UNNAMED) -> str:
        return self.perform(DeleteSelection(register))

    def yank(self, register: str = UNNAMED) -> str:
        return self.perform(Yank(register=register))

    def put(self, register: str = UNNAMED, *, before: bool = False) -> "Cursor":
        self.perform(Put(register=register, before=before))
        return self

    def custom(self, fn: Callable[..., Any]) -> Any:
        return self.perform(Custom(fn))

    def _buffer(self) -> "HostBuffer":
        buffer = self._registry.buffer
        if buffer is None:
            raise MultiCursorError("Cursor registry has no host buffer bound")
        return buffer


def _block_columns(record: CursorRecord) -> Tuple[int, int]:
    left = min(record.anchor.col, record.position.col)
    right = max(record.anchor.col, record.position.col)
    return left, right


def _line_span(
    record: CursorRecord, row: int, start: Position, end: Position, line_len: int
) -> Tuple[int, int]:
    if record.kind == "linewise":
        return 0, line_len
    if record.kind == "blockwise":
        left, right = _block_columns(record)
        return min(left, line_len), min(right, line_len)
    lo = start.col if row == start.row else 0
    hi = end.col if row == end.row else line_len
    return lo, hi


__all__ = ["Cursor", "CursorRecord", "IdentityKey"]
