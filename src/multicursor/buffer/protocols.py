"""Boundary types for the host collaborators the engine drives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple, Optional, Protocol, Sequence

from multicursor.core.state import CursorState, Position, Selection

if TYPE_CHECKING:
    from multicursor.core.options import FeedOptions, MatchOptions

    from .registers import RegisterBank


class BufferValidationError(RuntimeError):
    """Raised when a position handed to the host buffer is out of bounds."""

    def __init__(self, message: str, *, position: Position | None = None) -> None:
        super().__init__(message)
        self.position = position


class HostBuffer(Protocol):
    """Text buffer the replay executor edits one focused cursor at a time."""

    def get_line(self, row: int) -> str:
        ...

    def line_count(self) -> int:
        ...

    def get_text(self, start: Position, end: Position) -> str:
        ...

    def apply_edit(self, start: Position, end: Position, text: str) -> Position:
        """Replace ``[start, end)`` with ``text``; return the end of the insert."""
        ...

    def virtual_column(self, position: Position) -> int:
        ...

    def column_from_virtual_column(self, row: int, virtual_col: int) -> int:
        ...

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...


class InjectResult(NamedTuple):
    position: Position
    mode: str
    selection: Selection


class InputInjector(Protocol):
    """Runs one atomic editing command as if the focused cursor were alone."""

    def apply(
        self,
        buffer: HostBuffer,
        state: CursorState,
        token: str,
        options: "FeedOptions",
        *,
        registers: Optional["RegisterBank"] = None,
    ) -> InjectResult:
        ...

    def tokenize(self, keys: str, options: "FeedOptions") -> Sequence[str]:
        ...


@dataclass(frozen=True, slots=True)
class Match:
    byte_offset: int
    text: str


class PatternMatcher(Protocol):
    def find_all(
        self, text: str, pattern: str, options: Optional["MatchOptions"] = None
    ) -> Sequence[Match]:
        ...

    def search_from_cursor(
        self,
        buffer: HostBuffer,
        position: Position,
        pattern: str,
        direction: int,
        options: Optional["MatchOptions"] = None,
    ) -> Optional[Position]:
        ...


__all__ = [
    "BufferValidationError",
    "HostBuffer",
    "InjectResult",
    "InputInjector",
    "Match",
    "PatternMatcher",
]
