"""Reference in-memory host buffer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from wcwidth import wcwidth

from multicursor.core.positions import end_of_text, ordered
from multicursor.core.state import Position
from multicursor.runtime import telemetry

from .document import BufferDocument
from .validation import ensure_position


@dataclass(frozen=True, slots=True)
class BufferSnapshot:
    name: str
    document: BufferDocument


def char_width(ch: str, *, column: int = 0, tabstop: int = 8) -> int:
    """Display cells taken by ``ch`` when it starts at display ``column``."""

    if ch == "\t":
        return tabstop - (column % tabstop)
    width = wcwidth(ch)
    return 1 if width < 0 else width


class TextBuffer:
    """Line-based text buffer implementing the host buffer contract.

    Virtual columns count display cells: tabs expand to the next tab stop and
    wide characters take two cells (via ``wcwidth``).
    """

    def __init__(
        self,
        *,
        name: str = "default",
        document: Optional[BufferDocument] = None,
        tabstop: int = 8,
    ) -> None:
        self.name = name
        self.document = document or BufferDocument()
        self.tabstop = tabstop

    @classmethod
    def from_text(cls, text: str, *, name: str = "default", tabstop: int = 8) -> "TextBuffer":
        return cls(name=name, document=BufferDocument.from_text(text), tabstop=tabstop)

    @classmethod
    def from_lines(
        cls, lines: Sequence[str], *, name: str = "default", tabstop: int = 8
    ) -> "TextBuffer":
        return cls(name=name, document=BufferDocument.from_lines(lines), tabstop=tabstop)

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def lines(self) -> Sequence[str]:
        return self.document.snapshot()

    @property
    def version(self) -> int:
        return self.document.version

    def get_line(self, row: int) -> str:
        return self.document.get_line(row)

    def line_count(self) -> int:
        return self.document.line_count

    def get_text(self, start: Position, end: Position) -> str:
        start, end = ordered(ensure_position(self, start), ensure_position(self, end))
        if start.row == end.row:
            return self.get_line(start.row)[start.col : end.col]
        parts = [self.get_line(start.row)[start.col :]]
        parts.extend(self.get_line(row) for row in range(start.row + 1, end.row))
        parts.append(self.get_line(end.row)[: end.col])
        return "\n".join(parts)

    def apply_edit(self, start: Position, end: Position, text: str) -> Position:
        start, end = ordered(ensure_position(self, start), ensure_position(self, end))
        with telemetry.span(
            "buffer::apply_edit",
            component="buffer",
            metadata={"buffer": self.name, "start": start, "end": end},
        ):
            head = self.get_line(start.row)[: start.col]
            tail = self.get_line(end.row)[end.col :]
            replacement = (head + text + tail).split("\n")
            self.document = self.document.update_lines(start.row, end.row + 1, replacement)
            new_end = end_of_text(Position(start.row, start.col), text)
        return new_end

    def virtual_column(self, position: Position) -> int:
        line = self.get_line(position.row)
        column = 0
        for ch in line[: position.col]:
            column += char_width(ch, column=column, tabstop=self.tabstop)
        return column + position.offset

    def display_width(self, row: int) -> int:
        return self.virtual_column(Position(row, len(self.get_line(row))))

    def column_from_virtual_column(self, row: int, virtual_col: int) -> int:
        """Character column covering display cell ``virtual_col`` on ``row``."""

        line = self.get_line(row)
        column = 0
        for index, ch in enumerate(line):
            width = char_width(ch, column=column, tabstop=self.tabstop)
            if virtual_col < column + width:
                return index
            column += width
        return len(line)

    def snapshot(self) -> BufferSnapshot:
        return BufferSnapshot(name=self.name, document=self.document)

    def restore(self, snapshot: BufferSnapshot) -> None:
        self.document = snapshot.document


__all__ = ["TextBuffer", "BufferSnapshot", "char_width"]
