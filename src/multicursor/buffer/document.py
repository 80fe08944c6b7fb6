"""List-of-lines text storage backing the reference host buffer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence


@dataclass(slots=True)
class BufferDocument:
    """Lines of text plus a version counter bumped on every change.

    Documents are replaced rather than mutated, so a held reference doubles
    as a snapshot for rollback.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    version: int = 0

    @classmethod
    def from_text(cls, text: str) -> "BufferDocument":
        return cls(_lines=text.split("\n"), version=0)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "BufferDocument":
        materialized = list(lines) or [""]
        return cls(_lines=materialized, version=0)

    def snapshot(self) -> Sequence[str]:
        return tuple(self._lines)

    def update_lines(
        self, start: int, end: int, new_lines: Iterable[str]
    ) -> "BufferDocument":
        """Return a document with ``[start:end]`` replaced by ``new_lines``."""

        lines = list(self._lines)
        lines[start:end] = list(new_lines)
        return BufferDocument(_lines=lines or [""], version=self.version + 1)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        return self._lines[index]
