"""Reference pattern matcher on Python's ``re``."""

from __future__ import annotations

import re
from bisect import bisect_left, bisect_right
from functools import lru_cache
from typing import Optional, Sequence

from multicursor.buffer.protocols import HostBuffer, Match
from multicursor.core.options import MatchOptions, validate_direction
from multicursor.core.positions import byte_to_col
from multicursor.core.state import Position


def escape_pattern(text: str) -> str:
    return re.escape(text)


@lru_cache(maxsize=128)
def _compile(pattern: str, ignore_case: bool, literal: bool, whole_word: bool) -> re.Pattern[str]:
    source = re.escape(pattern) if literal else pattern
    if whole_word:
        source = rf"(?<!\w)(?:{source})(?!\w)"
    flags = re.MULTILINE | (re.IGNORECASE if ignore_case else 0)
    return re.compile(source, flags)


def compile_pattern(pattern: str, options: Optional[MatchOptions] = None) -> re.Pattern[str]:
    """Compile ``pattern`` honouring case, literal and whole-word switches.

    Smart case ignores case only while the pattern has no uppercase letter.
    """

    opts = options or MatchOptions()
    ignore_case = opts.ignore_case
    if opts.smart_case:
        ignore_case = not any(ch.isupper() for ch in pattern)
    return _compile(pattern, ignore_case, opts.literal, opts.whole_word)


class RegexMatcher:
    """Finds matches in plain text and searches a host buffer from a cursor.

    Byte offsets in ``find_all`` are UTF-8 offsets into ``text``; zero-width
    matches are dropped. ``wrap`` lets buffer searches continue from the
    other end, the way ``wrapscan`` does.
    """

    def __init__(self, *, wrap: bool = True) -> None:
        self.wrap = wrap

    def find_all(
        self, text: str, pattern: str, options: Optional[MatchOptions] = None
    ) -> Sequence[Match]:
        regex = compile_pattern(pattern, options)
        return [
            Match(byte_offset=len(text[: m.start()].encode("utf-8")), text=m.group(0))
            for m in regex.finditer(text)
            if m.end() > m.start()
        ]

    def search_from_cursor(
        self,
        buffer: HostBuffer,
        position: Position,
        pattern: str,
        direction: int,
        options: Optional[MatchOptions] = None,
    ) -> Optional[Position]:
        """Start of the nearest match strictly after/before ``position``.

        The pattern runs over the whole buffer joined with ``\\n`` so a match
        may span lines. Zero-width matches count only on empty lines.
        """

        validate_direction(direction)
        regex = compile_pattern(pattern, options)
        lines = [buffer.get_line(row) for row in range(buffer.line_count())]
        line_starts = [0]
        for line in lines[:-1]:
            line_starts.append(line_starts[-1] + len(line) + 1)
        text = "\n".join(lines)

        def empty_line_at(offset: int) -> bool:
            return not lines[bisect_right(line_starts, offset) - 1]

        starts = [
            m.start()
            for m in regex.finditer(text)
            if m.end() > m.start() or empty_line_at(m.start())
        ]
        if not starts:
            return None
        origin = line_starts[position.row] + position.col
        if direction == 1:
            index = bisect_right(starts, origin)
            if index < len(starts):
                found = starts[index]
            elif self.wrap:
                found = starts[0]
            else:
                return None
        else:
            index = bisect_left(starts, origin)
            if index > 0:
                found = starts[index - 1]
            elif self.wrap:
                found = starts[-1]
            else:
                return None
        row = bisect_right(line_starts, found) - 1
        return Position(row, found - line_starts[row])


def match_columns(line: str, match: Match) -> tuple[int, int]:
    """Character span ``[start, end)`` of ``match`` within ``line``."""

    start = byte_to_col(line, match.byte_offset)
    end = byte_to_col(line, match.byte_offset + len(match.text.encode("utf-8")))
    return start, end


__all__ = ["RegexMatcher", "compile_pattern", "escape_pattern", "match_columns"]
