"""Actions that add cursors at matches of the word or selection under main."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional, Set, Tuple

from multicursor.core.cursor import Cursor
from multicursor.core.options import AddCursorOptions, MatchOptions, validate_direction
from multicursor.core.session import Context
from multicursor.core.state import VISUAL_LINE, Position
from multicursor.host.matcher import escape_pattern

from .cursors import move_main

if TYPE_CHECKING:
    from multicursor.engine import MultiCursorEngine

_KEYWORD = re.compile(r"\w+")
_EXACT = MatchOptions()
_WHOLE_WORD = MatchOptions(literal=True, whole_word=True)
_LITERAL = MatchOptions(literal=True)


def _word_start(cursor: Cursor) -> Optional[int]:
    col = cursor.col
    for match in _KEYWORD.finditer(cursor.get_line()):
        if match.start() <= col < match.end():
            return match.start()
    return None


def _selection_query(cursor: Cursor) -> Tuple[str, MatchOptions]:
    return escape_pattern("\n".join(cursor.get_lines())), _EXACT


def _to_selection_start(cursor: Cursor) -> None:
    if cursor.mode == VISUAL_LINE:
        cursor.feedkeys("0" if cursor.at_visual_start else "o0")
    elif not cursor.at_visual_start:
        cursor.feedkeys("o")


def _match_add(engine: "MultiCursorEngine", direction: int, add: bool) -> None:
    validate_direction(direction)

    def match_add(ctx: Context) -> None:
        main = ctx.main_cursor()
        if main.has_selection:
            pattern, options = _selection_query(main)
            prepare = _to_selection_start
        else:
            line = main.get_line()
            char = line[main.col : main.col + 1]
            start = _word_start(main) if char else None
            if not char:
                pattern, options = r"^$", _EXACT
                prepare = None
            elif start is not None:
                pattern, options = main.cursor_word(), _WHOLE_WORD

                def prepare(cursor: Cursor) -> None:
                    cursor.set_position(Position(cursor.row, start))

            else:
                pattern, options = char, _LITERAL
                prepare = None

        selecting = main.has_selection

        def motion(cursor: Cursor) -> None:
            cursor.search(pattern, direction, options)
            if selecting:
                cursor.feedkeys("<Esc>")

        move_main(ctx, motion, AddCursorOptions(add_cursor=add), prepare=prepare)

    engine.action(match_add)


def match_add_cursor(engine: "MultiCursorEngine", direction: int = 1) -> None:
    """Keep a cursor here and move main to the next match of its word or selection."""

    _match_add(engine, direction, True)


def match_skip_cursor(engine: "MultiCursorEngine", direction: int = 1) -> None:
    """Move main to the next match without leaving a cursor behind."""

    _match_add(engine, direction, False)


def match_all_add_cursors(engine: "MultiCursorEngine") -> None:
    """Put a cursor on every match of main's word or selection in the buffer."""

    def match_all(ctx: Context) -> None:
        main = ctx.main_cursor()
        selecting = main.has_selection
        if selecting:
            pattern, options = _selection_query(main)
            _to_selection_start(main)
        else:
            start = _word_start(main)
            if start is None:
                return
            pattern, options = main.cursor_word(), _WHOLE_WORD
            main.set_position(Position(main.row, start))

        def motion(cursor: Cursor) -> None:
            cursor.search(pattern, 1, options)
            if selecting:
                cursor.feedkeys("<Esc>")

        origin = main.position
        seen: Set[Position] = {origin}
        while True:
            move_main(ctx, motion, AddCursorOptions(add_cursor=True))
            if main.position in seen:
                break
            seen.add(main.position)
        main.delete()

    engine.action(match_all)


__all__ = ["match_add_cursor", "match_skip_cursor", "match_all_add_cursors"]
