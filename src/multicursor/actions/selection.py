"""Actions that split, match and rearrange selections across cursors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional

from multicursor.core.cursor import Cursor
from multicursor.core.options import MatchOptions, validate_direction
from multicursor.core.positions import ordered
from multicursor.core.session import Context
from multicursor.core.state import VISUAL_BLOCK, Position
from multicursor.host.matcher import match_columns

if TYPE_CHECKING:
    from multicursor.engine import MultiCursorEngine


def _split_all(ctx: Context) -> List[Cursor]:
    pieces: List[Cursor] = []
    ctx.for_each_cursor(lambda cursor: pieces.extend(cursor.split_by_visual_line()))
    return pieces


def _select_span(cursor: Cursor, row: int, lo: int, hi: int, *, backwards: bool = False) -> Cursor:
    start, end = Position(row, lo), Position(row, hi)
    if backwards:
        return cursor.set_selection(end, start, kind="charwise")
    return cursor.set_selection(start, end, kind="charwise")


def split_cursors(engine: "MultiCursorEngine", pattern: str) -> None:
    """Split every selection on ``pattern``, one cursor per remaining piece."""

    if not pattern:
        return
    options = engine.config.match_options(MatchOptions(user_config=True))

    def split(ctx: Context) -> None:
        for cursor in _split_all(ctx):
            if not cursor.alive or not cursor.has_selection:
                continue
            text = cursor.get_lines()[0]
            start, _ = ordered(cursor.anchor, cursor.position)
            base = start.col
            pushed = 0
            next_col = 0
            for match in engine.matcher.find_all(text, pattern, options):
                lo, hi = match_columns(text, match)
                if lo != next_col:
                    _select_span(cursor.clone(), start.row, base + next_col, base + lo)
                    pushed += 1
                next_col = hi
            if next_col < len(text):
                _select_span(cursor.clone(), start.row, base + next_col, base + len(text))
                pushed += 1
            if pushed:
                cursor.delete()

    engine.action(split)


def match_cursors(engine: "MultiCursorEngine", pattern: str) -> None:
    """Select every match of ``pattern`` inside the current selections.

    Point cursors search the character under them. Each match becomes a
    selection with the active end at its start.
    """

    if not pattern:
        return
    options = engine.config.match_options(MatchOptions(user_config=True))

    def match(ctx: Context) -> None:
        targets: List[Cursor] = []

        def collect(cursor: Cursor) -> None:
            if cursor.has_selection:
                targets.extend(cursor.split_by_visual_line())
                return
            line = cursor.get_line()
            col = min(cursor.col + 1, len(line))
            _select_span(cursor, cursor.row, cursor.col, col)
            targets.append(cursor)

        ctx.for_each_cursor(collect)
        for cursor in targets:
            if not cursor.alive:
                continue
            text = cursor.get_lines()[0]
            start, _ = ordered(cursor.anchor, cursor.position)
            found = 0
            for hit in engine.matcher.find_all(text, pattern, options):
                lo, hi = match_columns(text, hit)
                _select_span(cursor.clone(), start.row, start.col + lo, start.col + hi, backwards=True)
                found += 1
            if found:
                cursor.delete()

    engine.action(match)


def transpose_cursors(engine: "MultiCursorEngine", direction: int = 1) -> None:
    """Rotate selected text between cursors; main follows its text."""

    validate_direction(direction)

    def transpose(ctx: Context) -> None:
        _split_all(ctx)
        cursors = ctx.get_cursors()
        values = [cursor.get_lines()[0] for cursor in cursors]
        for index, cursor in enumerate(cursors):
            cursor.set_lines([values[(index - direction) % len(values)]])
        target = ctx.seek_cursor(ctx.main_cursor().position, direction, wrap=True)
        if target is not None:
            target.select()

    engine.action(transpose)


def swap_cursors(engine: "MultiCursorEngine", direction: int = 1, wrap: bool = False) -> None:
    """Exchange main's selected text with its neighbour's and follow it."""

    validate_direction(direction)

    def swap(ctx: Context) -> None:
        main = ctx.main_cursor()
        other = ctx.seek_cursor(main.position, direction, wrap)
        if other is None or other == main:
            return
        main_lines = main.get_lines()
        other_lines = other.get_lines()
        main.set_lines(other_lines)
        other.set_lines(main_lines)
        other.select()

    engine.action(swap)


def align_cursors(engine: "MultiCursorEngine") -> None:
    """Pad with spaces so the n-th cursor of every line shares a display column."""

    def align(ctx: Context) -> None:
        buffer = ctx.buffer
        rows: List[List[int]] = []
        previous: Optional[int] = None
        for cursor in ctx.get_cursors():
            column = buffer.virtual_column(cursor.position) if cursor.get_line() else 0
            if cursor.row != previous:
                rows.append([])
                previous = cursor.row
            rows[-1].append(column)

        width = max((len(row) for row in rows), default=0)
        for index in range(width):
            target = max((row[index] for row in rows if len(row) > index), default=0)
            for row in rows:
                if len(row) <= index:
                    continue
                row[index] = target - row[index]
                for later in range(index + 1, len(row)):
                    row[later] += row[index]

        padding: Dict[int, int] = {}
        previous = None
        row_index = -1
        col_index = 0
        for cursor in ctx.get_cursors():
            if cursor.row != previous:
                previous = cursor.row
                row_index += 1
                col_index = 0
            padding[cursor.id] = rows[row_index][col_index]
            col_index += 1

        def pad(cursor: Cursor) -> None:
            distance = padding.get(cursor.id, 0)
            if distance > 0:
                cursor.insert_text(" " * distance)

        ctx.for_each_cursor(pad)

    engine.action(align)


def visual_to_cursors(engine: "MultiCursorEngine") -> None:
    """One normal-mode cursor per selected line."""

    def to_cursors(ctx: Context) -> None:
        _split_all(ctx)
        ctx.for_each_cursor(lambda cursor: cursor.feedkeys("<Esc>"))

    engine.action(to_cursors)


def _visual_edge(engine: "MultiCursorEngine", *, append: bool) -> None:
    """Split every selection per line, park each cursor on the chosen edge, then
    enter insert mode.

    Splitting and entering insert mode are two separate actions: if the
    insert feed fails, only it rolls back and the split cursors stay.
    """

    blockwise = engine.main_cursor().mode == VISUAL_BLOCK

    def to_edge(ctx: Context) -> None:
        _split_all(ctx)

        def settle(cursor: Cursor) -> None:
            swap = cursor.at_visual_start if append else not cursor.at_visual_start
            keys = ("o" if swap else "") + "<Esc>"
            if not blockwise:
                keys += "$" if append else "^"
            cursor.feedkeys(keys)

        ctx.for_each_cursor(settle)

    engine.action(to_edge)
    if append:
        engine.feed("a" if blockwise else "A")
    else:
        engine.feed("i" if blockwise else "I")


def insert_visual(engine: "MultiCursorEngine") -> None:
    """Split selections by line and start inserting at the start of each."""

    _visual_edge(engine, append=False)


def append_visual(engine: "MultiCursorEngine") -> None:
    """Split selections by line and start appending after the end of each."""

    _visual_edge(engine, append=True)


__all__ = [
    "split_cursors",
    "match_cursors",
    "transpose_cursors",
    "swap_cursors",
    "align_cursors",
    "visual_to_cursors",
    "insert_visual",
    "append_visual",
]
