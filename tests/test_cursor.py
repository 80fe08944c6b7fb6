from __future__ import annotations

from typing import List, Tuple

import pytest

from multicursor.core.cursor import Cursor
from multicursor.core.errors import ReentrantSessionError
from multicursor.core.session import Context
from multicursor.core.state import NORMAL, VISUAL, VISUAL_BLOCK, VISUAL_LINE, Position
from multicursor.engine import MultiCursorEngine


def make_engine(text: str) -> MultiCursorEngine:
    return MultiCursorEngine.from_text(text)


def selections(cursors: List[Cursor]) -> List[Tuple[Position, Position]]:
    return [(cursor.anchor, cursor.position) for cursor in cursors]


def test_set_position_drags_anchor_only_without_selection() -> None:
    engine = make_engine("hello world")
    main = engine.main_cursor()

    main.set_position((0, 3))
    assert main.anchor == Position(0, 3)

    main.set_mode(VISUAL).set_position((0, 6))
    assert main.anchor == Position(0, 3)
    assert main.position == Position(0, 6)


def test_set_selection_enters_charwise_visual() -> None:
    engine = make_engine("hello")
    main = engine.main_cursor()

    main.set_selection((0, 1), (0, 4))

    assert main.mode == VISUAL
    assert main.has_selection
    assert main.selection.kind == "charwise"
    assert not main.at_visual_start


def test_set_selection_with_kind_switches_mode() -> None:
    engine = make_engine("hello\nworld")
    main = engine.main_cursor()

    main.set_selection((1, 2), (0, 1), kind="linewise")

    assert main.mode == VISUAL_LINE
    assert main.at_visual_start
    assert main.selection_range() == (Position(0, 0), Position(1, 5))


def test_leaving_visual_mode_collapses_anchor() -> None:
    engine = make_engine("hello")
    main = engine.main_cursor().set_selection((0, 0), (0, 3))

    main.set_mode(NORMAL)

    assert main.anchor == main.position == Position(0, 3)
    with pytest.raises(ValueError):
        main.set_mode("select")


def test_get_lines_per_selection_kind() -> None:
    engine = make_engine("hello\nworld")
    main = engine.main_cursor()

    assert main.get_lines() == [""]

    main.set_selection((0, 1), (1, 3))
    assert main.get_lines() == ["ello", "wor"]

    main.set_mode(VISUAL_LINE)
    assert main.get_lines() == ["hello", "world"]

    main.set_mode(VISUAL_BLOCK)
    assert main.get_lines() == ["el", "or"]


def test_cursor_word_looks_forward_on_the_line() -> None:
    engine = make_engine("foo bar")
    main = engine.main_cursor()

    assert main.set_position((0, 1)).cursor_word() == "foo"
    assert main.set_position((0, 3)).cursor_word() == "bar"


def test_split_single_line_selection_yields_one_clone() -> None:
    engine = make_engine("abcdef")
    main = engine.main_cursor().set_selection((0, 1), (0, 4))

    pieces = main.split_by_visual_line()

    assert len(pieces) == 1
    assert not main.alive
    assert pieces[0].is_main
    assert selections(pieces) == [(Position(0, 1), Position(0, 4))]
    assert len(engine.registry) == 1


def test_split_multiline_selection_one_cursor_per_line() -> None:
    engine = make_engine("one\ntwo\nthree")
    main = engine.main_cursor().set_selection((0, 1), (2, 2))

    pieces = main.split_by_visual_line()

    assert selections(pieces) == [
        (Position(0, 1), Position(0, 3)),
        (Position(1, 0), Position(1, 3)),
        (Position(2, 0), Position(2, 2)),
    ]
    assert pieces[2].is_main
    assert all(piece.mode == VISUAL for piece in pieces)
    assert len(engine.registry) == 3


def test_split_backwards_selection_keeps_direction() -> None:
    engine = make_engine("one\ntwo")
    main = engine.main_cursor().set_selection((1, 2), (0, 1))

    pieces = main.split_by_visual_line()

    assert selections(pieces) == [
        (Position(0, 3), Position(0, 1)),
        (Position(1, 2), Position(1, 0)),
    ]
    assert pieces[0].is_main


def test_split_linewise_selection_spans_whole_lines() -> None:
    engine = make_engine("ab\ncdef")
    main = engine.main_cursor().set_selection((0, 1), (1, 1), kind="linewise")

    pieces = main.split_by_visual_line()

    assert selections(pieces) == [
        (Position(0, 0), Position(0, 2)),
        (Position(1, 0), Position(1, 4)),
    ]
    assert all(piece.mode == VISUAL_LINE for piece in pieces)


def test_split_point_cursor_is_unchanged() -> None:
    engine = make_engine("abc")
    main = engine.main_cursor()

    assert main.split_by_visual_line() == [main]
    assert main.alive


def test_insert_text_shifts_other_cursors() -> None:
    engine = make_engine("abc abc")

    def insert(ctx: Context) -> Position:
        other = ctx.add_cursor((0, 4))
        ctx.main_cursor().insert_text("XY")
        return other.position

    assert engine.action(insert) == Position(0, 6)
    assert engine.text == "XYabc abc"
    assert engine.main_cursor().position == Position(0, 2)


def test_set_lines_replaces_and_selects_new_text() -> None:
    engine = make_engine("foo bar")
    main = engine.main_cursor().set_selection((0, 0), (0, 3))

    main.set_lines(["hello"])

    assert engine.text == "hello bar"
    assert main.anchor == Position(0, 0)
    assert main.position == Position(0, 5)
    assert main.mode == VISUAL


def test_delete_range_returns_removed_text() -> None:
    engine = make_engine("hello world")
    main = engine.main_cursor().set_position((0, 8))

    removed = main.delete_range((0, 0), (0, 6))

    assert removed == "hello "
    assert engine.text == "world"
    assert main.position == Position(0, 2)


def test_search_moves_cursor_or_returns_none() -> None:
    engine = make_engine("foo bar foo")
    main = engine.main_cursor()

    assert main.search("zzz") is None
    assert main.position == Position(0, 0)
    assert main.search("foo") == Position(0, 8)
    assert main.position == Position(0, 8)


def test_yank_and_put_use_the_cursor_register() -> None:
    engine = make_engine("one\ntwo")
    main = engine.main_cursor()

    assert main.yank() == "one"
    main.put()

    assert engine.text == "one\none\ntwo"
    assert main.position == Position(1, 0)
    assert main.registers.get().linewise


def test_nested_focus_is_rejected() -> None:
    engine = make_engine("abc")

    def nested(ctx: Context) -> None:
        main = ctx.main_cursor()
        main.custom(lambda scope: main.insert_text("x"))

    with pytest.raises(ReentrantSessionError):
        engine.action(nested)

    assert engine.text == "abc"
    assert engine.executor.focused is None
