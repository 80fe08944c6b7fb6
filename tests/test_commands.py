from __future__ import annotations

from typing import Any, List

import pytest

from multicursor.actions import command_names, run_command
from multicursor.core.state import Position
from multicursor.engine import MultiCursorEngine
from multicursor.host.injector import UnknownCommandError


def make_engine(text: str = "abc\ndef\nghi") -> MultiCursorEngine:
    return MultiCursorEngine.from_text(text)


def test_empty_line_is_reported() -> None:
    engine = make_engine()

    assert run_command(engine, "   ").status == "command_empty"


def test_unknown_command_emits_error() -> None:
    engine = make_engine()
    errors: List[Any] = []
    submitted: List[Any] = []
    engine.bus.subscribe("command.error", errors.append)
    engine.bus.subscribe("command.submit", submitted.append)

    result = run_command(engine, "bogus arg")

    assert result.status == "command_error"
    assert "bogus" in result.message
    assert errors == [{"command": "bogus", "message": result.message}]
    assert submitted == ["bogus arg"]


def test_bad_arguments_become_command_errors() -> None:
    engine = make_engine()

    assert run_command(engine, "line-add 5").status == "command_error"
    assert run_command(engine, "lines x").status == "command_error"
    assert run_command(engine, "split").status == "command_error"
    assert run_command(engine, "skip").status == "command_error"
    assert engine.cursor_count() == 1


def test_lines_command_adds_a_cursor_per_line() -> None:
    engine = make_engine()

    result = run_command(engine, "lines 0 2")

    assert result.status == "command_lines"
    assert [view.position for view in engine.visible_cursors()] == [
        Position(0, 0),
        Position(1, 0),
        Position(2, 0),
    ]


def test_add_and_feed_commands() -> None:
    engine = make_engine()

    assert run_command(engine, "add j").status == "command_add"
    assert run_command(engine, "feed x").status == "command_feed"

    assert engine.text == "bc\nef\nghi"


def test_failing_action_propagates_and_rolls_back() -> None:
    engine = make_engine()

    with pytest.raises(UnknownCommandError):
        run_command(engine, "feed Z")

    assert engine.text == "abc\ndef\nghi"


def test_command_names_are_sorted() -> None:
    names = command_names()

    assert names == sorted(names)
    assert {"split", "match-all", "lines", "put"} <= set(names)
