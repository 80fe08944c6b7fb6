from __future__ import annotations

import pytest

from multicursor.core.positions import (
    Edit,
    OverlapState,
    byte_to_col,
    classify_overlap,
    col_to_byte,
    end_of_text,
    shift_position,
)
from multicursor.core.state import (
    INSERT,
    NORMAL,
    VISUAL_BLOCK,
    VISUAL_LINE,
    CursorState,
    Position,
    as_position,
    is_visual,
    kind_for_mode,
)


def make_delete(row: int, start: int, end: int) -> Edit:
    return Edit(start=Position(row, start), old_end=Position(row, end), new_end=Position(row, start))


def test_positions_order_lexicographically() -> None:
    assert Position(0, 5) < Position(1, 0)
    assert Position(1, 2) < Position(1, 2, 1)
    assert sorted([Position(2, 0), Position(0, 3), Position(0, 1)]) == [
        Position(0, 1),
        Position(0, 3),
        Position(2, 0),
    ]


def test_as_position_accepts_pairs_and_triples() -> None:
    assert as_position((1, 2)) == Position(1, 2, 0)
    assert as_position((1, 2, 3)) == Position(1, 2, 3)
    with pytest.raises(ValueError):
        as_position((1,))
    with pytest.raises(ValueError):
        as_position(None)


def test_modes_map_to_selection_kinds() -> None:
    assert kind_for_mode(NORMAL) == "none"
    assert kind_for_mode(INSERT) == "none"
    assert kind_for_mode(VISUAL_LINE) == "linewise"
    assert is_visual(VISUAL_BLOCK)
    assert not is_visual(INSERT)
    with pytest.raises(ValueError):
        kind_for_mode("replace")


def test_cursor_state_selection_follows_mode() -> None:
    state = CursorState(position=Position(0, 4), anchor=Position(0, 1), mode=VISUAL_LINE)

    selection = state.selection

    assert selection.kind == "linewise"
    assert selection.start == Position(0, 1)
    assert selection.end == Position(0, 4)
    assert not selection.is_multiline


def test_shift_position_for_deletion() -> None:
    edit = make_delete(0, 2, 4)

    assert shift_position(Position(0, 1), edit) == Position(0, 1)
    assert shift_position(Position(0, 3), edit) == Position(0, 2)
    assert shift_position(Position(0, 6), edit) == Position(0, 4)
    assert shift_position(Position(1, 3), edit) == Position(1, 3)


def test_shift_position_for_multiline_insert() -> None:
    edit = Edit(start=Position(0, 2), old_end=Position(0, 2), new_end=Position(1, 3))

    assert shift_position(Position(0, 2), edit) == Position(1, 3)
    assert shift_position(Position(0, 5), edit) == Position(1, 6)
    assert shift_position(Position(2, 1), edit) == Position(3, 1)
    assert shift_position(Position(0, 1), edit) == Position(0, 1)


def test_shift_position_keeps_offset() -> None:
    edit = Edit(start=Position(0, 0), old_end=Position(0, 0), new_end=Position(0, 2))

    assert shift_position(Position(0, 3, 2), edit) == Position(0, 5, 2)


def test_byte_and_character_columns_convert() -> None:
    line = "héllo"

    assert col_to_byte(line, 2) == 3
    assert byte_to_col(line, 3) == 2
    assert byte_to_col(line, 0) == 0
    assert byte_to_col(line, 100) == len(line)


def test_classify_overlap() -> None:
    base = (Position(0, 0), Position(0, 3))

    assert classify_overlap(base, (Position(0, 3), Position(0, 5))) is OverlapState.TOUCHING
    assert classify_overlap(base, (Position(0, 2), Position(0, 5))) is OverlapState.OVERLAPPING
    assert classify_overlap(base, (Position(0, 4), Position(0, 5))) is OverlapState.DISJOINT
    assert classify_overlap(base, base) is OverlapState.IDENTICAL
    assert classify_overlap(base, base, same_anchor=False) is OverlapState.OVERLAPPING
    reversed_base = (Position(0, 3), Position(0, 0))
    assert classify_overlap(base, reversed_base) is OverlapState.OVERLAPPING


def test_end_of_text() -> None:
    assert end_of_text(Position(2, 4), "abc") == Position(2, 7)
    assert end_of_text(Position(2, 4), "ab\ncd\ne") == Position(4, 1)
    assert end_of_text(Position(0, 3), "") == Position(0, 3)
