from __future__ import annotations

import pytest

from multicursor.buffer import (
    BLACKHOLE,
    UNNAMED,
    BufferValidationError,
    RegisterBank,
    RegisterValue,
    TextBuffer,
    clamp_position,
    linewise_span,
    put_value,
    selection_spans,
    selection_text,
)
from multicursor.buffer.editing import first_non_blank
from multicursor.core.state import Position


def make_buffer(text: str, *, tabstop: int = 8) -> TextBuffer:
    return TextBuffer.from_text(text, tabstop=tabstop)


def test_apply_edit_replaces_span_and_returns_insert_end() -> None:
    buffer = make_buffer("abc\ndef")

    new_end = buffer.apply_edit(Position(0, 1), Position(1, 1), "X")

    assert buffer.text == "aXef"
    assert new_end == Position(0, 2)


def test_apply_edit_inserting_newlines() -> None:
    buffer = make_buffer("abc")

    new_end = buffer.apply_edit(Position(0, 1), Position(0, 1), "1\n2")

    assert buffer.text == "a1\n2bc"
    assert new_end == Position(1, 1)
    assert buffer.line_count() == 2
    assert buffer.version == 1


def test_get_text_spans_lines() -> None:
    buffer = make_buffer("hello\nworld\n!")

    assert buffer.get_text(Position(0, 3), Position(2, 1)) == "lo\nworld\n!"
    assert buffer.get_text(Position(1, 1), Position(1, 3)) == "or"


def test_out_of_range_positions_raise() -> None:
    buffer = make_buffer("abc")

    with pytest.raises(BufferValidationError) as excinfo:
        buffer.get_text(Position(0, 0), Position(3, 0))

    assert excinfo.value.position == Position(3, 0)
    with pytest.raises(BufferValidationError):
        buffer.apply_edit(Position(0, 5), Position(0, 5), "x")


def test_virtual_columns_expand_tabs() -> None:
    buffer = make_buffer("\tab", tabstop=4)

    assert buffer.virtual_column(Position(0, 1)) == 4
    assert buffer.virtual_column(Position(0, 2)) == 5
    assert buffer.column_from_virtual_column(0, 2) == 0
    assert buffer.column_from_virtual_column(0, 4) == 1
    assert buffer.column_from_virtual_column(0, 99) == 3


def test_virtual_columns_count_wide_characters() -> None:
    buffer = make_buffer("日本x")

    assert buffer.virtual_column(Position(0, 2)) == 4
    assert buffer.display_width(0) == 5
    assert buffer.column_from_virtual_column(0, 3) == 1


def test_snapshot_and_restore() -> None:
    buffer = make_buffer("one\ntwo")
    snapshot = buffer.snapshot()

    buffer.apply_edit(Position(0, 0), Position(1, 3), "gone")
    buffer.restore(snapshot)

    assert buffer.text == "one\ntwo"


def test_clamp_position() -> None:
    buffer = make_buffer("ab\nc")

    assert clamp_position(buffer, Position(9, 9)) == Position(1, 1)
    assert clamp_position(buffer, Position(-1, 1)) == Position(0, 1)


def test_register_bank_named_registers_update_unnamed() -> None:
    bank = RegisterBank()

    bank.yank_to("a", "alpha")
    bank.yank_to(BLACKHOLE, "discarded")

    assert bank.get("a").text == "alpha"
    assert bank.get(UNNAMED).text == "alpha"
    assert bank.get(BLACKHOLE).text == ""
    assert bank.get("z").text == ""


def test_register_bank_copy_is_independent() -> None:
    bank = RegisterBank()
    bank.yank_to(UNNAMED, "one", kind="linewise")

    copy = bank.copy()
    copy.append(UNNAMED, "!")

    assert copy == RegisterBank({UNNAMED: RegisterValue("one!", "linewise")})
    assert bank.get().text == "one"


def test_put_linewise_below_and_above() -> None:
    below = make_buffer("one\ntwo")
    above = make_buffer("one\ntwo")
    value = RegisterValue("new", "linewise")

    assert put_value(below, Position(0, 1), value) == Position(1, 0)
    assert below.text == "one\nnew\ntwo"
    assert put_value(above, Position(0, 1), value, before=True) == Position(0, 0)
    assert above.text == "new\none\ntwo"


def test_put_charwise_after_cursor() -> None:
    buffer = make_buffer("abc")

    landing = put_value(buffer, Position(0, 0), RegisterValue("XY"))

    assert buffer.text == "aXYbc"
    assert landing == Position(0, 2)


def test_linewise_span_of_last_line_eats_previous_newline() -> None:
    buffer = make_buffer("a\nb\nc")

    assert linewise_span(buffer, 2, 2) == (Position(1, 1), Position(2, 1))
    assert linewise_span(buffer, 0, 1) == (Position(0, 0), Position(2, 0))


def test_blockwise_selection_spans_run_bottom_up() -> None:
    buffer = make_buffer("abcd\nef\nghij")

    spans = selection_spans(buffer, Position(0, 1), Position(2, 3), "blockwise")

    assert spans == [
        (Position(2, 1), Position(2, 3)),
        (Position(1, 1), Position(1, 2)),
        (Position(0, 1), Position(0, 3)),
    ]
    assert selection_text(buffer, Position(0, 1), Position(2, 3), "blockwise") == "bc\nf\nhi"


def test_first_non_blank() -> None:
    assert first_non_blank("   abc") == 3
    assert first_non_blank("\tx") == 1
    assert first_non_blank("    ") == 0
