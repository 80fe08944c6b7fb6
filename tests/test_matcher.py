from __future__ import annotations

from multicursor.buffer import TextBuffer
from multicursor.core.options import MatchOptions
from multicursor.core.state import Position
from multicursor.host.matcher import RegexMatcher, compile_pattern, escape_pattern, match_columns
from multicursor.host.pointer import pointer_position


def make_buffer(text: str) -> TextBuffer:
    return TextBuffer.from_text(text)


def test_find_all_reports_utf8_byte_offsets() -> None:
    line = "héllo héllo"
    matches = RegexMatcher().find_all(line, "héllo")

    assert [match.byte_offset for match in matches] == [0, 7]
    assert match_columns(line, matches[1]) == (6, 11)


def test_find_all_whole_word_and_literal() -> None:
    matcher = RegexMatcher()
    options = MatchOptions(literal=True, whole_word=True)

    matches = matcher.find_all("foo foobar foo", "foo", options)

    assert [match.byte_offset for match in matches] == [0, 11]
    assert [m.text for m in matcher.find_all("a.c abc", "a.c", MatchOptions(literal=True))] == ["a.c"]


def test_find_all_drops_zero_width_matches() -> None:
    assert RegexMatcher().find_all("abc", "x*") == []


def test_smart_case_depends_on_pattern_case() -> None:
    smart = MatchOptions(smart_case=True)

    assert compile_pattern("foo", smart).search("FOO") is not None
    assert compile_pattern("Foo", smart).search("foo") is None
    assert compile_pattern("foo", MatchOptions(ignore_case=True)).search("FoO") is not None


def test_escape_pattern() -> None:
    assert compile_pattern(escape_pattern("a+b")).search("a+b") is not None


def test_search_forward_is_strict_and_wraps() -> None:
    buffer = make_buffer("foo foo")
    matcher = RegexMatcher()

    assert matcher.search_from_cursor(buffer, Position(0, 0), "foo", 1) == Position(0, 4)
    assert matcher.search_from_cursor(buffer, Position(0, 4), "foo", 1) == Position(0, 0)
    assert RegexMatcher(wrap=False).search_from_cursor(buffer, Position(0, 4), "foo", 1) is None


def test_search_backward_and_wrap() -> None:
    buffer = make_buffer("foo\nbar foo")
    matcher = RegexMatcher()

    assert matcher.search_from_cursor(buffer, Position(1, 4), "foo", -1) == Position(0, 0)
    assert matcher.search_from_cursor(buffer, Position(0, 0), "foo", -1) == Position(1, 4)


def test_search_finds_only_match_at_cursor_by_wrapping() -> None:
    buffer = make_buffer("foo\nbar")

    assert RegexMatcher().search_from_cursor(buffer, Position(0, 0), "foo", 1) == Position(0, 0)


def test_search_matches_empty_lines() -> None:
    buffer = make_buffer("a\n\nb")

    assert RegexMatcher().search_from_cursor(buffer, Position(0, 0), "^$", 1) == Position(1, 0)


def test_pointer_position_offset_needs_virtualedit() -> None:
    assert pointer_position(2, 5, 3) == Position(2, 5, 0)
    assert pointer_position(2, 5, 3, virtualedit=True) == Position(2, 5, 3)
    assert pointer_position(2, 5) == Position(2, 5, 0)


def test_pointer_position_clamps_into_buffer() -> None:
    buffer = make_buffer("abc\nde")

    assert pointer_position(9, 9, buffer=buffer) == Position(1, 2)
    assert pointer_position(0, 9, 4, virtualedit=True, buffer=buffer) == Position(0, 3, 4)


def test_search_matches_across_lines() -> None:
    buffer = make_buffer("ab\ncd\nxx\nab\ncd")
    pattern = escape_pattern("ab\ncd")
    matcher = RegexMatcher()

    assert matcher.search_from_cursor(buffer, Position(0, 0), pattern, 1) == Position(3, 0)
    assert matcher.search_from_cursor(buffer, Position(3, 0), pattern, 1) == Position(0, 0)
    assert matcher.search_from_cursor(buffer, Position(3, 0), pattern, -1) == Position(0, 0)
