from __future__ import annotations

from typing import List, Sequence, Tuple

import pytest

from multicursor.core.cursor import Cursor
from multicursor.core.errors import (
    EmptyRegistryError,
    OptionsError,
    ReentrantSessionError,
    StaleCursorError,
)
from multicursor.core.options import ANY, DISABLED, CursorFilter, FeedOptions, MatchOptions
from multicursor.core.positions import Edit
from multicursor.core.registry import CursorRegistry
from multicursor.core.state import VISUAL, Position


def make_registry(*positions: Tuple[int, int]) -> CursorRegistry:
    registry = CursorRegistry()
    for position in positions:
        registry.add(position)
    return registry


def positions(cursors: Sequence[Cursor]) -> List[Tuple[int, int]]:
    return [(cursor.row, cursor.col) for cursor in cursors]


def test_first_added_cursor_is_main_and_cursors_sort() -> None:
    registry = make_registry((2, 0), (0, 0), (1, 0))

    assert positions(registry.cursors()) == [(0, 0), (1, 0), (2, 0)]
    assert registry.main_cursor().position == Position(2, 0)
    assert len(registry) == 3


def test_empty_registry_has_no_main() -> None:
    registry = CursorRegistry()

    with pytest.raises(EmptyRegistryError):
        registry.main_cursor()


def test_normalize_merges_identical_cursors() -> None:
    registry = make_registry((0, 0), (0, 0), (1, 1))
    main = registry.main_cursor()

    removed = registry.normalize()

    assert removed == 1
    assert len(registry) == 2
    assert registry.main_cursor() == main
    assert registry.normalize() == 0


def test_normalize_keeps_main_among_duplicates() -> None:
    registry = make_registry((0, 0))
    later = registry.add((0, 0), main=True)

    registry.normalize()

    assert len(registry) == 1
    assert registry.main_cursor() == later


def test_normalize_keeps_distinct_selections() -> None:
    registry = CursorRegistry()
    registry.add((0, 3), anchor=(0, 0), mode=VISUAL)
    registry.add((0, 3), anchor=(0, 1), mode=VISUAL)
    registry.add((0, 3))

    assert registry.normalize() == 0
    assert len(registry) == 3


def test_normalize_ignores_disabled_duplicates() -> None:
    registry = make_registry((0, 0))
    registry.add((0, 0), enabled=False)

    assert registry.normalize() == 0
    assert registry.count_disabled() == 1


def test_normalize_reenables_lone_disabled_main() -> None:
    registry = make_registry((0, 0))
    main = registry.main_cursor()

    main.disable()
    assert not main.is_enabled

    registry.normalize()

    assert main.is_main
    assert main.is_enabled


def test_deleting_main_moves_main_to_successor() -> None:
    registry = make_registry((0, 0), (1, 0), (2, 0))

    registry.main_cursor().delete()

    assert registry.main_cursor().position == Position(1, 0)


def test_deleting_last_main_wraps_to_first() -> None:
    registry = make_registry((2, 0), (0, 0), (1, 0))

    registry.main_cursor().delete()

    assert registry.main_cursor().position == Position(0, 0)


def test_main_successor_prefers_enabled_cursors() -> None:
    registry = make_registry((0, 0), (2, 0))
    registry.add((1, 0), enabled=False)

    registry.main_cursor().delete()

    assert registry.main_cursor().position == Position(2, 0)


def test_disabling_main_promotes_an_enabled_cursor() -> None:
    registry = make_registry((0, 0), (1, 0))
    first = registry.main_cursor()

    first.disable()

    assert registry.main_cursor().position == Position(1, 0)
    assert not first.is_main


def test_deleted_handles_are_stale() -> None:
    registry = make_registry((0, 0), (1, 0))
    cursor = registry.cursors()[1]

    cursor.delete()

    assert not cursor.alive
    assert "deleted" in repr(cursor)
    with pytest.raises(StaleCursorError) as excinfo:
        _ = cursor.position
    assert excinfo.value.cursor_id == cursor.id
    with pytest.raises(StaleCursorError):
        _ = cursor.is_main


def test_ids_are_not_reused() -> None:
    registry = make_registry((0, 0), (1, 0))
    doomed = registry.cursors()[1]
    doomed.delete()

    fresh = registry.add((1, 0))

    assert fresh.id != doomed.id


def test_clone_sits_after_source_and_is_not_main() -> None:
    registry = make_registry((0, 0), (0, 0))
    main = registry.main_cursor()

    copy = main.clone()

    ids = [cursor.id for cursor in registry.cursors()]
    assert ids.index(copy.id) == ids.index(main.id) + 1
    assert not copy.is_main


def test_seek_with_and_without_wrap() -> None:
    registry = make_registry((0, 0), (1, 0), (2, 0))

    assert registry.seek((1, 0), 1).position == Position(2, 0)
    assert registry.seek((2, 0), 1) is None
    assert registry.seek((2, 0), 1, wrap=True).position == Position(0, 0)
    assert registry.seek((0, 0), -1, wrap=True).position == Position(2, 0)
    assert registry.seek((1, 5), -1).position == Position(1, 0)


def test_seek_rejects_bad_direction() -> None:
    registry = make_registry((0, 0))

    with pytest.raises(OptionsError):
        registry.seek((0, 0), 0)


def test_option_records_reject_non_flag_values() -> None:
    with pytest.raises(OptionsError) as excinfo:
        MatchOptions(whole_word="yes")  # type: ignore[arg-type]
    assert excinfo.value.field == "whole_word"

    with pytest.raises(OptionsError):
        FeedOptions(remap=1)  # type: ignore[arg-type]
    with pytest.raises(OptionsError):
        CursorFilter(enabled=False, disabled=False)


def test_seek_filters_disabled_cursors() -> None:
    registry = make_registry((0, 0), (2, 0))
    registry.add((1, 0), enabled=False)

    assert registry.seek((0, 0), 1).position == Position(2, 0)
    assert registry.seek((0, 0), 1, filter=DISABLED).position == Position(1, 0)
    assert registry.seek_boundary(1, filter=ANY).position == Position(2, 0)
    assert registry.cursor_at((1, 0)) is not None
    assert registry.cursor_at((1, 1)) is None


def test_for_each_skips_cursors_created_during_pass() -> None:
    registry = make_registry((0, 0), (1, 0))
    visited: List[int] = []

    def clone(cursor: Cursor) -> None:
        visited.append(cursor.id)
        cursor.clone()

    registry.for_each(clone)

    assert len(visited) == 2
    assert len(set(visited)) == 2
    assert len(registry) == 4


def test_for_each_skips_cursors_deleted_during_pass() -> None:
    registry = make_registry((0, 0), (1, 0))
    first, second = registry.cursors()
    visited: List[int] = []

    def visit(cursor: Cursor) -> None:
        visited.append(cursor.id)
        if cursor == first:
            second.delete()

    registry.for_each(visit)

    assert visited == [first.id]


def test_for_each_honours_explicit_order() -> None:
    registry = make_registry((0, 0), (1, 0), (2, 0))
    visited: List[Position] = []

    registry.for_each(lambda cursor: visited.append(cursor.position), order=registry.cursors()[::-1])

    assert visited == [Position(2, 0), Position(1, 0), Position(0, 0)]


def test_overlapping_finds_disabled_twin() -> None:
    registry = make_registry((0, 0))
    twin = registry.add((0, 0), enabled=False)

    assert registry.main_cursor().overlapped_cursor() == twin


def test_clear_and_restore() -> None:
    registry = make_registry((0, 0), (1, 0), (2, 0))

    registry.clear()
    assert len(registry) == 1
    assert registry.has_restore_point

    assert registry.restore() is True
    assert len(registry) == 3
    assert registry.restore() is False


def test_set_cursors_enabled_keeps_main_enabled() -> None:
    registry = make_registry((0, 0), (1, 0), (2, 0))

    registry.set_cursors_enabled(False)
    assert registry.count_disabled() == 2
    assert registry.main_cursor().is_enabled

    registry.set_cursors_enabled(True)
    assert registry.count_disabled() == 0


def test_merge_touching_collapses_adjacent_selections() -> None:
    registry = CursorRegistry()
    main = registry.add((0, 3), anchor=(0, 0), mode=VISUAL)
    registry.add((0, 6), anchor=(0, 3), mode=VISUAL)
    registry.add((1, 0))

    assert len(registry.touching_groups()) == 1
    assert registry.normalize() == 0

    removed = registry.merge_touching()

    assert removed == 1
    assert main.anchor == Position(0, 0)
    assert main.position == Position(0, 6)
    assert len(registry) == 2


def test_shift_moves_every_cursor_but_the_focused_one() -> None:
    registry = make_registry((0, 0), (0, 4))
    focused, other = registry.cursors()

    registry.shift(
        Edit(start=Position(0, 0), old_end=Position(0, 0), new_end=Position(0, 2)),
        exclude=focused.id,
    )

    assert focused.position == Position(0, 0)
    assert other.position == Position(0, 6)


def test_capture_and_rollback_restore_everything() -> None:
    registry = make_registry((0, 0), (1, 0))
    captured = registry.capture()

    registry.main_cursor().set_position((5, 5))
    registry.cursors()[0].clone()
    registry.clear()
    registry.rollback(captured)

    assert positions(registry.cursors()) == [(0, 0), (1, 0)]
    assert not registry.has_restore_point


def test_exclusive_rejects_nesting() -> None:
    registry = make_registry((0, 0))

    with registry.exclusive():
        assert registry.session_active
        with pytest.raises(ReentrantSessionError):
            with registry.exclusive():
                pass

    assert not registry.session_active
