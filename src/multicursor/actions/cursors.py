"""Actions that add, remove, park and cycle cursors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Union

from multicursor.core.cursor import Cursor
from multicursor.core.options import ANY, DISABLED, AddCursorOptions, validate_direction
from multicursor.core.session import Context
from multicursor.core.state import NORMAL, VISUAL_LINE, Position, is_visual
from multicursor.host.pointer import pointer_position

if TYPE_CHECKING:
    from multicursor.engine import MultiCursorEngine

Motion = Union[str, Callable[[Cursor], object]]


def move_main(
    ctx: Context,
    motion: Optional[Motion],
    options: AddCursorOptions = AddCursorOptions(),
    *,
    prepare: Optional[Callable[[Cursor], object]] = None,
) -> None:
    """Leave a cursor behind (or not) and move the main cursor by ``motion``.

    A selection travels as a whole: the anchor is displaced by the same
    amount the active end moved. Linewise selections keep their columns and
    the far end of a multi-line selection keeps its own.
    Without a motion every cursor is parked: main leaves a disabled copy in
    place and the others are disabled.
    """

    if motion is None:

        def park(cursor: Cursor) -> None:
            if cursor.is_main:
                cursor.clone().disable()
                cursor.set_mode(NORMAL)
            else:
                cursor.disable()

        ctx.for_each_cursor(park)
        return

    main = ctx.main_cursor()
    if options.add_cursor:
        main.clone()
    if prepare is not None:
        prepare(main)

    old_mode = main.mode
    anchor, active = main.anchor, main.position
    if isinstance(motion, str):
        main.feedkeys(motion, options.feed)
    else:
        motion(main)
    moved = main.position
    d_row = moved.row - active.row
    d_col = moved.col - active.col

    main.set_mode(old_mode)
    if not is_visual(old_mode):
        main.set_position(moved)
        return
    if old_mode == VISUAL_LINE:
        main.set_selection(
            Position(anchor.row + d_row, anchor.col), Position(moved.row, active.col)
        )
    else:
        anchor_col = max(anchor.col + d_col, 0) if anchor.row == active.row else anchor.col
        main.set_selection(
            Position(anchor.row + d_row, anchor_col),
            Position(moved.row, moved.col, moved.offset),
        )


def add_cursor(
    engine: "MultiCursorEngine", motion: Optional[Motion] = None, *, remap: bool = True
) -> None:
    engine.action(lambda ctx: move_main(ctx, motion, AddCursorOptions(add_cursor=True, remap=remap)))


def skip_cursor(engine: "MultiCursorEngine", motion: Motion, *, remap: bool = True) -> None:
    engine.action(lambda ctx: move_main(ctx, motion, AddCursorOptions(add_cursor=False, remap=remap)))


def handle_mouse(
    engine: "MultiCursorEngine",
    row: int,
    col: int,
    coladd: Optional[int] = None,
    *,
    virtualedit: bool = False,
) -> None:
    """Toggle a cursor under the pointer; clicking empty text adds one."""

    def click(ctx: Context) -> None:
        position = pointer_position(row, col, coladd, virtualedit=virtualedit, buffer=ctx.buffer)
        existing = ctx.get_cursor_at_pos(position)
        if existing is not None:
            if len(ctx.registry) > 1:
                existing.delete()
            return
        main = ctx.main_cursor()
        main.clone()
        main.set_position(position).set_anchor(position)

    engine.action(click)


def restore_cursors(engine: "MultiCursorEngine") -> bool:
    return engine.action(lambda ctx: ctx.restore())


def disable_cursors(engine: "MultiCursorEngine") -> None:
    """Freeze every cursor; main keeps moving and leaves a frozen copy."""

    def disable(ctx: Context) -> None:
        main = ctx.main_cursor()
        main.clone()
        ctx.set_cursors_enabled(False)
        main.set_mode(NORMAL)

    engine.action(disable)


def enable_cursors(engine: "MultiCursorEngine") -> None:
    """Unfreeze the parked cursors, dropping the ones that were active."""

    def enable(ctx: Context) -> None:
        if ctx.num_disabled_cursors() == 0:
            return
        active = ctx.get_cursors()
        ctx.set_cursors_enabled(True)
        for cursor in active:
            cursor.delete()

    engine.action(enable)


def toggle_cursor(engine: "MultiCursorEngine") -> None:
    """Park a cursor at main, or remove the parked cursor already there."""

    def toggle(ctx: Context) -> None:
        ctx.set_cursors_enabled(False)
        main = ctx.main_cursor()
        overlapped = main.overlapped_cursor()
        if overlapped is not None:
            overlapped.delete()
            return
        fresh = main.clone()
        main.disable()
        fresh.set_mode(NORMAL).select()

    engine.action(toggle)


def duplicate_cursors(engine: "MultiCursorEngine") -> None:
    def duplicate(ctx: Context) -> None:
        def park_copy(cursor: Cursor) -> None:
            cursor.clone().disable()
            cursor.set_mode(NORMAL)

        ctx.for_each_cursor(park_copy)

    engine.action(duplicate)


def _select_boundary(engine: "MultiCursorEngine", direction: int) -> None:
    validate_direction(direction)

    def boundary(ctx: Context) -> None:
        if ctx.num_enabled_cursors() > 1:
            target = ctx.seek_boundary_cursor(direction)
            if target is not None:
                target.select()
            return
        main = ctx.main_cursor()
        target = ctx.seek_boundary_cursor(direction, DISABLED)
        if target is not None:
            target.select()
            main.delete()
            target.clone().disable()

    engine.action(boundary)


def first_cursor(engine: "MultiCursorEngine") -> None:
    _select_boundary(engine, -1)


def last_cursor(engine: "MultiCursorEngine") -> None:
    _select_boundary(engine, 1)


def _select_relative(engine: "MultiCursorEngine", direction: int, wrap: bool) -> None:
    validate_direction(direction)

    def relative(ctx: Context) -> None:
        main = ctx.main_cursor()
        if ctx.num_enabled_cursors() > 1:
            target = ctx.seek_cursor(main.position, direction, wrap)
            if target is not None:
                target.select()
            return
        target = ctx.seek_cursor(main.position, direction, wrap, ANY)
        if target is not None and target != main:
            target.select()
            main.delete()
            target.clone().disable()

    engine.action(relative)


def next_cursor(engine: "MultiCursorEngine", wrap: bool = True) -> None:
    _select_relative(engine, 1, wrap)


def prev_cursor(engine: "MultiCursorEngine", wrap: bool = True) -> None:
    _select_relative(engine, -1, wrap)


def delete_cursor(engine: "MultiCursorEngine") -> None:
    def delete(ctx: Context) -> None:
        if len(ctx.registry) > 1:
            ctx.main_cursor().delete()

    engine.action(delete)


def delete_overlapped_cursor(engine: "MultiCursorEngine") -> None:
    def delete_overlapped(ctx: Context) -> None:
        def drop(cursor: Cursor) -> None:
            overlapped = cursor.overlapped_cursor()
            if overlapped is not None:
                overlapped.delete()

        ctx.for_each_cursor(drop)

    engine.action(delete_overlapped)


def clear_cursors(engine: "MultiCursorEngine") -> None:
    engine.action(lambda ctx: ctx.clear())


def _line_add(engine: "MultiCursorEngine", direction: int, add: bool) -> None:
    validate_direction(direction)

    def line_add(ctx: Context) -> None:
        main = ctx.main_cursor()
        position = main.position
        options = AddCursorOptions(add_cursor=add, remap=False)
        if position.offset > 0:
            move_main(ctx, "k" if direction == -1 else "j", options)
            return
        buffer = ctx.buffer
        virtual_col = buffer.virtual_column(position)
        row = position.row
        while True:
            row += direction
            if row < 0 or row >= buffer.line_count():
                return
            width = buffer.virtual_column(Position(row, len(buffer.get_line(row))))
            if virtual_col == 0 or width > virtual_col:
                break
        target = Position(row, buffer.column_from_virtual_column(row, virtual_col), position.offset)
        move_main(ctx, lambda cursor: cursor.set_position(target), options)

    engine.action(line_add)


def line_add_cursor(engine: "MultiCursorEngine", direction: int = 1) -> None:
    """Add a cursor and move main to the same display column on the next line.

    Lines too short to reach that column are skipped.
    """

    _line_add(engine, direction, True)


def line_skip_cursor(engine: "MultiCursorEngine", direction: int = 1) -> None:
    _line_add(engine, direction, False)


def add_cursors_over_lines(
    engine: "MultiCursorEngine",
    first_row: int,
    last_row: int,
    column: Optional[int] = None,
) -> None:
    """Replace main with one cursor per line of ``first_row..last_row``.

    Each cursor keeps main's column (or ``column``), clipped to its line.
    Main ends on the last line, or on the first one when the original
    cursor already sat on the last. From a selection, main goes to the end
    that was active.
    """

    first_row, last_row = sorted((first_row, last_row))

    def over_lines(ctx: Context) -> None:
        main = ctx.main_cursor()
        origin = main.position
        from_visual = main.has_selection
        at_start = main.at_visual_start
        target_col = origin.col if column is None else column
        created = []
        for row in range(first_row, last_row + 1):
            line = ctx.buffer.get_line(row)
            col = min(target_col, max(len(line) - 1, 0))
            created.append(main.clone().set_mode(NORMAL).set_position(Position(row, col)))
        main.delete()
        if from_visual:
            (created[0] if at_start else created[-1]).select()
        elif origin.row == created[-1].row:
            created[0].select()
        else:
            created[-1].select()

    engine.action(over_lines)


__all__ = [
    "move_main",
    "add_cursor",
    "skip_cursor",
    "handle_mouse",
    "restore_cursors",
    "disable_cursors",
    "enable_cursors",
    "toggle_cursor",
    "duplicate_cursors",
    "first_cursor",
    "last_cursor",
    "next_cursor",
    "prev_cursor",
    "delete_cursor",
    "delete_overlapped_cursor",
    "clear_cursors",
    "line_add_cursor",
    "line_skip_cursor",
    "add_cursors_over_lines",
]
