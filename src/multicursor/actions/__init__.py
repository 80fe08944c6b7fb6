"""Ready-made multi-cursor actions built on the public engine API."""

from .commands import CommandResult, command_names, run_command
from .cursors import (
    add_cursor,
    add_cursors_over_lines,
    clear_cursors,
    delete_cursor,
    delete_overlapped_cursor,
    disable_cursors,
    duplicate_cursors,
    enable_cursors,
    first_cursor,
    handle_mouse,
    last_cursor,
    line_add_cursor,
    line_skip_cursor,
    move_main,
    next_cursor,
    prev_cursor,
    restore_cursors,
    skip_cursor,
    toggle_cursor,
)
from .edits import delete_selections, feed, insert, put, yank
from .search import match_add_cursor, match_all_add_cursors, match_skip_cursor
from .selection import (
    align_cursors,
    append_visual,
    insert_visual,
    match_cursors,
    split_cursors,
    swap_cursors,
    transpose_cursors,
    visual_to_cursors,
)

__all__ = [
    "CommandResult",
    "command_names",
    "run_command",
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
    "match_add_cursor",
    "match_skip_cursor",
    "match_all_add_cursors",
    "split_cursors",
    "match_cursors",
    "transpose_cursors",
    "swap_cursors",
    "align_cursors",
    "visual_to_cursors",
    "insert_visual",
    "append_visual",
    "feed",
    "insert",
    "delete_selections",
    "yank",
    "put",
]
