"""Named multi-cursor commands dispatched from a command line."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from multicursor.core.errors import OptionsError

from . import cursors, edits, search, selection

if TYPE_CHECKING:
    from multicursor.engine import MultiCursorEngine


@dataclass(slots=True)
class CommandResult:
    status: str
    message: str = ""
    value: Any = None


CommandHandler = Callable[["MultiCursorEngine", List[str]], CommandResult]


def run_command(engine: "MultiCursorEngine", line: str) -> CommandResult:
    """Parse ``line`` as ``name [args...]`` and run the matching action.

    Unknown names and malformed arguments come back as ``command_error``
    results; failures inside the action itself propagate after the
    session has rolled back.
    """

    text = line.strip()
    engine.bus.emit("command.submit", text)
    if not text:
        return CommandResult(status="command_empty")
    parts = text.split()
    name, args = parts[0], parts[1:]
    handler = _COMMAND_HANDLERS.get(name)
    if handler is None:
        return _command_error(engine, name, f"unknown command '{name}'")
    try:
        return handler(engine, args)
    except OptionsError as exc:
        return _command_error(engine, name, str(exc))


def command_names() -> List[str]:
    return sorted(_COMMAND_HANDLERS)


def _command_error(engine: "MultiCursorEngine", name: str, message: str) -> CommandResult:
    engine.bus.emit("command.error", {"command": name, "message": message})
    return CommandResult(status="command_error", message=message)


def _int_arg(args: List[str], index: int, default: Optional[int], *, field: str) -> Optional[int]:
    if len(args) <= index:
        return default
    try:
        return int(args[index])
    except ValueError:
        raise OptionsError(f"{field} must be an integer, got {args[index]!r}", field=field) from None


def _direction_arg(args: List[str]) -> int:
    direction = _int_arg(args, 0, 1, field="direction")
    if direction not in (-1, 1):
        raise OptionsError(f"direction must be -1 or 1, got {direction!r}", field="direction")
    return direction


def _ok(name: str, value: Any = None) -> CommandResult:
    return CommandResult(status=f"command_{name}", message=name, value=value)


def _handle_simple(engine: "MultiCursorEngine", args: List[str], *, name: str, fn: Callable[..., Any]) -> CommandResult:
    del args
    return _ok(name, fn(engine))


def _handle_directional(
    engine: "MultiCursorEngine", args: List[str], *, name: str, fn: Callable[..., Any]
) -> CommandResult:
    return _ok(name, fn(engine, _direction_arg(args)))


def _handle_pattern(
    engine: "MultiCursorEngine", args: List[str], *, name: str, fn: Callable[..., Any]
) -> CommandResult:
    pattern = " ".join(args)
    if not pattern:
        raise OptionsError(f"{name} needs a pattern", field="pattern")
    return _ok(name, fn(engine, pattern))


def _handle_motion(
    engine: "MultiCursorEngine", args: List[str], *, name: str, fn: Callable[..., Any]
) -> CommandResult:
    motion = " ".join(args) or None
    if motion is None and fn is cursors.skip_cursor:
        raise OptionsError("skip needs a motion", field="motion")
    return _ok(name, fn(engine, motion))


def _handle_swap(engine: "MultiCursorEngine", args: List[str]) -> CommandResult:
    wrap = len(args) > 1 and args[1].lower() in {"wrap", "1", "true"}
    selection.swap_cursors(engine, _direction_arg(args), wrap)
    return _ok("swap")


def _handle_cycle(engine: "MultiCursorEngine", args: List[str], *, name: str, direction: int) -> CommandResult:
    wrap = not args or args[0].lower() not in {"nowrap", "0", "false"}
    fn = cursors.next_cursor if direction == 1 else cursors.prev_cursor
    fn(engine, wrap)
    return _ok(name)


def _handle_lines(engine: "MultiCursorEngine", args: List[str]) -> CommandResult:
    first = _int_arg(args, 0, None, field="first_row")
    last = _int_arg(args, 1, first, field="last_row")
    if first is None or last is None:
        raise OptionsError("lines needs a first row", field="first_row")
    column = _int_arg(args, 2, None, field="column")
    cursors.add_cursors_over_lines(engine, first, last, column)
    return _ok("lines")


def _handle_feed(engine: "MultiCursorEngine", args: List[str]) -> CommandResult:
    edits.feed(engine, " ".join(args))
    return _ok("feed")


def _handle_insert(engine: "MultiCursorEngine", args: List[str]) -> CommandResult:
    edits.insert(engine, " ".join(args))
    return _ok("insert")


_COMMAND_HANDLERS: Dict[str, CommandHandler] = {
    "split": partial(_handle_pattern, name="split", fn=selection.split_cursors),
    "match": partial(_handle_pattern, name="match", fn=selection.match_cursors),
    "transpose": partial(_handle_directional, name="transpose", fn=selection.transpose_cursors),
    "swap": _handle_swap,
    "align": partial(_handle_simple, name="align", fn=selection.align_cursors),
    "add": partial(_handle_motion, name="add", fn=cursors.add_cursor),
    "skip": partial(_handle_motion, name="skip", fn=cursors.skip_cursor),
    "restore": partial(_handle_simple, name="restore", fn=cursors.restore_cursors),
    "disable": partial(_handle_simple, name="disable", fn=cursors.disable_cursors),
    "enable": partial(_handle_simple, name="enable", fn=cursors.enable_cursors),
    "toggle": partial(_handle_simple, name="toggle", fn=cursors.toggle_cursor),
    "duplicate": partial(_handle_simple, name="duplicate", fn=cursors.duplicate_cursors),
    "visual-to-cursors": partial(_handle_simple, name="visual-to-cursors", fn=selection.visual_to_cursors),
    "insert-visual": partial(_handle_simple, name="insert-visual", fn=selection.insert_visual),
    "append-visual": partial(_handle_simple, name="append-visual", fn=selection.append_visual),
    "first": partial(_handle_simple, name="first", fn=cursors.first_cursor),
    "last": partial(_handle_simple, name="last", fn=cursors.last_cursor),
    "next": partial(_handle_cycle, name="next", direction=1),
    "prev": partial(_handle_cycle, name="prev", direction=-1),
    "delete": partial(_handle_simple, name="delete", fn=cursors.delete_cursor),
    "delete-overlapped": partial(
        _handle_simple, name="delete-overlapped", fn=cursors.delete_overlapped_cursor
    ),
    "clear": partial(_handle_simple, name="clear", fn=cursors.clear_cursors),
    "match-add": partial(_handle_directional, name="match-add", fn=search.match_add_cursor),
    "match-skip": partial(_handle_directional, name="match-skip", fn=search.match_skip_cursor),
    "match-all": partial(_handle_simple, name="match-all", fn=search.match_all_add_cursors),
    "line-add": partial(_handle_directional, name="line-add", fn=cursors.line_add_cursor),
    "line-skip": partial(_handle_directional, name="line-skip", fn=cursors.line_skip_cursor),
    "lines": _handle_lines,
    "feed": _handle_feed,
    "insert": _handle_insert,
    "delete-selections": partial(_handle_simple, name="delete-selections", fn=edits.delete_selections),
    "yank": partial(_handle_simple, name="yank", fn=edits.yank),
    "put": partial(_handle_simple, name="put", fn=edits.put),
}


__all__ = ["CommandResult", "run_command", "command_names"]
