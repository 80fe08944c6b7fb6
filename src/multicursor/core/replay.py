"""Replay of low-level editing primitives, one focused cursor at a time."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence, Tuple

from multicursor.buffer.editing import put_value, selection_spans, selection_text
from multicursor.buffer.registers import UNNAMED, RegisterValue
from multicursor.buffer.validation import clamp_position
from multicursor.runtime import telemetry

from .errors import ReentrantSessionError
from .options import EngineConfig, FeedOptions, MatchOptions, validate_direction
from .positions import Edit, ordered, shift_position
from .state import NORMAL, CursorState, Position, is_visual, kind_for_mode

if TYPE_CHECKING:
    from multicursor.buffer.protocols import HostBuffer, InputInjector, PatternMatcher

    from .cursor import Cursor
    from .registry import CursorRegistry


class TrackedBuffer:
    """Host buffer proxy that drags every unfocused cursor along with edits."""

    def __init__(self, host: "HostBuffer", registry: "CursorRegistry", focus_id: int) -> None:
        self._host = host
        self._registry = registry
        self._focus_id = focus_id
        self.edits: list[Edit] = []

    def get_line(self, row: int) -> str:
        return self._host.get_line(row)

    def line_count(self) -> int:
        return self._host.line_count()

    def get_text(self, start: Position, end: Position) -> str:
        return self._host.get_text(start, end)

    def apply_edit(self, start: Position, end: Position, text: str) -> Position:
        start, end = ordered(start, end)
        new_end = self._host.apply_edit(start, end, text)
        edit = Edit(
            start=Position(start.row, start.col),
            old_end=Position(end.row, end.col),
            new_end=new_end,
        )
        self.edits.append(edit)
        self._registry.shift(edit, exclude=self._focus_id)
        return new_end

    def virtual_column(self, position: Position) -> int:
        return self._host.virtual_column(position)

    def column_from_virtual_column(self, row: int, virtual_col: int) -> int:
        return self._host.column_from_virtual_column(row, virtual_col)

    def snapshot(self) -> Any:
        return self._host.snapshot()

    def restore(self, snapshot: Any) -> None:
        self._host.restore(snapshot)


@dataclass(slots=True)
class FocusScope:
    """The world as seen by a primitive while one cursor is the real one.

    Primitives read and replace ``state``; the executor writes it back onto
    the cursor record once the primitive returns.
    """

    cursor_id: int
    state: CursorState
    buffer: TrackedBuffer
    injector: Optional["InputInjector"]
    matcher: Optional["PatternMatcher"]
    config: EngineConfig
    registers: Any = field(default=None)

    @property
    def position(self) -> Position:
        return self.state.position

    def set_position(self, position: Position) -> None:
        anchor = self.state.anchor if is_visual(self.state.mode) else position
        self.state = CursorState(position=position, anchor=anchor, mode=self.state.mode)

    def set_state(self, position: Position, anchor: Position, mode: str) -> None:
        self.state = CursorState(position=position, anchor=anchor, mode=mode)

    def follow(self, edit: Edit) -> None:
        self.state = CursorState(
            position=shift_position(self.state.position, edit),
            anchor=shift_position(self.state.anchor, edit),
            mode=self.state.mode,
        )

    def require_injector(self) -> "InputInjector":
        if self.injector is None:
            raise RuntimeError("No input injector configured for replay")
        return self.injector

    def require_matcher(self) -> "PatternMatcher":
        if self.matcher is None:
            raise RuntimeError("No pattern matcher configured for replay")
        return self.matcher


class Primitive:
    """One atomic operation the executor can replay on a focused cursor."""

    name = "primitive"

    def run(self, scope: FocusScope) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Move(Primitive):
    token: str
    options: FeedOptions = FeedOptions()
    name = "move"

    def run(self, scope: FocusScope) -> Position:
        result = scope.require_injector().apply(
            scope.buffer, scope.state, self.token, self.options, registers=scope.registers
        )
        scope.set_state(result.position, result.selection.anchor, result.mode)
        return result.position


@dataclass(frozen=True, slots=True)
class Feed(Primitive):
    keys: str
    options: FeedOptions = FeedOptions()
    name = "feed"

    def run(self, scope: FocusScope) -> Position:
        injector = scope.require_injector()
        for token in injector.tokenize(self.keys, self.options):
            Move(token, self.options).run(scope)
        return scope.position


@dataclass(frozen=True, slots=True)
class Search(Primitive):
    pattern: str
    direction: int = 1
    options: Optional[MatchOptions] = None
    name = "search"

    def __post_init__(self) -> None:
        validate_direction(self.direction)

    def run(self, scope: FocusScope) -> Optional[Position]:
        options = scope.config.match_options(self.options or MatchOptions(user_config=True))
        found = scope.require_matcher().search_from_cursor(
            scope.buffer, scope.position, self.pattern, self.direction, options
        )
        if found is not None:
            scope.set_position(found)
        return found


@dataclass(frozen=True, slots=True)
class InsertText(Primitive):
    text: str
    name = "insert_text"

    def run(self, scope: FocusScope) -> Position:
        at = Position(scope.position.row, scope.position.col)
        new_end = scope.buffer.apply_edit(at, at, self.text)
        scope.follow(Edit(start=at, old_end=at, new_end=new_end))
        return new_end


@dataclass(frozen=True, slots=True)
class DeleteRange(Primitive):
    start: Position
    end: Position
    name = "delete_range"

    def run(self, scope: FocusScope) -> str:
        return _delete(scope, *ordered(self.start, self.end))


@dataclass(frozen=True, slots=True)
class DeleteSelection(Primitive):
    """Delete the selected text into ``register`` and return to normal mode."""

    register: str = UNNAMED
    name = "delete_selection"

    def run(self, scope: FocusScope) -> str:
        state = scope.state
        kind = kind_for_mode(state.mode)
        if kind == "none":
            return ""
        buffer = scope.buffer
        start, _ = ordered(state.anchor, state.position)
        text = selection_text(buffer, state.anchor, state.position, kind)
        for span_start, span_end in selection_spans(buffer, state.anchor, state.position, kind):
            _delete(scope, span_start, span_end)
        if kind == "linewise":
            landing = Position(start.row, 0)
        elif kind == "blockwise":
            landing = Position(start.row, min(state.anchor.col, state.position.col))
        else:
            landing = start
        _store(scope, self.register, text, kind)
        landing = clamp_position(buffer, landing)
        scope.set_state(landing, landing, NORMAL)
        return text


@dataclass(frozen=True, slots=True)
class ReplaceSelection(Primitive):
    """Swap the selected text for ``lines`` and select the replacement.

    Blockwise selections take one line per row, bottom-up; missing lines
    clear their row's slice and surplus lines land on the last row. A point
    cursor inserts at its position and stays a point.
    """

    lines: Tuple[str, ...]
    name = "replace_selection"

    def run(self, scope: FocusScope) -> str:
        state = scope.state
        buffer = scope.buffer
        kind = kind_for_mode(state.mode)
        if kind == "blockwise":
            return _replace_block(scope, self.lines)
        backwards = state.position < state.anchor
        start, end = ordered(state.anchor, state.position)
        if kind == "linewise":
            start = Position(start.row, 0)
            end = Position(end.row, len(buffer.get_line(end.row)))
        elif kind == "none":
            buffer.apply_edit(start, start, "\n".join(self.lines))
            scope.set_state(start, start, state.mode)
            return ""
        old_text = buffer.get_text(start, end)
        new_end = buffer.apply_edit(start, end, "\n".join(self.lines))
        if backwards:
            scope.set_state(start, new_end, state.mode)
        else:
            scope.set_state(new_end, start, state.mode)
        return old_text


def _replace_block(scope: FocusScope, lines: Tuple[str, ...]) -> str:
    state = scope.state
    buffer = scope.buffer
    top = min(state.anchor.row, state.position.row)
    bottom = max(state.anchor.row, state.position.row)
    left, right = sorted((state.anchor.col, state.position.col))
    old_text = selection_text(buffer, state.anchor, state.position, "blockwise")
    height = bottom - top + 1
    rows = list(lines[:height]) + [""] * (height - len(lines))
    if len(lines) > height:
        rows[-1] = "\n".join(lines[height - 1 :])
    for index in range(height - 1, -1, -1):
        row = top + index
        line_len = len(buffer.get_line(row))
        buffer.apply_edit(
            Position(row, min(left, line_len)), Position(row, min(right, line_len)), rows[index]
        )
    width = max((len(text) for text in rows), default=0)
    active_right = state.position.col == right
    scope.set_state(
        Position(state.position.row, left + width if active_right else left),
        Position(state.anchor.row, left if active_right else left + width),
        state.mode,
    )
    return old_text


@dataclass(frozen=True, slots=True)
class Yank(Primitive):
    """Copy the selection (or an explicit range, or the line) into a register."""

    register: str = UNNAMED
    start: Optional[Position] = None
    end: Optional[Position] = None
    name = "yank"

    def run(self, scope: FocusScope) -> str:
        state = scope.state
        buffer = scope.buffer
        if self.start is not None and self.end is not None:
            text = buffer.get_text(*ordered(self.start, self.end))
            _store(scope, self.register, text, "charwise")
            return text

        kind = kind_for_mode(state.mode)
        if kind == "none":
            text = buffer.get_line(state.position.row)
            _store(scope, self.register, text, "linewise")
            return text
        start, _ = ordered(state.anchor, state.position)
        text = selection_text(buffer, state.anchor, state.position, kind)
        _store(scope, self.register, text, kind)
        landing = Position(start.row, 0) if kind == "linewise" else start
        scope.set_state(landing, landing, NORMAL)
        return text


@dataclass(frozen=True, slots=True)
class Put(Primitive):
    """Paste the cursor's own register after (or before) the cursor."""

    register: str = UNNAMED
    before: bool = False
    name = "put"

    def run(self, scope: FocusScope) -> Position:
        value: RegisterValue = scope.registers.get(self.register)
        buffer = scope.buffer
        if is_visual(scope.state.mode):
            DeleteSelection("_").run(scope)
            at = scope.position
            new_end = buffer.apply_edit(at, at, value.text)
            scope.set_state(new_end, new_end, NORMAL)
            return new_end

        landing = put_value(buffer, scope.position, value, before=self.before)
        scope.set_state(landing, landing, NORMAL)
        return landing


@dataclass(frozen=True, slots=True)
class Custom(Primitive):
    """Arbitrary host-level work with the cursor focused; gets the scope."""

    fn: Callable[[FocusScope], Any]
    name = "custom"

    def run(self, scope: FocusScope) -> Any:
        return self.fn(scope)


def _delete(scope: FocusScope, start: Position, end: Position) -> str:
    buffer = scope.buffer
    text = buffer.get_text(start, end)
    if start == end:
        return text
    new_end = buffer.apply_edit(start, end, "")
    scope.follow(Edit(start=Position(start.row, start.col), old_end=Position(end.row, end.col), new_end=new_end))
    return text


def _store(scope: FocusScope, register: str, text: str, kind: str) -> None:
    scope.registers.yank_to(register, text, kind=kind if kind != "none" else "charwise")


class ReplayExecutor:
    """Applies primitives to one cursor at a time against the host buffer.

    While a primitive runs, its cursor is the only focused one: nested
    ``perform`` calls raise ``ReentrantSessionError``. Edits go through a
    ``TrackedBuffer`` so every other cursor shifts with the text, then the
    focused cursor's final state is written back onto its record.
    """

    def __init__(
        self,
        registry: "CursorRegistry",
        buffer: "HostBuffer",
        *,
        injector: Optional["InputInjector"] = None,
        matcher: Optional["PatternMatcher"] = None,
        config: Optional[EngineConfig] = None,
        logger_name: str | None = None,
    ) -> None:
        self.registry = registry
        self.buffer = buffer
        self.injector = injector
        self.matcher = matcher
        self.config = config or EngineConfig()
        self._logger_name = logger_name
        self._focused: Optional[int] = None
        registry.buffer = buffer
        registry.executor = self

    @property
    def focused(self) -> Optional[int]:
        return self._focused

    def perform(self, cursor: "Cursor", primitive: Primitive) -> Any:
        if self._focused is not None:
            raise ReentrantSessionError(
                f"Cursor {self._focused} is focused; cannot replay on cursor {cursor.id}"
            )
        record = self.registry.require(cursor.id)
        scope = FocusScope(
            cursor_id=cursor.id,
            state=record.state,
            buffer=TrackedBuffer(self.buffer, self.registry, cursor.id),
            injector=self.injector,
            matcher=self.matcher,
            config=self.config,
            registers=record.registers,
        )
        self._focused = cursor.id
        try:
            with telemetry.span(
                f"replay::{primitive.name}",
                logger_name=self._logger_name,
                component="replay",
                metadata={"cursor_id": cursor.id},
            ) as handle:
                result = primitive.run(scope)
                handle.add_metadata("edits", len(scope.buffer.edits))
        finally:
            self._focused = None

        record.position = scope.state.position
        record.anchor = scope.state.anchor
        record.mode = scope.state.mode
        self.registry.touch()
        return result

    def replay(
        self,
        primitive: Primitive,
        *,
        order: Optional[Sequence["Cursor"]] = None,
    ) -> Dict[int, Any]:
        """Run ``primitive`` on every enabled cursor, strictly one after another."""

        results: Dict[int, Any] = {}

        def _visit(cursor: "Cursor") -> None:
            results[cursor.id] = self.perform(cursor, primitive)

        self.registry.for_each(_visit, order=order)
        return results


__all__ = [
    "Primitive",
    "Move",
    "Feed",
    "Search",
    "InsertText",
    "DeleteRange",
    "DeleteSelection",
    "ReplaceSelection",
    "Yank",
    "Put",
    "Custom",
    "FocusScope",
    "TrackedBuffer",
    "ReplayExecutor",
]
