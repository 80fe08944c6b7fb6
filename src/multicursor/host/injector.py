"""Reference input injector interpreting a small vim-flavoured command table."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from multicursor.buffer.editing import (
    first_non_blank,
    put_value,
    selection_spans,
    selection_text,
)
from multicursor.buffer.protocols import HostBuffer, InjectResult
from multicursor.buffer.registers import UNNAMED, RegisterBank
from multicursor.core.options import FeedOptions
from multicursor.core.positions import ordered
from multicursor.core.state import (
    INSERT,
    NORMAL,
    VISUAL,
    VISUAL_BLOCK,
    VISUAL_LINE,
    CursorState,
    Position,
    is_visual,
    kind_for_mode,
)
from multicursor.runtime import telemetry

_WORD = re.compile(r"\w+|[^\w\s]+")
_KEYCODE = re.compile(r"<([^<>\s]+)>")
_KEY_NAMES = {
    "esc": "<Esc>",
    "cr": "<CR>",
    "enter": "<CR>",
    "return": "<CR>",
    "bs": "<BS>",
    "tab": "<Tab>",
    "space": "<Space>",
    "lt": "<lt>",
}
_INSERT_TEXT = {"<CR>": "\n", "<Tab>": "\t", "<Space>": " ", "<lt>": "<"}
_OPERATORS = ("d", "y")
_PREFIXES = ("g", "`")
_LINEWISE_MOTIONS = ("j", "k", "gg", "G")

Motion = Callable[[HostBuffer, Position, bool], Position]


class UnknownCommandError(RuntimeError):
    """Raised for a token the injector has no handler for."""

    def __init__(self, token: str, *, mode: str = NORMAL) -> None:
        super().__init__(f"Unknown command '{token}' in {mode} mode")
        self.token = token
        self.mode = mode


@dataclass(slots=True)
class Step:
    """One command invocation against the focused cursor."""

    buffer: HostBuffer
    state: CursorState
    count: int
    registers: Optional[RegisterBank]

    @property
    def position(self) -> Position:
        return self.state.position

    @property
    def visual(self) -> bool:
        return is_visual(self.state.mode)

    def line(self, row: Optional[int] = None) -> str:
        return self.buffer.get_line(self.position.row if row is None else row)

    def moved(self, position: Position) -> CursorState:
        anchor = self.state.anchor if self.visual else position
        return CursorState(position=position, anchor=anchor, mode=self.state.mode)

    def store(self, text: str, kind: str) -> None:
        if self.registers is not None:
            self.registers.yank_to(UNNAMED, text, kind=kind)


CommandHandler = Callable[[Step], CursorState]


# -- motions ---------------------------------------------------------------


def _max_col(line: str, visual: bool) -> int:
    return len(line) if visual else max(len(line) - 1, 0)


def _left(buffer: HostBuffer, pos: Position, visual: bool) -> Position:
    return Position(pos.row, max(pos.col - 1, 0))


def _right(buffer: HostBuffer, pos: Position, visual: bool) -> Position:
    return Position(pos.row, min(pos.col + 1, _max_col(buffer.get_line(pos.row), visual)))


def _vertical(buffer: HostBuffer, pos: Position, visual: bool, *, delta: int) -> Position:
    row = max(0, min(pos.row + delta, buffer.line_count() - 1))
    return Position(row, min(pos.col, _max_col(buffer.get_line(row), visual)))


def _line_start(buffer: HostBuffer, pos: Position, visual: bool) -> Position:
    return Position(pos.row, 0)


def _line_first_char(buffer: HostBuffer, pos: Position, visual: bool) -> Position:
    return Position(pos.row, first_non_blank(buffer.get_line(pos.row)))


def _line_end(buffer: HostBuffer, pos: Position, visual: bool) -> Position:
    return Position(pos.row, _max_col(buffer.get_line(pos.row), visual))


def _word_forward(buffer: HostBuffer, pos: Position, visual: bool) -> Position:
    line = buffer.get_line(pos.row)
    for match in _WORD.finditer(line):
        if match.start() > pos.col:
            return Position(pos.row, match.start())
    for row in range(pos.row + 1, buffer.line_count()):
        line = buffer.get_line(row)
        match = _WORD.search(line)
        if not line or match is not None:
            return Position(row, match.start() if match else 0)
    last = buffer.line_count() - 1
    return Position(last, _max_col(buffer.get_line(last), visual))


def _word_backward(buffer: HostBuffer, pos: Position, visual: bool) -> Position:
    starts = [m.start() for m in _WORD.finditer(buffer.get_line(pos.row)) if m.start() < pos.col]
    if starts:
        return Position(pos.row, starts[-1])
    for row in range(pos.row - 1, -1, -1):
        line = buffer.get_line(row)
        starts = [m.start() for m in _WORD.finditer(line)]
        if not line or starts:
            return Position(row, starts[-1] if starts else 0)
    return Position(0, 0)


def _word_end(buffer: HostBuffer, pos: Position, visual: bool) -> Position:
    for match in _WORD.finditer(buffer.get_line(pos.row)):
        if match.end() - 1 > pos.col:
            return Position(pos.row, match.end() - 1)
    for row in range(pos.row + 1, buffer.line_count()):
        match = _WORD.search(buffer.get_line(row))
        if match is not None:
            return Position(row, match.end() - 1)
    last = buffer.line_count() - 1
    return Position(last, _max_col(buffer.get_line(last), visual))


_MOTIONS: Dict[str, Motion] = {
    "h": _left,
    "l": _right,
    "j": partial(_vertical, delta=1),
    "k": partial(_vertical, delta=-1),
    "0": _line_start,
    "^": _line_first_char,
    "$": _line_end,
    "w": _word_forward,
    "b": _word_backward,
    "e": _word_end,
}


def _run_motion(step: Step, key: str) -> Position:
    position = step.position
    if key in ("gg", "G"):
        if step.count:
            row = min(step.count, step.buffer.line_count()) - 1
        else:
            row = 0 if key == "gg" else step.buffer.line_count() - 1
        return Position(row, first_non_blank(step.buffer.get_line(row)))
    motion = _MOTIONS[key]
    for _ in range(step.count or 1):
        position = motion(step.buffer, position, step.visual)
    return position


# -- commands --------------------------------------------------------------


def _toggle_visual(step: Step, *, mode: str) -> CursorState:
    position = step.position
    if step.state.mode == mode:
        return CursorState(position=position, anchor=position, mode=NORMAL)
    anchor = step.state.anchor if step.visual else position
    return CursorState(position=position, anchor=anchor, mode=mode)


def _escape(step: Step) -> CursorState:
    position = step.position
    position = Position(position.row, min(position.col, _max_col(step.line(), False)))
    return CursorState(position=position, anchor=position, mode=NORMAL)


def _swap_or_open(step: Step, *, above: bool = False) -> CursorState:
    if step.visual:
        return CursorState(position=step.state.anchor, anchor=step.position, mode=step.state.mode)
    row = step.position.row
    if above:
        at = Position(row, 0)
        step.buffer.apply_edit(at, at, "\n")
        landing = Position(row, 0)
    else:
        at = Position(row, len(step.line()))
        step.buffer.apply_edit(at, at, "\n")
        landing = Position(row + 1, 0)
    return CursorState(position=landing, anchor=landing, mode=INSERT)


def _delete_selection(step: Step) -> CursorState:
    state = step.state
    kind = kind_for_mode(state.mode)
    start, _ = ordered(state.anchor, state.position)
    step.store(selection_text(step.buffer, state.anchor, state.position, kind), kind)
    for span_start, span_end in selection_spans(step.buffer, state.anchor, state.position, kind):
        step.buffer.apply_edit(span_start, span_end, "")
    if kind == "linewise":
        start = Position(min(start.row, step.buffer.line_count() - 1), 0)
    elif kind == "blockwise":
        start = Position(start.row, min(state.anchor.col, state.position.col))
    return _escape(Step(step.buffer, CursorState(start, start, NORMAL), 0, step.registers))


def _yank_selection(step: Step) -> CursorState:
    state = step.state
    kind = kind_for_mode(state.mode)
    step.store(selection_text(step.buffer, state.anchor, state.position, kind), kind)
    start, _ = ordered(state.anchor, state.position)
    if kind == "linewise":
        start = Position(start.row, 0)
    return CursorState(position=start, anchor=start, mode=NORMAL)


def _delete_char(step: Step) -> CursorState:
    if step.visual:
        return _delete_selection(step)
    row, col = step.position.row, step.position.col
    line = step.line()
    if not line:
        return step.state
    end = min(col + (step.count or 1), len(line))
    step.store(line[col:end], "charwise")
    step.buffer.apply_edit(Position(row, col), Position(row, end), "")
    return _escape(Step(step.buffer, CursorState(Position(row, col), Position(row, col), NORMAL), 0, step.registers))


def _delete_to_end(step: Step) -> CursorState:
    if step.visual:
        state = step.state
        linewise = CursorState(position=state.position, anchor=state.anchor, mode=VISUAL_LINE)
        return _delete_selection(Step(step.buffer, linewise, 0, step.registers))
    return _operate(step, "d", "$")


def _visual_operator(step: Step, *, operator: str) -> CursorState:
    if not step.visual:
        return step.state
    return _delete_selection(step) if operator == "d" else _yank_selection(step)


def _operate(step: Step, operator: str, motion: str) -> CursorState:
    """Normal-mode ``d{motion}``/``y{motion}``, including ``dd`` and ``yy``."""

    buffer = step.buffer
    origin = step.position
    if motion == operator or motion in _LINEWISE_MOTIONS:
        if motion == operator:
            first = origin.row
            last = min(origin.row + (step.count or 1) - 1, buffer.line_count() - 1)
        else:
            first, last = sorted((origin.row, _run_motion(step, motion).row))
        lines = CursorState(position=Position(last, 0), anchor=Position(first, 0), mode=VISUAL_LINE)
        sub = Step(buffer, lines, 0, step.registers)
        if operator == "y":
            _yank_selection(sub)
            return step.state
        landing = _delete_selection(sub).position
        landing = Position(landing.row, first_non_blank(buffer.get_line(landing.row)))
        return CursorState(position=landing, anchor=landing, mode=NORMAL)

    if motion not in _MOTIONS:
        raise UnknownCommandError(operator + motion)
    target = _run_motion(Step(buffer, step.state, step.count, step.registers), motion)
    if motion == "$":
        target = Position(target.row, len(buffer.get_line(target.row)))
    start, end = ordered(origin, target)
    if motion == "e":
        end = Position(end.row, min(end.col + 1, len(buffer.get_line(end.row))))
    text = buffer.get_text(start, end)
    step.store(text, "charwise")
    if operator == "d":
        buffer.apply_edit(start, end, "")
        return _escape(Step(buffer, CursorState(start, start, NORMAL), 0, step.registers))
    return CursorState(position=start, anchor=start, mode=NORMAL)


def _put(step: Step, *, before: bool) -> CursorState:
    if step.registers is None:
        return step.state
    value = step.registers.get(UNNAMED)
    if step.visual:
        cleared = _delete_selection(Step(step.buffer, step.state, 0, None))
        at = cleared.position
        new_end = step.buffer.apply_edit(at, at, value.text)
        return CursorState(position=new_end, anchor=new_end, mode=NORMAL)
    landing = step.position
    for _ in range(step.count or 1):
        landing = put_value(step.buffer, landing, value, before=before)
    return CursorState(position=landing, anchor=landing, mode=NORMAL)


def _enter_insert(step: Step, *, where: str) -> CursorState:
    line = step.line()
    row, col = step.position.row, step.position.col
    if step.visual:
        start, end = ordered(step.state.anchor, step.position)
        target = start if where in ("here", "first") else end
    elif where == "after":
        target = Position(row, min(col + 1, len(line)))
    elif where == "first":
        target = Position(row, first_non_blank(line))
    elif where == "end":
        target = Position(row, len(line))
    else:
        target = Position(row, col)
    return CursorState(position=target, anchor=target, mode=INSERT)


def _jump_to_mark(step: Step, *, end: bool) -> CursorState:
    if not step.visual:
        return step.state
    state = step.state
    first, last = ordered(state.anchor, state.position)
    target, other = (last, first) if end else (first, last)
    return CursorState(position=target, anchor=other, mode=state.mode)


_COMMAND_HANDLERS: Dict[str, CommandHandler] = {
    "v": partial(_toggle_visual, mode=VISUAL),
    "V": partial(_toggle_visual, mode=VISUAL_LINE),
    "<C-v>": partial(_toggle_visual, mode=VISUAL_BLOCK),
    "<Esc>": _escape,
    "o": _swap_or_open,
    "O": partial(_swap_or_open, above=True),
    "x": _delete_char,
    "D": _delete_to_end,
    "d": partial(_visual_operator, operator="d"),
    "y": partial(_visual_operator, operator="y"),
    "p": partial(_put, before=False),
    "P": partial(_put, before=True),
    "i": partial(_enter_insert, where="here"),
    "a": partial(_enter_insert, where="after"),
    "I": partial(_enter_insert, where="first"),
    "A": partial(_enter_insert, where="end"),
    "`<": partial(_jump_to_mark, end=False),
    "`>": partial(_jump_to_mark, end=True),
}


# -- insert mode -----------------------------------------------------------


def _insert_key(buffer: HostBuffer, state: CursorState, token: str) -> CursorState:
    position = state.position
    if token == "<Esc>":
        col = max(position.col - 1, 0)
        landing = Position(position.row, col)
        return CursorState(position=landing, anchor=landing, mode=NORMAL)
    if token == "<BS>":
        if position.col > 0:
            start = Position(position.row, position.col - 1)
        elif position.row > 0:
            start = Position(position.row - 1, len(buffer.get_line(position.row - 1)))
        else:
            return state
        buffer.apply_edit(start, Position(position.row, position.col), "")
        return CursorState(position=start, anchor=start, mode=INSERT)
    if token.startswith("<") and token.endswith(">") and len(token) > 2:
        if token not in _INSERT_TEXT:
            raise UnknownCommandError(token, mode=INSERT)
        text = _INSERT_TEXT[token]
    else:
        text = token
    at = Position(position.row, position.col)
    new_end = buffer.apply_edit(at, at, text)
    return CursorState(position=new_end, anchor=new_end, mode=INSERT)


# -- tokenizer -------------------------------------------------------------


def _normalize_keycode(name: str) -> Optional[str]:
    lowered = name.lower()
    if lowered in _KEY_NAMES:
        return _KEY_NAMES[lowered]
    if len(lowered) == 3 and lowered[:2] in ("c-", "m-", "s-"):
        return f"<{lowered[0].upper()}-{lowered[2]}>"
    return None


def split_keys(keys: str, *, keycodes: bool = True) -> List[str]:
    """Split ``keys`` into single keys, grouping ``<...>`` key notation."""

    result: List[str] = []
    index = 0
    while index < len(keys):
        if keycodes and keys[index] == "<":
            match = _KEYCODE.match(keys, index)
            if match is not None:
                key = _normalize_keycode(match.group(1))
                if key is not None:
                    result.append(key)
                    index = match.end()
                    continue
        result.append(keys[index])
        index += 1
    return result


def split_count(token: str) -> Tuple[int, str]:
    digits = 0
    while digits < len(token) - 1 and token[digits].isdigit():
        if digits == 0 and token[0] == "0":
            break
        digits += 1
    return (int(token[:digits]) if digits else 0), token[digits:]


class CommandInjector:
    """Applies vim-style command tokens to a single cursor state.

    Normal and visual mode tokens are looked up in a command table; insert
    mode inserts tokens literally until ``<Esc>``. ``remaps`` maps a token to
    the key string it expands to when a feed asks for remapping.
    """

    def __init__(self, remaps: Optional[Mapping[str, str]] = None) -> None:
        self.remaps: Dict[str, str] = dict(remaps or {})

    def map(self, lhs: str, rhs: str) -> None:
        self.remaps[lhs] = rhs

    def unmap(self, lhs: str) -> None:
        self.remaps.pop(lhs, None)

    def tokenize(self, keys: str, options: FeedOptions) -> Sequence[str]:
        """Group keys into command tokens: counts, ``gg``, marks, operators."""

        raw = split_keys(keys, keycodes=options.keycodes)
        tokens: List[str] = []
        index = 0
        while index < len(raw):
            key = raw[index]
            index += 1
            count = ""
            while key.isdigit() and (count or key != "0") and index < len(raw):
                count += key
                key = raw[index]
                index += 1
            if key in _OPERATORS and index < len(raw):
                follow = raw[index]
                index += 1
                if follow in _PREFIXES and index < len(raw):
                    follow += raw[index]
                    index += 1
                key += follow
            elif key in _PREFIXES and index < len(raw):
                key += raw[index]
                index += 1
            tokens.append(count + key)
        return tokens

    def apply(
        self,
        buffer: HostBuffer,
        state: CursorState,
        token: str,
        options: FeedOptions,
        *,
        registers: Optional[RegisterBank] = None,
    ) -> InjectResult:
        result = self._apply(buffer, state, token, options, registers)
        return InjectResult(position=result.position, mode=result.mode, selection=result.selection)

    def _apply(
        self,
        buffer: HostBuffer,
        state: CursorState,
        token: str,
        options: FeedOptions,
        registers: Optional[RegisterBank],
    ) -> CursorState:
        if state.mode == INSERT:
            keys = split_keys(token, keycodes=options.keycodes)
            for index, key in enumerate(keys):
                if state.mode != INSERT:
                    for part in self.tokenize("".join(keys[index:]), options):
                        state = self._apply(buffer, state, part, options, registers)
                    return state
                state = _insert_key(buffer, state, key)
            return state

        count, command = split_count(token)
        if options.remap and command in self.remaps:
            telemetry.record_event(
                "injector.remap", data={"lhs": command, "rhs": self.remaps[command]}
            )
            plain = FeedOptions(remap=False, keycodes=options.keycodes)
            expansion = self.tokenize(self.remaps[command], plain)
            for _ in range(count or 1):
                for part in expansion:
                    state = self._apply(buffer, state, part, plain, registers)
            return state

        step = Step(buffer=buffer, state=state, count=count, registers=registers)
        if command in _MOTIONS or command in ("gg", "G"):
            return step.moved(_run_motion(step, command))
        handler = _COMMAND_HANDLERS.get(command)
        if handler is not None:
            return handler(step)
        if len(command) >= 2 and command[0] in _OPERATORS:
            operator, motion = command[0], command[1:]
            if step.visual:
                state = _visual_operator(step, operator=operator)
                return self._apply(buffer, state, motion, options, registers)
            return _operate(step, operator, motion)
        raise UnknownCommandError(token, mode=state.mode)


__all__ = ["CommandInjector", "UnknownCommandError", "Step", "split_keys", "split_count"]
