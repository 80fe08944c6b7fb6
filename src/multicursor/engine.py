"""Engine facade wiring registry, executor, session and host collaborators."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypeVar

from multicursor.buffer.buffer import TextBuffer
from multicursor.buffer.protocols import HostBuffer, InputInjector, PatternMatcher
from multicursor.buffer.registers import UNNAMED
from multicursor.core.cursor import Cursor
from multicursor.core.options import EngineConfig, FeedOptions, MatchOptions
from multicursor.core.registry import CursorRegistry
from multicursor.core.replay import (
    DeleteSelection,
    Feed,
    InsertText,
    Primitive,
    Put,
    ReplayExecutor,
    Search,
    Yank,
)
from multicursor.core.session import ActionSession, Context, CursorView
from multicursor.host.injector import CommandInjector
from multicursor.host.matcher import RegexMatcher
from multicursor.runtime import telemetry

T = TypeVar("T")


class EventBus:
    """Minimal event bus the engine publishes session outcomes on."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callable[[object], None]) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


class MultiCursorEngine:
    """One buffer, its cursors, and the machinery to edit through all of them.

    The engine starts with a single main cursor at
    ``EngineConfig.initial_position``. Every mutation goes through
    ``action``, which runs as a transaction; the whole-set helpers
    (``feed``, ``insert``, ...) are actions that replay one primitive on
    every enabled cursor.
    """

    def __init__(
        self,
        buffer: HostBuffer,
        *,
        injector: Optional[InputInjector] = None,
        matcher: Optional[PatternMatcher] = None,
        config: Optional[EngineConfig] = None,
        bus: Optional[EventBus] = None,
        logger_name: str | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.buffer = buffer
        self.bus = bus or EventBus()
        self.injector = injector or CommandInjector()
        self.matcher = matcher or RegexMatcher(wrap=self.config.wrap_seek)
        self.registry = CursorRegistry(buffer=buffer, logger_name=logger_name)
        self.executor = ReplayExecutor(
            self.registry,
            buffer,
            injector=self.injector,
            matcher=self.matcher,
            config=self.config,
            logger_name=logger_name,
        )
        self.session = ActionSession(self.registry, buffer, self.bus, logger_name=logger_name)
        self.registry.add(self.config.initial_position, main=True)
        telemetry.record_event(
            "engine.ready",
            data={"lines": buffer.line_count(), "position": self.config.initial_position},
            logger_name=logger_name,
        )

    @classmethod
    def from_text(cls, text: str, **kwargs: Any) -> "MultiCursorEngine":
        config = kwargs.get("config") or EngineConfig()
        return cls(TextBuffer.from_text(text, tabstop=config.tabstop), **kwargs)

    # -- actions ---------------------------------------------------------

    def action(self, fn: Callable[[Context], T]) -> T:
        return self.session.run(fn)

    def replay(self, primitive: Primitive) -> Dict[int, Any]:
        """Run ``primitive`` on every enabled cursor inside one action."""

        def replay_all(ctx: Context) -> Dict[int, Any]:
            del ctx
            return self.executor.replay(primitive)

        replay_all.__name__ = f"replay_{primitive.name}"
        return self.action(replay_all)

    def feed(self, keys: str, options: Optional[FeedOptions] = None) -> None:
        self.replay(Feed(keys, options or FeedOptions()))

    def insert(self, text: str) -> None:
        self.replay(InsertText(text))

    def delete_selections(self, register: str = UNNAMED) -> Dict[int, str]:
        return self.replay(DeleteSelection(register))

    def yank(self, register: str = UNNAMED) -> Dict[int, str]:
        return self.replay(Yank(register=register))

    def put(self, register: str = UNNAMED, *, before: bool = False) -> None:
        self.replay(Put(register=register, before=before))

    def search(
        self, pattern: str, direction: int = 1, options: Optional[MatchOptions] = None
    ) -> Dict[int, Any]:
        return self.replay(Search(pattern, direction, options))

    # -- views -----------------------------------------------------------

    def visible_cursors(self) -> List[CursorView]:
        return self.session.views()

    def main_cursor(self) -> Cursor:
        return self.registry.main_cursor()

    def cursor_count(self) -> int:
        return len(self.registry)

    @property
    def text(self) -> str:
        return "\n".join(
            self.buffer.get_line(row) for row in range(self.buffer.line_count())
        )


__all__ = ["EventBus", "MultiCursorEngine"]
