"""Transactional execution of multi-cursor actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Protocol, Sequence, TypeVar

from multicursor.runtime import telemetry

from .cursor import Cursor
from .errors import EmptyRegistryError
from .options import ANY, DISABLED, ENABLED, CursorFilter
from .registry import CursorRegistry
from .state import NORMAL, Position, Selection, as_position

if TYPE_CHECKING:
    from multicursor.buffer.protocols import HostBuffer

T = TypeVar("T")


class EventSink(Protocol):
    def emit(self, event: str, payload: object | None = None) -> None:
        ...


@dataclass(frozen=True, slots=True)
class CursorView:
    """Read-only picture of one cursor as committed to the host."""

    id: int
    position: Position
    anchor: Position
    mode: str
    selection: Selection
    enabled: bool
    main: bool


class Context:
    """What an action sees: cursor queries and bulk operations on the registry."""

    def __init__(self, registry: CursorRegistry, buffer: Optional["HostBuffer"]) -> None:
        self._registry = registry
        self.buffer = buffer

    @property
    def registry(self) -> CursorRegistry:
        return self._registry

    def main_cursor(self) -> Cursor:
        return self._registry.main_cursor()

    def get_cursors(self) -> List[Cursor]:
        return self._registry.cursors(ENABLED)

    def get_disabled_cursors(self) -> List[Cursor]:
        return self._registry.cursors(DISABLED)

    def get_all_cursors(self) -> List[Cursor]:
        return self._registry.cursors(ANY)

    def first_cursor(self, filter: Optional[CursorFilter] = None) -> Optional[Cursor]:
        return self._registry.seek_boundary(-1, filter=filter or ENABLED)

    def last_cursor(self, filter: Optional[CursorFilter] = None) -> Optional[Cursor]:
        return self._registry.seek_boundary(1, filter=filter or ENABLED)

    def for_each_cursor(
        self,
        fn: Callable[[Cursor], object],
        order: Optional[Sequence[Cursor]] = None,
    ) -> None:
        self._registry.for_each(fn, order=order)

    def seek_cursor(
        self,
        position: Sequence[int],
        direction: int,
        wrap: bool = False,
        filter: Optional[CursorFilter] = None,
    ) -> Optional[Cursor]:
        return self._registry.seek(position, direction, wrap=wrap, filter=filter or ENABLED)

    def seek_boundary_cursor(
        self, direction: int, filter: Optional[CursorFilter] = None
    ) -> Optional[Cursor]:
        return self._registry.seek_boundary(direction, filter=filter or ENABLED)

    def get_cursor_at_pos(
        self, position: Sequence[int], filter: Optional[CursorFilter] = None
    ) -> Optional[Cursor]:
        return self._registry.cursor_at(position, filter=filter or ANY)

    def num_enabled_cursors(self) -> int:
        return self._registry.count_enabled()

    def num_disabled_cursors(self) -> int:
        return self._registry.count_disabled()

    def set_cursors_enabled(self, enabled: bool) -> None:
        self._registry.set_cursors_enabled(enabled)

    def restore(self) -> bool:
        return self._registry.restore()

    def clear(self) -> None:
        self._registry.clear()

    def add_cursor(
        self, position: Sequence[int], *, mode: str = NORMAL, main: bool = False
    ) -> Cursor:
        return self._registry.add(as_position(tuple(position)), mode=mode, main=main)

    def merge_touching(self) -> int:
        return self._registry.merge_touching()


class ActionSession:
    """Runs actions against a registry as all-or-nothing transactions.

    The session snapshots cursors and buffer text before handing the action a
    ``Context``. A clean return normalizes and commits; any exception rolls
    both back before propagating.
    """

    def __init__(
        self,
        registry: CursorRegistry,
        buffer: Optional["HostBuffer"] = None,
        bus: Optional[EventSink] = None,
        *,
        logger_name: str | None = None,
    ) -> None:
        self.registry = registry
        self.buffer = buffer if buffer is not None else registry.buffer
        self.bus = bus
        self._logger_name = logger_name
        self.last_commit: List[CursorView] = []

    def run(self, action: Callable[[Context], T]) -> T:
        with self.registry.exclusive():
            captured = self.registry.capture()
            text_snapshot = self.buffer.snapshot() if self.buffer is not None else None
            name = getattr(action, "__name__", type(action).__name__)
            try:
                with telemetry.span(
                    "session::run",
                    logger_name=self._logger_name,
                    component="session",
                    metadata={"action": name},
                ) as handle:
                    result = action(Context(self.registry, self.buffer))
                    merged = self.registry.normalize()
                    if len(self.registry) == 0:
                        raise EmptyRegistryError("Action left no cursors to commit")
                    handle.add_metadata("merged", merged)
                    if merged and self.bus is not None:
                        self.bus.emit("cursor.merge", {"action": name, "merged": merged})
            except Exception as exc:
                self._rollback(captured, text_snapshot, name, exc)
                raise
            self._commit(name)
            return result

    def views(self) -> List[CursorView]:
        main_id = self.registry.main_id
        return [
            CursorView(
                id=cursor.id,
                position=cursor.position,
                anchor=cursor.anchor,
                mode=cursor.mode,
                selection=cursor.selection,
                enabled=cursor.is_enabled,
                main=cursor.id == main_id,
            )
            for cursor in self.registry.cursors(ANY)
        ]

    def _commit(self, name: str) -> None:
        self.last_commit = self.views()
        telemetry.record_event(
            "session.commit",
            data={"action": name, "cursors": len(self.last_commit)},
            logger_name=self._logger_name,
        )
        if self.bus is not None:
            self.bus.emit("session.commit", list(self.last_commit))

    def _rollback(
        self,
        captured: Any,
        text_snapshot: Any,
        name: str,
        exc: Exception,
    ) -> None:
        self.registry.rollback(captured)
        if self.buffer is not None and text_snapshot is not None:
            self.buffer.restore(text_snapshot)
        telemetry.record_event(
            "session.rollback",
            level="warning",
            data={"action": name, "error": type(exc).__name__},
            logger_name=self._logger_name,
        )
        if self.bus is not None:
            self.bus.emit("session.rollback", {"action": name, "error": exc})


__all__ = ["ActionSession", "Context", "CursorView", "EventSink"]
