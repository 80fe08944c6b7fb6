"""Ordered, invariant-preserving collection of cursors."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

from multicursor.runtime import telemetry

from .cursor import Cursor, CursorRecord
from .errors import EmptyRegistryError, MultiCursorError, ReentrantSessionError, StaleCursorError
from .options import ANY, ENABLED, CursorFilter, validate_direction
from .positions import Edit, OverlapState, classify_overlap, ordered, shift_position
from .state import NORMAL, VISUAL, Position, as_position

if TYPE_CHECKING:
    from multicursor.buffer.protocols import HostBuffer

    from .replay import ReplayExecutor


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """Deep copy of registry state used for rollback and ``restore``."""

    records: Tuple[CursorRecord, ...]
    main_id: Optional[int]

    @property
    def ids(self) -> Tuple[int, ...]:
        return tuple(record.id for record in self.records)


class CursorRegistry:
    """Arena of cursor records addressed by stable integer ids.

    Records live in a dict; sort order is a separate index re-derived lazily
    whenever a position changes. The sort is stable, so cursors sharing a
    position keep their relative order and a clone lands right after its
    source. ``main_id`` names the main cursor, which keeps the single-main
    invariant structural.
    """

    def __init__(
        self,
        *,
        buffer: Optional["HostBuffer"] = None,
        logger_name: str | None = None,
    ) -> None:
        self.buffer = buffer
        self.executor: Optional["ReplayExecutor"] = None
        self._records: Dict[int, CursorRecord] = {}
        self._order: List[int] = []
        self._main_id: Optional[int] = None
        self._next_id = 1
        self._dirty = False
        self._restore_point: Optional[RegistrySnapshot] = None
        self._session_active = False
        self._logger_name = logger_name

    # -- record access ---------------------------------------------------

    @property
    def main_id(self) -> Optional[int]:
        return self._main_id

    def __len__(self) -> int:
        return len(self._records)

    def contains(self, cursor_id: int) -> bool:
        return cursor_id in self._records

    def require(self, cursor_id: int) -> CursorRecord:
        try:
            return self._records[cursor_id]
        except KeyError:
            raise StaleCursorError(cursor_id) from None

    def require_executor(self) -> "ReplayExecutor":
        if self.executor is None:
            raise MultiCursorError("Cursor registry has no replay executor bound")
        return self.executor

    def handle(self, cursor_id: int) -> Cursor:
        self.require(cursor_id)
        return Cursor(self, cursor_id)

    def touch(self) -> None:
        self._dirty = True

    def _sorted_ids(self) -> List[int]:
        if self._dirty:
            self._order.sort(key=lambda cursor_id: self._records[cursor_id].position)
            self._dirty = False
        return self._order

    def _allocate_id(self) -> int:
        cursor_id = self._next_id
        self._next_id += 1
        return cursor_id

    # -- creation / removal ----------------------------------------------

    def add(
        self,
        position: Sequence[int],
        *,
        anchor: Optional[Sequence[int]] = None,
        mode: str = NORMAL,
        enabled: bool = True,
        main: bool = False,
    ) -> Cursor:
        """Place a new cursor explicitly (mouse click, search hit, setup)."""

        pos = as_position(tuple(position))
        record = CursorRecord(
            id=self._allocate_id(),
            position=pos,
            anchor=as_position(tuple(anchor)) if anchor is not None else pos,
            mode=mode,
            enabled=enabled,
        )
        self._records[record.id] = record
        self._order.append(record.id)
        self._dirty = True
        if main or self._main_id is None:
            self._main_id = record.id
            record.enabled = True
        return Cursor(self, record.id)

    def clone(self, cursor_id: int) -> Cursor:
        source = self.require(cursor_id)
        record = source.copy(new_id=self._allocate_id())
        record.enabled = True
        self._records[record.id] = record
        index = self._sorted_ids().index(cursor_id)
        self._order.insert(index + 1, record.id)
        telemetry.record_event(
            "cursor.clone",
            data={"source": cursor_id, "cursor_id": record.id},
            logger_name=self._logger_name,
        )
        return Cursor(self, record.id)

    def delete(self, cursor_id: int) -> None:
        self.require(cursor_id)
        if cursor_id == self._main_id:
            self._main_id = self._successor(cursor_id)
        del self._records[cursor_id]
        self._order.remove(cursor_id)
        telemetry.record_event(
            "cursor.delete",
            data={"cursor_id": cursor_id, "main": self._main_id},
            logger_name=self._logger_name,
        )

    def set_enabled(self, cursor_id: int, enabled: bool) -> None:
        record = self.require(cursor_id)
        if record.enabled == enabled:
            return
        record.enabled = enabled
        if not enabled and cursor_id == self._main_id:
            successor = self._successor(cursor_id, enabled_only=True)
            if successor is not None:
                self._main_id = successor

    def set_main(self, cursor_id: int) -> None:
        record = self.require(cursor_id)
        record.enabled = True
        self._main_id = cursor_id

    def _successor(self, cursor_id: int, *, enabled_only: bool = False) -> Optional[int]:
        """Next cursor after ``cursor_id`` in sort order, wrapping around.

        Enabled cursors are preferred; disabled ones are used only when no
        enabled cursor is left and ``enabled_only`` is not set.
        """

        order = self._sorted_ids()
        index = order.index(cursor_id)
        rotated = order[index + 1 :] + order[:index]
        for candidate in rotated:
            if self._records[candidate].enabled:
                return candidate
        if enabled_only or not rotated:
            return None
        return rotated[0]

    # -- queries ---------------------------------------------------------

    def main_cursor(self) -> Cursor:
        if self._main_id is None or self._main_id not in self._records:
            raise EmptyRegistryError()
        return Cursor(self, self._main_id)

    def cursors(self, filter: CursorFilter = ENABLED) -> List[Cursor]:
        return [
            Cursor(self, cursor_id)
            for cursor_id in self._sorted_ids()
            if filter.accepts(self._records[cursor_id].enabled)
        ]

    def count_enabled(self) -> int:
        return sum(1 for record in self._records.values() if record.enabled)

    def count_disabled(self) -> int:
        return len(self._records) - self.count_enabled()

    def for_each(
        self,
        fn: Callable[[Cursor], object],
        *,
        order: Optional[Sequence[Cursor]] = None,
    ) -> None:
        """Call ``fn`` on a snapshot of the enabled cursors.

        The visiting list is fixed before the first call: cursors cloned by
        ``fn`` wait for the next pass, cursors deleted by ``fn`` are skipped.
        ``order`` replaces the sort order with a caller-chosen permutation.
        """

        if order is None:
            ids = [cursor.id for cursor in self.cursors(ENABLED)]
        else:
            ids = [cursor.id for cursor in order]
        for cursor_id in ids:
            if cursor_id in self._records:
                fn(Cursor(self, cursor_id))

    def seek(
        self,
        from_position: Sequence[int],
        direction: int,
        *,
        wrap: bool = False,
        filter: CursorFilter = ENABLED,
    ) -> Optional[Cursor]:
        """Nearest cursor strictly after (1) or before (-1) ``from_position``."""

        validate_direction(direction)
        origin = as_position(tuple(from_position))
        candidates = self.cursors(filter)
        if not candidates:
            return None
        if direction == 1:
            for cursor in candidates:
                if cursor.position > origin:
                    return cursor
            return candidates[0] if wrap else None
        for cursor in reversed(candidates):
            if cursor.position < origin:
                return cursor
        return candidates[-1] if wrap else None

    def seek_boundary(
        self, direction: int, *, filter: CursorFilter = ENABLED
    ) -> Optional[Cursor]:
        validate_direction(direction)
        candidates = self.cursors(filter)
        if not candidates:
            return None
        return candidates[-1] if direction == 1 else candidates[0]

    def cursor_at(
        self, position: Sequence[int], *, filter: CursorFilter = ANY
    ) -> Optional[Cursor]:
        target = as_position(tuple(position))
        for cursor in self.cursors(filter):
            if cursor.position == target:
                return cursor
        return None

    def overlapping(self, cursor_id: int) -> Optional[Cursor]:
        """Another cursor, enabled or not, with the same position and selection."""

        key = self.require(cursor_id).identity()
        for other_id in self._sorted_ids():
            if other_id == cursor_id:
                continue
            other = self._records[other_id]
            if other.identity() == key:
                return Cursor(self, other_id)
        return None

    # -- normalization ---------------------------------------------------

    def normalize(self) -> int:
        """Sort, merge identical enabled cursors, and repair the main cursor.

        Returns the number of cursors removed by merging. Only identical
        cursors merge; touching or overlapping ranges are left alone (see
        ``merge_touching``).
        """

        with telemetry.span(
            "registry::normalize",
            logger_name=self._logger_name,
            component="registry",
            metadata={"cursors": len(self._records)},
        ) as handle:
            keep: Dict[tuple, int] = {}
            doomed: List[int] = []
            for cursor_id in self._sorted_ids():
                record = self._records[cursor_id]
                if not record.enabled:
                    continue
                key = record.identity()
                kept = keep.get(key)
                if kept is None:
                    keep[key] = cursor_id
                elif cursor_id == self._main_id:
                    doomed.append(kept)
                    keep[key] = cursor_id
                else:
                    doomed.append(cursor_id)

            for cursor_id in doomed:
                self._drop(cursor_id)
            self._repair_main()
            handle.add_metadata("merged", len(doomed))

        if doomed:
            telemetry.record_event(
                "cursor.merge",
                data={"removed": doomed, "main": self._main_id},
                logger_name=self._logger_name,
            )
        return len(doomed)

    def _drop(self, cursor_id: int) -> None:
        del self._records[cursor_id]
        self._order.remove(cursor_id)

    def _repair_main(self) -> None:
        if not self._records:
            self._main_id = None
            return
        if self._main_id not in self._records:
            order = self._sorted_ids()
            enabled = [cid for cid in order if self._records[cid].enabled]
            self._main_id = (enabled or order)[0]
        main = self._records[self._main_id]
        if main.enabled:
            return
        successor = self._successor(main.id, enabled_only=True)
        if successor is not None:
            self._main_id = successor
        else:
            main.enabled = True

    def overlap_state(self, first: Cursor, second: Cursor) -> OverlapState:
        a = self.require(first.id)
        b = self.require(second.id)
        return classify_overlap(
            (a.anchor, a.position),
            (b.anchor, b.position),
            same_anchor=a.kind == b.kind,
        )

    def touching_groups(self) -> List[List[Cursor]]:
        """Runs of enabled cursors whose ranges overlap or touch."""

        groups: List[List[Cursor]] = []
        current: List[Cursor] = []
        current_end: Optional[Position] = None
        for cursor in self.cursors(ENABLED):
            start, end = ordered(cursor.anchor, cursor.position)
            if current and current_end is not None and start <= current_end:
                current.append(cursor)
                current_end = max(current_end, end)
                continue
            if len(current) > 1:
                groups.append(current)
            current = [cursor]
            current_end = end
        if len(current) > 1:
            groups.append(current)
        return groups

    def merge_touching(self) -> int:
        """Collapse each touching group into one cursor spanning the union."""

        removed = 0
        for group in self.touching_groups():
            survivor = next((cursor for cursor in group if cursor.is_main), group[0])
            start = min(min(cursor.anchor, cursor.position) for cursor in group)
            end = max(max(cursor.anchor, cursor.position) for cursor in group)
            record = self.require(survivor.id)
            if start != end:
                if record.kind == "none":
                    record.mode = VISUAL
                backwards = record.position < record.anchor
                record.anchor, record.position = (end, start) if backwards else (start, end)
            for cursor in group:
                if cursor != survivor:
                    self._drop(cursor.id)
                    removed += 1
            self._dirty = True
        return removed

    # -- bulk state ------------------------------------------------------

    def set_cursors_enabled(self, enabled: bool) -> None:
        """Disable every cursor but main, or enable every disabled cursor."""

        self._restore_point = self.snapshot()
        for cursor_id, record in self._records.items():
            if enabled:
                record.enabled = True
            elif cursor_id != self._main_id:
                record.enabled = False

    def clear(self) -> None:
        """Drop every cursor except main, remembering them for ``restore``."""

        self._restore_point = self.snapshot()
        for cursor_id in list(self._records):
            if cursor_id != self._main_id:
                self._drop(cursor_id)

    def restore(self) -> bool:
        if self._restore_point is None:
            return False
        self.load(self._restore_point)
        self._restore_point = None
        return True

    @property
    def has_restore_point(self) -> bool:
        return self._restore_point is not None

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(
            records=tuple(self._records[cid].copy() for cid in self._sorted_ids()),
            main_id=self._main_id,
        )

    def load(self, snapshot: RegistrySnapshot) -> None:
        self._records = {record.id: record.copy() for record in snapshot.records}
        self._order = list(snapshot.ids)
        self._main_id = snapshot.main_id
        self._dirty = False
        if self._records:
            self._next_id = max(self._next_id, max(self._records) + 1)

    def capture(self) -> Tuple[RegistrySnapshot, Optional[RegistrySnapshot]]:
        """Full state including the restore point, for session rollback."""

        return self.snapshot(), self._restore_point

    def rollback(self, captured: Tuple[RegistrySnapshot, Optional[RegistrySnapshot]]) -> None:
        state, restore_point = captured
        self.load(state)
        self._restore_point = restore_point

    def shift(self, edit: Edit, *, exclude: Optional[int] = None) -> None:
        """Carry stored positions across a buffer edit made by another cursor."""

        for cursor_id, record in self._records.items():
            if cursor_id == exclude:
                continue
            record.position = shift_position(record.position, edit)
            record.anchor = shift_position(record.anchor, edit)
        self._dirty = True

    # -- session guard ---------------------------------------------------

    @property
    def session_active(self) -> bool:
        return self._session_active

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        if self._session_active:
            raise ReentrantSessionError("A multi-cursor action is already running")
        self._session_active = True
        try:
            yield
        finally:
            self._session_active = False


__all__ = ["CursorRegistry", "RegistrySnapshot"]
