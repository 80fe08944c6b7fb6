"""Whole-set edits: one primitive replayed on every enabled cursor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

from multicursor.buffer.registers import UNNAMED
from multicursor.core.options import FeedOptions

if TYPE_CHECKING:
    from multicursor.engine import MultiCursorEngine


def feed(engine: "MultiCursorEngine", keys: str, *, remap: bool = False, keycodes: bool = True) -> None:
    engine.feed(keys, FeedOptions(remap=remap, keycodes=keycodes))


def insert(engine: "MultiCursorEngine", text: str) -> None:
    engine.insert(text)


def delete_selections(engine: "MultiCursorEngine", register: str = UNNAMED) -> Dict[int, str]:
    return engine.delete_selections(register)


def yank(engine: "MultiCursorEngine", register: str = UNNAMED) -> Dict[int, str]:
    return engine.yank(register)


def put(engine: "MultiCursorEngine", register: Optional[str] = None, *, before: bool = False) -> None:
    engine.put(register or UNNAMED, before=before)


__all__ = ["feed", "insert", "delete_selections", "yank", "put"]
