"""Cursor model, registry, transactional sessions and primitive replay."""

from .state import (
    INSERT,
    MODES,
    NORMAL,
    VISUAL,
    VISUAL_BLOCK,
    VISUAL_LINE,
    CursorState,
    Position,
    Selection,
    SelectionKind,
)
from .positions import Edit, OverlapState, classify_overlap, shift_position
from .errors import (
    EmptyRegistryError,
    MultiCursorError,
    OptionsError,
    ReentrantSessionError,
    StaleCursorError,
)
from .options import (
    ANY,
    DISABLED,
    ENABLED,
    AddCursorOptions,
    CursorFilter,
    EngineConfig,
    FeedOptions,
    MatchOptions,
)
from .cursor import Cursor
from .registry import CursorRegistry, RegistrySnapshot
from .replay import ReplayExecutor
from .session import ActionSession, Context, CursorView

__all__ = [
    "NORMAL",
    "INSERT",
    "VISUAL",
    "VISUAL_LINE",
    "VISUAL_BLOCK",
    "MODES",
    "Position",
    "Selection",
    "SelectionKind",
    "CursorState",
    "Edit",
    "OverlapState",
    "classify_overlap",
    "shift_position",
    "MultiCursorError",
    "StaleCursorError",
    "EmptyRegistryError",
    "ReentrantSessionError",
    "OptionsError",
    "CursorFilter",
    "ENABLED",
    "DISABLED",
    "ANY",
    "FeedOptions",
    "AddCursorOptions",
    "MatchOptions",
    "EngineConfig",
    "Cursor",
    "CursorRegistry",
    "RegistrySnapshot",
    "ReplayExecutor",
    "ActionSession",
    "Context",
    "CursorView",
]
