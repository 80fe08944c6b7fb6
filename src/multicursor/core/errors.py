"""Error taxonomy for cursor, registry and session contract violations."""

from __future__ import annotations


class MultiCursorError(RuntimeError):
    """Base class for engine contract violations."""


class StaleCursorError(MultiCursorError):
    """Raised when a cursor handle outlives its record in the registry."""

    def __init__(self, cursor_id: int) -> None:
        super().__init__(f"Cursor {cursor_id} was deleted from its registry")
        self.cursor_id = cursor_id


class EmptyRegistryError(MultiCursorError):
    """Raised when a main cursor is required but no cursor exists."""

    def __init__(self, message: str = "Cursor registry is empty") -> None:
        super().__init__(message)


class ReentrantSessionError(MultiCursorError):
    """Raised when an action or a focused replay is started inside another."""


class OptionsError(MultiCursorError, ValueError):
    """Raised when an option record is built with invalid fields."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


__all__ = [
    "MultiCursorError",
    "StaleCursorError",
    "EmptyRegistryError",
    "ReentrantSessionError",
    "OptionsError",
]
