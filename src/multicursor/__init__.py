"""Multi-cursor editing engine: many edit points over one shared buffer."""

from .engine import EventBus, MultiCursorEngine

__all__ = [
    "EventBus",
    "MultiCursorEngine",
    "actions",
    "buffer",
    "core",
    "host",
    "runtime",
]

__version__ = "0.1.0"
