"""Host buffer contracts plus the reference in-memory implementation."""

from .buffer import BufferSnapshot, TextBuffer, char_width
from .document import BufferDocument
from .editing import (
    first_non_blank,
    linewise_span,
    put_value,
    selection_spans,
    selection_text,
)
from .protocols import (
    BufferValidationError,
    HostBuffer,
    InjectResult,
    InputInjector,
    Match,
    PatternMatcher,
)
from .registers import BLACKHOLE, UNNAMED, RegisterBank, RegisterValue
from .validation import clamp_position, ensure_position

__all__ = [
    "BufferDocument",
    "BufferSnapshot",
    "TextBuffer",
    "char_width",
    "BufferValidationError",
    "HostBuffer",
    "InjectResult",
    "InputInjector",
    "Match",
    "PatternMatcher",
    "RegisterBank",
    "RegisterValue",
    "UNNAMED",
    "BLACKHOLE",
    "clamp_position",
    "ensure_position",
    "first_non_blank",
    "linewise_span",
    "put_value",
    "selection_spans",
    "selection_text",
]
