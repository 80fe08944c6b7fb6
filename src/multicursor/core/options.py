"""Option records accepted at the engine's API boundary."""

from __future__ import annotations

from dataclasses import dataclass, fields

from .errors import OptionsError
from .state import Position


def _require_flags(record: object) -> None:
    for item in fields(record):
        if not isinstance(getattr(record, item.name), bool):
            raise OptionsError(
                f"{type(record).__name__}.{item.name} must be a bool", field=item.name
            )


@dataclass(frozen=True, slots=True)
class CursorFilter:
    """Which cursors a query considers."""

    enabled: bool = True
    disabled: bool = False

    def __post_init__(self) -> None:
        _require_flags(self)
        if not (self.enabled or self.disabled):
            raise OptionsError(
                "CursorFilter must select enabled or disabled cursors", field="enabled"
            )

    def accepts(self, enabled: bool) -> bool:
        return self.enabled if enabled else self.disabled


ENABLED = CursorFilter()
DISABLED = CursorFilter(enabled=False, disabled=True)
ANY = CursorFilter(enabled=True, disabled=True)


@dataclass(frozen=True, slots=True)
class FeedOptions:
    """How a command string is handed to the input injector.

    ``remap`` lets user remaps expand tokens; ``keycodes`` parses ``<Esc>``
    style key notation instead of treating every character literally.
    """

    remap: bool = False
    keycodes: bool = True

    def __post_init__(self) -> None:
        _require_flags(self)


@dataclass(frozen=True, slots=True)
class AddCursorOptions:
    """Behaviour of the add/skip cursor actions."""

    add_cursor: bool = True
    remap: bool = True

    def __post_init__(self) -> None:
        _require_flags(self)

    @property
    def feed(self) -> FeedOptions:
        return FeedOptions(remap=self.remap, keycodes=True)


@dataclass(frozen=True, slots=True)
class MatchOptions:
    """Pattern matcher switches; ``user_config`` applies the engine defaults."""

    ignore_case: bool = False
    smart_case: bool = False
    literal: bool = False
    whole_word: bool = False
    user_config: bool = False

    def __post_init__(self) -> None:
        _require_flags(self)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    tabstop: int = 8
    smart_case: bool = False
    ignore_case: bool = False
    wrap_seek: bool = True
    initial_position: Position = Position(0, 0)

    def __post_init__(self) -> None:
        if self.tabstop <= 0:
            raise OptionsError("tabstop must be positive", field="tabstop")

    def match_options(self, options: MatchOptions) -> MatchOptions:
        if not options.user_config:
            return options
        return MatchOptions(
            ignore_case=options.ignore_case or self.ignore_case,
            smart_case=options.smart_case or self.smart_case,
            literal=options.literal,
            whole_word=options.whole_word,
        )


def validate_direction(direction: int) -> int:
    if direction not in (-1, 1):
        raise OptionsError(f"direction must be -1 or 1, got {direction!r}", field="direction")
    return direction


__all__ = [
    "CursorFilter",
    "ENABLED",
    "DISABLED",
    "ANY",
    "FeedOptions",
    "AddCursorOptions",
    "MatchOptions",
    "EngineConfig",
    "validate_direction",
]
