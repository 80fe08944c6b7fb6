"""Reference host collaborators: input injector, pattern matcher, pointer."""

from .injector import CommandInjector, UnknownCommandError, split_keys
from .matcher import RegexMatcher, compile_pattern, escape_pattern, match_columns
from .pointer import pointer_position

__all__ = [
    "CommandInjector",
    "UnknownCommandError",
    "split_keys",
    "RegexMatcher",
    "compile_pattern",
    "escape_pattern",
    "match_columns",
    "pointer_position",
]
