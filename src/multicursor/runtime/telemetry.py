"""telelog wiring for the multi-cursor engine.

Settings come from ``MULTICURSOR_*`` environment variables unless a preset
or an explicit ``telelog.Config`` is handed to :func:`configure`. Engine code
only talks to two helpers: :func:`record_event` for one-off structured lines
and :func:`span` for profiled blocks (session runs, replays, buffer edits).
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "MULTICURSOR_"
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _read_env(name: str) -> Optional[str]:
    return os.environ.get(ENV_PREFIX + name)


def _read_flag(name: str, default: bool = False) -> bool:
    raw = _read_env(name)
    return default if raw is None else raw.strip().lower() in _TRUTHY


@dataclass(frozen=True, slots=True)
class TelemetrySettings:
    """Flat view of the knobs the engine exposes on top of ``telelog.Config``."""

    level: str = "WARNING"
    console: bool = True
    color: bool = True
    json: bool = False
    log_file: str = ""
    buffered: bool = False
    buffer_size: int = 2048
    logger_name: str = "multicursor"

    @classmethod
    def from_env(cls) -> "TelemetrySettings":
        base = cls()
        return cls(
            level=(_read_env("LOG_LEVEL") or base.level).upper(),
            console=not _read_flag("DISABLE_CONSOLE"),
            color=not _read_flag("NO_COLOR"),
            json=_read_flag("LOG_JSON"),
            log_file=_read_env("LOG_FILE") or "",
            buffered=_read_flag("LOG_BUFFERED"),
            buffer_size=int(_read_env("LOG_BUFFER_SIZE") or base.buffer_size),
            logger_name=_read_env("LOGGER") or base.logger_name,
        )

    def to_config(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level)
        config.with_console_output(self.console)
        if self.console:
            config.with_colored_output(self.color)
        config.with_json_format(self.json)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffered:
            config.with_buffering(True)
            config.with_buffer_size(self.buffer_size)
        config.with_profiling(True)
        return config


def _preset(name: str, env: TelemetrySettings) -> TelemetrySettings:
    key = name.lower()
    if key == "development":
        return replace(env, level="DEBUG", console=True, color=True, json=False)
    if key == "production":
        return replace(
            env,
            level="WARNING",
            console=False,
            buffered=True,
            log_file=env.log_file or "multicursor.log",
        )
    if key in ("performance", "performance_analysis"):
        return replace(
            env,
            level="DEBUG",
            console=False,
            json=True,
            buffered=True,
            log_file=env.log_file or "multicursor-performance.log",
        )
    raise ValueError(f"Unknown telemetry preset {name!r}.")


@dataclass(slots=True)
class _State:
    settings: TelemetrySettings
    config: Any = None
    loggers: Dict[str, Any] = field(default_factory=dict)


_state = _State(settings=TelemetrySettings.from_env())


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Swap the active telelog configuration and drop cached loggers.

    ``config`` is a ready ``telelog.Config``; ``preset`` is one of
    ``development``, ``production`` or ``performance`` layered over the
    environment settings. With neither, the environment alone decides.
    """

    if config is not None and preset:
        raise ValueError("configure() takes either config or preset, not both.")
    settings = TelemetrySettings.from_env()
    if preset:
        settings = _preset(preset, settings)
    if config is None:
        config = settings.to_config()
    else:
        config.with_profiling(True)
    _state.settings = settings
    _state.config = config
    _state.loggers.clear()


def get_logger(name: Optional[str] = None) -> Any:
    if _state.config is None:
        configure()
    key = name or _state.settings.logger_name
    log = _state.loggers.get(key)
    if log is None:
        log = _state.loggers[key] = tl.Logger.with_config(key, _state.config)
    return log


def _text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _write(log: Any, level: str, message: str, payload: Mapping[str, Any]) -> None:
    level = level.lower()
    structured = getattr(log, f"{level}_with", None)
    if structured is not None:
        structured(message, [(str(k), _text(v)) for k, v in payload.items()])
        return
    plain = getattr(log, level, None)
    if plain is None:
        raise ValueError(f"Unsupported log level {level!r}.")
    plain(f"{message} {dict(payload)}")


def record_event(
    name: str,
    *,
    level: str = "debug",
    data: Optional[Mapping[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Log ``event::<name>`` with ``data`` as key/value pairs."""

    payload: Dict[str, Any] = {"event": name}
    if data:
        payload.update(data)
    _write(get_logger(logger_name), level, f"event::{name}", payload)


@dataclass(slots=True)
class SpanHandle:
    logger: Any
    name: str
    component: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def note(self, message: str, **extra: Any) -> None:
        self._log("debug", f"span::{message}", extra)

    def fail(self, reason: str) -> None:
        self._log("error", "span::fail", {"reason": reason})

    def _log(self, level: str, message: str, extra: Mapping[str, Any]) -> None:
        payload: Dict[str, Any] = {"span": self.name}
        if self.component:
            payload["component"] = self.component
        payload.update(self.metadata)
        payload.update(extra)
        _write(self.logger, level, message, payload)


def _component_name(name: str, component: Optional[str | bool]) -> Optional[str]:
    if component is True:
        return name
    return component or None


@contextmanager
def _logger_context(log: Any, metadata: Mapping[str, Any]) -> Iterator[Dict[str, str]]:
    pushed: List[Tuple[str, str]] = [(k, _text(v)) for k, v in metadata.items()]
    for key, value in pushed:
        log.add_context(key, value)
    try:
        yield dict(pushed)
    finally:
        for key, _ in pushed:
            log.remove_context(key)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile the enclosed block.

    ``metadata`` stays on the logger context while the block runs.
    ``component=True`` also tracks the block as a telelog component named
    after the span. An escaping exception is logged as ``span::fail`` and
    re-raised untouched.
    """

    log = get_logger(logger_name)
    tracked = _component_name(name, component)
    with ExitStack() as stack:
        context = stack.enter_context(_logger_context(log, metadata or {}))
        if tracked:
            stack.enter_context(log.track_component(tracked))
        stack.enter_context(log.profile(name))
        handle = SpanHandle(log, name, tracked, context)
        try:
            yield handle
        except Exception as exc:
            handle.fail(f"{type(exc).__name__}: {exc}")
            raise


__all__ = [
    "ENV_PREFIX",
    "SpanHandle",
    "TelemetrySettings",
    "configure",
    "get_logger",
    "record_event",
    "span",
]
