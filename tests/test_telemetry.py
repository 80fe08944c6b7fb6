from __future__ import annotations

import pytest

from multicursor.runtime import telemetry
from multicursor.runtime.telemetry import TelemetrySettings


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MULTICURSOR_LOG_LEVEL", "debug")
    monkeypatch.setenv("MULTICURSOR_NO_COLOR", "yes")
    monkeypatch.setenv("MULTICURSOR_LOG_BUFFER_SIZE", "64")
    monkeypatch.delenv("MULTICURSOR_LOG_FILE", raising=False)

    settings = TelemetrySettings.from_env()

    assert settings.level == "DEBUG"
    assert settings.color is False
    assert settings.console is True
    assert settings.buffer_size == 64
    assert settings.log_file == ""


def test_span_reraises_and_keeps_metadata() -> None:
    with pytest.raises(KeyError):
        with telemetry.span("test::span", metadata={"rows": 3}) as handle:
            handle.add_metadata("extra", 1)
            assert handle.metadata == {"rows": "3", "extra": "1"}
            raise KeyError("boom")


def test_record_event_accepts_levels() -> None:
    telemetry.record_event("test.event", data={"value": 1})
    telemetry.record_event("test.event", level="warning")

    with pytest.raises(ValueError):
        telemetry.configure(preset="nonsense")
