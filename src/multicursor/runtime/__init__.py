"""Runtime support: telemetry wiring."""
