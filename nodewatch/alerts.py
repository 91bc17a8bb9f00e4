"""High-temperature alert rule with a process-wide threshold."""

from __future__ import annotations

import math

from nodewatch.telemetry import TelemetryEntry

_threshold = 26.0


def set_high_temperature_threshold(threshold: float) -> None:
    """Set the alert threshold; non-finite values are ignored."""
    global _threshold
    if math.isfinite(threshold):
        _threshold = float(threshold)


def high_temperature_threshold() -> float:
    return _threshold


def is_high_temperature(entry: TelemetryEntry) -> bool:
    """True when the entry's temperature is strictly above the threshold."""
    return entry.temperature > _threshold