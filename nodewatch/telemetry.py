"""A single telemetry reading sent by a device."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TelemetryEntry:
    """One reading: device, Unix timestamp in seconds, measurements and status."""

    device_id: str = ""
    timestamp: int = 0
    temperature: float = 0.0
    humidity: float = 0.0
    status: str = ""

    def to_display_string(self) -> str:
        """Render the entry as one line with the local time of day."""
        try:
            time_str = datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S")
        except (OverflowError, OSError, ValueError):
            time_str = ""
        return (
            f"[{time_str}] {self.device_id} | temp={self.temperature:.1f}"
            f" | hum={self.humidity:.1f} | status={self.status}"
        )