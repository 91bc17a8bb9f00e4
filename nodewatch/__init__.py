"""Telemetry receiver with SQLite storage and alerts, plus a simulated sender."""

__version__ = "0.1.0"
__all__ = ["__version__"]