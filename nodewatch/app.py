"""Headless telemetry receiver: storage, alerts, logging and the HTTP endpoint together."""

from __future__ import annotations

import argparse
import sys
import threading
import time
from collections.abc import Callable

from nodewatch.alerts import is_high_temperature, set_high_temperature_threshold
from nodewatch.log import Logger
from nodewatch.server import ServerStartError, TelemetryServer
from nodewatch.settings import AppSettings
from nodewatch.store import StoreError, TelemetryStore
from nodewatch.telemetry import TelemetryEntry

HISTORY_LIMIT = 200


class NodeWatchApp:
    """Receives telemetry, persists it and keeps the displayed and alert lines."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self.logger = Logger()
        self.store = TelemetryStore(settings.db_path)
        self.server = TelemetryServer(self.on_telemetry_received, self.on_server_message)
        self.server.logger = self.logger
        self.lines: list[str] = []
        self.alert_lines: list[str] = []
        self.errors: list[str] = []
        self.status_message = ""
        self.display: Callable[[str, bool], None] | None = None
        self._lock = threading.RLock()

    @property
    def server_running(self) -> bool:
        return self.server.port is not None

    def start(self) -> None:
        """Bring up logging, storage and the server; failures are recorded, not raised."""
        settings = self.settings
        self._set_status(f"Loaded config: {settings.config_path}")

        try:
            self.logger.init(settings.log_file_path)
        except OSError:
            message = f"Logger init failed: {settings.log_file_path}"
            self._set_status(message)
            self.errors.append(message)
        else:
            self.logger.set_level(settings.log_level)
            self.logger.enable_console_output(True)
            self.logger.info(f"NodeWatch Desktop started. Config={settings.config_path}")

        set_high_temperature_threshold(settings.alert_threshold)

        if settings.warnings:
            warning_text = " | ".join(settings.warnings)
            self._set_status(warning_text)
            self.logger.warning(warning_text)

        try:
            self.store.initialize()
        except StoreError as exc:
            self.errors.append(f"Failed to initialize SQLite storage.\n{exc}")
            self._set_status("SQLite initialization failed")
            self.logger.error(f"SQLite initialization failed: {exc}")
        else:
            self._load_history()

        try:
            self.server.start(settings.bind_address, settings.port)
        except ServerStartError:
            where = f"{settings.bind_address}:{settings.port}"
            self._set_status(f"HTTP server failed to start on {where}")
            self.logger.error(f"HTTP server startup failed on {where}")
            self.errors.append(
                f"HTTP server could not start on {where}.\n"
                "Please ensure the address and port are available."
            )

    def _load_history(self) -> None:
        try:
            history = self.store.load_recent(HISTORY_LIMIT)
        except StoreError as exc:
            self._set_status(str(exc))
            self.logger.warning(f"Telemetry history load warning: {exc}")
            return
        if not history:
            return
        for entry in history:
            self._add_telemetry(entry)
        message = f"Loaded {len(history)} telemetry record(s) from SQLite"
        self._set_status(message)
        self.logger.info(message)

    def close(self) -> None:
        """Stop the server, close storage and the log."""
        self.logger.info("NodeWatch Desktop shutting down")
        self.server.stop()
        self.store.close()
        self.logger.shutdown()

    def __enter__(self) -> "NodeWatchApp":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def on_telemetry_received(self, entry: TelemetryEntry) -> None:
        """Persist an entry and add it to the displayed lines."""
        try:
            self.store.insert_entry(entry)
        except StoreError as exc:
            self._set_status(str(exc))
            self.logger.error(f"Failed to persist telemetry: {exc}")
        self._add_telemetry(entry)

    def on_server_message(self, message: str) -> None:
        self._set_status(message)

    def _set_status(self, message: str) -> None:
        with self._lock:
            self.status_message = message

    def _add_telemetry(self, entry: TelemetryEntry) -> None:
        line = entry.to_display_string()
        alert = is_high_temperature(entry)
        with self._lock:
            if alert:
                self.alert_lines.append(line)
            self.lines.append(line)
            if self.display is not None:
                self.display(line, alert)


def _print_line(line: str, alert: bool) -> None:
    print(f"ALERT {line}" if alert else line, flush=True)


def main(argv: list[str] | None = None) -> int:
    """Run the receiver until interrupted."""
    parser = argparse.ArgumentParser(prog="nodewatch", description="Receive device telemetry.")
    parser.add_argument("--config", help="path of the INI configuration file")
    args = parser.parse_args(argv)

    settings = AppSettings.load(args.config)
    app = NodeWatchApp(settings)
    app.display = _print_line
    try:
        app.start()
        for error in app.errors:
            print(error, file=sys.stderr)
        if not app.server_running:
            return 1
        try:
            while True:
                time.sleep(1.0)
        except KeyboardInterrupt:
            pass
        return 0
    finally:
        app.close()