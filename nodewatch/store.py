"""SQLite persistence for telemetry readings."""

from __future__ import annotations

import os
import sqlite3
import sys
import threading
from pathlib import Path

from nodewatch.telemetry import TelemetryEntry

APP_DIR_NAME = "nodewatch"
DEFAULT_DB_FILE_NAME = "nodewatch.db"

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS telemetry ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT,"
    "device_id TEXT NOT NULL,"
    "timestamp INTEGER NOT NULL,"
    "temperature REAL NOT NULL,"
    "humidity REAL NOT NULL,"
    "status TEXT NOT NULL"
    ")"
)

_INSERT = (
    "INSERT INTO telemetry (device_id, timestamp, temperature, humidity, status) "
    "VALUES (:device_id, :timestamp, :temperature, :humidity, :status)"
)

_SELECT_RECENT = (
    "SELECT device_id, timestamp, temperature, humidity, status "
    "FROM telemetry ORDER BY id DESC LIMIT :limit"
)


class StoreError(Exception):
    """Raised when the telemetry database cannot be opened, written or read."""


def _app_data_dir() -> Path | None:
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA", "").strip()
        return Path(base) / APP_DIR_NAME if base else None
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    base = os.environ.get("XDG_DATA_HOME", "").strip()
    if base:
        return Path(base) / APP_DIR_NAME
    try:
        return Path.home() / ".local" / "share" / APP_DIR_NAME
    except RuntimeError:
        return None


class TelemetryStore:
    """Stores telemetry entries in a SQLite table and reads back the latest ones."""

    def __init__(self, database_path: str | os.PathLike[str] = "") -> None:
        self.database_path = os.fspath(database_path).strip()
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def initialize(self) -> None:
        """Open the database, creating its directory and table as needed.

        Raises StoreError on failure.
        """
        with self._lock:
            if self._conn is None:
                self._conn = self._open()
            try:
                with self._conn:
                    self._conn.execute(_SCHEMA)
            except sqlite3.Error as exc:
                raise StoreError(f"Failed to create telemetry table: {exc}") from exc

    def _open(self) -> sqlite3.Connection:
        if self.database_path:
            db_path = Path(self.database_path)
        else:
            app_dir = _app_data_dir()
            if app_dir is None:
                raise StoreError("Failed to resolve app data directory")
            db_path = app_dir / DEFAULT_DB_FILE_NAME

        directory = db_path.absolute().parent
        if not directory.exists():
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreError(
                    f"Failed to create database directory: {directory}"
                ) from exc

        try:
            return sqlite3.connect(str(db_path), check_same_thread=False)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to open SQLite database at {db_path}: {exc}") from exc

    def insert_entry(self, entry: TelemetryEntry) -> None:
        """Append one entry. Raises StoreError if the database is closed or the insert fails."""
        with self._lock:
            conn = self._require_open()
            params = {
                "device_id": entry.device_id,
                "timestamp": int(entry.timestamp),
                "temperature": float(entry.temperature),
                "humidity": float(entry.humidity),
                "status": entry.status,
            }
            try:
                with conn:
                    conn.execute(_INSERT, params)
            except sqlite3.Error as exc:
                raise StoreError(f"Failed to insert telemetry row: {exc}") from exc

    def load_recent(self, limit: int) -> list[TelemetryEntry]:
        """Return up to ``limit`` most recent entries, oldest first.

        Raises StoreError if the database is closed or the query fails.
        """
        with self._lock:
            conn = self._require_open()
            if limit <= 0:
                return []
            try:
                rows = conn.execute(_SELECT_RECENT, {"limit": int(limit)}).fetchall()
            except sqlite3.Error as exc:
                raise StoreError(f"Failed to load telemetry history: {exc}") from exc
        return [
            TelemetryEntry(
                device_id=str(device_id),
                timestamp=int(timestamp),
                temperature=float(temperature),
                humidity=float(humidity),
                status=str(status),
            )
            for device_id, timestamp, temperature, humidity, status in reversed(rows)
        ]

    def close(self) -> None:
        """Close the database connection if it is open."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _require_open(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Database is not open")
        return self._conn

    def __enter__(self) -> "TelemetryStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()