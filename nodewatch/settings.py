"""Application settings loaded from, and completed into, an INI file."""

from __future__ import annotations

import configparser
import ipaddress
import math
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from nodewatch.levels import LogLevel, log_level_to_string, parse_log_level

DEFAULT_PORT = 8080
DEFAULT_BIND_ADDRESS = "0.0.0.0"
DEFAULT_DB_PATH = "nodewatch.db"
DEFAULT_LOG_FILE_PATH = "nodewatch.log"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_ALERT_THRESHOLD = 26.0

CONFIG_ENV_VAR = "NODEWATCH_CONFIG"
CONFIG_FILE_NAME = "nodewatch.ini"


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class _IniFile:
    """Key access of the form "section/option" over an INI file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._parser = configparser.ConfigParser(interpolation=None, strict=False)
        self._parser.optionxform = str  # type: ignore[assignment,method-assign]
        self._dirty = False
        self._broken = False
        try:
            self._parser.read(path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError):
            self._broken = True

    @staticmethod
    def _split(key: str) -> tuple[str, str]:
        section, option = key.split("/", 1)
        return section, option

    def contains(self, key: str) -> bool:
        section, option = self._split(key)
        return self._parser.has_option(section, option)

    def get(self, key: str, default: str) -> str:
        section, option = self._split(key)
        return self._parser.get(section, option, fallback=default)

    def set(self, key: str, value: str) -> None:
        section, option = self._split(key)
        if not self._parser.has_section(section):
            self._parser.add_section(section)
        self._parser.set(section, option, value)
        self._dirty = True

    def ensure_default(self, key: str, value: str) -> None:
        if not self.contains(key):
            self.set(key, value)

    def sync(self) -> bool:
        """Write pending changes; return False if the file could not be kept in sync."""
        if self._broken:
            return False
        if not self._dirty:
            return True
        try:
            with open(self.path, "w", encoding="utf-8") as handle:
                self._parser.write(handle, space_around_delimiters=False)
        except OSError:
            return False
        self._dirty = False
        return True


def _resolve_path_from_config(config_path: str, configured: str) -> str:
    path = Path(configured)
    if path.is_absolute():
        return str(path)
    return str(Path(config_path).parent / configured)


def _application_dir() -> Path:
    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve().parent
    return Path.cwd()


def resolve_config_path() -> str:
    """Return the configuration file path from the environment or next to the program."""
    env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if env_path:
        return os.path.abspath(env_path)
    return str(_application_dir() / CONFIG_FILE_NAME)


@dataclass
class AppSettings:
    """Settings of the desktop receiver."""

    port: int = DEFAULT_PORT
    bind_address: str = DEFAULT_BIND_ADDRESS
    db_path: str = ""
    alert_threshold: float = DEFAULT_ALERT_THRESHOLD
    log_level: LogLevel = LogLevel.INFO
    log_file_path: str = ""
    config_path: str = ""
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def load(cls, config_path: str | os.PathLike[str] | None = None) -> "AppSettings":
        """Load settings, writing defaults and corrections back to the file.

        Problems never raise; each one is recorded in ``warnings`` and the
        default value is used instead.
        """
        loaded = cls()
        if config_path is None:
            loaded.config_path = resolve_config_path()
        else:
            loaded.config_path = os.path.abspath(os.fspath(config_path))
        warnings = loaded.warnings

        config_dir = Path(loaded.config_path).parent
        if not config_dir.exists():
            try:
                config_dir.mkdir(parents=True, exist_ok=True)
            except OSError:
                warnings.append(f"Failed to create config directory: {config_dir}")

        ini = _IniFile(Path(loaded.config_path))
        ini.ensure_default("server/port", str(DEFAULT_PORT))
        ini.ensure_default("server/bind_address", DEFAULT_BIND_ADDRESS)
        ini.ensure_default("storage/db_path", DEFAULT_DB_PATH)
        ini.ensure_default("alerts/temperature_threshold", _format_number(DEFAULT_ALERT_THRESHOLD))
        ini.ensure_default("logging/level", DEFAULT_LOG_LEVEL)
        ini.ensure_default("logging/file_path", DEFAULT_LOG_FILE_PATH)

        loaded.port = _load_port(ini, warnings)
        loaded.bind_address = _load_bind_address(ini, warnings)

        db_path = ini.get("storage/db_path", DEFAULT_DB_PATH).strip()
        if not db_path:
            db_path = DEFAULT_DB_PATH
            ini.set("storage/db_path", db_path)
            warnings.append(f"Empty db path. Falling back to {DEFAULT_DB_PATH}")
        loaded.db_path = _resolve_path_from_config(loaded.config_path, db_path)

        loaded.alert_threshold = _load_threshold(ini, warnings)

        try:
            loaded.log_level = parse_log_level(ini.get("logging/level", DEFAULT_LOG_LEVEL))
        except ValueError:
            warnings.append("Invalid log level. Falling back to info")
            loaded.log_level = LogLevel.INFO
        ini.set("logging/level", log_level_to_string(loaded.log_level))

        log_file_path = ini.get("logging/file_path", DEFAULT_LOG_FILE_PATH).strip()
        if not log_file_path:
            log_file_path = DEFAULT_LOG_FILE_PATH
            ini.set("logging/file_path", log_file_path)
            warnings.append(f"Empty log file path. Falling back to {DEFAULT_LOG_FILE_PATH}")
        loaded.log_file_path = _resolve_path_from_config(loaded.config_path, log_file_path)

        if not ini.sync():
            warnings.append(f"Failed to fully persist config at {loaded.config_path}")

        return loaded


def _load_port(ini: _IniFile, warnings: list[str]) -> int:
    raw = ini.get("server/port", str(DEFAULT_PORT))
    try:
        port = int(raw.strip())
    except ValueError:
        port = 0
    if not 0 < port <= 65535:
        warnings.append(f"Invalid server port. Falling back to {DEFAULT_PORT}")
        port = DEFAULT_PORT
        ini.set("server/port", str(port))
    return port


def _load_bind_address(ini: _IniFile, warnings: list[str]) -> str:
    address = ini.get("server/bind_address", DEFAULT_BIND_ADDRESS).strip()
    if address.lower() == "any" or address == "*":
        address = DEFAULT_BIND_ADDRESS
        ini.set("server/bind_address", address)

    valid = bool(address)
    if valid:
        try:
            ipaddress.ip_address(address)
        except ValueError:
            valid = False
    if not valid:
        warnings.append(f"Invalid bind address. Falling back to {DEFAULT_BIND_ADDRESS}")
        address = DEFAULT_BIND_ADDRESS
        ini.set("server/bind_address", address)
    return address


def _load_threshold(ini: _IniFile, warnings: list[str]) -> float:
    raw = ini.get("alerts/temperature_threshold", _format_number(DEFAULT_ALERT_THRESHOLD))
    try:
        threshold = float(raw.strip())
    except ValueError:
        threshold = math.nan
    if not math.isfinite(threshold):
        warnings.append(
            f"Invalid alert threshold. Falling back to {_format_number(DEFAULT_ALERT_THRESHOLD)}"
        )
        threshold = DEFAULT_ALERT_THRESHOLD
        ini.set("alerts/temperature_threshold", _format_number(threshold))
    return threshold