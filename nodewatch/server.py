"""HTTP endpoint that receives telemetry posted by devices."""

from __future__ import annotations

import ipaddress
import json
import math
import socket
import threading
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from nodewatch.log import Logger
from nodewatch.telemetry import TelemetryEntry

TELEMETRY_PATH = "/telemetry"
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class InvalidTelemetry(ValueError):
    """Raised when a request body is not a valid telemetry payload."""


class ServerStartError(OSError):
    """Raised when the server cannot listen on the requested address."""


def _reject_constant(name: str) -> Any:
    raise InvalidTelemetry(f"non-standard JSON constant: {name}")


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_int64(value: int | float) -> int:
    if isinstance(value, int):
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise InvalidTelemetry("timestamp out of range")
        return value
    if not math.isfinite(value) or not _INT64_MIN <= value <= _INT64_MAX:
        raise InvalidTelemetry("timestamp out of range")
    return int(value + 0.5) if value >= 0 else int(value - 0.5)


def parse_telemetry(body: bytes | str) -> TelemetryEntry:
    """Parse a JSON telemetry body. Raises InvalidTelemetry if anything is missing or wrong."""
    try:
        doc = json.loads(body, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidTelemetry("body is not valid JSON") from exc
    if not isinstance(doc, dict):
        raise InvalidTelemetry("body is not a JSON object")

    for key in ("device_id", "status"):
        if not isinstance(doc.get(key), str):
            raise InvalidTelemetry(f"{key} must be a string")
    for key in ("temperature", "humidity", "timestamp"):
        if not _is_number(doc.get(key)):
            raise InvalidTelemetry(f"{key} must be a number")

    try:
        temperature = float(doc["temperature"])
        humidity = float(doc["humidity"])
    except OverflowError as exc:
        raise InvalidTelemetry("measurement out of range") from exc

    entry = TelemetryEntry(
        device_id=doc["device_id"],
        timestamp=_to_int64(doc["timestamp"]),
        temperature=temperature,
        humidity=humidity,
        status=doc["status"],
    )
    if not entry.device_id or not entry.status:
        raise InvalidTelemetry("device_id and status must not be empty")
    if not math.isfinite(entry.temperature) or not math.isfinite(entry.humidity):
        raise InvalidTelemetry("measurements must be finite")
    return entry


class _Handler(BaseHTTPRequestHandler):
    server: "_HTTPServer"

    def log_message(self, format: str, *args: Any) -> None:
        pass

    def _reply(self, status: int, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _not_found(self) -> None:
        self._reply(404, b"Not Found")

    do_GET = do_PUT = do_DELETE = do_PATCH = _not_found

    def do_POST(self) -> None:
        if self.path.split("?", 1)[0] != TELEMETRY_PATH:
            self._not_found()
            return
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""
        status, reply = self.server.owner._handle_telemetry(body)
        self._reply(status, reply)


class _HTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    owner: "TelemetryServer"


class _HTTPServer6(_HTTPServer):
    address_family = socket.AF_INET6


class TelemetryServer:
    """Serves POST /telemetry and reports entries and status messages through callbacks."""

    def __init__(
        self,
        on_telemetry: Callable[[TelemetryEntry], None],
        on_message: Callable[[str], None],
    ) -> None:
        self.on_telemetry = on_telemetry
        self.on_message = on_message
        self.logger: Logger | None = None
        self._httpd: _HTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int | None:
        """The port actually listened on, or None when stopped."""
        if self._httpd is None:
            return None
        return int(self._httpd.server_address[1])

    def _emit(self, level: str, message: str) -> None:
        if self.logger is not None:
            getattr(self.logger, level)(message)
        self.on_message(message)

    def _handle_telemetry(self, body: bytes) -> tuple[int, bytes]:
        try:
            entry = parse_telemetry(body)
        except InvalidTelemetry:
            self._emit("warning", "Invalid telemetry payload received")
            return 400, b"Invalid payload"
        self.on_telemetry(entry)
        self._emit("debug", f"Telemetry received from device: {entry.device_id}")
        return 200, b"OK"

    def start(self, bind_address: str, port: int) -> None:
        """Listen on ``bind_address:port`` in a background thread.

        Raises ServerStartError if the address is invalid or cannot be bound.
        """
        try:
            address = ipaddress.ip_address(bind_address)
        except ValueError:
            message = f"Invalid bind address: {bind_address}"
            self._emit("error", message)
            raise ServerStartError(message) from None

        server_class = _HTTPServer6 if address.version == 6 else _HTTPServer
        try:
            httpd = server_class((str(address), port), _Handler)
        except OSError as exc:
            message = f"TCP listen failed on {bind_address}:{port} ({exc.strerror or exc})"
            self._emit("error", message)
            raise ServerStartError(message) from exc

        self.stop()
        httpd.owner = self
        self._httpd = httpd
        self._thread = threading.Thread(target=httpd.serve_forever, daemon=True)
        self._thread.start()
        self._emit("info", f"HTTP server listening on {bind_address}:{port}")

    def stop(self) -> None:
        """Stop serving and release the socket."""
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None
        if self._thread is not None:
            self._thread.join()
            self._thread = None