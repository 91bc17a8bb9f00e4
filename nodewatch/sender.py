"""Device-side sender that posts simulated readings to the receiver periodically."""

from __future__ import annotations

import argparse
import json
import logging
import os
import random
import time
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass

log = logging.getLogger("nodewatch.sender")

DEFAULT_SERVER_URL = "http://127.0.0.1:8080/telemetry"
DEFAULT_DEVICE_ID = "nodewatch-sender"
DEFAULT_SEND_INTERVAL_MS = 5000
DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class SenderConfig:
    """Where to send, as which device, and how often."""

    server_url: str = DEFAULT_SERVER_URL
    device_id: str = DEFAULT_DEVICE_ID
    send_interval_ms: int = DEFAULT_SEND_INTERVAL_MS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SenderConfig":
        """Read NODEWATCH_SERVER_URL, NODEWATCH_DEVICE_ID and NODEWATCH_SEND_INTERVAL_MS.

        Raises ValueError if the interval is not a positive integer.
        """
        env = os.environ if environ is None else environ
        url = env.get("NODEWATCH_SERVER_URL", "").strip() or DEFAULT_SERVER_URL
        device_id = env.get("NODEWATCH_DEVICE_ID", "").strip() or DEFAULT_DEVICE_ID
        raw_interval = env.get("NODEWATCH_SEND_INTERVAL_MS", "").strip()
        if raw_interval:
            try:
                interval = int(raw_interval)
            except ValueError:
                raise ValueError(f"invalid send interval: {raw_interval!r}") from None
        else:
            interval = DEFAULT_SEND_INTERVAL_MS
        if interval <= 0:
            raise ValueError(f"send interval must be positive: {interval}")
        return cls(server_url=url, device_id=device_id, send_interval_ms=interval)


def random_reading(rng: random.Random) -> tuple[int, int]:
    """Return a simulated (temperature, humidity): 20..29 and 40..49."""
    temperature = 20 + rng.randrange(100) // 10
    humidity = 40 + rng.randrange(100) // 10
    return temperature, humidity


def make_payload(device_id: str, timestamp: int, temperature: int, humidity: int) -> str:
    """Build the compact JSON body the receiver expects, with status "ok"."""
    body = {
        "device_id": device_id,
        "timestamp": int(timestamp),
        "temperature": int(temperature),
        "humidity": int(humidity),
        "status": "ok",
    }
    return json.dumps(body, separators=(",", ":"))


def _content_length(headers) -> int:
    raw = headers.get("Content-Length") if headers is not None else None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return -1


def send_telemetry(url: str, payload: str, timeout: float = DEFAULT_TIMEOUT) -> tuple[int, int]:
    """POST ``payload`` as JSON; return (status code, content length or -1).

    Any HTTP response counts as delivered. Raises OSError if no response arrives.
    """
    request = urllib.request.Request(
        url,
        data=payload.encode("utf-8"),
        method="POST",
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            response.read()
            return response.status, _content_length(response.headers)
    except urllib.error.HTTPError as exc:
        with exc:
            return exc.code, _content_length(exc.headers)


def main(argv: list[str] | None = None) -> int:
    """Send a reading every interval until interrupted or ``--count`` is reached."""
    parser = argparse.ArgumentParser(prog="nodewatch-sender", description="Post simulated telemetry.")
    parser.add_argument("--url", help="receiver URL")
    parser.add_argument("--device-id", help="device identifier")
    parser.add_argument("--interval-ms", type=int, help="milliseconds between sends")
    parser.add_argument("--count", type=int, help="stop after this many sends")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="request timeout in seconds")
    args = parser.parse_args(argv)

    try:
        config = SenderConfig.from_env()
    except ValueError as exc:
        parser.error(str(exc))
    url = args.url or config.server_url
    device_id = args.device_id or config.device_id
    interval_ms = config.send_interval_ms if args.interval_ms is None else args.interval_ms
    if interval_ms <= 0:
        parser.error("interval must be positive")
    if args.count is not None and args.count < 0:
        parser.error("count must not be negative")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    log.info("NodeWatch sender starting...")
    log.info("Device ID: %s", device_id)
    log.info("Server URL: %s", url)
    log.info("Send interval: %d ms", interval_ms)

    rng = random.Random()
    started = time.monotonic()
    sent = 0
    try:
        while args.count is None or sent < args.count:
            temperature, humidity = random_reading(rng)
            payload = make_payload(device_id, int(time.monotonic() - started), temperature, humidity)
            try:
                status, length = send_telemetry(url, payload, args.timeout)
            except OSError as exc:
                log.error("POST failed: %s", exc)
            else:
                log.info("POST done | status=%d content_length=%d payload=%s", status, length, payload)
            sent += 1
            if args.count is None or sent < args.count:
                time.sleep(interval_ms / 1000)
    except KeyboardInterrupt:
        pass
    return 0