import json
import urllib.error
import urllib.request

import pytest

from nodewatch.server import (
    InvalidTelemetry,
    ServerStartError,
    TelemetryServer,
    parse_telemetry,
)
from nodewatch.telemetry import TelemetryEntry

VALID = {
    "device_id": "node-test-01",
    "timestamp": 1234,
    "temperature": 24,
    "humidity": 45,
    "status": "ok",
}


def _body(**changes):
    doc = dict(VALID)
    for key, value in changes.items():
        if value is _DROP:
            doc.pop(key)
        else:
            doc[key] = value
    return json.dumps(doc).encode()


_DROP = object()


def test_parse_valid_payload():
    entry = parse_telemetry(_body())
    assert entry == TelemetryEntry("node-test-01", 1234, 24.0, 45.0, "ok")


def test_parse_accepts_str_and_floats():
    entry = parse_telemetry(json.dumps(dict(VALID, temperature=21.5)))
    assert entry.temperature == 21.5


@pytest.mark.parametrize("key", ["device_id", "status", "temperature", "humidity", "timestamp"])
def test_missing_field_rejected(key):
    with pytest.raises(InvalidTelemetry):
        parse_telemetry(_body(**{key: _DROP}))


@pytest.mark.parametrize(
    "changes",
    [
        {"device_id": 5},
        {"status": None},
        {"temperature": "24"},
        {"humidity": True},
        {"timestamp": "now"},
        {"device_id": ""},
        {"status": ""},
    ],
)
def test_wrong_types_or_empty_rejected(changes):
    with pytest.raises(InvalidTelemetry):
        parse_telemetry(_body(**changes))


@pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]", b'"text"', b"\xff\xfe"])
def test_non_object_rejected(body):
    with pytest.raises(InvalidTelemetry):
        parse_telemetry(body)


def test_non_finite_constants_rejected():
    body = b'{"device_id":"d","timestamp":1,"temperature":NaN,"humidity":1,"status":"ok"}'
    with pytest.raises(InvalidTelemetry):
        parse_telemetry(body)


def test_huge_timestamp_rejected():
    with pytest.raises(InvalidTelemetry):
        parse_telemetry(_body(timestamp=2**70))


@pytest.fixture
def running():
    received = []
    messages = []
    server = TelemetryServer(received.append, messages.append)
    server.start("127.0.0.1", 0)
    yield server, received, messages
    server.stop()


def _post(port, path, data):
    req = urllib.request.Request(
        f"http://127.0.0.1:{port}{path}",
        data=data,
        method="POST",
        headers={"Content-Type": "application/json"},
    )
    with urllib.request.urlopen(req, timeout=5) as resp:
        return resp.status, resp.read()


def test_start_reports_listening(running):
    server, _, messages = running
    assert server.port > 0
    assert messages == ["HTTP server listening on 127.0.0.1:0"]


def test_post_valid_telemetry(running):
    server, received, messages = running
    status, body = _post(server.port, "/telemetry", _body())
    assert (status, body) == (200, b"OK")
    assert received == [parse_telemetry(_body())]
    assert messages[-1] == "Telemetry received from device: node-test-01"


def test_post_invalid_telemetry(running):
    server, received, messages = running
    with pytest.raises(urllib.error.HTTPError) as info:
        _post(server.port, "/telemetry", b"{}")
    assert info.value.code == 400
    assert info.value.read() == b"Invalid payload"
    assert received == []
    assert messages[-1] == "Invalid telemetry payload received"


def test_unknown_path_is_404(running):
    server, received, _ = running
    with pytest.raises(urllib.error.HTTPError) as info:
        _post(server.port, "/other", _body())
    assert info.value.code == 404
    assert received == []


def test_invalid_bind_address():
    messages = []
    server = TelemetryServer(lambda e: None, messages.append)
    with pytest.raises(ServerStartError, match="Invalid bind address: nowhere"):
        server.start("nowhere", 0)
    assert messages == ["Invalid bind address: nowhere"]
    assert server.port is None


def test_port_in_use(running):
    server, _, _ = running
    messages = []
    other = TelemetryServer(lambda e: None, messages.append)
    with pytest.raises(ServerStartError):
        other.start("127.0.0.1", server.port)
    assert messages[0].startswith(f"TCP listen failed on 127.0.0.1:{server.port}")


def test_stop_releases_port(running):
    server, _, _ = running
    server.stop()
    assert server.port is None