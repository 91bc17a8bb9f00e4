# nodewatch

nodewatch collects temperature and humidity readings from small sensor nodes.
It has two commands:

- **`nodewatch`**: the receiver. It listens for HTTP `POST /telemetry`
  requests that carry JSON readings. It stores each reading in SQLite, writes
  a log file and prints one line per reading. Readings above the temperature
  threshold are printed with an `ALERT` prefix.
- **`nodewatch-sender`**: a simulated node. It posts a random reading to the
  receiver at a fixed interval.

The package uses only the standard library.

## Installation

```
pip install .
```

## Running the receiver

```
nodewatch [--config PATH]
```

The receiver runs until you interrupt it with Ctrl-C. It exits with status 1
if the HTTP server cannot start.

### Configuration

Settings come from an INI file, looked up in this order:

1. the `--config` option;
2. the `NODEWATCH_CONFIG` environment variable;
3. `nodewatch.ini` in the directory of the running program (`sys.argv[0]`).

If the config file or its directory does not exist, it is created. Any missing
setting is written back with its default, so a fresh file looks like this:

```ini
[server]
port=8080
bind_address=0.0.0.0

[storage]
db_path=nodewatch.db

[alerts]
temperature_threshold=26

[logging]
level=info
file_path=nodewatch.log
```

- `port` must be an integer from 1 to 65535.
- `bind_address` must be an IPv4 or IPv6 address. `any` and `*` mean
  `0.0.0.0`.
- `db_path` and `file_path` are resolved against the config file's directory
  when they are relative.
- `temperature_threshold` must be a finite number. A reading is an alert when
  its temperature is strictly above it.
- `level` is one of `debug`, `info`, `warning` or `error`, in any case.

An invalid or empty value falls back to its default. The corrected value is
written back to the file, and the receiver reports a warning.

### Output

On start-up the receiver prints up to 200 of the most recent stored readings,
oldest first. After that it prints each new reading as it arrives:

```
[14:03:22] node-01 | temp=24.0 | hum=45.0 | status=ok
ALERT [14:03:27] node-01 | temp=27.0 | hum=45.0 | status=ok
```

The time is the reading's timestamp, shown in local time. Log file lines
look like `[2024-01-01 14:03:22] [I] message`, where the letter is `D`, `I`,
`W` or `E`. Log lines are also echoed to the console, with errors going to
stderr.

## Payload format

```json
{"device_id": "node-01", "timestamp": 1700000000, "temperature": 24, "humidity": 45, "status": "ok"}
```

All five fields are required:

- `device_id` and `status` must be non-empty strings.
- `temperature` and `humidity` must be finite JSON numbers.
- `timestamp` must be a JSON number in seconds. A fractional timestamp is
  rounded to an integer.

Booleans and `NaN` or `Infinity` are rejected. The server replies as follows:

| Request | Response |
| --- | --- |
| Valid payload to `POST /telemetry` | `200` with body `OK` |
| Any other body to `POST /telemetry` | `400` with body `Invalid payload` |
| Any other path or method | `404` |

## Running the sender

```
nodewatch-sender [--url URL] [--device-id ID] [--interval-ms MS] [--count N] [--timeout SECONDS]
```

Options override these environment variables:

| Variable | Default |
| --- | --- |
| `NODEWATCH_SERVER_URL` | `http://127.0.0.1:8080/telemetry` |
| `NODEWATCH_DEVICE_ID` | `nodewatch-sender` |
| `NODEWATCH_SEND_INTERVAL_MS` | `5000` |

Each reading has an integer temperature from 20 to 29 and a humidity from 40
to 49. Its status is `ok`, and its timestamp is the number of seconds since
the sender started. Without `--count`, the sender runs until it is
interrupted. The request timeout defaults to 5 seconds.

## Using it as a library

```python
from nodewatch.server import parse_telemetry
from nodewatch.store import TelemetryStore

entry = parse_telemetry(b'{"device_id":"node-01","timestamp":0,'
                        b'"temperature":21.5,"humidity":40,"status":"ok"}')
with TelemetryStore("readings.db") as store:
    store.initialize()
    store.insert_entry(entry)
    print([e.to_display_string() for e in store.load_recent(10)])
```

The public modules are:

- `nodewatch.server`: `parse_telemetry` (raises `InvalidTelemetry`) and
  `TelemetryServer`, whose `start` raises `ServerStartError`.
- `nodewatch.store`: `TelemetryStore`, which raises `StoreError`.
- `nodewatch.settings`: `AppSettings.load` and `resolve_config_path`.
- `nodewatch.log`: `Logger`.
- `nodewatch.alerts`: threshold functions.
- `nodewatch.telemetry`: `TelemetryEntry`.
- `nodewatch.levels`: `LogLevel`, `parse_log_level` and `log_level_to_string`.
- `nodewatch.app`: `NodeWatchApp`, which ties all of the above together.

## What it does not do

- The receiver has no graphical window. Readings and alerts are printed to
  the terminal.
- The sender only simulates a node with random values. It does not read real
  sensors or manage network connections.
- There is no authentication or TLS on the HTTP endpoint.