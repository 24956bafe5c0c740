# slscore

The core pieces of an SRT live streaming server, as a plain Python library.
It uses only the standard library.

## Modules

- `slscore.lock.RWLock` is a readers-writer lock. It allows many readers at once
  or one writer. `read_lock()` and `write_lock()` are context managers that
  block until the lock is taken. `try_read_lock()` and `try_write_lock()` do not
  wait: each yields `True` or `False` to say whether the lock was taken.
- `slscore.log` handles levelled logging to stdout and, optionally, to a file.
  - `LogLevel` lists the levels: FATAL, ERROR, WARNING, INFO, DEBUG and TRACE.
  - `Logger.log(level, message)` writes a timestamped line when `level` is at
    or below the logger's level, and returns that line or `None`.
  - `Logger.set_level(name)` takes a level name in any case. An unknown name
    leaves the level unchanged.
  - `Logger.set_log_file(path)` appends to a file. Only the first file set is
    used.
  - `Logger.close()` closes the file.
  - The module functions `log`, `set_log_level`, `set_log_file` and
    `get_logger` all work on one shared `Logger`.
- `slscore.ring_buffer.RingBuffer` is a thread-safe circular byte buffer.
  - `put(data)` appends bytes and grows the buffer by at least 4096 bytes when
    they do not fit. Putting empty data raises `ValueError`.
  - `get(size)` removes and returns up to `size` bytes, first in, first out.
  - `len(buf)` is the number of bytes waiting and `capacity` is the buffer size.
  - `clear()` drops pending data and `resize(size)` replaces the buffer with an
    empty one.
- `slscore.http_client` is a small non-blocking HTTP/1.1 client.
  - `parse_url(url)` returns `(host, port, uri)`. The port defaults to 80.
  - `build_request_header(method, uri, host, content_length)` accepts only GET
    and POST.
  - `HttpClient.open(url, method, interval)` connects and queues the request.
    On failure it raises `HttpClientError`.
  - `handler()`, `send()` and `recv()` move the data.
  - `parse_response(text)` fills `HttpResponse`: the header lines, the status
    code, the content and the Content-Length.
  - `check_timeout`, `check_repeat` and `check_finished` return booleans.
  - `set_stage_callback(callback)` installs a function that is called as
    `callback(client, stage, payload)` for each `CallbackType` stage. A string
    that the callback returns for `REQUEST_CONTENT` becomes the request body.
- `slscore.http_role_list.HttpRoleList` is a thread-safe FIFO of HTTP clients.
  It has `push`, `pop`, `len()` and `erase()`. `erase()` closes every client.
- `slscore.map_publisher.PublisherMap` holds three mappings:
  - player app (`host/live`) to publishing app (`host/uplive`);
  - publishing app to its configuration;
  - `host/uplive/stream` to its publisher.

  `set_publisher` raises `PublisherExistsError` when the stream already has a
  publisher.
- `slscore.relay_managers` provides relay managers, configured by a `RelayInfo`
  and a `RelayMode` (`LOOP`, `ALL` or `HASH`). Failures raise `RelayError`.
  - `PullerManager` pulls a stream from upstream servers.
  - `PusherManager` pushes a stream to upstream servers.
  - Both retry on a schedule through `add_reconnect_stream` and
    `reconnect(cur_tm_ms)`.
- `slscore.map_relay.RelayMap` stores a `RelayConf` for each publishing app.
  `add_relay_manager(app_uplive, stream_name)` creates one manager per stream,
  or returns the one that already exists.

## Examples

```python
from slscore.ring_buffer import RingBuffer

buf = RingBuffer()
buf.put(b"hello world")
assert buf.get(5) == b"hello"
assert len(buf) == 6
```

```python
from slscore.http_client import build_request_header, parse_url

host, port, uri = parse_url("http://localhost:8080/sls?method=stat")
assert (host, port, uri) == ("localhost", 8080, "/sls?method=stat")
header = build_request_header("POST", uri, host, 0)
assert header.startswith("POST /sls?method=stat HTTP/1.1\r\n")
```

```python
from slscore.map_relay import RelayConf, RelayMap

relays = RelayMap(relay_factory=my_factory)
relays.add_relay_conf(
    "live.example.com/uplive",
    RelayConf(type="pull", mode="loop", upstreams="up1.example.com:8080 up2.example.com:8080"),
)
manager = relays.add_relay_manager("live.example.com/uplive", "cam1")
```

## What it does not do

This library has no SRT transport, no listener and no server loop, and it
provides no command to run. Relay managers do not open connections themselves.
You pass a `relay_factory` that is called with `"puller"` or `"pusher"`. It
must return an object with `open(url)`, which raises on failure, and `close()`.

A manager also needs three attributes set before it connects:

- `map_publisher`: a `PublisherMap`;
- `map_data`: any object with an `add(key)` method;
- `role_list`: any object with a `push(role)` method.

`PullerManager` needs all three. `PusherManager` needs `role_list`, and needs
`map_data` for `reconnect`.

## Running the tests

```
pip install -e .[test]
pytest
```