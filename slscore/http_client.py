"""A small non-blocking HTTP/1.1 client used to post statistics and events."""

from __future__ import annotations

import enum
import re
import select
import socket
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .log import LogLevel, log
from .ring_buffer import RingBuffer

HTTP_DATA_SIZE = 4096
INVALID_CLIENT_ID = 0
RESPONSE_CODE_200 = "200"

_HANDLER_TIMEOUT_S = 0.010

_HEADER_ACCEPT = "Accept: text/html, */*\r\n"
_HEADER_USER_AGENT = "User-Agent: srt-live-server\r\n"
_HEADER_CONTENT_TYPE = "Content-Type: application/x-www-form-urlencoded\r\n"
_HEADER_CONNECTION = "Connection: Keep-Alive\r\n"
_HEADER_CACHE_CONTROL = "Cache-Control: no-cache\r\n"


class CallbackType(enum.IntEnum):
    """Stages reported to the stage callback."""

    OPEN = 0
    CLOSE = 1
    RESPONSE_END = 2
    REQUEST_CONTENT = 3


class HttpClientError(Exception):
    """Raised when a request cannot be prepared or sent."""


@dataclass
class HttpResponse:
    """What has been received of the current response."""

    header: list[str] = field(default_factory=list)
    code: str = ""
    content: str = ""
    content_length: int = -1

    @property
    def complete(self) -> bool:
        """True once the body has reached the announced Content-Length."""
        return self.content_length == len(self.content)

    def reset(self) -> None:
        self.header = []
        self.code = ""
        self.content = ""
        self.content_length = -1


StageCallback = Callable[["HttpClient", CallbackType, Any], Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def parse_url(url: str) -> tuple[str, int, str]:
    """Split an http URL into (host, port, uri); the port defaults to 80."""
    if not url:
        raise HttpClientError("empty url")
    scheme, sep, rest = url.partition(":")
    if not sep:
        raise HttpClientError(f"no ':' in url '{url}'")
    if scheme != "http":
        raise HttpClientError(f"not 'http' prefix, url='{url}'")
    rest = rest[2:]  # skip '//'

    if ":" in rest:
        host, _, rest = rest.partition(":")
        port_text, slash, path = rest.partition("/")
        port = _atoi(port_text)
        uri = "/" + path if slash else "/"
    else:
        port = 80
        host, slash, path = rest.partition("/")
        uri = "/" + path if slash else "/"
    if not slash:
        log(LogLevel.INFO, f"HttpClient.parse_url, no '/' in '{url}'.")
    return host, port, uri


def build_request_header(method: str, uri: str, host: str, content_length: int) -> str:
    """Build the request line and headers; only GET and POST are allowed."""
    if method not in ("GET", "POST"):
        raise HttpClientError(f"wrong method='{method}'")
    parts = [
        f"{method} {uri} HTTP/1.1\r\n",
        _HEADER_ACCEPT,
        _HEADER_USER_AGENT,
        _HEADER_CONTENT_TYPE,
        f"Host: {host}\r\n",
    ]
    if content_length > 0:
        parts.append(f"Content-Length: {content_length}\r\n")
    parts += [_HEADER_CONNECTION, _HEADER_CACHE_CONTROL, "\r\n"]
    return "".join(parts)


class HttpClient:
    """Sends one HTTP request over a non-blocking socket and collects the reply."""

    def __init__(self) -> None:
        self.url = ""
        self.uri = ""
        self.remote_host = ""
        self.remote_port = 80
        self.method = "POST"
        self.begin_tm_ms = 0
        self.end_tm_ms = 0
        self.timeout = 5  # seconds
        self.interval = 0  # seconds, 0 means no repeat
        self.client_id = INVALID_CLIENT_ID
        self.role_name = "http_client"
        self.response = HttpResponse()
        self.request_data = ""
        self._callback: StageCallback | None = None
        self._sock: socket.socket | None = None
        self._out = RingBuffer()
        self._pending = b""

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def set_stage_callback(self, callback: StageCallback | None) -> None:
        """Set the function called as callback(client, stage, payload)."""
        self._callback = callback

    def _notify(self, stage: CallbackType, payload: Any) -> Any:
        if self._callback is None:
            return None
        return self._callback(self, stage, payload)

    def open(self, url: str, method: str | None = None, interval: int = 0) -> None:
        """Connect to url and queue the request; the OPEN stage gets the error or None."""
        self.begin_tm_ms = _now_ms()
        error: HttpClientError | None = None
        try:
            self._open(url, method, interval)
        except HttpClientError as exc:
            error = exc
            log(LogLevel.INFO, f"HttpClient.open, failed, {exc}.")
            raise
        finally:
            self._notify(CallbackType.OPEN, error)

    def _open(self, url: str, method: str | None, interval: int) -> None:
        if not url:
            raise HttpClientError("url is empty")
        self.url = url
        if method:
            self.method = method
        self.interval = interval

        self.remote_host, self.remote_port, self.uri = parse_url(url)
        try:
            resolved_ip = socket.gethostbyname(self.remote_host)
        except OSError as exc:
            raise HttpClientError(
                f"failed to resolve, remote_host='{self.remote_host}'"
            ) from exc

        self._close_socket()
        try:
            sock = socket.create_connection((resolved_ip, self.remote_port), timeout=self.timeout)
        except OSError as exc:
            raise HttpClientError(
                f"failed to connect, remote_host='{self.remote_host}', "
                f"remote_port={self.remote_port}"
            ) from exc
        sock.setblocking(False)
        self._sock = sock

        self.response.reset()
        self.end_tm_ms = 0
        self._out.clear()
        self._pending = b""

        self._generate_request()
        self.handler()

    def _generate_request(self) -> None:
        self.request_data = ""
        content = self._notify(CallbackType.REQUEST_CONTENT, None)
        if isinstance(content, str):
            self.request_data = content
        body = self.request_data.encode("latin-1")
        header = build_request_header(self.method, self.uri, self.remote_host, len(body))
        self._write(header.encode("latin-1"))
        if body:
            self._write(body)
        log(
            LogLevel.INFO,
            f"HttpClient.generate_http_request, ok, url='{self.url}', content len={len(body)}.",
        )

    def _write(self, data: bytes) -> None:
        if self._sock is None:
            raise HttpClientError("socket is not open")
        if data:
            self._out.put(data)

    def _close_socket(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None

    def close(self) -> None:
        """Close the connection and forget the response; reports the CLOSE stage."""
        log(
            LogLevel.TRACE,
            f"HttpClient.close, url='{self.url}', "
            f"content_length={self.response.content_length}.",
        )
        self._close_socket()
        self._notify(CallbackType.CLOSE, None)
        self.response.reset()
        self.end_tm_ms = 0
        self._out.clear()
        self._pending = b""

    def reopen(self) -> None:
        """Close and send the same request again."""
        self.close()
        self.open(self.url, self.method, self.interval)

    def check_timeout(self, cur_tm_ms: int = 0) -> bool:
        """True when the request is over: no socket, response incomplete at end, or timed out."""
        if self._sock is None:
            return True
        if self.end_tm_ms > 0:
            return not self.response.complete
        if cur_tm_ms == 0:
            cur_tm_ms = _now_ms()
        if cur_tm_ms - self.begin_tm_ms < self.timeout * 1000:
            return False
        self.end_tm_ms = cur_tm_ms
        self._notify(CallbackType.RESPONSE_END, self.response)
        log(
            LogLevel.INFO,
            f"HttpClient.check_timeout, ok, url='{self.url}', method='{self.method}', "
            f"content_len={len(self.response.content)}, "
            f"content_length={self.response.content_length}.",
        )
        return True

    def check_repeat(self, cur_tm_ms: int = 0) -> bool:
        """True when a repeating request is due again."""
        if self.interval <= 0:
            return False
        if cur_tm_ms == 0:
            cur_tm_ms = _now_ms()
        return cur_tm_ms - self.begin_tm_ms >= self.interval * 1000

    def check_finished(self) -> bool:
        """True once the whole body has arrived or the socket is closed."""
        return self.response.complete or self._sock is None

    def _finish(self) -> None:
        self.end_tm_ms = _now_ms()
        self._notify(CallbackType.RESPONSE_END, self.response)
        log(
            LogLevel.INFO,
            f"HttpClient.parse_http_response, finished, url='{self.url}', "
            f"method='{self.method}', content_len={len(self.response.content)}.",
        )

    def parse_response(self, text: str) -> bool:
        """Feed received text; returns False while the header block is still incomplete."""
        resp = self.response
        if resp.header:
            resp.content += text
            if resp.complete:
                self._finish()
            return True

        if "\r\n\r\n" not in text:
            log(LogLevel.TRACE, "HttpClient.parse_http_response, no header end yet.")
            return False
        head, _, body = text.partition("\r\n\r\n")
        resp.header = head.split("\r\n")

        status = resp.header[0].split(" ", 2)
        if len(status) == 3:
            resp.code = status[1]
        for line in resp.header:
            if "Content-Length:" in line:
                _, _, value = line.partition(":")
                resp.content_length = _atoi(value)
                break

        resp.content = body
        if resp.complete:
            self._finish()
        return True

    def recv(self) -> bool:
        """Read what the socket has and parse it; returns whether anything was parsed."""
        if self._sock is None:
            return False
        chunks: list[bytes] = []
        while True:
            try:
                data = self._sock.recv(HTTP_DATA_SIZE)
            except (BlockingIOError, InterruptedError):
                break
            except OSError as exc:
                log(LogLevel.INFO, f"HttpClient.recv, failed, {exc}.")
                break
            if not data:
                break
            chunks.append(data)
        if not chunks:
            return False
        ok = self.parse_response(b"".join(chunks).decode("latin-1"))
        if self.check_finished():
            log(LogLevel.INFO, "HttpClient.recv, finished.")
        return ok

    def send(self) -> int:
        """Write queued request bytes until done or the socket would block; return bytes sent."""
        if self._sock is None:
            return 0
        total = 0
        while True:
            if not self._pending:
                if not len(self._out):
                    break
                self._pending = self._out.get(HTTP_DATA_SIZE)
                if not self._pending:
                    break
            try:
                n = self._sock.send(self._pending)
            except (BlockingIOError, InterruptedError):
                break
            except OSError as exc:
                log(LogLevel.WARNING, f"HttpClient.send, write failed, url='{self.url}', {exc}.")
                break
            if n <= 0:
                break
            total += n
            self._pending = self._pending[n:]
            if self._pending:
                break  # the network is busy, try again later
        return total

    def handler(self) -> None:
        """Wait briefly for the socket, then send and receive what is ready."""
        sock = self._sock
        if sock is None:
            return
        try:
            readable, writable, _ = select.select([sock], [sock], [], _HANDLER_TIMEOUT_S)
        except (OSError, ValueError) as exc:
            raise HttpClientError(f"select failed: {exc}") from exc
        if writable:
            self.send()
        if readable:
            self.recv()