"""A thread-safe FIFO of HTTP clients waiting to be handled."""

from __future__ import annotations

import threading
from collections import deque
from typing import TYPE_CHECKING

from .log import LogLevel, log

if TYPE_CHECKING:
    from .http_client import HttpClient


class HttpRoleList:
    """Queue of HTTP clients shared between threads."""

    def __init__(self) -> None:
        self._roles: deque[HttpClient] = deque()
        self._lock = threading.Lock()

    def push(self, role: HttpClient | None) -> None:
        """Append a client to the end of the queue; None is ignored."""
        if role is None:
            return
        with self._lock:
            self._roles.append(role)

    def pop(self) -> HttpClient | None:
        """Remove and return the oldest client, or None when the queue is empty."""
        with self._lock:
            return self._roles.popleft() if self._roles else None

    def erase(self) -> None:
        """Close every queued client and empty the queue."""
        with self._lock:
            log(LogLevel.TRACE, f"HttpRoleList.erase, list.count={len(self._roles)}")
            roles = list(self._roles)
            self._roles.clear()
        for role in roles:
            role.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._roles)