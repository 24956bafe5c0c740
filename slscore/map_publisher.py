"""Maps player apps to publisher apps and stream names to their publishers."""

from __future__ import annotations

from typing import Any

from .lock import RWLock
from .log import LogLevel, log


class PublisherExistsError(Exception):
    """Raised when a stream already has a publisher."""


def _role_name(role: Any) -> str:
    return getattr(role, "role_name", type(role).__name__)


class PublisherMap:
    """Routing tables for publishing and playing streams.

    live_to_uplive maps 'host/live' to 'host/uplive', uplive conf maps
    'host/uplive' to its app configuration, and the publisher table maps
    'host/uplive/stream' to the role publishing it.
    """

    def __init__(self) -> None:
        self._lock = RWLock()
        self._live_to_uplive: dict[str, str] = {}
        self._uplive_to_conf: dict[str, Any] = {}
        self._publishers: dict[str, Any] = {}

    def set_conf(self, key: str, conf: Any) -> None:
        """Store the app configuration for a publishing app key."""
        with self._lock.write_lock():
            self._uplive_to_conf[key] = conf

    def set_live_to_uplive(self, live: str, uplive: str) -> None:
        """Route a player app key to its publishing app key."""
        with self._lock.write_lock():
            self._live_to_uplive[live] = uplive

    def set_publisher(self, app_stream_name: str, role: Any) -> None:
        """Register the publisher of a stream; raise if one is already registered."""
        if role is None:
            raise ValueError("publisher role must not be None")
        with self._lock.write_lock():
            current = self._publishers.get(app_stream_name)
            if current is not None:
                log(
                    LogLevel.INFO,
                    f"PublisherMap.set_publisher, failed, {_role_name(current)} exists, "
                    f"app_streamname={app_stream_name}, size={len(self._publishers)}.",
                )
                raise PublisherExistsError(
                    f"stream '{app_stream_name}' already has a publisher"
                )
            self._publishers[app_stream_name] = role
            log(
                LogLevel.INFO,
                f"PublisherMap.set_publisher, ok, {_role_name(role)}, "
                f"app_streamname={app_stream_name}, size={len(self._publishers)}.",
            )

    def get_uplive(self, key_app: str) -> str:
        """Return the publishing app for a player app, or '' if there is none."""
        with self._lock.read_lock():
            return self._live_to_uplive.get(key_app, "")

    def get_conf(self, key_app: str) -> Any:
        """Return the configuration of a publishing app, or None."""
        with self._lock.read_lock():
            return self._uplive_to_conf.get(key_app)

    def get_publisher(self, app_stream_name: str) -> Any:
        """Return the publisher of a stream, or None."""
        with self._lock.read_lock():
            return self._publishers.get(app_stream_name)

    def remove(self, role: Any) -> bool:
        """Unregister the first stream (in key order) published by role; return whether one was."""
        with self._lock.write_lock():
            for key in sorted(self._publishers):
                if self._publishers[key] is role:
                    log(
                        LogLevel.INFO,
                        f"PublisherMap.remove, {_role_name(role)}, live_key={key}.",
                    )
                    del self._publishers[key]
                    return True
        return False

    def clear(self) -> None:
        """Forget all routes, configurations and publishers."""
        with self._lock.write_lock():
            log(LogLevel.INFO, "PublisherMap.clear.")
            self._publishers.clear()
            self._live_to_uplive.clear()
            self._uplive_to_conf.clear()