"""Relay settings per publishing app and relay managers per stream."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .lock import RWLock
from .log import LogLevel, log
from .relay_managers import (
    PullerManager,
    PusherManager,
    RelayError,
    RelayFactory,
    RelayInfo,
    RelayManager,
    RelayMode,
)

_MODES = {mode.value: mode for mode in RelayMode}


@dataclass
class RelayConf:
    """One relay block of an app configuration."""

    type: str = ""
    mode: str = ""
    upstreams: str = ""
    reconnect_interval: int = 0  # seconds
    idle_streams_timeout: int = -1  # seconds, -1 means unlimited


class RelayMap:
    """Holds relay settings by publishing app and one relay manager per stream."""

    def __init__(self, relay_factory: RelayFactory | None = None) -> None:
        self.relay_factory = relay_factory
        self._lock = RWLock()
        self._managers: dict[str, RelayManager] = {}
        self._relay_info: dict[str, RelayInfo] = {}

    def add_relay_conf(self, app_uplive: str, conf: RelayConf | None) -> RelayInfo:
        """Register the relay settings of a publishing app; raise if it has some already."""
        if conf is None:
            raise ValueError("relay conf must not be None")
        mode = _MODES.get(conf.mode)
        if mode is None:
            mode = RelayMode.HASH
            log(
                LogLevel.INFO,
                f"RelayMap.add_relay_conf, wrong mode='{conf.mode}', use default 'hash'.",
            )
        upstreams = conf.upstreams.split()
        if not upstreams:
            log(LogLevel.INFO, f"RelayMap.add_relay_conf, wrong upstreams='{conf.upstreams}'.")
        info = RelayInfo(
            type=conf.type,
            mode=mode,
            reconnect_interval=conf.reconnect_interval,
            idle_streams_timeout=conf.idle_streams_timeout,
            upstreams=upstreams,
        )
        with self._lock.write_lock():
            if app_uplive in self._relay_info:
                log(
                    LogLevel.INFO,
                    f"RelayMap.add_relay_conf, failed, exists, app_uplive={app_uplive}.",
                )
                raise RelayError(f"relay conf for '{app_uplive}' already exists")
            self._relay_info[app_uplive] = info
        return info

    def get_relay_conf(self, app_uplive: str) -> RelayInfo | None:
        """Return the relay settings of a publishing app, or None."""
        with self._lock.read_lock():
            return self._relay_info.get(app_uplive)

    def add_relay_manager(self, app_uplive: str, stream_name: str) -> RelayManager | None:
        """Return the stream's relay manager, creating it from the app's settings.

        Returns None when the app has no relay settings or their type is
        neither 'pull' nor 'push'.
        """
        info = self.get_relay_conf(app_uplive)
        if info is None:
            log(
                LogLevel.INFO,
                f"RelayMap.add_relay_manager, no relay conf info, "
                f"app_uplive={app_uplive}, stream_name={stream_name}.",
            )
            return None

        key = f"{app_uplive}/{stream_name}"
        with self._lock.write_lock():
            current = self._managers.get(key)
            if current is not None:
                return current
            manager_cls: Any
            if info.type == "pull":
                manager_cls = PullerManager
            elif info.type == "push":
                manager_cls = PusherManager
            else:
                log(
                    LogLevel.INFO,
                    f"RelayMap.add_relay_manager, failed, wrong type='{info.type}', "
                    f"app_uplive={app_uplive}, stream_name={stream_name}.",
                )
                return None
            manager = manager_cls(info, self.relay_factory)
            manager.set_relay_info(app_uplive, stream_name)
            self._managers[key] = manager
        log(
            LogLevel.INFO,
            f"RelayMap.add_relay_manager, ok, app_uplive={app_uplive}, stream_name={stream_name}.",
        )
        return manager

    def clear(self) -> None:
        """Forget all relay managers and relay settings."""
        with self._lock.write_lock():
            log(LogLevel.INFO, "RelayMap.clear.")
            self._managers.clear()
            self._relay_info.clear()