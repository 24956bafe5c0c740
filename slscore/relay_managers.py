"""Managers that pull a stream from upstream servers or push it to them."""

from __future__ import annotations

import enum
import threading
import time
import zlib
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .log import LogLevel, log
from .map_publisher import PublisherExistsError


class RelayMode(enum.Enum):
    """How upstreams are chosen for a relayed stream."""

    LOOP = "loop"
    ALL = "all"
    HASH = "hash"


class RelayError(Exception):
    """Raised when a relay cannot be started or connected."""


@dataclass
class RelayInfo:
    """Relay settings of one publishing app."""

    type: str = ""
    mode: RelayMode = RelayMode.HASH
    reconnect_interval: int = 0  # seconds
    idle_streams_timeout: int = -1  # seconds, -1 means unlimited
    upstreams: list[str] = field(default_factory=list)


# A relay factory is called with "puller" or "pusher" and returns an object
# with open(url), which raises on failure, and close().
RelayFactory = Callable[[str], Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


class RelayManager:
    """Common state of the puller and pusher managers of one stream."""

    relay_kind = "relay"

    def __init__(
        self,
        relay_info: RelayInfo | None = None,
        relay_factory: RelayFactory | None = None,
    ) -> None:
        self.relay_info = relay_info
        self.relay_factory = relay_factory
        self.app_uplive = ""
        self.stream_name = ""
        self.map_data: Any = None
        self.map_publisher: Any = None
        self.role_list: Any = None
        self.listen_port = 0
        self.reconnect_begin_tm = 0

    def set_relay_info(self, app_uplive: str, stream_name: str) -> None:
        """Set the publishing app and stream this manager relays."""
        self.app_uplive = app_uplive
        self.stream_name = stream_name

    @property
    def key_stream_name(self) -> str:
        return f"{self.app_uplive}/{self.stream_name}"

    def _upstream_url(self, upstream: str) -> str:
        return f"srt://{upstream}/{self.stream_name}"

    def connect(self, url: str) -> Any:
        """Open a relay to url and register it; return the relay."""
        if self.relay_factory is None:
            raise RelayError("no relay factory configured")
        relay = self.relay_factory(self.relay_kind)
        try:
            relay.open(url)
        except (RelayError, OSError) as exc:
            relay.close()
            raise RelayError(f"failed to open relay to '{url}': {exc}") from exc
        try:
            self._set_relay_param(relay)
        except RelayError:
            relay.close()
            raise
        log(LogLevel.INFO, f"RelayManager.connect, ok, url='{url}'.")
        return relay

    def connect_hash(self) -> Any:
        """Connect to the upstream picked by a hash of the stream key."""
        info = self.relay_info
        if info is None or not info.upstreams:
            raise RelayError(f"no upstreams for '{self.key_stream_name}'")
        index = zlib.crc32(self.key_stream_name.encode("utf-8")) % len(info.upstreams)
        return self.connect(self._upstream_url(info.upstreams[index]))

    def _set_relay_param(self, relay: Any) -> None:
        raise NotImplementedError

    def _attach(self, relay: Any) -> None:
        relay.map_data_key = self.key_stream_name
        relay.map_data = self.map_data
        relay.map_publisher = self.map_publisher
        relay.relay_manager = self
        self.role_list.push(relay)


class PullerManager(RelayManager):
    """Pulls a stream from upstream when a player asks for one nobody publishes."""

    relay_kind = "puller"

    def __init__(
        self,
        relay_info: RelayInfo | None = None,
        relay_factory: RelayFactory | None = None,
    ) -> None:
        super().__init__(relay_info, relay_factory)
        self.cur_loop_index = -1

    def _connect_loop(self) -> Any:
        info = self.relay_info
        if info is None or not info.upstreams:
            raise RelayError(
                f"no upstreams, app_uplive={self.app_uplive}, stream_name={self.stream_name}"
            )
        count = len(info.upstreams)
        if self.cur_loop_index == -1:
            self.cur_loop_index = count - 1
        start = self.cur_loop_index
        index = start + 1
        while True:
            if index >= count:
                index = 0
            url = self._upstream_url(info.upstreams[index])
            try:
                relay = self.connect(url)
            except RelayError as exc:
                if index == start:
                    self.cur_loop_index = index
                    raise RelayError(
                        f"no available pullers for '{self.key_stream_name}'"
                    ) from exc
                log(
                    LogLevel.INFO,
                    f"PullerManager.connect_loop, failed, index={index}, url='{url}'.",
                )
                index += 1
                continue
            self.cur_loop_index = index
            return relay

    def start(self) -> Any:
        """Connect a puller unless the stream already has a publisher; return it."""
        info = self.relay_info
        if info is None:
            raise RelayError(f"no relay info for '{self.key_stream_name}'")
        if self.map_publisher is not None:
            publisher = self.map_publisher.get_publisher(self.key_stream_name)
            if publisher is not None:
                raise RelayError(f"publisher of '{self.key_stream_name}' exists")
        if info.mode is RelayMode.LOOP:
            return self._connect_loop()
        if info.mode is RelayMode.HASH:
            return self.connect_hash()
        raise RelayError(f"wrong relay mode {info.mode.value} for a puller")

    def _check_relay_param(self) -> None:
        for name in ("role_list", "map_publisher", "map_data"):
            if getattr(self, name) is None:
                raise RelayError(f"{name} is not set, stream={self.stream_name}")

    def _set_relay_param(self, relay: Any) -> None:
        self._check_relay_param()
        key = self.key_stream_name
        try:
            self.map_publisher.set_publisher(key, relay)
        except PublisherExistsError as exc:
            raise RelayError(str(exc)) from exc
        try:
            self.map_data.add(key)
        except Exception as exc:
            self.map_publisher.remove(relay)
            raise RelayError(f"failed to add data for '{key}': {exc}") from exc
        self._attach(relay)

    def add_reconnect_stream(self, url: str) -> None:
        """Schedule a reconnect, counted from now."""
        self.reconnect_begin_tm = _now_ms()

    def reconnect(self, cur_tm_ms: int) -> bool:
        """Try to pull again once the reconnect interval has passed; True on success."""
        info = self.relay_info
        if info is None:
            return False
        if cur_tm_ms - self.reconnect_begin_tm < info.reconnect_interval * 1000:
            return False
        self.reconnect_begin_tm = cur_tm_ms
        try:
            self._check_relay_param()
            self.start()
        except RelayError as exc:
            log(LogLevel.INFO, f"PullerManager.reconnect, failed, {exc}.")
            return False
        log(LogLevel.INFO, f"PullerManager.reconnect, ok, stream={self.key_stream_name}.")
        return True


class PusherManager(RelayManager):
    """Pushes a published stream to upstream servers."""

    relay_kind = "pusher"

    def __init__(
        self,
        relay_info: RelayInfo | None = None,
        relay_factory: RelayFactory | None = None,
    ) -> None:
        super().__init__(relay_info, relay_factory)
        self._lock = threading.Lock()
        self._reconnect_relays: dict[str, int] = {}

    @property
    def pending_reconnects(self) -> dict[str, int]:
        """URLs waiting to be reconnected, with the time they were last tried."""
        with self._lock:
            return dict(self._reconnect_relays)

    def _connect_all(self) -> list[Any]:
        info = self.relay_info
        if info is None:
            raise RelayError(f"no relay info for '{self.key_stream_name}'")
        relays = []
        failed = []
        for upstream in info.upstreams:
            url = self._upstream_url(upstream)
            try:
                relays.append(self.connect(url))
            except RelayError:
                with self._lock:
                    self._reconnect_relays[url] = _now_ms()
                failed.append(url)
        if failed:
            raise RelayError(f"failed to push to {', '.join(failed)}")
        return relays

    def start(self) -> Any:
        """Connect pushers when the stream has a publisher."""
        info = self.relay_info
        if info is None:
            raise RelayError(f"no relay info for '{self.key_stream_name}'")
        if self.map_publisher is not None:
            if self.map_publisher.get_publisher(self.key_stream_name) is None:
                raise RelayError(f"no publisher of '{self.key_stream_name}'")
        if info.mode is RelayMode.ALL:
            return self._connect_all()
        if info.mode is RelayMode.HASH:
            return self.connect_hash()
        raise RelayError(f"wrong relay mode {info.mode.value} for a pusher")

    def _set_relay_param(self, relay: Any) -> None:
        if self.role_list is None:
            raise RelayError(f"role_list is not set, stream={self.stream_name}")
        self._attach(relay)

    def add_reconnect_stream(self, url: str) -> None:
        """Schedule url (mode all) or the stream (mode hash) for reconnecting."""
        info = self.relay_info
        if info is None:
            raise RelayError(f"no relay info for '{self.key_stream_name}'")
        if info.mode is RelayMode.ALL:
            with self._lock:
                self._reconnect_relays[url] = _now_ms()
        elif info.mode is RelayMode.HASH:
            self.reconnect_begin_tm = _now_ms()
        else:
            raise RelayError(f"wrong relay mode {info.mode.value} for a pusher")

    def reconnect(self, cur_tm_ms: int) -> bool:
        """Retry pushes that are due; True when nothing is left to reconnect."""
        if self.role_list is None or self.map_data is None:
            log(LogLevel.WARNING, f"PusherManager.reconnect, params not set, stream={self.stream_name}.")
            return False
        info = self.relay_info
        if info is None:
            return False
        no_publisher = False
        if self.map_publisher is not None:
            no_publisher = self.map_publisher.get_publisher(self.key_stream_name) is None

        if info.mode is RelayMode.ALL:
            return self._reconnect_all(cur_tm_ms, no_publisher)
        if info.mode is RelayMode.HASH:
            if cur_tm_ms - self.reconnect_begin_tm < info.reconnect_interval * 1000:
                return False
            self.reconnect_begin_tm = cur_tm_ms
            if no_publisher:
                log(LogLevel.INFO, f"PusherManager.reconnect, no publisher of '{self.key_stream_name}'.")
                return False
            try:
                self.connect_hash()
            except RelayError as exc:
                log(LogLevel.INFO, f"PusherManager.reconnect, failed, {exc}.")
                return False
            return True
        return False

    def _reconnect_all(self, cur_tm_ms: int, no_publisher: bool) -> bool:
        interval_ms = self.relay_info.reconnect_interval * 1000
        last_ok = False
        all_ok = True
        with self._lock:
            for url, begin_tm in list(self._reconnect_relays.items()):
                if cur_tm_ms - begin_tm < interval_ms:
                    all_ok = all_ok and last_ok
                    continue
                if no_publisher:
                    all_ok = all_ok and last_ok
                    self._reconnect_relays[url] = cur_tm_ms
                    log(LogLevel.INFO, f"PusherManager.reconnect_all, no publisher, url={url}.")
                    continue
                try:
                    self.connect(url)
                except RelayError:
                    last_ok = False
                    self._reconnect_relays[url] = cur_tm_ms
                    log(LogLevel.INFO, f"PusherManager.reconnect_all, failed, url='{url}'.")
                else:
                    last_ok = True
                    del self._reconnect_relays[url]
                    log(LogLevel.INFO, f"PusherManager.reconnect_all, ok, url='{url}'.")
                all_ok = all_ok and last_ok
        return all_ok