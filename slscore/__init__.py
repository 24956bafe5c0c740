"""Core building blocks of an SRT live streaming server: locks, logging, a ring buffer, an HTTP client and publisher and relay maps."""

__version__ = "0.1.0"

__all__ = [
    "lock",
    "log",
    "ring_buffer",
    "http_client",
    "http_role_list",
    "map_publisher",
    "relay_managers",
    "map_relay",
]