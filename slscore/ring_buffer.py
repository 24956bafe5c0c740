"""A thread-safe byte ring buffer that grows when data does not fit."""

from __future__ import annotations

import threading

DEFAULT_SIZE = 4096


class RingBuffer:
    """FIFO byte queue over a circular buffer; grows by at least DEFAULT_SIZE."""

    def __init__(self, size: int = DEFAULT_SIZE) -> None:
        self._lock = threading.Lock()
        self._reset(size)

    def _reset(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"buffer size must be positive, got {size}")
        self._buf = bytearray(size)
        self._write = 0
        self._read = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        """Current size of the underlying buffer."""
        return len(self._buf)

    def __len__(self) -> int:
        with self._lock:
            return self._count

    def resize(self, size: int) -> None:
        """Replace the buffer with an empty one of the given size."""
        with self._lock:
            self._reset(size)

    def clear(self) -> None:
        """Discard all pending data."""
        with self._lock:
            self._write = 0
            self._read = 0
            self._count = 0

    def put(self, data: bytes) -> int:
        """Append data, growing the buffer if needed; return the number of bytes stored."""
        if not data:
            raise ValueError("cannot put empty data")
        data = bytes(data)
        n = len(data)
        with self._lock:
            size = len(self._buf)
            if n > size - self._count:
                pending = self._take(self._count)
                new_size = size + max(DEFAULT_SIZE, n)
                buf = bytearray(new_size)
                content = pending + data
                buf[: len(content)] = content
                self._buf = buf
                self._read = 0
                self._count = len(content)
                self._write = self._count % new_size
                return n

            first = min(n, size - self._write)
            self._buf[self._write : self._write + first] = data[:first]
            rest = n - first
            if rest:
                self._buf[:rest] = data[first:]
                self._write = rest
            else:
                self._write = (self._write + first) % size
            self._count += n
            return n

    def get(self, size: int) -> bytes:
        """Remove and return up to size bytes in the order they were put."""
        if size < 0:
            raise ValueError(f"size must not be negative, got {size}")
        with self._lock:
            return self._take(min(size, self._count))

    def _take(self, n: int) -> bytes:
        if n == 0:
            return b""
        size = len(self._buf)
        first = min(n, size - self._read)
        out = bytes(self._buf[self._read : self._read + first])
        rest = n - first
        if rest:
            out += bytes(self._buf[:rest])
            self._read = rest
        else:
            self._read = (self._read + first) % size
        self._count -= n
        return out