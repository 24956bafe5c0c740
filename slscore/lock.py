"""A readers-writer lock used to guard the shared stream maps."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class RWLock:
    """Many concurrent readers or a single writer, never both."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def _acquire_read(self, blocking: bool) -> bool:
        with self._cond:
            if not blocking and self._writer:
                return False
            while self._writer:
                self._cond.wait()
            self._readers += 1
            return True

    def _release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def _acquire_write(self, blocking: bool) -> bool:
        with self._cond:
            if not blocking and (self._writer or self._readers):
                return False
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
            return True

    def _release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_lock(self) -> Iterator[None]:
        """Hold the lock for reading until the block ends."""
        self._acquire_read(blocking=True)
        try:
            yield
        finally:
            self._release_read()

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        """Hold the lock exclusively until the block ends."""
        self._acquire_write(blocking=True)
        try:
            yield
        finally:
            self._release_write()

    @contextmanager
    def try_read_lock(self) -> Iterator[bool]:
        """Try to take the lock for reading without waiting; yields whether it was taken."""
        acquired = self._acquire_read(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                self._release_read()

    @contextmanager
    def try_write_lock(self) -> Iterator[bool]:
        """Try to take the lock exclusively without waiting; yields whether it was taken."""
        acquired = self._acquire_write(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                self._release_write()