"""A wait group that can also be waited on with a timeout."""

from __future__ import annotations

import threading
from datetime import timedelta


class Wait:
    """Counts outstanding work; waiters block until the count drops to zero."""

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self, delta: int) -> None:
        """Add ``delta``, which may be negative, to the counter."""
        with self._cond:
            count = self._count + delta
            if count < 0:
                raise ValueError("negative wait counter")
            self._count = count
            if count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        """Decrement the counter by one."""
        self.add(-1)

    def wait(self) -> None:
        """Block until the counter is zero."""
        with self._cond:
            self._cond.wait_for(lambda: self._count == 0)

    def wait_with_timeout(self, timeout: float | timedelta) -> bool:
        """Block until the counter is zero or the timeout passes; return True on timeout."""
        seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
        with self._cond:
            return not self._cond.wait_for(lambda: self._count == 0, timeout=seconds)