"""A bounded pool of reusable objects such as connections."""

from __future__ import annotations

import queue
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


class PoolClosedError(Exception):
    """The pool has been closed."""


class PoolExhaustedError(Exception):
    """No object could be obtained within the active limit."""


@dataclass(frozen=True)
class PoolConfig:
    """Limits on idle and active objects."""

    max_idle: int
    max_active: int


_CLOSED = object()


class Pool:
    """Hands out objects made by ``factory`` and destroys surplus with ``finalizer``."""

    def __init__(
        self,
        factory: Callable[[], Any],
        finalizer: Callable[[Any], None],
        config: PoolConfig,
    ) -> None:
        self.config = config
        self._factory = factory
        self._finalizer = finalizer
        self._idles: deque[Any] = deque()
        self._waiting: deque[queue.SimpleQueue[Any]] = deque()
        self._active = 0
        self._closed = False
        self._lock = threading.Lock()

    def get(self) -> Any:
        """Return an idle object, a new one, or wait for one to be returned.

        Raises PoolClosedError if the pool is closed, and whatever the factory raises.
        """
        waiter: queue.SimpleQueue[Any] | None = None
        with self._lock:
            if self._closed:
                raise PoolClosedError("pool closed")
            if self._idles:
                return self._idles.popleft()
            if self._active >= self.config.max_active:
                waiter = queue.SimpleQueue()
                self._waiting.append(waiter)
            else:
                self._active += 1  # hold a place for the new object
        if waiter is not None:
            item = waiter.get()
            if item is _CLOSED:
                raise PoolExhaustedError("reach max connection limit")
            return item
        try:
            return self._factory()
        except BaseException:
            with self._lock:
                self._active -= 1
            raise

    def put(self, item: Any) -> None:
        """Return an object: hand it to a waiter, keep it idle, or destroy it."""
        with self._lock:
            if not self._closed:
                if self._waiting:
                    self._waiting.popleft().put(item)
                    return
                if len(self._idles) < self.config.max_idle:
                    self._idles.append(item)
                    return
                self._active -= 1
        self._finalizer(item)

    def close(self) -> None:
        """Close the pool and destroy its idle objects; closing twice does nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            idles = list(self._idles)
            self._idles.clear()
            waiters = list(self._waiting)
            self._waiting.clear()
        for waiter in waiters:
            waiter.put(_CLOSED)
        for item in idles:
            self._finalizer(item)

    def __enter__(self) -> Pool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()