"""A hashed time wheel that runs jobs after a delay."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from respkit import logger

Delay = float | timedelta


def _seconds(value: Delay) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _nanos(seconds: float) -> int:
    return round(seconds * 1_000_000_000)


@dataclass(eq=False)
class _Task:
    key: str
    job: Callable[[], Any]
    circle: int = 0


class TimeWheel:
    """Runs each job on its own thread once its delay has passed.

    ``interval`` is the length of one tick in seconds and ``slot_num`` the
    number of slots on the wheel.
    """

    def __init__(self, interval: Delay, slot_num: int) -> None:
        seconds = _seconds(interval)
        if seconds <= 0 or slot_num <= 0:
            raise ValueError("interval and slot_num must be positive")
        self.interval = seconds
        self.slot_num = slot_num
        self._slots: list[list[_Task]] = [[] for _ in range(slot_num)]
        self._timer: dict[str, tuple[int, _Task]] = {}
        self._current = 0
        self._lock = threading.Lock()
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start ticking on a background thread."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stopping.clear()
            self._thread = threading.Thread(target=self._run, name="timewheel", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        """Stop ticking; pending jobs stay on the wheel."""
        self._stopping.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def add_job(self, delay: Delay, key: str, job: Callable[[], Any]) -> None:
        """Schedule ``job`` after ``delay``; a job with the same non-empty key is replaced."""
        seconds = _seconds(delay)
        if seconds < 0:
            return
        steps = _nanos(seconds) // _nanos(self.interval)
        with self._lock:
            pos = (self._current + steps) % self.slot_num
            task = _Task(key=key, job=job, circle=steps // self.slot_num)
            self._slots[pos].append(task)
            if key:
                self._remove(key)
                self._timer[key] = (pos, task)

    def remove_job(self, key: str) -> None:
        """Cancel the pending job with this key; nothing happens if there is none."""
        if not key:
            return
        with self._lock:
            self._remove(key)

    def _remove(self, key: str) -> None:
        location = self._timer.pop(key, None)
        if location is not None:
            slot, task = location
            self._slots[slot].remove(task)

    def _run(self) -> None:
        next_tick = time.monotonic() + self.interval
        while not self._stopping.wait(max(0.0, next_tick - time.monotonic())):
            now = time.monotonic()
            next_tick += self.interval
            if next_tick < now:
                next_tick = now + self.interval
            self._tick()

    def _tick(self) -> None:
        due: list[_Task] = []
        with self._lock:
            slot = self._slots[self._current]
            self._current = (self._current + 1) % self.slot_num
            remaining: list[_Task] = []
            for task in slot:
                if task.circle > 0:
                    task.circle -= 1
                    remaining.append(task)
                    continue
                due.append(task)
                if task.key:
                    self._timer.pop(task.key, None)
            slot[:] = remaining
        for task in due:
            threading.Thread(target=self._run_job, args=(task.job,), daemon=True).start()

    @staticmethod
    def _run_job(job: Callable[[], Any]) -> None:
        try:
            job()
        except Exception as err:
            logger.error(err)


_default_lock = threading.Lock()
_default_wheel: TimeWheel | None = None


def _wheel() -> TimeWheel:
    global _default_wheel
    with _default_lock:
        if _default_wheel is None:
            _default_wheel = TimeWheel(1.0, 3600)
            _default_wheel.start()
        return _default_wheel


def delay(duration: Delay, key: str, job: Callable[[], Any]) -> None:
    """Run ``job`` after ``duration`` on the shared wheel."""
    _wheel().add_job(duration, key, job)


def at(when: datetime, key: str, job: Callable[[], Any]) -> None:
    """Run ``job`` at the given time on the shared wheel."""
    _wheel().add_job(when - datetime.now(when.tzinfo), key, job)


def cancel(key: str) -> None:
    """Cancel a pending job on the shared wheel."""
    _wheel().remove_job(key)