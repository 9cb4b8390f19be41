"""Snowflake-style unique 64-bit ID generation."""

from __future__ import annotations

import threading
import time

EPOCH_MS = 1288834974657
TIME_LEFT = 22
NODE_LEFT = 10
MAX_SEQUENCE = (1 << NODE_LEFT) - 1
NODE_MASK = (1 << (TIME_LEFT - NODE_LEFT)) - 1

_FNV64_OFFSET = 14695981039346656037
_FNV64_PRIME = 1099511628211
_U64 = (1 << 64) - 1


def _fnv1_64(data: bytes) -> int:
    value = _FNV64_OFFSET
    for byte in data:
        value = (value * _FNV64_PRIME) & _U64
        value ^= byte
    return value


class IDGenerator:
    """Generates unique, increasing IDs from time, node and sequence."""

    def __init__(self, node: str) -> None:
        self.node_id = _fnv1_64(node.encode()) & NODE_MASK
        self._last_stamp = -1
        self._sequence = 1
        self._lock = threading.Lock()
        # Offset between the monotonic clock and the epoch, in nanoseconds.
        self._offset_ns = time.time_ns() - EPOCH_MS * 1_000_000 - time.monotonic_ns()

    def _now_ms(self) -> int:
        return (time.monotonic_ns() + self._offset_ns) // 1_000_000

    def next_id(self) -> int:
        """Return the next unique ID."""
        with self._lock:
            timestamp = self._now_ms()
            if timestamp < self._last_stamp:
                raise RuntimeError("can not generate id")
            if timestamp == self._last_stamp:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    while timestamp <= self._last_stamp:
                        timestamp = self._now_ms()
            else:
                self._sequence = 0
            self._last_stamp = timestamp
            return (timestamp << TIME_LEFT) | (self.node_id << NODE_LEFT) | self._sequence