"""Consistent hash ring with virtual replicas and hash-tag support."""

from __future__ import annotations

import bisect
import zlib
from collections.abc import Callable

HashFunc = Callable[[bytes], int]


def get_partition_key(key: str) -> str:
    """Return the hash tag between the first '{' and '}' of the key, or the key itself."""
    beg = key.find("{")
    if beg == -1:
        return key
    end = key.find("}")
    if end == -1 or end == beg + 1:
        return key
    return key[beg + 1 : end]


class HashRing:
    """Picks the node responsible for a key on a consistent hash circle."""

    def __init__(self, replicas: int, hash_func: HashFunc | None = None) -> None:
        self.replicas = replicas
        self.hash_func: HashFunc = hash_func if hash_func is not None else zlib.crc32
        self._keys: list[int] = []
        self._nodes: dict[int, str] = {}

    def is_empty(self) -> bool:
        """Return whether no node has been added."""
        return not self._keys

    def add_node(self, *args: str) -> None:
        """Add nodes to the ring; empty names are ignored."""
        for node in args:
            if not node:
                continue
            for i in range(self.replicas):
                code = self.hash_func(f"{i}{node}".encode())
                self._keys.append(code)
                self._nodes[code] = node
        self._keys.sort()

    def pick_node(self, key: str) -> str:
        """Return the node closest to the key's hash, or '' if the ring is empty."""
        if self.is_empty():
            return ""
        code = self.hash_func(get_partition_key(key).encode())
        idx = bisect.bisect_left(self._keys, code)
        if idx == len(self._keys):
            idx = 0
        return self._nodes[self._keys[idx]]