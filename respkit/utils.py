"""Helpers for building command lines, comparing values and converting index ranges."""

from __future__ import annotations

from typing import Any

_BYTES_TYPES = (bytes, bytearray, memoryview)


def to_cmd_line(*args: str) -> list[bytes]:
    """Convert strings to a command line of byte strings."""
    return [arg.encode() for arg in args]


def to_cmd_line2(command_name: str, *args: str) -> list[bytes]:
    """Build a command line from a command name and string arguments."""
    return [command_name.encode(), *(arg.encode() for arg in args)]


def to_cmd_line3(command_name: str, *args: bytes) -> list[bytes]:
    """Build a command line from a command name and byte-string arguments."""
    return [command_name.encode(), *(bytes(arg) for arg in args)]


def equals(a: Any, b: Any) -> bool:
    """Compare two values, comparing byte strings by content."""
    if isinstance(a, _BYTES_TYPES) and isinstance(b, _BYTES_TYPES):
        return bytes_equals(a, b)
    return a == b


def bytes_equals(a: bytes | None, b: bytes | None) -> bool:
    """Compare two byte strings; None equals only None."""
    if a is None or b is None:
        return a is None and b is None
    return bytes(a) == bytes(b)


def convert_range(start: int, end: int, size: int) -> tuple[int, int]:
    """Convert an inclusive index range (negatives count from the end) to a half-open one.

    Returns ``(-1, -1)`` when the range is out of bounds or empty.
    """
    if start < -size:
        return -1, -1
    if start < 0:
        start = size + start
    elif start >= size:
        return -1, -1

    if end < -size:
        return -1, -1
    if end < 0:
        end = size + end + 1
    elif end < size:
        end = end + 1
    else:
        end = size

    if start > end:
        return -1, -1
    return start, end