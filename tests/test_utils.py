import pytest

from respkit.utils import (
    bytes_equals,
    convert_range,
    equals,
    to_cmd_line,
    to_cmd_line2,
    to_cmd_line3,
)


def test_to_cmd_line():
    assert to_cmd_line("SET", "key", "value") == [b"SET", b"key", b"value"]
    assert to_cmd_line() == []


def test_to_cmd_line2():
    assert to_cmd_line2("GET", "key") == [b"GET", b"key"]
    assert to_cmd_line2("PING") == [b"PING"]


def test_to_cmd_line3():
    assert to_cmd_line3("SET", b"k", b"\x00\xff") == [b"SET", b"k", b"\x00\xff"]


def test_bytes_equals():
    assert bytes_equals(b"abc", b"abc")
    assert not bytes_equals(b"abc", b"abd")
    assert not bytes_equals(b"abc", b"ab")
    assert bytes_equals(None, None)
    assert not bytes_equals(None, b"")
    assert not bytes_equals(b"", None)


def test_equals():
    assert equals(b"a", bytearray(b"a"))
    assert not equals(b"a", b"b")
    assert equals(3, 3)
    assert not equals("a", b"a")


def test_convert_range_full():
    size = 10
    assert convert_range(0, -1, size) == (0, size)
    assert convert_range(0, size, size) == (0, size)


def test_convert_range_out_of_bound():
    size = 10
    assert convert_range(size, size + 1, size) == (-1, -1)
    assert convert_range(-size - 1, 0, size) == (-1, -1)
    assert convert_range(0, -size - 1, size) == (-1, -1)


def test_convert_range_inner():
    assert convert_range(2, 4, 10) == (2, 5)
    assert convert_range(-3, -1, 10) == (7, 10)


@pytest.mark.parametrize("start,end", [(0, 0), (1, 5), (-5, -2), (3, 100)])
def test_convert_range_invariant(start, end):
    size = 8
    lo, hi = convert_range(start, end, size)
    assert 0 <= lo <= hi <= size