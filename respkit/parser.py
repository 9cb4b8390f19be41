"""Streaming parser for the RESP wire protocol."""

from __future__ import annotations

import io
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from respkit.protocol import (
    BulkReply,
    EmptyMultiBulkReply,
    IntReply,
    MultiBulkReply,
    NullBulkReply,
    Reply,
    StandardErrReply,
    StatusReply,
)

_INT_RE = re.compile(rb"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class ProtocolError(Exception):
    """Malformed protocol data."""


@dataclass
class Payload:
    """One parsed reply, or the error met while parsing."""

    data: Reply | None = None
    err: BaseException | None = None


class _EndOfStream(Exception):
    def __init__(self, unexpected: bool) -> None:
        super().__init__("unexpected EOF" if unexpected else "EOF")
        self.unexpected = unexpected


def _text(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _parse_int(data: bytes) -> int | None:
    if _INT_RE.fullmatch(data) is None:
        return None
    value = int(data)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _protocol_error(msg: str) -> Payload:
    return Payload(err=ProtocolError("protocol error: " + msg))


def _read_line(stream: BinaryIO) -> bytes:
    line = stream.readline()
    if not line.endswith(b"\n"):
        raise _EndOfStream(unexpected=False)
    return line


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if size > 0 and not data:
        raise _EndOfStream(unexpected=False)
    if len(data) < size:
        raise _EndOfStream(unexpected=True)
    return data


def _parse_bulk(header: bytes, stream: BinaryIO) -> Payload:
    length = _parse_int(header[1:])
    if length is None or length < -1:
        return _protocol_error("illegal bulk string header: " + _text(header))
    if length == -1:
        return Payload(data=NullBulkReply())
    body = _read_exact(stream, length + 2)
    return Payload(data=BulkReply(body[:-2]))


def _parse_rdb_bulk(stream: BinaryIO) -> Payload:
    # The RDB body is not followed by CRLF, so it is read by its exact length.
    header = stream.readline()
    if header.endswith(b"\r\n"):
        header = header[:-2]
    if not header:
        raise ProtocolError("empty header")
    length = _parse_int(header[1:])
    if length is None or length <= 0:
        raise ProtocolError("illegal bulk header: " + _text(header))
    return Payload(data=BulkReply(_read_exact(stream, length)))


def _parse_array(header: bytes, stream: BinaryIO) -> Iterator[Payload]:
    count = _parse_int(header[1:])
    if count is None or count < 0:
        yield _protocol_error("illegal array header " + _text(header[1:]))
        return
    if count == 0:
        yield Payload(data=EmptyMultiBulkReply())
        return
    items: list[bytes | None] = []
    for _ in range(count):
        line = _read_line(stream)
        if len(line) < 4 or line[-2:-1] != b"\r" or line[:1] != b"$":
            yield _protocol_error("illegal bulk string header " + _text(line))
            break
        length = _parse_int(line[1:-2])
        if length is None or length < -1:
            yield _protocol_error("illegal bulk string length " + _text(line))
            break
        if length == -1:
            items.append(b"")
        else:
            items.append(_read_exact(stream, length + 2)[:-2])
    yield Payload(data=MultiBulkReply(items))


def _parse(stream: BinaryIO) -> Iterator[Payload]:
    while True:
        line = _read_line(stream)
        if len(line) <= 2 or line[-2:-1] != b"\r":
            # Replication traffic may carry empty lines; skip them.
            continue
        line = line[:-2]
        kind = line[:1]
        if kind == b"+":
            content = _text(line[1:])
            yield Payload(data=StatusReply(content))
            if content.startswith("FULLRESYNC"):
                yield _parse_rdb_bulk(stream)
        elif kind == b"-":
            yield Payload(data=StandardErrReply(_text(line[1:])))
        elif kind == b":":
            value = _parse_int(line[1:])
            if value is None:
                yield _protocol_error("illegal number " + _text(line[1:]))
                continue
            yield Payload(data=IntReply(value))
        elif kind == b"$":
            yield _parse_bulk(line, stream)
        elif kind == b"*":
            yield from _parse_array(line, stream)
        else:
            yield Payload(data=MultiBulkReply(line.split(b" ")))


def parse_stream(stream: BinaryIO) -> Iterator[Payload]:
    """Yield payloads read from a binary stream until it ends.

    Protocol errors are yielded as payloads and parsing goes on. A stream
    cut off inside a reply yields an ``EOFError`` payload; a malformed
    replication header yields a ``ProtocolError`` payload; both end parsing.
    """
    try:
        yield from _parse(stream)
    except _EndOfStream as end:
        if end.unexpected:
            yield Payload(err=EOFError("unexpected EOF"))
    except ProtocolError as err:
        yield Payload(err=err)


def parse_bytes(data: bytes) -> list[Reply]:
    """Parse every reply in ``data``; raise the first error met."""
    results: list[Reply] = []
    for payload in parse_stream(io.BytesIO(data)):
        if payload.err is not None:
            raise payload.err
        if payload.data is not None:
            results.append(payload.data)
    return results


def parse_one(data: bytes) -> Reply:
    """Parse the first reply in ``data``; raise its error or EOFError if there is none."""
    payload = next(parse_stream(io.BytesIO(data)), None)
    if payload is None:
        raise EOFError("no protocol")
    if payload.err is not None:
        raise payload.err
    assert payload.data is not None
    return payload.data