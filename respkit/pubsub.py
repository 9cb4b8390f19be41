"""Publish/subscribe: channels, their subscribers and message delivery."""

from __future__ import annotations

import threading
from collections import defaultdict

from respkit.connection import Connection
from respkit.protocol import ArgNumErrReply, IntReply, MultiBulkReply, NoReply, Reply

SUBSCRIBE = "subscribe"
UNSUBSCRIBE = "unsubscribe"
MESSAGE = b"message"
UNSUBSCRIBE_NOTHING = b"*3\r\n$11\r\nunsubscribe\r\n$-1\n:0\r\n"


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _decode(data: bytes) -> str:
    return bytes(data).decode("utf-8", "surrogateescape")


def make_msg(kind: str, channel: str, code: int) -> bytes:
    """Build the (un)subscribe confirmation sent to a client."""
    kind_bytes = _encode(kind)
    channel_bytes = _encode(channel)
    return (
        b"*3\r\n$" + str(len(kind_bytes)).encode() + b"\r\n" + kind_bytes + b"\r\n"
        + b"$" + str(len(channel_bytes)).encode() + b"\r\n" + channel_bytes + b"\r\n"
        + b":" + str(code).encode() + b"\r\n"
    )


def _send(conn: Connection, data: bytes) -> None:
    try:
        conn.write(data)
    except (OSError, EOFError):
        pass


class Hub:
    """Holds every channel's subscribers and delivers published messages."""

    def __init__(self) -> None:
        self._subs: dict[str, list[Connection]] = defaultdict(list)
        self._lock = threading.RLock()

    def _subscribe(self, channel: str, conn: Connection) -> bool:
        conn.subscribe(channel)
        subscribers = self._subs[channel]
        if any(sub is conn for sub in subscribers):
            return False
        subscribers.append(conn)
        return True

    def _unsubscribe(self, channel: str, conn: Connection) -> bool:
        conn.unsubscribe(channel)
        subscribers = self._subs.get(channel)
        if subscribers is None:
            return False
        subscribers[:] = [sub for sub in subscribers if sub is not conn]
        if not subscribers:
            del self._subs[channel]
        return True

    def subscribe(self, conn: Connection, args: list[bytes]) -> Reply:
        """Subscribe ``conn`` to each channel in ``args``, confirming each new one."""
        with self._lock:
            for channel in map(_decode, args):
                if self._subscribe(channel, conn):
                    _send(conn, make_msg(SUBSCRIBE, channel, conn.subs_count()))
        return NoReply()

    def unsubscribe_all(self, conn: Connection) -> None:
        """Remove ``conn`` from every channel it subscribes to."""
        with self._lock:
            for channel in conn.channels():
                self._unsubscribe(channel, conn)

    def unsubscribe(self, conn: Connection, args: list[bytes]) -> Reply:
        """Unsubscribe ``conn`` from the given channels, or from all when none are given."""
        channels = [_decode(arg) for arg in args] if args else conn.channels()
        with self._lock:
            if not channels:
                _send(conn, UNSUBSCRIBE_NOTHING)
                return NoReply()
            for channel in channels:
                if self._unsubscribe(channel, conn):
                    _send(conn, make_msg(UNSUBSCRIBE, channel, conn.subs_count()))
        return NoReply()

    def publish(self, args: list[bytes]) -> Reply:
        """Send a message to a channel's subscribers; reply with their number."""
        if len(args) != 2:
            return ArgNumErrReply("publish")
        channel_bytes, message = bytes(args[0]), bytes(args[1])
        channel = _decode(channel_bytes)
        with self._lock:
            subscribers = self._subs.get(channel)
            if not subscribers:
                return IntReply(0)
            payload = MultiBulkReply([MESSAGE, channel_bytes, message]).to_bytes()
            for conn in subscribers:
                _send(conn, payload)
            return IntReply(len(subscribers))