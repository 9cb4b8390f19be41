"""Client connections: a socket-backed one and an in-memory one for tests."""

from __future__ import annotations

import socket
import threading
from typing import Any

from respkit import logger
from respkit.syncwait import Wait

CLOSE_TIMEOUT = 10.0


def _format_addr(addr: Any) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        return f"{addr[0]}:{addr[1]}"
    if isinstance(addr, bytes):
        return addr.decode("utf-8", "surrogateescape")
    return str(addr)


class Connection:
    """State of one client: subscriptions, transaction queue, password and database."""

    def __init__(self, sock: socket.socket | None) -> None:
        self._sock = sock
        self._sending = Wait()
        self._lock = threading.Lock()
        self._subs: set[str] = set()
        self._multi = False
        self._queue: list[list[bytes]] = []
        self._watching: dict[str, int] = {}
        self._tx_errors: list[Exception] = []
        self.password = ""
        self.db_index = 0
        self.slave = False
        self.master = False

    def remote_addr(self) -> Any:
        """Return the remote address of the socket."""
        if self._sock is None:
            raise OSError("connection has no socket")
        return self._sock.getpeername()

    def name(self) -> str:
        """Return the remote address as text, or '' without a socket."""
        if self._sock is None:
            return ""
        return _format_addr(self.remote_addr())

    def write(self, data: bytes) -> int:
        """Send all of ``data`` to the client; return the number of bytes sent."""
        if not data:
            return 0
        if self._sock is None:
            raise OSError("connection has no socket")
        self._sending.add(1)
        try:
            self._sock.sendall(data)
        finally:
            self._sending.done()
        return len(data)

    def close(self) -> None:
        """Wait briefly for pending writes, close the socket and reset the state."""
        if self._sending.wait_with_timeout(CLOSE_TIMEOUT):
            logger.warn("timed out waiting for pending writes")
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
        with self._lock:
            self._subs.clear()
        self.password = ""
        self._queue = []
        self._watching = {}
        self._tx_errors = []
        self.db_index = 0

    def subscribe(self, channel: str) -> None:
        """Record a subscription to ``channel``."""
        with self._lock:
            self._subs.add(channel)

    def unsubscribe(self, channel: str) -> None:
        """Forget a subscription to ``channel``."""
        with self._lock:
            self._subs.discard(channel)

    def subs_count(self) -> int:
        """Return the number of subscribed channels."""
        with self._lock:
            return len(self._subs)

    def channels(self) -> list[str]:
        """Return the subscribed channels."""
        with self._lock:
            return list(self._subs)

    @property
    def in_multi_state(self) -> bool:
        """Whether the connection is inside an uncommitted transaction."""
        return self._multi

    def set_multi_state(self, state: bool) -> None:
        """Enter or leave a transaction; leaving drops the queue and watched keys."""
        if not state:
            self._watching = {}
            self._queue = []
        self._multi = state

    @property
    def queued_cmd_lines(self) -> list[list[bytes]]:
        """Commands queued in the current transaction."""
        return self._queue

    def enqueue_cmd(self, cmd_line: list[bytes]) -> None:
        """Queue a command of the current transaction."""
        self._queue.append(cmd_line)

    def clear_queued_cmds(self) -> None:
        """Drop the commands queued in the current transaction."""
        self._queue = []

    @property
    def tx_errors(self) -> list[Exception]:
        """Syntax errors met within the current transaction."""
        return self._tx_errors

    def add_tx_error(self, err: Exception) -> None:
        """Record a syntax error within the current transaction."""
        self._tx_errors.append(err)

    def watching(self) -> dict[str, int]:
        """Return the watched keys and their versions when watching began."""
        return self._watching


class FakeConn(Connection):
    """A connection whose writes go to an in-memory buffer that can be read back."""

    def __init__(self) -> None:
        super().__init__(None)
        self._buf = bytearray()
        self._offset = 0
        self._closed = False
        self._cond = threading.Condition()

    def write(self, data: bytes) -> int:
        """Append ``data`` to the buffer; raise EOFError once closed."""
        if self._closed:
            raise EOFError("connection closed")
        with self._cond:
            self._buf += data
            self._cond.notify_all()
        return len(data)

    def read(self, size: int = -1) -> bytes:
        """Return up to ``size`` unread bytes, blocking until some arrive.

        Returns b"" once the connection is closed and nothing is left to read.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._closed or self._offset < len(self._buf))
            end = len(self._buf) if size < 0 else min(len(self._buf), self._offset + size)
            data = bytes(self._buf[self._offset : end])
            self._offset = end
            return data

    def clean(self) -> None:
        """Discard everything written so far."""
        with self._cond:
            self._buf = bytearray()
            self._offset = 0

    def getvalue(self) -> bytes:
        """Return everything written since the last clean."""
        with self._cond:
            return bytes(self._buf)

    def close(self) -> None:
        """Mark the connection closed and wake any reader."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()