"""A pipelining client that sends commands and matches replies in order."""

from __future__ import annotations

import queue
import socket
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from respkit import logger
from respkit.parser import parse_stream
from respkit.protocol import MultiBulkReply, Reply, StandardErrReply
from respkit.syncwait import Wait

CHAN_SIZE = 256
MAX_WAIT = 3.0
HEARTBEAT_INTERVAL = 10.0
RECONNECT_ATTEMPTS = 3


class _Status(Enum):
    CREATED = 0
    RUNNING = 1
    CLOSED = 2


@dataclass(eq=False)
class _Request:
    args: list[bytes]
    heartbeat: bool = False
    done: threading.Event = field(default_factory=threading.Event)
    reply: Reply | None = None
    err: BaseException | None = None


_STOP = object()


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {address!r}")
    return host.strip("[]") or "localhost", int(port)


def _shutdown(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()


class Client:
    """Sends commands over one connection, pipelined, with heartbeats and reconnection."""

    def __init__(self, addr: str) -> None:
        self.addr = addr
        self._endpoint = _split_address(addr)
        self._sock = socket.create_connection(self._endpoint)
        self._pending: queue.Queue[Any] = queue.Queue(CHAN_SIZE)
        self._waiting: queue.Queue[_Request] = queue.Queue(CHAN_SIZE)
        self._working = Wait()
        self._status = _Status.CREATED
        self._status_lock = threading.Lock()
        self._stop_heartbeat = threading.Event()

    @staticmethod
    def _spawn(target: Callable[..., Any], *args: Any) -> None:
        threading.Thread(target=target, args=args, daemon=True).start()

    def start(self) -> None:
        """Start the writer, reader and heartbeat threads."""
        self._spawn(self._handle_write)
        self._spawn(self._handle_read, self._sock)
        self._spawn(self._heartbeat)
        with self._status_lock:
            self._status = _Status.RUNNING

    def close(self) -> None:
        """Stop accepting requests, wait for those in flight and close the connection."""
        with self._status_lock:
            if self._status is _Status.CLOSED:
                return
            started = self._status is _Status.RUNNING
            self._status = _Status.CLOSED
        self._stop_heartbeat.set()
        if started:
            self._pending.put(_STOP)
        self._working.wait()
        _shutdown(self._sock)
        self._fail_waiting("connection closed")

    def send(self, args: list[bytes]) -> Reply:
        """Send a command and return its reply, or an error reply on failure."""
        if self._status is not _Status.RUNNING:
            return StandardErrReply("client closed")
        request = _Request(args=list(args))
        self._working.add(1)
        try:
            self._pending.put(request)
            if not request.done.wait(MAX_WAIT):
                return StandardErrReply("server time out")
            if request.err is not None or request.reply is None:
                return StandardErrReply("request failed")
            return request.reply
        finally:
            self._working.done()

    def _do_heartbeat(self) -> None:
        request = _Request(args=[b"PING"], heartbeat=True)
        self._working.add(1)
        try:
            self._pending.put(request)
            request.done.wait(MAX_WAIT)
        finally:
            self._working.done()

    def _heartbeat(self) -> None:
        while not self._stop_heartbeat.wait(HEARTBEAT_INTERVAL):
            self._do_heartbeat()

    def _handle_write(self) -> None:
        while (request := self._pending.get()) is not _STOP:
            self._do_request(request)

    def _do_request(self, request: _Request) -> None:
        if not request.args:
            request.err = ValueError("empty command")
            request.done.set()
            return
        data = MultiBulkReply(request.args).to_bytes()
        err: BaseException | None = None
        for _ in range(3):  # only timeouts are retried
            try:
                self._sock.sendall(data)
                err = None
                break
            except TimeoutError as exc:
                err = exc
            except OSError as exc:
                err = exc
                break
        if err is None:
            self._waiting.put(request)
        else:
            request.err = err
            request.done.set()

    def _finish_request(self, reply: Reply | None) -> None:
        try:
            request = self._waiting.get(timeout=MAX_WAIT)
        except queue.Empty:
            logger.error("received a reply without a pending request")
            return
        request.reply = reply
        request.done.set()

    def _handle_read(self, sock: socket.socket) -> None:
        try:
            with sock.makefile("rb") as stream:
                for payload in parse_stream(stream):
                    if payload.err is not None:
                        break
                    self._finish_request(payload.data)
        except (OSError, ValueError):
            pass
        if self._status is _Status.CLOSED or sock is not self._sock:
            return
        self._reconnect()

    def _fail_waiting(self, message: str) -> None:
        while True:
            try:
                request = self._waiting.get_nowait()
            except queue.Empty:
                return
            request.err = ConnectionError(message)
            request.done.set()

    def _reconnect(self) -> None:
        logger.info("reconnect with: " + self.addr)
        _shutdown(self._sock)
        sock: socket.socket | None = None
        for _ in range(RECONNECT_ATTEMPTS):
            try:
                sock = socket.create_connection(self._endpoint)
                break
            except OSError as err:
                logger.error(f"reconnect error: {err}")
                time.sleep(1)
        if sock is None:
            self.close()
            return
        self._sock = sock
        self._fail_waiting("connection closed")
        self._spawn(self._handle_read, sock)