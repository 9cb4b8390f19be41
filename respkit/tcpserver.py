"""A threaded TCP server and an echo handler for checking that it works."""

from __future__ import annotations

import selectors
import signal
import socket
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

from respkit import logger
from respkit.syncwait import Wait

CLOSE_TIMEOUT = 10.0
_POLL_INTERVAL = 0.1
_STOP_SIGNALS = ("SIGHUP", "SIGQUIT", "SIGTERM", "SIGINT")


class _Handler(Protocol):
    def handle(self, conn: socket.socket) -> None: ...

    def close(self) -> None: ...


@dataclass
class Config:
    """Properties of the TCP server."""

    address: str
    max_connect: int = 0
    timeout: float = 0.0


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {address!r}")
    return host.strip("[]"), int(port)


@dataclass(eq=False)
class _EchoClient:
    conn: socket.socket
    waiting: Wait = field(default_factory=Wait)

    def close(self) -> None:
        self.waiting.wait_with_timeout(CLOSE_TIMEOUT)
        try:
            self.conn.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.conn.close()


class EchoHandler:
    """Sends every received line back to the client."""

    def __init__(self) -> None:
        self._active: set[_EchoClient] = set()
        self._lock = threading.Lock()
        self._closing = threading.Event()

    def handle(self, conn: socket.socket) -> None:
        """Echo lines on ``conn`` until the client goes away or the handler closes."""
        if self._closing.is_set():
            conn.close()
            return
        client = _EchoClient(conn)
        with self._lock:
            self._active.add(client)
        try:
            with conn.makefile("rb") as reader:
                while True:
                    line = reader.readline()
                    if not line.endswith(b"\n"):
                        logger.info("connection close")
                        return
                    client.waiting.add(1)
                    try:
                        conn.sendall(line)
                    finally:
                        client.waiting.done()
        except (OSError, ValueError) as err:
            logger.warn(err)
        finally:
            with self._lock:
                self._active.discard(client)
            conn.close()

    def close(self) -> None:
        """Refuse new connections and close the active ones."""
        logger.info("handler shutting down...")
        self._closing.set()
        with self._lock:
            clients = list(self._active)
        for client in clients:
            client.close()


def _serve(handler: _Handler, conn: socket.socket) -> None:
    try:
        handler.handle(conn)
    except Exception as err:
        logger.error(err)


def listen_and_serve(
    listener: socket.socket, handler: _Handler, close_event: threading.Event
) -> None:
    """Accept connections on ``listener`` until ``close_event`` is set or accepting fails.

    Each connection is handled on its own thread; on shutdown the listener and
    the handler are closed and the call returns once every connection is done.
    """
    threads: list[threading.Thread] = []
    with selectors.DefaultSelector() as selector:
        selector.register(listener, selectors.EVENT_READ)
        while not close_event.is_set():
            if not selector.select(timeout=_POLL_INTERVAL):
                continue
            try:
                conn, _ = listener.accept()
            except BlockingIOError:
                continue
            except OSError as err:
                logger.info(f"accept error: {err}")
                break
            logger.info("accept link")
            thread = threading.Thread(target=_serve, args=(handler, conn), daemon=True)
            thread.start()
            threads = [t for t in threads if t.is_alive()]
            threads.append(thread)
        else:
            logger.info("get exit signal")
    logger.info("shutting down...")
    listener.close()
    handler.close()
    for thread in threads:
        thread.join()


def _install_signal_handlers(close_event: threading.Event) -> dict[int, Any]:
    if threading.current_thread() is not threading.main_thread():
        return {}

    def on_signal(signum: int, frame: Any) -> None:
        close_event.set()

    previous: dict[int, Any] = {}
    for name in _STOP_SIGNALS:
        sig = getattr(signal, name, None)
        if sig is not None:
            previous[sig] = signal.signal(sig, on_signal)
    return previous


def listen_and_serve_with_signal(config: Config, handler: _Handler) -> None:
    """Bind the configured address and serve until a stop signal arrives.

    Raises ValueError for a malformed address and OSError when binding fails.
    """
    host, port = _split_address(config.address)
    listener = socket.create_server((host, port))
    logger.info(f"bind: {config.address}, start listening...")
    close_event = threading.Event()
    previous = _install_signal_handlers(close_event)
    try:
        listen_and_serve(listener, handler, close_event)
    finally:
        for sig, old in previous.items():
            if old is not None:
                signal.signal(sig, old)