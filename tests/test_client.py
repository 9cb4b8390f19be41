import socket
import threading
import time

import pytest

from respkit.client import Client
from respkit.parser import parse_stream
from respkit.protocol import (
    BulkReply,
    EmptyMultiBulkReply,
    IntReply,
    MultiBulkReply,
    NullBulkReply,
    OkReply,
    StandardErrReply,
    StatusReply,
    is_ok_reply,
)
from respkit.utils import convert_range, to_cmd_line


class _FakeServer:
    def __init__(self, respond=True):
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(0.1)
        self.addr = "127.0.0.1:%d" % self._listener.getsockname()[1]
        self._respond = respond
        self._strings = {}
        self._lists = {}
        self._conns = []
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        threading.Thread(target=self._accept_loop, daemon=True).start()

    def _accept_loop(self):
        while not self._stopped.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            conn.settimeout(None)
            with self._lock:
                self._conns.append(conn)
            threading.Thread(target=self._serve, args=(conn,), daemon=True).start()

    def _serve(self, conn):
        try:
            with conn.makefile("rb") as stream:
                for payload in parse_stream(stream):
                    if payload.err is not None:
                        return
                    reply = self._execute(payload.data.args)
                    if self._respond:
                        conn.sendall(reply.to_bytes())
        except (OSError, ValueError):
            pass

    def _execute(self, args):
        name = args[0].upper()
        with self._lock:
            if name == b"PING":
                return StatusReply("PONG")
            if name == b"SET":
                self._strings[args[1]] = args[2]
                return OkReply()
            if name == b"GET":
                value = self._strings.get(args[1])
                return NullBulkReply() if value is None else BulkReply(value)
            if name == b"DEL":
                count = 0
                for key in args[1:]:
                    found = self._strings.pop(key, None) is not None
                    found = self._lists.pop(key, None) is not None or found
                    count += found
                return IntReply(count)
            if name == b"RPUSH":
                items = self._lists.setdefault(args[1], [])
                items.extend(args[2:])
                return IntReply(len(items))
            if name == b"LRANGE":
                items = self._lists.get(args[1], [])
                start, end = convert_range(int(args[2]), int(args[3]), len(items))
                if start == -1:
                    return EmptyMultiBulkReply()
                return MultiBulkReply(items[start:end])
        return StandardErrReply("ERR unknown command")

    def drop_clients(self):
        with self._lock:
            conns, self._conns = self._conns, []
        for conn in conns:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            conn.close()

    def close(self):
        self._stopped.set()
        self._listener.close()
        self.drop_clients()


@pytest.fixture
def server():
    srv = _FakeServer()
    yield srv
    srv.close()


@pytest.fixture
def client(server):
    c = Client(server.addr)
    c.start()
    yield c
    c.close()


def test_commands(client):
    assert client.send([b"PING"]) == StatusReply("PONG")
    assert is_ok_reply(client.send([b"SET", b"a", b"a"]))
    assert client.send([b"GET", b"a"]) == BulkReply(b"a")
    assert client.send([b"DEL", b"a"]) == IntReply(1)
    assert client.send([b"GET", b"a"]) == NullBulkReply()
    client.send([b"DEL", b"arr"])
    assert client.send([b"RPUSH", b"arr", b"1", b"2", b"c"]) == IntReply(3)
    assert client.send([b"LRANGE", b"arr", b"0", b"-1"]) == MultiBulkReply([b"1", b"2", b"c"])


def test_send_after_close(client):
    client.close()
    reply = client.send(to_cmd_line("ping"))
    assert isinstance(reply, StandardErrReply)
    assert str(reply) == "client closed"


def test_send_before_start(server):
    c = Client(server.addr)
    try:
        assert str(c.send(to_cmd_line("ping"))) == "client closed"
    finally:
        c.close()


def test_close_twice_is_harmless(client):
    client.close()
    client.close()
    assert str(client.send([b"PING"])) == "client closed"


def test_concurrent_sends_keep_order(client):
    results = {}

    def worker(i):
        key = f"k{i}".encode()
        value = f"v{i}".encode()
        client.send([b"SET", key, value])
        results[i] = client.send([b"GET", key])

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    assert results == {i: BulkReply(f"v{i}".encode()) for i in range(8)}


def test_reconnect(server, client):
    assert client.send([b"PING"]).to_bytes() == b"+PONG\r\n"
    server.drop_clients()
    time.sleep(1)
    success = False
    for _ in range(3):
        if client.send([b"PING"]).to_bytes() == b"+PONG\r\n":
            success = True
            break
        time.sleep(0.5)
    assert success


def test_server_time_out():
    srv = _FakeServer(respond=False)
    c = Client(srv.addr)
    c.start()
    try:
        assert str(c.send([b"PING"])) == "server time out"
    finally:
        c.close()
        srv.close()


def test_connection_refused():
    probe = socket.create_server(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(OSError):
        Client(f"127.0.0.1:{port}")


def test_invalid_address():
    with pytest.raises(ValueError):
        Client("localhost")