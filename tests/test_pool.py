import queue
import threading
import time

import pytest

from respkit.pool import Pool, PoolClosedError, PoolConfig, PoolExhaustedError


class MockConn:
    def __init__(self):
        self.open = True


def _finalize(conn):
    conn.open = False


def test_pool():
    counter = {"conns": 0}

    def factory():
        counter["conns"] += 1
        return MockConn()

    def finalizer(conn):
        counter["conns"] -= 1
        conn.open = False

    cfg = PoolConfig(max_idle=20, max_active=40)
    pool = Pool(factory, finalizer, cfg)
    borrowed = [pool.get() for _ in range(cfg.max_active)]
    assert all(conn.open for conn in borrowed)
    for conn in borrowed:
        pool.put(conn)

    borrowed = [pool.get() for _ in range(cfg.max_active)]
    assert all(conn.open for conn in borrowed)
    for conn in borrowed[:-1]:
        pool.put(conn)
    pool.close()
    pool.close()  # closing twice is harmless
    pool.put(borrowed[-1])
    assert counter["conns"] == 0
    assert not any(conn.open for conn in borrowed)
    with pytest.raises(PoolClosedError):
        pool.get()


def test_pool_waiting():
    pool = Pool(MockConn, _finalize, PoolConfig(max_idle=2, max_active=4))
    borrowed = [pool.get() for _ in range(4)]
    assert all(conn.open for conn in borrowed)

    results = queue.Queue()
    worker = threading.Thread(target=lambda: results.put(pool.get()))
    worker.start()
    time.sleep(0.3)
    assert results.empty()
    pool.put(borrowed[0])
    got = results.get(timeout=5)
    worker.join(timeout=5)
    assert got is borrowed[0]
    assert got.open


def test_pool_create_err():
    state = {"fail": True}

    def factory():
        if state["fail"]:
            state["fail"] = False
            raise RuntimeError("mock err")
        return MockConn()

    pool = Pool(factory, _finalize, PoolConfig(max_idle=2, max_active=4))
    with pytest.raises(RuntimeError, match="mock err"):
        pool.get()
    conn = pool.get()
    pool.put(conn)
    assert pool.get() is conn


def test_failed_create_releases_slot():
    calls = {"n": 0}

    def factory():
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("mock err")
        return MockConn()

    pool = Pool(factory, _finalize, PoolConfig(max_idle=1, max_active=1))
    with pytest.raises(RuntimeError):
        pool.get()
    assert pool.get().open


def test_surplus_is_finalized():
    pool = Pool(MockConn, _finalize, PoolConfig(max_idle=1, max_active=3))
    first, second = pool.get(), pool.get()
    pool.put(first)
    pool.put(second)
    assert first.open
    assert not second.open
    assert pool.get() is first


def test_close_wakes_waiter():
    pool = Pool(MockConn, _finalize, PoolConfig(max_idle=1, max_active=1))
    assert pool.get().open
    closer = threading.Timer(0.2, pool.close)
    closer.start()
    with pytest.raises(PoolExhaustedError):
        pool.get()
    closer.join(timeout=5)
    with pytest.raises(PoolClosedError):
        pool.get()


def test_context_manager_closes():
    with Pool(MockConn, _finalize, PoolConfig(max_idle=2, max_active=2)) as pool:
        conn = pool.get()
        pool.put(conn)
    assert not conn.open
    with pytest.raises(PoolClosedError):
        pool.get()