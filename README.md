# respkit

Building blocks for writing a Redis-compatible server or client in Python:
the RESP wire protocol, a streaming parser, publish/subscribe, a threaded TCP
server loop, a pipelining client and a set of supporting utilities. It depends
on nothing outside the standard library and supports Python 3.10 and later.

## Modules

- `respkit.protocol`: reply types of the RESP protocol, each serialised with
  `to_bytes()`: `StatusReply`, `IntReply`, `BulkReply`, `MultiBulkReply`,
  `MultiRawReply`, `PongReply`, `OkReply`, `NullBulkReply`,
  `EmptyMultiBulkReply`, `NoReply`, `QueuedReply`, and the error replies
  `StandardErrReply`, `UnknownErrReply`, `ArgNumErrReply`, `SyntaxErrReply`,
  `WrongTypeErrReply` and `ProtocolErrReply` (all `ErrorReply`, whose
  `str()` is the message). `is_ok_reply` and `is_error_reply` test a reply's
  serialised form.
- `respkit.parser`: `parse_stream(stream)` yields `Payload` objects
  (`data` or `err`) from a binary stream. Malformed lines are yielded as
  `ProtocolError` payloads and parsing continues; a stream cut off inside a
  reply yields an `EOFError` payload. Inline text commands such as
  `set a a\r\n` become `MultiBulkReply`s. `parse_bytes(data)` returns every
  reply and raises the first error; `parse_one(data)` returns the first reply
  and raises `EOFError` when there is none.
- `respkit.connection`: `Connection` wraps a client socket and keeps its
  subscriptions, transaction queue and watched keys, `password` and
  `db_index`. `FakeConn` is an in-memory connection whose writes can be read
  back with `read()` or `getvalue()` and discarded with `clean()`.
- `respkit.pubsub`: `Hub` with `subscribe`, `unsubscribe`, `unsubscribe_all`
  and `publish`; confirmations and messages are written to the connections
  as RESP arrays. `make_msg` builds a (un)subscribe confirmation.
- `respkit.tcpserver`: `listen_and_serve(listener, handler, close_event)`
  accepts connections, hands each to `handler.handle(conn)` on its own thread,
  and on shutdown closes the listener and calls `handler.close()`.
  `listen_and_serve_with_signal(config, handler)` binds `Config.address`
  (`"host:port"`) and serves until SIGHUP, SIGQUIT, SIGTERM or SIGINT.
  `EchoHandler` sends every received line back.
- `respkit.client`: `Client(addr)` connects to `"host:port"`; after
  `start()`, `send(args)` pipelines a command and returns its reply, or a
  `StandardErrReply` of `"client closed"`, `"server time out"` (3 seconds) or
  `"request failed"`. It pings every 10 seconds and reconnects up to three
  times when the connection drops.
- `respkit.pool`: `Pool(factory, finalizer, PoolConfig(max_idle, max_active))`
  with `get`, `put` and `close`; usable as a context manager. `get` waits when
  the active limit is reached and raises `PoolClosedError` once closed.
- `respkit.timewheel`: `TimeWheel(interval, slot_num)` runs jobs after a
  delay given in seconds or as a `timedelta`; a job with the same non-empty
  key replaces the earlier one. `delay`, `at` and `cancel` use a shared
  one-second, 3600-slot wheel.
- `respkit.syncwait`: `Wait`, a counter whose `wait_with_timeout` returns
  `True` when it timed out.
- `respkit.wildcard`: `compile_pattern(src)` turns a glob pattern
  (`*`, `?`, `[...]`, `[^...]`, `\` escapes) into a `Pattern` with
  `is_match`; raises `ValueError` on a malformed pattern.
- `respkit.consistenthash`: `HashRing(replicas, hash_func)` with `add_node`
  and `pick_node`; CRC-32 by default, and `{tag}` hash tags via
  `get_partition_key`.
- `respkit.geohash`: 64-bit geohash `encode`/`decode`, `to_string`,
  `to_int`, `from_int`, `distance` in metres and `get_neighbours`, the code
  ranges of the nine cells around a point for a search radius.
- `respkit.idgenerator`: `IDGenerator(node).next_id()` gives unique,
  increasing snowflake-style IDs.
- `respkit.logger`: `debug`, `info`, `warn`, `error`, `errorf` and `fatal`
  log to standard output; `setup(Settings(...))` also writes to a dated file
  and returns its path. `fatal` exits with status 1.
- `respkit.utils`: `to_cmd_line`, `to_cmd_line2`, `to_cmd_line3`, `equals`,
  `bytes_equals` and `convert_range` (inclusive Redis indexes to a half-open
  range, `(-1, -1)` when empty).

## Examples

Parsing and producing RESP:

```python
from respkit.parser import parse_bytes

replies = parse_bytes(b":1\r\n+OK\r\n*2\r\n$1\r\na\r\n$1\r\nb\r\n")
for reply in replies:
    print(reply.to_bytes())
```

Matching keys against a pattern:

```python
from respkit.wildcard import compile_pattern

pattern = compile_pattern("h[a-c]llo")
pattern.is_match("hallo")   # True
pattern.is_match("hello")   # False
```

Choosing a node for a key:

```python
from respkit.consistenthash import HashRing

ring = HashRing(3, None)
ring.add_node("a", "b", "c", "d")
ring.pick_node("user:{42}:name")
```

Geohashes:

```python
from respkit import geohash

code = geohash.encode(48.669, -4.32913)
geohash.to_string(geohash.from_int(code))   # "gbsuv7zt7zntw"
latitude, longitude = geohash.decode(code)
```

Publishing to subscribers:

```python
from respkit.connection import FakeConn
from respkit.pubsub import Hub
from respkit.utils import to_cmd_line

hub = Hub()
conn = FakeConn()
hub.subscribe(conn, to_cmd_line("news"))
conn.clean()
hub.publish(to_cmd_line("news", "hello"))
conn.getvalue()   # the RESP "message" array sent to the subscriber
```

Serving lines over TCP:

```python
import socket
import threading

from respkit.tcpserver import EchoHandler, listen_and_serve

listener = socket.create_server(("127.0.0.1", 0))
stop = threading.Event()
threading.Thread(target=listen_and_serve, args=(listener, EchoHandler(), stop)).start()
# ... connect and exchange lines, then:
stop.set()
```

## What it does not do

respkit provides the pieces around a key-value server, not the server itself.
It has no key-value storage, no command execution (GET, SET and the like),
no persistence to disk, no clustering and no configuration file loading, and
it installs no command. The only handler it ships for `listen_and_serve` is
`EchoHandler`; to serve RESP commands, write a handler with `handle(conn)`
and `close()` that parses requests with `respkit.parser` and answers with
`respkit.protocol` replies.

## Tests

The test suite uses pytest and lives in `tests/`:

```
pip install -e ".[test]"
pytest
```