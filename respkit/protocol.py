"""Reply types of the RESP wire protocol and their serialisation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

CRLF = b"\r\n"

PONG_BYTES = b"+PONG\r\n"
OK_BYTES = b"+OK\r\n"
NULL_BULK_BYTES = b"$-1\r\n"
EMPTY_MULTI_BULK_BYTES = b"*0\r\n"
NO_BYTES = b""
QUEUED_BYTES = b"+QUEUED\r\n"


def _enc(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _bulk(arg: bytes | None) -> bytes:
    if arg is None:
        return NULL_BULK_BYTES
    return b"$" + str(len(arg)).encode() + CRLF + bytes(arg) + CRLF


class Reply(ABC):
    """A value that can be sent over the wire."""

    @abstractmethod
    def to_bytes(self) -> bytes:
        """Serialise the reply to protocol bytes."""


@dataclass
class PongReply(Reply):
    """The ``+PONG`` status."""

    def to_bytes(self) -> bytes:
        return PONG_BYTES


@dataclass
class OkReply(Reply):
    """The ``+OK`` status."""

    def to_bytes(self) -> bytes:
        return OK_BYTES


@dataclass
class NullBulkReply(Reply):
    """A missing string."""

    def to_bytes(self) -> bytes:
        return NULL_BULK_BYTES


@dataclass
class EmptyMultiBulkReply(Reply):
    """An empty list."""

    def to_bytes(self) -> bytes:
        return EMPTY_MULTI_BULK_BYTES


@dataclass
class NoReply(Reply):
    """Nothing at all, for commands such as subscribe."""

    def to_bytes(self) -> bytes:
        return NO_BYTES


@dataclass
class QueuedReply(Reply):
    """The ``+QUEUED`` status of a command inside a transaction."""

    def to_bytes(self) -> bytes:
        return QUEUED_BYTES


@dataclass
class BulkReply(Reply):
    """A binary-safe string; ``None`` serialises as a null bulk."""

    arg: bytes | None

    def to_bytes(self) -> bytes:
        return _bulk(self.arg)


@dataclass
class MultiBulkReply(Reply):
    """A list of binary-safe strings; ``None`` items serialise as null bulks."""

    args: list[bytes | None] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        head = b"*" + str(len(self.args)).encode() + CRLF
        return head + b"".join(_bulk(arg) for arg in self.args)


@dataclass
class MultiRawReply(Reply):
    """A list of arbitrary replies."""

    replies: list[Reply] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        head = b"*" + str(len(self.replies)).encode() + CRLF
        return head + b"".join(reply.to_bytes() for reply in self.replies)


@dataclass
class StatusReply(Reply):
    """A simple status string."""

    status: str

    def to_bytes(self) -> bytes:
        return b"+" + _enc(self.status) + CRLF


@dataclass
class IntReply(Reply):
    """A 64-bit integer."""

    code: int

    def to_bytes(self) -> bytes:
        return b":" + str(self.code).encode() + CRLF


class ErrorReply(Reply):
    """A reply that reports an error; ``str()`` gives its message."""

    @abstractmethod
    def __str__(self) -> str:
        """Return the error message."""


@dataclass
class StandardErrReply(ErrorReply):
    """A server error with a free-form message."""

    status: str

    def to_bytes(self) -> bytes:
        return b"-" + _enc(self.status) + CRLF

    def __str__(self) -> str:
        return self.status


@dataclass
class UnknownErrReply(ErrorReply):
    """An unknown error."""

    def to_bytes(self) -> bytes:
        return b"-Err unknown\r\n"

    def __str__(self) -> str:
        return "Err unknown"


@dataclass
class ArgNumErrReply(ErrorReply):
    """Wrong number of arguments for a command."""

    cmd: str

    def to_bytes(self) -> bytes:
        return b"-" + _enc(str(self)) + CRLF

    def __str__(self) -> str:
        return f"ERR wrong number of arguments for '{self.cmd}' command"


@dataclass
class SyntaxErrReply(ErrorReply):
    """Unexpected arguments."""

    def to_bytes(self) -> bytes:
        return b"-Err syntax error\r\n"

    def __str__(self) -> str:
        return "Err syntax error"


@dataclass
class WrongTypeErrReply(ErrorReply):
    """An operation against a key holding the wrong kind of value."""

    def to_bytes(self) -> bytes:
        return b"-WRONGTYPE Operation against a key holding the wrong kind of value\r\n"

    def __str__(self) -> str:
        return "WRONGTYPE Operation against a key holding the wrong kind of value"


@dataclass
class ProtocolErrReply(ErrorReply):
    """An unexpected byte met while parsing a request."""

    msg: str

    def to_bytes(self) -> bytes:
        return b"-ERR Protocol error: '" + _enc(self.msg) + b"'\r\n"

    def __str__(self) -> str:
        return "ERR Protocol error: '" + self.msg


def is_ok_reply(reply: Reply) -> bool:
    """Return whether the reply serialises as ``+OK``."""
    return reply.to_bytes() == OK_BYTES


def is_error_reply(reply: Reply) -> bool:
    """Return whether the reply serialises as an error."""
    return reply.to_bytes().startswith(b"-")