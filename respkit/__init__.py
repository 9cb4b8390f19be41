"""Building blocks for a Redis-compatible server or client: RESP replies and parser, pub/sub, TCP serving and helpers."""

__version__ = "0.1.0"