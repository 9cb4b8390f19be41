"""Levelled logging to standard output and, after setup, to a dated log file."""

from __future__ import annotations

import logging
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
FATAL = logging.CRITICAL

_LEVEL_FLAGS = {
    DEBUG: "DEBUG",
    INFO: "INFO",
    WARNING: "WARN",
    ERROR: "ERROR",
    FATAL: "FATAL",
}

_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


@dataclass
class Settings:
    """Where and under which name the log file is written."""

    path: str = "logs"
    name: str = "respkit"
    ext: str = "log"
    time_format: str = "%Y-%m-%d"


class _Formatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(message)s", datefmt=_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        flag = _LEVEL_FLAGS.get(record.levelno, record.levelname)
        return f"[{flag}][{record.filename}:{record.lineno}] " + super().format(record)


class _StdoutHandler(logging.Handler):
    """Writes to whatever ``sys.stdout`` is at the time of each record."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stream = sys.stdout
            stream.write(self.format(record) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


_formatter = _Formatter()
_logger = logging.getLogger("respkit")
_logger.setLevel(DEBUG)
_logger.propagate = False
_stdout_handler = _StdoutHandler()
_stdout_handler.setFormatter(_formatter)
_logger.addHandler(_stdout_handler)

_setup_lock = threading.Lock()
_file_handler: logging.FileHandler | None = None


def _open_log_file(directory: Path, file_name: str) -> logging.FileHandler:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except PermissionError as err:
        raise PermissionError(f"permission denied dir: {directory}") from err
    except OSError as err:
        raise OSError(f"error during make dir {directory}, err: {err}") from err
    try:
        return logging.FileHandler(directory / file_name, mode="a", encoding="utf-8")
    except OSError as err:
        raise OSError(f"fail to open file, err: {err}") from err


def setup(settings: Settings) -> Path:
    """Send logs to a dated file as well as standard output; return the file's path.

    Raises OSError when the directory or the file cannot be created.
    """
    global _file_handler
    directory = Path(settings.path)
    file_name = f"{settings.name}-{time.strftime(settings.time_format)}.{settings.ext}"
    handler = _open_log_file(directory, file_name)
    handler.setFormatter(_formatter)
    with _setup_lock:
        previous, _file_handler = _file_handler, handler
        _logger.addHandler(handler)
        if previous is not None:
            _logger.removeHandler(previous)
            previous.close()
    return directory / file_name


def _emit(level: int, message: str) -> None:
    # stacklevel 3 points past this helper and the public function to their caller.
    _logger.log(level, message, stacklevel=3)


def _join(args: tuple[Any, ...]) -> str:
    return " ".join(str(arg) for arg in args)


def debug(*args: Any) -> None:
    """Log a debug message."""
    _emit(DEBUG, _join(args))


def info(*args: Any) -> None:
    """Log an informational message."""
    _emit(INFO, _join(args))


def warn(*args: Any) -> None:
    """Log a warning."""
    _emit(WARNING, _join(args))


def error(*args: Any) -> None:
    """Log an error."""
    _emit(ERROR, _join(args))


def errorf(fmt: str, *args: Any) -> None:
    """Log an error built from a %-style format string."""
    _emit(ERROR, fmt % args if args else fmt)


def fatal(*args: Any) -> NoReturn:
    """Log a fatal error, then exit with status 1."""
    _emit(FATAL, _join(args))
    raise SystemExit(1)