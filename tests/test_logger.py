import time
from datetime import datetime, timedelta

import pytest

from respkit import logger
from respkit.logger import Settings


@pytest.mark.parametrize(
    "func, flag",
    [
        (logger.debug, "DEBUG"),
        (logger.info, "INFO"),
        (logger.warn, "WARN"),
        (logger.error, "ERROR"),
    ],
)
def test_level_prefix_and_message(capsys, func, flag):
    func("hello", 42)
    out = capsys.readouterr().out
    assert out.startswith(f"[{flag}][test_logger.py:")
    assert out.endswith(" hello 42\n")


def test_line_carries_timestamp(capsys):
    logger.info("stamp")
    out = capsys.readouterr().out
    prefix, rest = out.split("] ", 1)
    assert prefix.startswith("[INFO][test_logger.py:")
    assert prefix[len("[INFO][test_logger.py:"):].isdigit()
    stamp = datetime.strptime(rest[:19], "%Y/%m/%d %H:%M:%S")
    assert abs(datetime.now() - stamp) < timedelta(seconds=5)
    assert rest[19:] == " stamp\n"


def test_errorf_formats(capsys):
    logger.errorf("%s=%d", "x", 3)
    out = capsys.readouterr().out
    assert out.startswith("[ERROR]")
    assert out.endswith(" x=3\n")


def test_errorf_without_args_keeps_text(capsys):
    logger.errorf("100%")
    assert capsys.readouterr().out.endswith(" 100%\n")


def test_fatal_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        logger.fatal("boom")
    assert exc.value.code == 1
    out = capsys.readouterr().out
    assert out.startswith("[FATAL]")
    assert out.endswith(" boom\n")


def test_setup_writes_to_file(tmp_path, capsys):
    settings = Settings(path=str(tmp_path / "logs"), name="godis", ext="log", time_format="%Y-%m-%d")
    log_path = logger.setup(settings)
    assert log_path.name == f"godis-{time.strftime('%Y-%m-%d')}.log"
    logger.info("to file")
    out = capsys.readouterr().out
    assert out.endswith(" to file\n")
    content = log_path.read_text(encoding="utf-8")
    assert content == out


def test_setup_again_switches_file(tmp_path):
    first = logger.setup(Settings(path=str(tmp_path / "a"), name="godis"))
    second = logger.setup(Settings(path=str(tmp_path / "b"), name="godis"))
    logger.warn("second only")
    assert "second only" in second.read_text(encoding="utf-8")
    assert "second only" not in first.read_text(encoding="utf-8")


def test_setup_on_file_path_fails(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(OSError, match="make dir"):
        logger.setup(Settings(path=str(blocker), name="godis"))