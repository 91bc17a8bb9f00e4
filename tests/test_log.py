import re

import pytest

from nodewatch.levels import LogLevel
from nodewatch.log import Logger

LINE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[([DIWE])\] (.*)$")


def _lines(path):
    return path.read_text(encoding="utf-8").splitlines()


def test_init_creates_directories_and_writes(tmp_path):
    path = tmp_path / "logs" / "deep" / "app.log"
    logger = Logger()
    logger.enable_console_output(False)
    logger.init(path)
    logger.info("hello")
    logger.shutdown()

    lines = _lines(path)
    assert len(lines) == 1
    match = LINE.match(lines[0])
    assert match is not None
    assert match.groups() == ("I", "hello")


def test_level_letters(tmp_path):
    path = tmp_path / "app.log"
    logger = Logger()
    logger.enable_console_output(False)
    logger.init(path)
    logger.debug("a")
    logger.info("b")
    logger.warning("c")
    logger.error("d")
    logger.shutdown()

    letters = [LINE.match(line).group(1) for line in _lines(path)]
    assert letters == ["D", "I", "W", "E"]


def test_messages_below_level_are_dropped(tmp_path):
    path = tmp_path / "app.log"
    logger = Logger()
    logger.enable_console_output(False)
    logger.init(path)
    logger.set_level(LogLevel.WARNING)
    logger.debug("skip")
    logger.info("skip")
    logger.warning("keep-w")
    logger.error("keep-e")
    logger.shutdown()

    messages = [LINE.match(line).group(2) for line in _lines(path)]
    assert messages == ["keep-w", "keep-e"]


def test_uninitialised_logger_writes_nothing(capsys):
    logger = Logger()
    logger.info("nothing")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""
    assert logger.initialized is False


def test_console_routing(tmp_path, capsys):
    logger = Logger()
    logger.init(tmp_path / "app.log")
    logger.info("to-stdout")
    logger.error("to-stderr")
    logger.shutdown()

    captured = capsys.readouterr()
    assert "to-stdout" in captured.out
    assert "to-stdout" not in captured.err
    assert "to-stderr" in captured.err
    assert "to-stderr" not in captured.out


def test_console_can_be_disabled(tmp_path, capsys):
    logger = Logger()
    logger.enable_console_output(False)
    logger.init(tmp_path / "app.log")
    logger.error("quiet")
    logger.shutdown()

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_shutdown_stops_writing(tmp_path):
    path = tmp_path / "app.log"
    logger = Logger()
    logger.enable_console_output(False)
    logger.init(path)
    logger.info("first")
    logger.shutdown()
    logger.info("second")

    assert logger.initialized is False
    assert [LINE.match(line).group(2) for line in _lines(path)] == ["first"]


def test_init_appends_to_existing_file(tmp_path):
    path = tmp_path / "app.log"
    path.write_text("existing\n", encoding="utf-8")
    logger = Logger()
    logger.enable_console_output(False)
    logger.init(path)
    logger.info("new")
    logger.shutdown()

    lines = _lines(path)
    assert lines[0] == "existing"
    assert LINE.match(lines[1]).group(2) == "new"


def test_init_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    logger = Logger()
    with pytest.raises(OSError):
        logger.init(blocker / "app.log")
    assert logger.initialized is False


def test_context_manager_shuts_down(tmp_path):
    path = tmp_path / "app.log"
    with Logger() as logger:
        logger.enable_console_output(False)
        logger.init(path)
        logger.info("inside")
    assert logger.initialized is False
    assert len(_lines(path)) == 1