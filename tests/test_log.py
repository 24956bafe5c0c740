import re

import pytest

from slscore import log as logmod
from slscore.log import Logger, LogLevel, get_logger

LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}:\d{3} SLS (\w+): (.*)\n$")


def test_level_order_is_fixed(capsys):
    names = ["FATAL", "ERROR", "WARNING", "INFO", "DEBUG", "TRACE"]
    logger = Logger(LogLevel.TRACE)
    for number, name in enumerate(names):
        line = logger.log(number, "x")
        match = LINE_RE.match(line)
        assert match is not None
        assert match.group(1) == name
    capsys.readouterr()


def test_line_format(capsys):
    logger = Logger()
    line = logger.log(LogLevel.INFO, "hello")
    match = LINE_RE.match(line)
    assert match is not None
    assert match.group(1) == "INFO"
    assert match.group(2) == "hello"
    assert capsys.readouterr().out == line


def test_messages_above_level_are_dropped(capsys):
    logger = Logger(LogLevel.WARNING)
    assert logger.log(LogLevel.INFO, "quiet") is None
    assert capsys.readouterr().out == ""
    assert logger.log(LogLevel.ERROR, "loud").endswith("SLS ERROR: loud\n")


def test_int_level_accepted():
    logger = Logger(LogLevel.TRACE)
    line = logger.log(5, "deep")
    assert "SLS TRACE: deep" in line


def test_set_level_by_name_case_insensitive(capsys):
    logger = Logger()
    assert logger.set_level("debug") == LogLevel.DEBUG
    assert logger.level == LogLevel.DEBUG
    assert "set log level='DEBUG'" in capsys.readouterr().out


def test_wrong_level_keeps_current(capsys):
    logger = Logger(LogLevel.ERROR)
    assert logger.set_level("verbose") == LogLevel.ERROR
    out = capsys.readouterr().out
    assert "wrong log level 'VERBOSE'" in out
    assert "'ERROR'" in out


def test_log_file_appends_and_first_wins(tmp_path):
    first = tmp_path / "a.log"
    second = tmp_path / "b.log"
    logger = Logger()
    logger.set_log_file(str(first))
    logger.set_log_file(str(second))
    logger.log(LogLevel.INFO, "one")
    logger.log(LogLevel.INFO, "two")
    logger.close()
    lines = first.read_text(encoding="utf-8").splitlines()
    assert [line.split(": ", 1)[1] for line in lines] == ["one", "two"]
    assert not second.exists()


def test_invalid_level_raises():
    with pytest.raises(ValueError):
        Logger().log(9, "nope")


def test_module_functions_use_singleton():
    logger = get_logger()
    assert get_logger() is logger
    previous = logger.level.name
    try:
        assert logmod.set_log_level("fatal") == LogLevel.FATAL
        assert logmod.log(LogLevel.INFO, "hidden") is None
        assert "SLS FATAL: shown" in logmod.log(LogLevel.FATAL, "shown")
    finally:
        logger.set_level(previous)