"""Tests for the logging helpers."""

import logging

import pytest

from forma.utility.logger import AppLogger, ColorFormatter, SessionContextFilter


def _record(level=logging.INFO, msg="hello"):
    return logging.LogRecord("forma.test", level, __file__, 1, msg, None, None)


@pytest.mark.parametrize(
    "name, expected",
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("loud", logging.INFO)],
)
def test_level_from_name(name, expected):
    assert AppLogger.level_from_name(name) == expected


def test_records_outside_a_session_are_marked_as_such():
    record = _record()

    assert SessionContextFilter().filter(record) is True
    assert record.session == "-"


def test_bound_session_is_stamped_and_released():
    token = AppLogger.bind_session("0123456789abcdef")
    try:
        record = _record()
        SessionContextFilter().filter(record)
        assert record.session == "01234567"
    finally:
        AppLogger.unbind_session(token)

    record = _record()
    SessionContextFilter().filter(record)
    assert record.session == "-"


def test_console_format_carries_level_and_session():
    formatter = ColorFormatter("%(colored_levelname)s [%(session)s] %(message)s")
    record = _record(logging.WARNING, "careful")
    SessionContextFilter().filter(record)

    line = formatter.format(record)

    assert "WARNING:" in line
    assert line.endswith("[-] careful")
