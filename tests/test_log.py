"""Tests for logging setup."""

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from shvar.log import BACKUP_LOG_FILES, MAX_LOG_BYTES, configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    configure_logging()


def test_stderr_by_default():
    """
    Given no log file
    When logging is configured
    Then a single stream handler is attached at the requested level
    """
    logger = configure_logging("info")
    assert logger.level == logging.INFO
    assert [type(h) for h in logger.handlers] == [logging.StreamHandler]


def test_reconfiguring_replaces_handler(tmp_path):
    """
    Given logging already configured for stderr
    When it is configured again with a file
    Then only the rotating file handler remains
    """
    configure_logging("DEBUG")
    logger = configure_logging("DEBUG", str(tmp_path / "logs" / "shvar.log"))

    (handler,) = logger.handlers
    assert isinstance(handler, RotatingFileHandler)
    assert handler.maxBytes == MAX_LOG_BYTES
    assert handler.backupCount == BACKUP_LOG_FILES


def test_events_are_written_as_json(tmp_path):
    """
    Given logging configured to a file at INFO
    When a module logs an event with fields
    Then the file holds one JSON object with the event, level and fields
    """
    log_file = tmp_path / "shvar.log"
    logger = configure_logging("INFO", str(log_file))

    get_logger("shvar.tests").info("file written", lines=3)
    get_logger("shvar.tests").debug("not shown")
    for handler in logger.handlers:
        handler.flush()

    (line,) = log_file.read_text().splitlines()
    event = json.loads(line)
    assert event["event"] == "file written"
    assert event["level"] == "info"
    assert event["lines"] == 3
    assert "timestamp" in event
