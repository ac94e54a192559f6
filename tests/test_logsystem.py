"""Tests for templatefactory.logsystem."""

from __future__ import annotations

import logging

from templatefactory.logsystem import ENGINE_LOGGER_NAME, LoggingLogSystem, NullLogSystem


def test_null_log_system_accepts_messages():
    NullLogSystem().log(logging.ERROR, "dropped")


def test_logging_log_system_default_logger():
    assert LoggingLogSystem().logger.name == ENGINE_LOGGER_NAME


def test_logging_log_system_levels(caplog):
    log_system = LoggingLogSystem(logging.getLogger("myapp.templates"))
    with caplog.at_level(logging.DEBUG, logger="myapp.templates"):
        log_system.log(logging.INFO, "info message")
        log_system.log(logging.ERROR, "error with %s placeholders")
    records = [(r.name, r.levelno, r.getMessage()) for r in caplog.records]
    assert ("myapp.templates", logging.INFO, "info message") in records
    assert ("myapp.templates", logging.ERROR, "error with %s placeholders") in records
