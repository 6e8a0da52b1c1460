"""Tests for repo_observer.log handler setup."""

import logging

import pytest

from repo_observer.log import LoggingManager


@pytest.fixture
def logger_name():
    name = "repo_observer_test_logger"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True


def test_console_and_file_handlers(tmp_path, logger_name):
    log_file = tmp_path / "run.log"
    logger = LoggingManager(logger_name, log_level="DEBUG", log_file=str(log_file)).get_configured_logger()
    logger.info("hello from test")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert "hello from test" in log_file.read_text(encoding="utf-8")


def test_reconfiguring_does_not_duplicate_handlers(logger_name):
    LoggingManager(logger_name)
    logger = LoggingManager(logger_name).get_configured_logger()
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_level_from_environment(monkeypatch, logger_name):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    logger = LoggingManager(logger_name, console_output=False).get_configured_logger()
    assert logger.level == logging.WARNING
    assert logger.handlers == []
