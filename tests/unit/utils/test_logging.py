"""Tests for logging utility."""

import logging
from io import StringIO

from job_tracker.utils.logging import configure_logging, reset_logging


class TestLoggerConfiguration:
    """Test that logger configures correctly."""

    def test_configure_logging_returns_package_logger(self):
        logger = configure_logging()
        assert logger.name == "job_tracker"
        assert logger.propagate is False

    def test_configure_logging_respects_level(self):
        logger = configure_logging(level="debug")
        assert logger.level == logging.DEBUG

        logger = configure_logging(level="WARNING")
        assert logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        assert configure_logging().level == logging.INFO
        assert configure_logging(level="chatty").level == logging.INFO

    def test_configure_logging_is_idempotent(self):
        """Reconfiguring should not add duplicate handlers."""
        configure_logging()
        logger = configure_logging(level="ERROR")

        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.ERROR

    def test_reset_removes_handler(self):
        configure_logging()
        reset_logging()

        logger = logging.getLogger("job_tracker")
        assert logger.handlers == []
        assert logger.propagate is True


class TestHttpLoggers:
    """Test that per-request HTTP logging stays quiet."""

    def test_http_loggers_held_at_warning(self):
        configure_logging(level="INFO")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_http_loggers_follow_debug(self):
        configure_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.DEBUG


class TestLogOutput:
    """Test that log output format is correct."""

    def test_module_loggers_share_the_handler(self):
        """Loggers named after package modules reach the application handler."""
        buffer = StringIO()
        configure_logging(level="INFO", stream=buffer)

        logging.getLogger("job_tracker.tracker.coordinator").warning("API unavailable")
        logging.getLogger("job_tracker.tracker.cache").debug("hidden")

        output = buffer.getvalue()
        assert "WARNING" in output
        assert "job_tracker.tracker.coordinator: API unavailable" in output
        assert "hidden" not in output
