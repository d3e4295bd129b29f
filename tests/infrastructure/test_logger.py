#!/usr/bin/env python3
"""Tests for the structured Logger."""

import logging
import logging.handlers
import threading
from unittest.mock import MagicMock

import pytest

from compositefs.infrastructure import logger as logger_module
from compositefs.infrastructure.logger import (
    LogLevel,
    Logger,
    configure_logging,
    get_logger,
    set_global_logger,
)


@pytest.fixture
def logger_with_mock_handler():
    """Create logger with mock handler."""
    logger = Logger(name="test.compositefs", level=LogLevel.DEBUG)
    mock_handler = MagicMock(spec=logging.Handler)
    mock_handler.level = logging.DEBUG
    logger.logger.handlers.clear()
    logger.logger.addHandler(mock_handler)
    return logger, mock_handler


@pytest.fixture
def isolated_registry(monkeypatch):
    """Give each test its own get_logger() registry and defaults."""
    monkeypatch.setattr(logger_module, "_loggers", {})
    monkeypatch.setattr(logger_module, "_default_level", LogLevel.INFO)
    monkeypatch.setattr(logger_module, "_default_log_file", None)


def message_of(mock_handler) -> str:
    return mock_handler.handle.call_args[0][0].getMessage()


class TestLogLevel:
    def test_log_levels(self):
        """Test log level values match Python logging."""
        assert LogLevel.DEBUG == logging.DEBUG
        assert LogLevel.INFO == logging.INFO
        assert LogLevel.WARNING == logging.WARNING
        assert LogLevel.ERROR == logging.ERROR
        assert LogLevel.CRITICAL == logging.CRITICAL


class TestLogger:
    """Tests for Logger class."""

    def test_logger_creation(self):
        logger = Logger(name="test", level=LogLevel.DEBUG)
        assert logger.name == "test"
        assert logger.get_level() == LogLevel.DEBUG
        assert not logger.logger.propagate

    def test_logger_with_string_level(self):
        """Test level names are case-insensitive."""
        assert Logger(name="test", level="warning").get_level() == LogLevel.WARNING

    def test_default_console_handler(self):
        logger = Logger(name="test")
        assert len(logger.logger.handlers) == 1
        assert isinstance(logger.logger.handlers[0], logging.StreamHandler)

    def test_custom_handlers(self):
        handler = logging.StreamHandler()
        logger = Logger(name="test", handlers=[handler])
        assert logger.logger.handlers == [handler]

    def test_add_remove_handler(self):
        logger = Logger(name="test")
        handler = logging.StreamHandler()

        logger.add_handler(handler)
        assert handler in logger.logger.handlers

        logger.remove_handler(handler)
        assert handler not in logger.logger.handlers

    def test_create_file_handler(self, temp_dir):
        handler = Logger(name="test").create_file_handler(
            temp_dir / "compositefs.log", max_bytes=1000, backup_count=3
        )
        try:
            assert isinstance(handler, logging.handlers.RotatingFileHandler)
            assert handler.maxBytes == 1000
            assert handler.backupCount == 3
        finally:
            handler.close()

    def test_is_enabled_for(self):
        logger = Logger(name="test", level=LogLevel.INFO)
        assert not logger.is_enabled_for(LogLevel.DEBUG)
        assert logger.is_enabled_for("INFO")
        assert logger.is_enabled_for(LogLevel.ERROR)


class TestLoggingMethods:
    """Tests for logging methods."""

    @pytest.mark.parametrize("method", ["debug", "info", "warning", "error"])
    def test_message_with_context(self, logger_with_mock_handler, method):
        logger, mock_handler = logger_with_mock_handler

        getattr(logger, method)("Resolved", path="a.txt", layer=1)

        mock_handler.handle.assert_called_once()
        assert message_of(mock_handler) == "Resolved | path=a.txt layer=1"

    def test_message_without_context(self, logger_with_mock_handler):
        logger, mock_handler = logger_with_mock_handler
        logger.info("Started")
        assert message_of(mock_handler) == "Started"

    def test_context_attached_to_record(self, logger_with_mock_handler):
        logger, mock_handler = logger_with_mock_handler
        logger.info("Resolved", layer=2)
        assert mock_handler.handle.call_args[0][0].context == {"layer": 2}

    def test_exception_logging(self, logger_with_mock_handler):
        logger, mock_handler = logger_with_mock_handler

        logger.exception("Layer crashed", ValueError("bad index"), layer=0)

        message = message_of(mock_handler)
        assert "exception_type=ValueError" in message
        assert "exception_message=bad index" in message
        assert "layer=0" in message

    def test_disabled_level(self, logger_with_mock_handler):
        logger, mock_handler = logger_with_mock_handler
        logger.set_level(LogLevel.WARNING)

        logger.debug("hidden")
        logger.info("hidden")

        mock_handler.handle.assert_not_called()


class TestContext:
    """Tests for add_context()."""

    def test_context_applies_inside_block(self, logger_with_mock_handler):
        logger, mock_handler = logger_with_mock_handler

        with logger.add_context(operation="open"):
            logger.info("Consulting layers", layer=0)

        assert message_of(mock_handler) == "Consulting layers | operation=open layer=0"

    def test_nested_context_and_cleanup(self, logger_with_mock_handler):
        logger, mock_handler = logger_with_mock_handler

        with logger.add_context(operation="open"):
            with logger.add_context(path="a.txt"):
                logger.info("inner")
                assert message_of(mock_handler) == "inner | operation=open path=a.txt"
            logger.info("outer")
            assert message_of(mock_handler) == "outer | operation=open"

        logger.info("after")
        assert message_of(mock_handler) == "after"

    def test_context_is_thread_local(self, logger_with_mock_handler):
        logger, mock_handler = logger_with_mock_handler
        messages = []

        def worker():
            logger.info("from thread")
            messages.append(message_of(mock_handler))

        with logger.add_context(operation="open"):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        assert messages == ["from thread"]


class TestSharedLoggers:
    """Tests for get_logger(), set_global_logger() and configure_logging()."""

    def test_get_logger_reuses_instance(self, isolated_registry):
        assert get_logger("compositefs.a") is get_logger("compositefs.a")
        assert get_logger("compositefs.a") is not get_logger("compositefs.b")

    def test_set_global_logger(self, isolated_registry):
        custom = Logger("compositefs.custom")
        set_global_logger(custom)
        assert get_logger("compositefs.custom") is custom

    def test_configure_logging_updates_existing(self, isolated_registry):
        existing = get_logger("compositefs.existing")

        configure_logging("DEBUG")

        assert existing.get_level() == LogLevel.DEBUG

    def test_configure_logging_applies_to_new_loggers(self, isolated_registry):
        configure_logging(LogLevel.WARNING)
        assert get_logger("compositefs.later").get_level() == LogLevel.WARNING

    def test_configure_logging_file(self, isolated_registry, temp_dir):
        log_file = temp_dir / "compositefs.log"
        existing = get_logger("compositefs.existing")

        configure_logging("INFO", str(log_file))
        later = get_logger("compositefs.later")
        existing.info("first")
        later.info("second")

        for logger in (existing, later):
            for handler in logger.logger.handlers:
                handler.flush()
                if isinstance(handler, logging.FileHandler):
                    logger.remove_handler(handler)
                    handler.close()

        content = log_file.read_text()
        assert "first" in content
        assert "second" in content
