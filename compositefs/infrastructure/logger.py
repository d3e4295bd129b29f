#!/usr/bin/env python3
"""Structured logging for CompositeFS.

This module wraps the standard logging module with:
- Key-value context attached to each message
- Thread-local context stacks (safe for concurrent composite callers)
- Console and rotating file handlers

Example:
    >>> logger = Logger("compositefs.cli", level=LogLevel.INFO)
    >>> logger.info("Resolved path", path="views/home.html", layer=0)
    >>> with logger.add_context(operation="open"):
    ...     logger.debug("Consulting layers")
"""

import logging
import logging.handlers
import threading
from contextlib import contextmanager
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogLevel(IntEnum):
    """Log levels matching Python's logging module."""

    DEBUG = logging.DEBUG  # 10
    INFO = logging.INFO  # 20
    WARNING = logging.WARNING  # 30
    ERROR = logging.ERROR  # 40
    CRITICAL = logging.CRITICAL  # 50


def _coerce_level(level: Union[LogLevel, str, int]) -> LogLevel:
    if isinstance(level, str):
        return LogLevel[level.upper()]
    return LogLevel(level)


class Logger:
    """Structured logger with context support.

    Context passed as keyword arguments, or pushed with add_context(), is
    rendered after the message as "key=value" pairs.
    """

    _local = threading.local()

    def __init__(
        self,
        name: str = "compositefs",
        level: Union[LogLevel, str] = LogLevel.INFO,
        handlers: Optional[List[logging.Handler]] = None,
    ):
        """Initialize logger.

        Args:
            name: Logger name for identification
            level: Minimum log level to output
            handlers: Optional list of logging handlers (console if None)
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.set_level(level)

        if handlers is None:
            handlers = [self._create_console_handler()]

        self.logger.handlers.clear()
        for handler in handlers:
            self.logger.addHandler(handler)

        self.logger.propagate = False

    def _create_console_handler(self) -> logging.StreamHandler:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT))
        return handler

    def create_file_handler(
        self,
        filename: Union[str, Path],
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
    ) -> logging.handlers.RotatingFileHandler:
        """Create a rotating file handler.

        Args:
            filename: Path to log file
            max_bytes: Maximum size before rotation
            backup_count: Number of backup files to keep

        Returns:
            Configured rotating file handler
        """
        handler = logging.handlers.RotatingFileHandler(
            filename, maxBytes=max_bytes, backupCount=backup_count
        )
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT))
        return handler

    def add_handler(self, handler: logging.Handler) -> None:
        self.logger.addHandler(handler)

    def remove_handler(self, handler: logging.Handler) -> None:
        self.logger.removeHandler(handler)

    def set_level(self, level: Union[LogLevel, str]) -> None:
        """Set the minimum log level.

        Args:
            level: New log level (LogLevel or name such as "debug")
        """
        self.logger.setLevel(_coerce_level(level))

    def get_level(self) -> LogLevel:
        return LogLevel(self.logger.level)

    def is_enabled_for(self, level: Union[LogLevel, str]) -> bool:
        return self.logger.isEnabledFor(_coerce_level(level))

    def _stack(self) -> List[Dict[str, Any]]:
        if not hasattr(self._local, "stack"):
            self._local.stack = []
        return self._local.stack

    def _get_context(self) -> Dict[str, Any]:
        """Merge the thread-local context stack, innermost last."""
        context: Dict[str, Any] = {}
        for frame in self._stack():
            context.update(frame)
        return context

    def _format_message(self, msg: str, context: Dict[str, Any]) -> str:
        if context:
            ctx_str = " ".join(f"{k}={v}" for k, v in context.items())
            return f"{msg} | {ctx_str}"
        return msg

    @contextmanager
    def add_context(self, **kwargs):
        """Context manager to add temporary context.

        Args:
            **kwargs: Key-value pairs to add to context
        """
        stack = self._stack()
        stack.append(kwargs)
        try:
            yield
        finally:
            stack.pop()

    def _log(self, level: LogLevel, msg: str, context: Dict[str, Any], **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        combined = self._get_context()
        combined.update(context)
        self.logger.log(
            level, self._format_message(msg, combined), extra={"context": combined}, **kwargs
        )

    def debug(self, msg: str, **context) -> None:
        self._log(LogLevel.DEBUG, msg, context)

    def info(self, msg: str, **context) -> None:
        self._log(LogLevel.INFO, msg, context)

    def warning(self, msg: str, **context) -> None:
        self._log(LogLevel.WARNING, msg, context)

    def error(self, msg: str, **context) -> None:
        self._log(LogLevel.ERROR, msg, context)

    def exception(self, msg: str, exc: BaseException, **context) -> None:
        """Log an exception with its traceback.

        Args:
            msg: Log message
            exc: Exception to log
            **context: Additional context key-value pairs
        """
        context["exception_type"] = type(exc).__name__
        context["exception_message"] = str(exc)
        self._log(LogLevel.ERROR, msg, context, exc_info=exc)


# Loggers handed out by get_logger(), by name
_loggers: Dict[str, Logger] = {}
_loggers_lock = threading.Lock()

# Settings applied by configure_logging(), also used for loggers created later
_default_level: Union[LogLevel, str] = LogLevel.INFO
_default_log_file: Optional[str] = None


def get_logger(name: str = "compositefs") -> Logger:
    """Get or create the shared logger for a name.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    with _loggers_lock:
        if name not in _loggers:
            logger = Logger(name=name, level=_default_level)
            if _default_log_file:
                logger.add_handler(logger.create_file_handler(_default_log_file))
            _loggers[name] = logger
        return _loggers[name]


def set_global_logger(logger: Logger) -> None:
    """Register a logger so get_logger(logger.name) returns it."""
    with _loggers_lock:
        _loggers[logger.name] = logger


def configure_logging(
    level: Union[LogLevel, str] = LogLevel.INFO, log_file: Optional[str] = None
) -> None:
    """Apply a level (and optional log file) to every shared logger.

    Loggers created by get_logger() afterwards get the same settings.

    Args:
        level: Minimum log level
        log_file: Optional path of a rotating log file
    """
    global _default_level, _default_log_file

    with _loggers_lock:
        _default_level = level
        _default_log_file = log_file
        loggers = list(_loggers.values())

    for logger in loggers:
        logger.set_level(level)
        if log_file:
            logger.add_handler(logger.create_file_handler(log_file))
