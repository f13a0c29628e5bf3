"""
Structured logging configuration for the relay.

This module provides console and JSON logging with support for:
- Correlation ID tracking for HTTP requests
- Per-connection context (connection_id) for WebSocket sessions
- An optional JSON error log file
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any

from relay.settings import app_settings

# Context variable for storing task-specific logging context
log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

_RESERVED_RECORD_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
        "context_id",
    }
)


def get_correlation_id() -> str:
    """
    Get correlation ID from context, safe wrapper for logging.

    Returns:
        Correlation ID or empty string if not available.
    """
    from relay.middlewares.correlation_id import (
        get_correlation_id as _get_cid,
    )

    return _get_cid()


def set_log_context(**kwargs: Any) -> None:
    """
    Set contextual fields for structured logging.

    The context is copied before updating so a WebSocket session task
    never leaks its fields into another task's context.

    Args:
        **kwargs: Key-value pairs to add to log context.

    Example:
        >>> set_log_context(connection_id="3f2a9c1d")
        >>> logger.info("Client connected")  # Will include connection_id
    """
    log_context.set({**log_context.get(), **kwargs})


def get_log_context() -> dict[str, Any]:
    """
    Get current log context.

    Returns:
        Dictionary of contextual log fields.
    """
    return log_context.get()


def clear_log_context() -> None:
    """Clear the log context."""
    log_context.set({})


def get_context_id() -> str:
    """
    Id shown in the console column: the WebSocket connection id when a
    session is logging, otherwise the HTTP correlation id.
    """
    return str(get_log_context().get("connection_id") or get_correlation_id())


class StructuredJSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    This formatter outputs logs in JSON format with:
    - Standard fields: timestamp, level, logger, message
    - Correlation ID from request context
    - Additional contextual fields from log_context
    - Exception information when present
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_data["request_id"] = correlation_id

        context = get_log_context()
        if context:
            log_data.update(context)

        log_data["environment"] = app_settings.ENVIRONMENT

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for console output (non-JSON).

    Uses different format strings based on log level for better readability
    during development.
    """

    INFO_FMT = "%(asctime)s - [%(context_id)s] %(levelname)s: %(message)s"
    ERROR_FMT = "%(asctime)s - [%(context_id)s] %(levelname)s: %(module)s.%(funcName)s:%(lineno)d - %(message)s"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._formatters = {
            logging.INFO: logging.Formatter(
                self.INFO_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.WARNING: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.ERROR: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.DEBUG: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
        }

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record with the connection or correlation id.

        Args:
            record: The log record to format.

        Returns:
            Formatted log string.
        """
        record.context_id = get_context_id() or "-"

        formatter = self._formatters.get(
            record.levelno, self._formatters[logging.INFO]
        )
        return formatter.format(record)


def setup_logging() -> logging.Logger:
    """
    Configure the root logger.

    This function sets up:
    - Console handler, human-readable or JSON depending on LOG_FORMAT
    - File handler for errors (JSON format) when LOG_FILE_PATH is set

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper()))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    if app_settings.LOG_FORMAT == "json":
        console_handler.setFormatter(StructuredJSONFormatter())
    else:
        console_handler.setFormatter(HumanReadableFormatter())
    logger.addHandler(console_handler)

    if app_settings.LOG_FILE_PATH:
        try:
            file_handler = logging.FileHandler(app_settings.LOG_FILE_PATH)
        except OSError as e:
            logger.warning(f"Could not create file handler: {e}")
        else:
            file_handler.setLevel(logging.ERROR)
            file_handler.setFormatter(StructuredJSONFormatter())
            logger.addHandler(file_handler)

    # Disable logging during pytest runs
    if sys.argv[0].split("/")[-1] in ["pytest"]:
        logging.disable(logging.ERROR)

    return logger


# Create default logger instance
logger = setup_logging()
