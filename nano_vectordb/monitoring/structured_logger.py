"""
Structured logging for the vector engine.

This module wraps structlog so every component logs key/value events with a
component name, timestamps and thread information, and provides an
operation logger that times engine operations such as load, save and delete.
"""

import json
import logging
import threading
import time
from enum import Enum
from typing import Optional

import structlog


class LogLevel(Enum):
    """Log levels for structured logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class TimestampProcessor:
    """Processor to add consistent timestamps."""

    def __call__(self, logger, method_name, event_dict):
        event_dict["timestamp"] = time.time()
        event_dict["timestamp_iso"] = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        return event_dict


class ComponentProcessor:
    """Processor to add component information."""

    def __init__(self, component: str):
        self.component = component

    def __call__(self, logger, method_name, event_dict):
        event_dict.setdefault("component", self.component)
        return event_dict


class VectorEngineFormatter:
    """Fill in the fields every engine log event carries."""

    def __call__(self, logger, method_name, event_dict):
        event_dict.setdefault("level", method_name)
        event_dict["thread_name"] = threading.current_thread().name
        return event_dict


class StructuredLogger:
    """
    Structured logger bound to a component name.

    Log calls take a message plus arbitrary keyword fields, which are emitted
    as structured key/value pairs.
    """

    def __init__(
        self, name: str, component: Optional[str] = None, log_level: LogLevel = LogLevel.INFO
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            component: Component name for logging context
            log_level: Minimum log level to emit
        """
        self.name = name
        self.component = component or name
        self.log_level = log_level

        self.logger = structlog.wrap_logger(
            logging.getLogger(name),
            processors=[
                structlog.stdlib.filter_by_level,
                TimestampProcessor(),
                ComponentProcessor(self.component),
                VectorEngineFormatter(),
                structlog.dev.ConsoleRenderer(colors=False),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
        )

    def _log(self, level: LogLevel, message: str, **kwargs):
        getattr(self.logger, level.value)(message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, error: Optional[Exception] = None, **kwargs):
        """Log error message with optional exception."""
        if error:
            kwargs.update(
                {
                    "error_type": type(error).__name__,
                    "error_message": str(error),
                }
            )
        self._log(LogLevel.ERROR, message, **kwargs)

    def critical(self, message: str, error: Optional[Exception] = None, **kwargs):
        """Log critical message with optional exception."""
        if error:
            kwargs.update(
                {
                    "error_type": type(error).__name__,
                    "error_message": str(error),
                }
            )
        self._log(LogLevel.CRITICAL, message, **kwargs)

    def with_context(self, **context) -> "StructuredLogger":
        """Create a new logger with additional context."""
        new_logger = StructuredLogger(self.name, self.component, self.log_level)
        new_logger.logger = self.logger.bind(**context)
        return new_logger


class OperationLogger:
    """Logger for tracking operations with timing."""

    def __init__(self, logger: StructuredLogger, operation: str, **context):
        """
        Initialize operation logger.

        Args:
            logger: Structured logger instance
            operation: Operation name
            **context: Fields attached to every event of this operation
        """
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time = None

    def start(self):
        """Start operation logging."""
        self.start_time = time.time()
        self.logger.debug(
            f"Starting operation: {self.operation}",
            operation=self.operation,
            operation_status="started",
            **self.context,
        )

    def success(self, **additional_context):
        """Log successful operation completion."""
        duration_ms = (time.time() - self.start_time) * 1000 if self.start_time else None
        self.logger.info(
            f"Operation completed successfully: {self.operation}",
            operation=self.operation,
            operation_status="success",
            duration_ms=duration_ms,
            **self.context,
            **additional_context,
        )

    def error(self, error: Exception, **additional_context):
        """Log operation error."""
        duration_ms = (time.time() - self.start_time) * 1000 if self.start_time else None
        self.logger.error(
            f"Operation failed: {self.operation}",
            error=error,
            operation=self.operation,
            operation_status="error",
            duration_ms=duration_ms,
            **self.context,
            **additional_context,
        )

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.error(exc_val)
        else:
            self.success()
        return False


class JSONFormatter(logging.Formatter):
    """JSON formatter for standard library logging integration."""

    def format(self, record):
        """Format log record as JSON."""
        log_entry = {
            "timestamp": record.created,
            "timestamp_iso": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread_name": record.threadName,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def get_logger(name: str, component: Optional[str] = None) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name
        component: Component name for context

    Returns:
        Configured structured logger
    """
    return StructuredLogger(name, component)


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
):
    """
    Configure global logging settings.

    Args:
        log_level: Minimum log level
        json_format: Whether to use JSON formatting
        log_format: Format string used when json_format is False
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(log_format)

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
