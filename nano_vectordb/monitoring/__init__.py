"""
Logging utilities for the vector engine.
"""

from .structured_logger import (
    StructuredLogger,
    OperationLogger,
    JSONFormatter,
    LogLevel,
    get_logger,
    configure_logging,
)

__all__ = [
    "StructuredLogger",
    "OperationLogger",
    "JSONFormatter",
    "LogLevel",
    "get_logger",
    "configure_logging",
]
