"""Utilities package for the Excel row source.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from excel_row_source.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    ErrorKind,
    ERSError,
    WorkbookError,
    WorkbookIOError,
)
from excel_row_source.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Exceptions
    "ConfigurationError",
    "ERSError",
    "ErrorCode",
    "ErrorKind",
    "WorkbookError",
    "WorkbookIOError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
