"""Centralized exception classes for the Excel row source.

This module provides a hierarchy of custom exceptions with error codes,
error-kind mapping, and structured error details for consistent error
reporting throughout the component.

Exception Hierarchy:
    ERSError (base)
    ├── ConfigurationError
    └── WorkbookError
        ├── WorkbookIOError
        ├── InvalidWorkbookError
        ├── WorksheetNotFoundError
        └── WorksheetDataError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that is carried into
    the reports sent to the host pipeline.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used by the component.

    Error codes are grouped by category:
    - E1xxx: File/configuration errors
    - E2xxx: Workbook structure errors
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_PATH_MISSING = "E1001"
    FILE_NOT_FOUND = "E1002"
    FILE_READ_ERROR = "E1003"

    # Workbook structure errors (E2xxx)
    INVALID_WORKBOOK = "E2001"
    NO_WORKSHEETS = "E2002"
    WORKSHEET_DATA_MISSING = "E2003"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"
    UNEXPECTED_ERROR = "E9999"


class ErrorKind(str, Enum):
    """How a failed extraction is classified for the host pipeline."""

    CONFIGURATION = "configuration"
    STRUCTURAL = "structural"
    IO = "io"
    UNEXPECTED = "unexpected"


class ErrorKindMixin:
    """Mixin that provides the error kind for exceptions.

    Subclasses set the `error_kind` class attribute so the extraction driver
    can turn a caught exception into a reported failure of the right kind.
    """

    error_kind: ErrorKind = ErrorKind.UNEXPECTED

    def get_error_kind(self) -> ErrorKind:
        """Get the error kind for this exception.

        Returns:
            Error kind used when reporting this error.
        """
        return self.error_kind


class ERSError(Exception, ErrorKindMixin):
    """Base exception for all Excel row source errors.

    It provides:
    - Unique error codes for programmatic handling
    - Error kind mapping for pipeline reports
    - Structured error details for logging and debugging

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

    error_kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for reports.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "error_kind": self.error_kind.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Configuration Errors (E1xxx)
# =============================================================================


class ConfigurationError(ERSError):
    """Raised when the extraction configuration is missing or invalid."""

    error_kind: ErrorKind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending file path.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Configured workbook path, if any.
            details: Additional details.
        """
        details = details or {}
        if file_path is not None:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


# =============================================================================
# Workbook Errors (E2xxx)
# =============================================================================


class WorkbookError(ERSError):
    """Base class for errors raised while reading a workbook."""

    error_kind: ErrorKind = ErrorKind.STRUCTURAL

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_WORKBOOK,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the workbook.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class WorkbookIOError(WorkbookError):
    """Raised when the workbook file cannot be accessed (e.g. it is locked)."""

    error_kind: ErrorKind = ErrorKind.IO

    def __init__(
        self,
        file_path: str,
        cause: BaseException,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the underlying OS error.

        Args:
            file_path: Path to the workbook.
            cause: The OSError raised while accessing the file.
            details: Additional details.
        """
        details = details or {}
        details["cause"] = type(cause).__name__
        super().__init__(
            message=f"Error accessing Excel file (might be open?): {cause}",
            error_code=ErrorCode.FILE_READ_ERROR,
            file_path=file_path,
            details=details,
        )
        self.cause = cause


class InvalidWorkbookError(WorkbookError):
    """Raised when the file is not a readable spreadsheet package."""

    error_kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        file_path: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["reason"] = reason
        super().__init__(
            message=f"An error occurred: {reason}",
            error_code=ErrorCode.INVALID_WORKBOOK,
            file_path=file_path,
            details=details,
        )
        self.reason = reason


class WorksheetNotFoundError(WorkbookError):
    """Raised when no worksheet can be selected, not even a fallback."""

    def __init__(
        self,
        sheet_name: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["sheet_name"] = sheet_name
        super().__init__(
            message=(
                f"Sheet '{sheet_name}' not found and no sheets exist in the workbook."
            ),
            error_code=ErrorCode.NO_WORKSHEETS,
            file_path=file_path,
            details=details,
        )
        self.sheet_name = sheet_name


class WorksheetDataError(WorkbookError):
    """Raised when the selected worksheet has no row data."""

    def __init__(
        self,
        sheet_name: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["sheet_name"] = sheet_name
        super().__init__(
            message="Could not find worksheet data.",
            error_code=ErrorCode.WORKSHEET_DATA_MISSING,
            file_path=file_path,
            details=details,
        )
        self.sheet_name = sheet_name
