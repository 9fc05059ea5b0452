"""Pydantic models for extraction results."""

from typing import Any

from pydantic import BaseModel, Field

from excel_row_source.utils.exceptions import ERSError, ErrorCode, ErrorKind


class ExtractionFailure(BaseModel):
    """Why an extraction call stopped early."""

    kind: ErrorKind = Field(..., description="Failure classification")
    error_code: ErrorCode = Field(..., description="Error code of the failure")
    message: str = Field(..., description="Human-readable failure message")
    details: dict[str, Any] = Field(
        default_factory=dict, description="Additional structured details"
    )

    @classmethod
    def from_error(cls, error: ERSError) -> "ExtractionFailure":
        """Build a failure from a component error."""
        return cls(
            kind=error.get_error_kind(),
            error_code=error.error_code,
            message=error.message,
            details=dict(error.details),
        )


class ExtractionResult(BaseModel):
    """Outcome of one extraction call."""

    file_path: str = Field(..., description="Workbook path that was requested")
    requested_sheet: str = Field(
        default="", description="Sheet name that was requested"
    )
    sheet_name: str | None = Field(
        default=None, description="Sheet that was actually read"
    )
    used_fallback: bool = Field(
        default=False, description="Whether the first sheet was used as fallback"
    )
    rows_read: int = Field(default=0, description="Rows read, header included")
    records_emitted: int = Field(
        default=0, description="Records appended to the output buffer"
    )
    failure: ExtractionFailure | None = Field(
        default=None, description="Failure details if the call stopped early"
    )

    @property
    def succeeded(self) -> bool:
        return self.failure is None
