"""Configuration management for the Excel row source.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
ERS_ prefix, or via a .env file in the working directory. The host pipeline
maps its ``ExcelFilePath`` and ``ExcelSheetName`` variables onto the first
two settings.

Environment Variables:
    ERS_EXCEL_FILE_PATH: Workbook to read (required at run time)
    ERS_EXCEL_SHEET_NAME: Worksheet to read (default: first worksheet)
    ERS_OUTPUT_COLUMNS: Comma-separated column letters (default: A,B,C)
    ERS_ERROR_SOURCE: Source label on reports (default: Script Component Source)
    ERS_REPEAT_ERRORS: Keep reporting errors after the first (default: true)
    ERS_PROGRESS_LOG_INTERVAL: Rows between progress log lines (default: 1000)
    ERS_LOG_LEVEL: Logging level (default: INFO)
    ERS_DEBUG: Enable debug mode (default: false)
"""

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from excel_row_source.reporting import DEFAULT_ERROR_SOURCE
from excel_row_source.services.row_extractor import ExtractionConfig


class Settings(BaseSettings):
    """Component settings loaded from environment variables.

    Example .env file:
        ERS_EXCEL_FILE_PATH=/data/incoming/orders.xlsx
        ERS_EXCEL_SHEET_NAME=Orders
        ERS_OUTPUT_COLUMNS=A,B,C,D
    """

    model_config = SettingsConfigDict(
        env_prefix="ERS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Pipeline Variables
    # =========================================================================

    excel_file_path: str = ""
    """Path of the workbook to read."""

    excel_sheet_name: str = ""
    """Worksheet to read. Empty or unknown names fall back to the first sheet."""

    # =========================================================================
    # Output Settings
    # =========================================================================

    output_columns: str = "A,B,C"
    """Comma-separated column letters mapped to ColumnA, ColumnB, ..."""

    # =========================================================================
    # Error Reporting Settings
    # =========================================================================

    error_source: str = DEFAULT_ERROR_SOURCE
    """Source label attached to every report."""

    repeat_errors: bool = True
    """Keep recording errors after the first one."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    progress_log_interval: int = 1000
    """Number of data rows between progress log lines."""

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode: logs at DEBUG whatever log_level says."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("output_columns")
    @classmethod
    def validate_output_columns(cls, v: str) -> str:
        """Validate columns are unique, non-empty letter groups."""
        columns = [part.strip().upper() for part in v.split(",") if part.strip()]
        if not columns:
            raise ValueError("output_columns must name at least one column")
        invalid = [c for c in columns if not (c.isascii() and c.isalpha())]
        if invalid:
            raise ValueError(f"output_columns must be column letters, got {invalid}")
        if len(set(columns)) != len(columns):
            raise ValueError(f"output_columns contains duplicates: {columns}")
        return ",".join(columns)

    @field_validator("progress_log_interval")
    @classmethod
    def validate_progress_interval(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"progress_log_interval must be at least 1, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def output_columns_list(self) -> list[str]:
        """Get output columns as a list."""
        return self.output_columns.split(",")

    @property
    def effective_log_level(self) -> str:
        """Log level to configure; debug mode forces DEBUG."""
        return "DEBUG" if self.debug else self.log_level

    def to_extraction_config(self) -> ExtractionConfig:
        """Build the explicit configuration passed to the extractor."""
        return ExtractionConfig(
            file_path=self.excel_file_path,
            sheet_name=self.excel_sheet_name,
            columns=tuple(self.output_columns_list),
            error_source=self.error_source,
            progress_log_interval=self.progress_log_interval,
        )

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging."""
        return {
            "excel_file_path": self.excel_file_path or "(not set)",
            "excel_sheet_name": self.excel_sheet_name or "(first sheet)",
            "output_columns": self.output_columns,
            "error_source": self.error_source,
            "repeat_errors": self.repeat_errors,
            "progress_log_interval": self.progress_log_interval,
            "log_level": self.log_level,
            "debug": self.debug,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that will make the run fail or misbehave.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if not s.excel_file_path:
        logger.warning(
            "ExcelFilePath is not configured. Extraction will report a "
            "configuration error. Set ERS_EXCEL_FILE_PATH."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"output_columns={s.output_columns}"
    )

