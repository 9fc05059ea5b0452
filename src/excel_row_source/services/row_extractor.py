"""Row extraction from one worksheet into an output buffer."""

from __future__ import annotations

import os
import traceback
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from excel_row_source.document import (
    SheetCell,
    SheetRow,
    SpreadsheetDocument,
    WorksheetRef,
)
from excel_row_source.models import ExtractionFailure, ExtractionResult
from excel_row_source.output.buffer import OutputBuffer, field_name_for_column
from excel_row_source.reporting import DEFAULT_ERROR_SOURCE, ErrorReporter, Severity
from excel_row_source.services.cell_resolver import resolve_cell_value
from excel_row_source.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    ErrorKind,
    ERSError,
    WorkbookError,
    WorkbookIOError,
    WorksheetDataError,
    WorksheetNotFoundError,
)
from excel_row_source.utils.logging import (
    LogContext,
    PerformanceMetrics,
    ProgressTracker,
    get_logger,
    timed_operation,
)

logger = get_logger(__name__)

DEFAULT_COLUMNS: tuple[str, ...] = ("A", "B", "C")


@dataclass(frozen=True)
class ExtractionConfig:
    """Inputs of one extraction call.

    Attributes:
        file_path: Workbook to read (host variable ``ExcelFilePath``).
        sheet_name: Worksheet to read (host variable ``ExcelSheetName``);
            empty or unknown names fall back to the first worksheet.
        columns: Column letters copied into ``Column<letter>`` fields.
        error_source: Source label attached to reports.
        progress_log_interval: Data rows between progress log lines.
    """

    file_path: str | Path | None
    sheet_name: str | None = ""
    columns: tuple[str, ...] = DEFAULT_COLUMNS
    error_source: str = DEFAULT_ERROR_SOURCE
    progress_log_interval: int = 1000


def find_column_cell(row: SheetRow, column: str) -> SheetCell | None:
    """Return the first cell of ``row`` whose reference starts with ``column``.

    Matching is by prefix, so single-letter columns are assumed: ``"A"`` also
    matches ``"AA7"`` when that cell comes first.
    """
    for cell in row.cells:
        if cell.reference is not None and cell.reference.startswith(column):
            return cell
    return None


class RowExtractor:
    """Copy the data rows of one worksheet into an ``OutputBuffer``.

    Usage::

        extractor = RowExtractor(reporter)
        result = extractor.extract(ExtractionConfig("orders.xlsx"), buffer)
    """

    def __init__(self, reporter: ErrorReporter | None = None) -> None:
        self.reporter = reporter if reporter is not None else ErrorReporter()

    def extract(
        self, config: ExtractionConfig, buffer: OutputBuffer
    ) -> ExtractionResult:
        """Extract every data row of the configured worksheet.

        Failures are reported through the reporter and returned on the
        result; nothing is raised to the caller.
        """
        file_path = "" if config.file_path is None else str(config.file_path)
        result = ExtractionResult(
            file_path=file_path, requested_sheet=config.sheet_name or ""
        )

        config_error = self._validate(config, file_path, buffer)
        if config_error is not None:
            return self._fail(config, result, ExtractionFailure.from_error(config_error))

        with LogContext(workbook=Path(file_path).name), timed_operation(
            logger, "row_extraction"
        ) as metrics:
            try:
                with SpreadsheetDocument.open(file_path) as document:
                    structural_error = self._extract_rows(
                        document, config, buffer, result, metrics
                    )
                if structural_error is not None:
                    return self._fail(
                        config, result, ExtractionFailure.from_error(structural_error)
                    )
            except WorkbookError as exc:
                failure = ExtractionFailure.from_error(exc)
                if failure.kind is ErrorKind.UNEXPECTED:
                    failure.details["traceback"] = traceback.format_exc()
                return self._fail(config, result, failure)
            except OSError as exc:
                io_error = WorkbookIOError(file_path, exc)
                return self._fail(config, result, ExtractionFailure.from_error(io_error))
            except Exception as exc:
                logger.exception("Unexpected failure during extraction")
                failure = ExtractionFailure(
                    kind=ErrorKind.UNEXPECTED,
                    error_code=ErrorCode.UNEXPECTED_ERROR,
                    message=f"An error occurred: {exc}",
                    details={
                        "exception_type": type(exc).__name__,
                        "traceback": traceback.format_exc(),
                    },
                )
                return self._fail(config, result, failure)

        logger.log_extraction_result(
            file_path=file_path,
            success=True,
            records_emitted=result.records_emitted,
            sheet_name=result.sheet_name,
        )
        return result

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate(
        config: ExtractionConfig, file_path: str, buffer: OutputBuffer
    ) -> ConfigurationError | None:
        if not file_path:
            return ConfigurationError(
                f"Excel file path is invalid or file not found: {file_path}",
                error_code=ErrorCode.FILE_PATH_MISSING,
                file_path=file_path,
            )
        if not os.path.isfile(file_path):
            return ConfigurationError(
                f"Excel file path is invalid or file not found: {file_path}",
                error_code=ErrorCode.FILE_NOT_FOUND,
                file_path=file_path,
            )
        if not config.columns:
            return ConfigurationError("No output columns configured.")
        missing = [
            field_name_for_column(column)
            for column in config.columns
            if field_name_for_column(column) not in buffer.field_names
        ]
        if missing:
            return ConfigurationError(
                f"Output buffer has no field for: {', '.join(missing)}",
                details={"buffer_fields": list(buffer.field_names)},
            )
        return None

    def _select_worksheet(
        self,
        document: SpreadsheetDocument,
        config: ExtractionConfig,
        result: ExtractionResult,
    ) -> WorksheetRef | None:
        requested = config.sheet_name or ""
        worksheet = document.find_worksheet(requested)
        if worksheet is not None:
            return worksheet

        worksheet = document.first_worksheet
        if worksheet is None:
            return None

        result.used_fallback = True
        if requested:
            self.reporter.report(
                Severity.WARNING,
                config.error_source,
                f"Sheet '{requested}' not found; using first sheet "
                f"'{worksheet.name}'.",
                details={"requested_sheet": requested, "sheet_name": worksheet.name},
            )
        return worksheet

    def _extract_rows(
        self,
        document: SpreadsheetDocument,
        config: ExtractionConfig,
        buffer: OutputBuffer,
        result: ExtractionResult,
        metrics: PerformanceMetrics,
    ) -> ERSError | None:
        worksheet = self._select_worksheet(document, config, result)
        if worksheet is None:
            return WorksheetNotFoundError(config.sheet_name or "", document.file_path)
        result.sheet_name = worksheet.name

        rows = document.read_rows(worksheet)
        if rows is None:
            return WorksheetDataError(worksheet.name, document.file_path)

        logger.info(
            "Worksheet selected",
            sheet_name=worksheet.name,
            rows=len(rows),
            fallback=result.used_fallback,
        )
        tracker = ProgressTracker(
            logger,
            f"Reading rows of '{worksheet.name}'",
            total=max(len(rows) - 1, 0),
            log_interval=config.progress_log_interval,
        )

        field_names = [field_name_for_column(column) for column in config.columns]
        is_header = True
        for row in rows:
            result.rows_read += 1
            metrics.rows_read += 1
            if is_header:
                is_header = False
                continue

            values = []
            for column in config.columns:
                value = resolve_cell_value(document, find_column_cell(row, column))
                metrics.cells_resolved += 1
                values.append(value if value is not None else "")

            # Only fully resolved rows reach the buffer.
            record = buffer.add_row()
            for field_name, value in zip(field_names, values, strict=True):
                record[field_name] = value
            result.records_emitted += 1
            metrics.records_emitted += 1
            tracker.update()

        tracker.complete()
        return None

    def _fail(
        self,
        config: ExtractionConfig,
        result: ExtractionResult,
        failure: ExtractionFailure,
    ) -> ExtractionResult:
        result.failure = failure
        message = failure.message
        stack = failure.details.get("traceback")
        if stack:
            message = f"{message}\nStackTrace: {stack}"
        self.reporter.report(
            Severity.ERROR,
            config.error_source,
            message,
            details={
                "error_code": failure.error_code.value,
                "error_kind": failure.kind.value,
            },
        )
        logger.log_extraction_result(
            file_path=result.file_path,
            success=False,
            records_emitted=result.records_emitted,
            sheet_name=result.sheet_name,
            error_kind=failure.kind.value,
        )
        return result


def extract(
    file_path: str | Path | None,
    sheet_name: str | None,
    buffer: OutputBuffer,
    *,
    columns: Sequence[str] = DEFAULT_COLUMNS,
    reporter: ErrorReporter | None = None,
) -> ExtractionResult:
    """Extract the data rows of ``sheet_name`` in ``file_path`` into ``buffer``.

    Convenience wrapper around ``RowExtractor.extract``.
    """
    config = ExtractionConfig(
        file_path=file_path, sheet_name=sheet_name, columns=tuple(columns)
    )
    return RowExtractor(reporter).extract(config, buffer)
