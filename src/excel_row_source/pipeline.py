"""Host-side driver for running the row source as one pipeline step."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from pydantic import ValidationError

from excel_row_source.config import Settings, validate_settings_on_startup
from excel_row_source.models import ExtractionResult
from excel_row_source.output.buffer import OutputBuffer
from excel_row_source.reporting import ErrorReporter
from excel_row_source.services.row_extractor import RowExtractor
from excel_row_source.utils.logging import LogContext, configure_logging, get_logger

logger = get_logger(__name__)


@dataclass
class StepOutcome:
    """Everything the host needs after the step ran."""

    run_id: str
    buffer: OutputBuffer
    reporter: ErrorReporter
    result: ExtractionResult

    @property
    def succeeded(self) -> bool:
        return self.result.succeeded


def run_source_step(
    settings: Settings | None = None,
    buffer: OutputBuffer | None = None,
    reporter: ErrorReporter | None = None,
    *,
    run_id: str | None = None,
    setup_logging: bool = False,
) -> StepOutcome:
    """Run one extraction for the current pipeline execution.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        buffer: Output buffer; a buffer for the configured columns is created
            when omitted.
        reporter: Error reporter; created from the settings' repeat policy
            when omitted.
        run_id: Correlation id for log lines; generated when omitted.
        setup_logging: Configure root logging from the settings first.

    Returns:
        The buffer, reporter and result of the run.
    """
    s = settings if settings is not None else Settings()
    if setup_logging:
        configure_logging(s.effective_log_level)
    validate_settings_on_startup(s)

    run_id = run_id or uuid4().hex
    if buffer is None:
        buffer = OutputBuffer.for_columns(s.output_columns_list)
    if reporter is None:
        reporter = ErrorReporter(repeat_errors=s.repeat_errors)

    with LogContext(run_id=run_id):
        logger.debug("Running source step", **s.to_safe_dict())
        result = RowExtractor(reporter).extract(s.to_extraction_config(), buffer)

    return StepOutcome(run_id=run_id, buffer=buffer, reporter=reporter, result=result)


def main(argv: list[str]) -> int:
    """Run one step from the command line and print the emitted records.

    ``argv`` is ``[file_path, sheet_name]``; either may be omitted, in which
    case the ``ERS_`` settings apply.
    """
    if len(argv) > 2:
        print("Usage: python main.py [path/to/workbook.xlsx] [sheet name]")
        return 2

    overrides = dict(zip(("excel_file_path", "excel_sheet_name"), argv))
    try:
        s = Settings(**overrides)
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}")
        return 2
    outcome = run_source_step(s, setup_logging=True)

    for record in outcome.buffer:
        print(record.to_dict())
    for report in outcome.reporter.reports:
        print(f"{report.severity.value.upper()}: {report.message}")
    return 0 if outcome.succeeded else 1
