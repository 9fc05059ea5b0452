"""Error reporting towards the host pipeline.

The reporter receives ``report(severity, source, message)`` calls, keeps
them for the host to inspect, and mirrors them to the log. Whether further
errors are still raised after the first one is a policy chosen by the host
through ``repeat_errors``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from excel_row_source.utils.logging import StructuredLogger, get_logger

DEFAULT_ERROR_SOURCE = "Script Component Source"


class Severity(str, Enum):
    """Severity of a report."""

    INFORMATION = "information"
    WARNING = "warning"
    ERROR = "error"

    @property
    def log_level(self) -> int:
        return _LOG_LEVELS[self]


_LOG_LEVELS = {
    Severity.INFORMATION: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Report:
    """A single report received from the component."""

    severity: Severity
    source: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


class ErrorReporter:
    """Collects reports and writes them to the log.

    Attributes:
        repeat_errors: When False, only the first error is recorded and later
            errors are dropped (warnings and information still pass).
    """

    def __init__(
        self,
        repeat_errors: bool = True,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.repeat_errors = repeat_errors
        self._logger = logger or get_logger(__name__)
        self._reports: list[Report] = []
        self._suppressed = 0

    def report(
        self,
        severity: Severity,
        source: str,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record a report from ``source``.

        Args:
            severity: Severity of the report.
            source: Label of the reporting component.
            message: Human-readable message.
            details: Optional structured details.
        """
        if severity is Severity.ERROR and not self.repeat_errors and self.errors:
            self._suppressed += 1
            self._logger.debug(
                "Error report suppressed", source=source, suppressed=self._suppressed
            )
            return

        self._reports.append(
            Report(
                severity=severity,
                source=source,
                message=message,
                details=dict(details or {}),
            )
        )
        self._logger.logger.log(severity.log_level, f"{source}: {message}")

    @property
    def reports(self) -> list[Report]:
        return list(self._reports)

    @property
    def errors(self) -> list[Report]:
        return [r for r in self._reports if r.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Report]:
        return [r for r in self._reports if r.severity is Severity.WARNING]

    @property
    def suppressed_count(self) -> int:
        return self._suppressed

    def clear(self) -> None:
        self._reports.clear()
        self._suppressed = 0
