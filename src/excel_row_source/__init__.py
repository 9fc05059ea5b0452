"""Excel row source - worksheet rows into a pipeline output buffer."""

from excel_row_source.output import OutputBuffer, OutputRecord
from excel_row_source.reporting import ErrorReporter, Severity
from excel_row_source.services import (
    ExtractionConfig,
    RowExtractor,
    extract,
    resolve_cell_value,
)

__all__ = [
    "ErrorReporter",
    "ExtractionConfig",
    "OutputBuffer",
    "OutputRecord",
    "RowExtractor",
    "Severity",
    "extract",
    "resolve_cell_value",
]
__version__ = "0.1.0"
