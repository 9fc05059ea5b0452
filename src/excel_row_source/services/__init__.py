"""Services for the Excel row source."""

from excel_row_source.services.cell_resolver import resolve_cell_value
from excel_row_source.services.row_extractor import (
    DEFAULT_COLUMNS,
    ExtractionConfig,
    RowExtractor,
    extract,
    find_column_cell,
)

__all__ = [
    "DEFAULT_COLUMNS",
    "ExtractionConfig",
    "RowExtractor",
    "extract",
    "find_column_cell",
    "resolve_cell_value",
]
