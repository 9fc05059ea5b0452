"""Output sink for extracted rows."""

from excel_row_source.output.buffer import (
    OutputBuffer,
    OutputRecord,
    field_name_for_column,
)

__all__ = ["OutputBuffer", "OutputRecord", "field_name_for_column"]
