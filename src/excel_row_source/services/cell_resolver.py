"""Cell value resolution.

Turns a stored cell into the plain string handed to the output buffer:
shared string references are looked up, inline strings are unwrapped, and
every other payload is passed through exactly as stored.
"""

from __future__ import annotations

import re

from excel_row_source.document import CellDataType, SheetCell, SpreadsheetDocument
from excel_row_source.utils.logging import get_logger

logger = get_logger(__name__)

# Optional sign and ASCII digits; no separators or other numerals.
_INDEX_PATTERN = re.compile(r"[+-]?[0-9]+")


def resolve_cell_value(
    document: SpreadsheetDocument, cell: SheetCell | None
) -> str | None:
    """Return the logical string value of ``cell``.

    Numbers, booleans ("0"/"1"), date serials, error codes and untyped cells
    come back as the raw stored text, without conversion.

    Args:
        document: The open document owning the cell.
        cell: The cell to resolve, or None when no cell exists.

    Returns:
        The resolved string, or None when the cell is absent, empty, or a
        shared string reference that cannot be resolved.
    """
    if cell is None or not cell.has_payload:
        return None

    if cell.data_type is CellDataType.SHARED_STRING:
        return _resolve_shared_string(document, cell)

    if cell.data_type is CellDataType.INLINE_STRING:
        if cell.inline_text is not None:
            return cell.inline_text
        return cell.inner_text

    return cell.value


def _resolve_shared_string(
    document: SpreadsheetDocument, cell: SheetCell
) -> str | None:
    table = document.shared_strings
    if table is None or cell.value is None:
        logger.debug("No shared string table", reference=cell.reference)
        return None

    digits = cell.value.strip()
    if not _INDEX_PATTERN.fullmatch(digits):
        logger.debug(
            "Unparseable shared string index",
            reference=cell.reference,
            value=cell.value,
        )
        return None
    index = int(digits)

    item = table.get(index)
    if item is None:
        logger.debug(
            "Shared string index out of range",
            reference=cell.reference,
            index=index,
            table_size=len(table),
        )
        return None

    if item.text is not None:
        return item.text
    # Rich text only: hand back the raw run markup.
    return item.inner_xml
