"""Read-only document model over an .xlsx package.

openpyxl's package reader resolves the manifest, the workbook part and the
worksheet relationships; worksheet and shared string parts are then read as
raw XML so that every cell keeps its stored type tag and payload text.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import Any, BinaryIO
from xml.sax.saxutils import escape
from zipfile import BadZipFile

from openpyxl.reader.excel import ExcelReader
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.xml.constants import SHARED_STRINGS, SHEET_MAIN_NS
from openpyxl.xml.functions import fromstring

from excel_row_source.utils.exceptions import InvalidWorkbookError, WorkbookIOError
from excel_row_source.utils.logging import get_logger

logger = get_logger(__name__)

_SHEET_DATA_TAG = f"{{{SHEET_MAIN_NS}}}sheetData"
_ROW_TAG = f"{{{SHEET_MAIN_NS}}}row"
_CELL_TAG = f"{{{SHEET_MAIN_NS}}}c"
_VALUE_TAG = f"{{{SHEET_MAIN_NS}}}v"
_INLINE_TAG = f"{{{SHEET_MAIN_NS}}}is"
_TEXT_TAG = f"{{{SHEET_MAIN_NS}}}t"
_SHARED_ITEM_TAG = f"{{{SHEET_MAIN_NS}}}si"
_XML_NS = "http://www.w3.org/XML/1998/namespace"


class CellDataType(str, Enum):
    """Data type tags stored in the ``t`` attribute of a cell."""

    SHARED_STRING = "s"
    INLINE_STRING = "inlineStr"
    NUMBER = "n"
    BOOLEAN = "b"
    DATE = "d"
    ERROR = "e"
    FORMULA_STRING = "str"

    @classmethod
    def from_tag(cls, tag: str | None) -> CellDataType | None:
        """Map a raw ``t`` attribute to a data type.

        A missing tag means number. Unknown tags map to None and are treated
        as literal values.
        """
        if tag is None:
            return cls.NUMBER
        try:
            return cls(tag)
        except ValueError:
            return None


@dataclass(frozen=True)
class SheetCell:
    """A single cell as stored in the worksheet part."""

    reference: str | None
    data_type: CellDataType | None
    value: str | None = None
    has_inline_content: bool = False
    inline_text: str | None = None
    inner_text: str = ""

    @property
    def has_payload(self) -> bool:
        """Whether the cell stores anything to resolve."""
        return self.value is not None or self.has_inline_content


@dataclass(frozen=True)
class SheetRow:
    """A worksheet row and its cells in document order."""

    number: int | None
    cells: list[SheetCell] = field(default_factory=list)


@dataclass(frozen=True)
class SharedStringItem:
    """One entry of the shared string table.

    Attributes:
        text: Text of the item's plain ``<t>`` element, None for rich-only items.
        inner_xml: Markup of the item's content, written with local element
            names and no namespace declarations, e.g.
            ``<r><rPr><b/></rPr><t>Bold</t></r>``.
    """

    text: str | None
    inner_xml: str


class SharedStringTable:
    """Ordered, index-addressable shared strings of a workbook."""

    def __init__(self, items: list[SharedStringItem]) -> None:
        self._items = items

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> SharedStringItem:
        return self._items[index]

    def __iter__(self) -> Iterator[SharedStringItem]:
        return iter(self._items)

    def get(self, index: int) -> SharedStringItem | None:
        """Return the item at ``index`` or None when out of range."""
        if 0 <= index < len(self._items):
            return self._items[index]
        return None


@dataclass(frozen=True)
class WorksheetRef:
    """A worksheet entry from the workbook part.

    Attributes:
        name: Sheet name shown on the tab.
        relationship_id: Relationship id linking the workbook to the sheet part.
        part_name: Path of the sheet part inside the package, None if missing.
    """

    name: str
    relationship_id: str
    part_name: str | None


class SpreadsheetDocument:
    """An opened workbook package, read-only.

    Usage::

        with SpreadsheetDocument.open(path) as document:
            sheet = document.find_worksheet("Orders") or document.first_worksheet
            rows = document.read_rows(sheet)
    """

    def __init__(
        self, file_path: str, reader: ExcelReader, stream: BinaryIO | None = None
    ) -> None:
        self.file_path = file_path
        self._reader = reader
        self._stream = stream
        self._closed = False
        self._worksheets = self._read_worksheets()
        self._shared_strings = self._read_shared_strings()

    @classmethod
    def open(cls, file_path: str | Path) -> SpreadsheetDocument:
        """Open the package at ``file_path`` for reading.

        The file is handed to openpyxl as an open stream, so the package is
        recognised by its content whatever the file is named.

        Raises:
            WorkbookIOError: If the file cannot be accessed.
            InvalidWorkbookError: If the file is not a spreadsheet package.
        """
        path = str(file_path)
        try:
            stream = open(path, "rb")
        except OSError as exc:
            raise WorkbookIOError(path, exc) from exc

        try:
            reader = ExcelReader(stream, read_only=True)
        except OSError as exc:
            stream.close()
            raise WorkbookIOError(path, exc) from exc
        except (InvalidFileException, BadZipFile) as exc:
            stream.close()
            raise InvalidWorkbookError(path, str(exc)) from exc
        except Exception:
            stream.close()
            raise

        try:
            reader.read_manifest()
            reader.read_workbook()
            return cls(path, reader, stream)
        except OSError as exc:
            reader.archive.close()
            stream.close()
            raise WorkbookIOError(path, exc) from exc
        except Exception:
            reader.archive.close()
            stream.close()
            raise

    # ------------------------------------------------------------------ #
    # Workbook structure
    # ------------------------------------------------------------------ #

    @property
    def worksheets(self) -> list[WorksheetRef]:
        """Worksheets in document order."""
        return list(self._worksheets)

    @property
    def first_worksheet(self) -> WorksheetRef | None:
        return self._worksheets[0] if self._worksheets else None

    @property
    def shared_strings(self) -> SharedStringTable | None:
        """The shared string table, None when the package has none."""
        return self._shared_strings

    def find_worksheet(self, name: str | None) -> WorksheetRef | None:
        """Return the worksheet whose name equals ``name`` exactly."""
        if not name:
            return None
        for worksheet in self._worksheets:
            if worksheet.name == name:
                return worksheet
        return None

    def read_rows(self, worksheet: WorksheetRef) -> list[SheetRow] | None:
        """Load all rows of ``worksheet`` in document order.

        Returns:
            The rows, or None if the sheet part or its sheetData is missing.
        """
        self._ensure_open()
        if worksheet.part_name is None:
            return None

        root = fromstring(self._reader.archive.read(worksheet.part_name))
        sheet_data = root.find(_SHEET_DATA_TAG)
        if sheet_data is None:
            return None
        return [self._parse_row(node) for node in sheet_data.findall(_ROW_TAG)]

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the underlying archive. Safe to call more than once."""
        if not self._closed:
            self._reader.archive.close()
            if self._stream is not None:
                self._stream.close()
            self._closed = True
            logger.debug("Workbook closed", file_path=self.file_path)

    def __enter__(self) -> SpreadsheetDocument:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValueError(f"Workbook is closed: {self.file_path}")

    def _read_worksheets(self) -> list[WorksheetRef]:
        valid_files = set(self._reader.valid_files)
        worksheets: list[WorksheetRef] = []
        for sheet, rel in self._reader.parser.find_sheets():
            part_name = rel.target if rel.target in valid_files else None
            worksheets.append(
                WorksheetRef(
                    name=sheet.name,
                    relationship_id=sheet.id,
                    part_name=part_name,
                )
            )
        return worksheets

    def _read_shared_strings(self) -> SharedStringTable | None:
        part = self._reader.package.find(SHARED_STRINGS)
        if part is None:
            return None

        root = fromstring(self._reader.archive.read(part.PartName[1:]))
        items = [_parse_shared_item(node) for node in root.findall(_SHARED_ITEM_TAG)]
        logger.debug("Shared strings loaded", count=len(items))
        return SharedStringTable(items)

    @staticmethod
    def _parse_row(node: Any) -> SheetRow:
        number = node.get("r")
        return SheetRow(
            number=int(number) if number and number.isdigit() else None,
            cells=[_parse_cell(cell) for cell in node.findall(_CELL_TAG)],
        )


def _parse_cell(node: Any) -> SheetCell:
    value_node = node.find(_VALUE_TAG)
    value = None if value_node is None else (value_node.text or "")

    inline_node = node.find(_INLINE_TAG)
    first_text = next(iter(node.iter(_TEXT_TAG)), None)

    return SheetCell(
        reference=node.get("r"),
        data_type=CellDataType.from_tag(node.get("t")),
        value=value,
        has_inline_content=inline_node is not None,
        inline_text=None if first_text is None else (first_text.text or ""),
        inner_text="".join(node.itertext()),
    )


def _parse_shared_item(node: Any) -> SharedStringItem:
    text_node = node.find(_TEXT_TAG)
    inner_xml = escape(node.text or "") + "".join(_markup(child) for child in node)
    return SharedStringItem(
        text=None if text_node is None else (text_node.text or ""),
        inner_xml=inner_xml,
    )


def _local_name(name: str) -> str:
    if name.startswith(f"{{{_XML_NS}}}"):
        return "xml:" + name.split("}", 1)[1]
    return name.rsplit("}", 1)[-1]


def _markup(node: Any) -> str:
    """Serialize ``node`` with local names and no namespace declarations.

    Empty elements are written self-closing, attributes keep document order,
    so the result is the same whichever XML backend openpyxl uses.
    """
    tail = escape(node.tail or "")
    if not isinstance(node.tag, str):
        # comments and processing instructions
        return tail

    tag = _local_name(node.tag)
    attrs = "".join(
        f' {_local_name(key)}="{escape(value, {chr(34): "&quot;"})}"'
        for key, value in node.attrib.items()
    )
    content = escape(node.text or "") + "".join(_markup(child) for child in node)
    if content:
        return f"<{tag}{attrs}>{content}</{tag}>{tail}"
    return f"<{tag}{attrs}/>{tail}"
