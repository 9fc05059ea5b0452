from __future__ import annotations

import zipfile
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

import pytest
from openpyxl import Workbook

from excel_row_source.output.buffer import OutputBuffer
from excel_row_source.reporting import ErrorReporter

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
DOC_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
WORKBOOK_CT = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"
WORKSHEET_CT = "application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"
SHARED_STRINGS_CT = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sharedStrings+xml"
)
XML_DECL = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'

NO_SHEET_DATA = object()


class PackageBuilder:
    """Writes minimal .xlsx packages from raw cell and shared string markup.

    Sheets are given as ``(name, rows)`` where rows is a list of lists of raw
    ``<c>`` markup, or ``NO_SHEET_DATA`` for a worksheet without sheetData.
    Shared strings are raw ``<si>`` markup.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    # Cell markup helpers

    @staticmethod
    def shared(ref: str, index: int | str) -> str:
        return f'<c r="{ref}" t="s"><v>{index}</v></c>'

    @staticmethod
    def literal(ref: str, value: str, data_type: str | None = None) -> str:
        type_attr = f' t="{data_type}"' if data_type else ""
        return f'<c r="{ref}"{type_attr}><v>{escape(value)}</v></c>'

    @staticmethod
    def inline(ref: str, text: str) -> str:
        return f'<c r="{ref}" t="inlineStr"><is><t>{escape(text)}</t></is></c>'

    @staticmethod
    def plain_item(text: str) -> str:
        return f"<si><t>{escape(text)}</t></si>"

    def write(
        self,
        sheets: Sequence[tuple[str, Any]],
        shared_strings: Sequence[str] | None = None,
        filename: str = "package.xlsx",
    ) -> Path:
        path = self.directory / filename
        overrides = [f'<Override PartName="/xl/workbook.xml" ContentType="{WORKBOOK_CT}"/>']
        sheet_entries = []
        rels = []
        parts: dict[str, str] = {}

        for index, (name, rows) in enumerate(sheets, start=1):
            part = f"xl/worksheets/sheet{index}.xml"
            overrides.append(f'<Override PartName="/{part}" ContentType="{WORKSHEET_CT}"/>')
            sheet_entries.append(
                f'<sheet name="{escape(name)}" sheetId="{index}" r:id="rId{index}"/>'
            )
            rels.append(
                f'<Relationship Id="rId{index}" Type="{DOC_REL_NS}/worksheet" '
                f'Target="worksheets/sheet{index}.xml"/>'
            )
            parts[part] = self._worksheet_xml(rows)

        if shared_strings is not None:
            overrides.append(
                f'<Override PartName="/xl/sharedStrings.xml" ContentType="{SHARED_STRINGS_CT}"/>'
            )
            parts["xl/sharedStrings.xml"] = (
                f'{XML_DECL}<sst xmlns="{MAIN_NS}" count="{len(shared_strings)}" '
                f'uniqueCount="{len(shared_strings)}">{"".join(shared_strings)}</sst>'
            )

        parts["[Content_Types].xml"] = (
            f'{XML_DECL}<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
            '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
            '<Default Extension="xml" ContentType="application/xml"/>'
            f'{"".join(overrides)}</Types>'
        )
        parts["_rels/.rels"] = (
            f'{XML_DECL}<Relationships xmlns="{PKG_REL_NS}">'
            f'<Relationship Id="rId1" Type="{DOC_REL_NS}/officeDocument" Target="xl/workbook.xml"/>'
            "</Relationships>"
        )
        parts["xl/workbook.xml"] = (
            f'{XML_DECL}<workbook xmlns="{MAIN_NS}" xmlns:r="{DOC_REL_NS}">'
            f'<workbookPr/><sheets>{"".join(sheet_entries)}</sheets></workbook>'
        )
        parts["xl/_rels/workbook.xml.rels"] = (
            f'{XML_DECL}<Relationships xmlns="{PKG_REL_NS}">{"".join(rels)}</Relationships>'
        )

        with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
            for name, content in parts.items():
                archive.writestr(name, content)
        return path

    @staticmethod
    def _worksheet_xml(rows: Any) -> str:
        if rows is NO_SHEET_DATA:
            return f'{XML_DECL}<worksheet xmlns="{MAIN_NS}"></worksheet>'
        body = "".join(
            f'<row r="{number}">{"".join(cells)}</row>'
            for number, cells in enumerate(rows, start=1)
        )
        return f'{XML_DECL}<worksheet xmlns="{MAIN_NS}"><sheetData>{body}</sheetData></worksheet>'


@pytest.fixture
def package_builder(tmp_path: Path) -> PackageBuilder:
    return PackageBuilder(tmp_path)


@pytest.fixture
def no_sheet_data() -> object:
    return NO_SHEET_DATA


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Write an openpyxl workbook from ``{sheet_name: rows}`` and return its path."""

    def _make(
        sheets: dict[str, list[list[Any]]], filename: str = "workbook.xlsx"
    ) -> Path:
        wb = Workbook()
        wb.remove(wb.active)
        for name, rows in sheets.items():
            ws = wb.create_sheet(name)
            for row in rows:
                ws.append(row)
        path = tmp_path / filename
        wb.save(path)
        return path

    return _make


@pytest.fixture
def people_workbook(make_workbook: Callable[..., Path]) -> Path:
    return make_workbook(
        {
            "People": [
                ["Name", "Age", "City"],
                ["Ann", 30, "NYC"],
                ["Bo", 41, "LA"],
            ],
            "Other": [
                ["Key", "Value"],
                ["x", 1],
            ],
        }
    )


@pytest.fixture
def typed_workbook(make_workbook: Callable[..., Path]) -> Path:
    return make_workbook(
        {
            "Typed": [
                ["Flag", "Amount", "When"],
                [True, 123.45, datetime(2024, 1, 15)],
                [False, 10, None],
            ],
        }
    )


@pytest.fixture
def buffer() -> OutputBuffer:
    return OutputBuffer.for_columns(["A", "B", "C"])


@pytest.fixture
def reporter() -> ErrorReporter:
    return ErrorReporter()
