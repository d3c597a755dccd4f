"""Tabular decoder: spreadsheet bytes -> rectangular grid of raw cell values.

Only the first sheet is read. Date cells become zero-padded ``YYYY.MM.DD``
strings, formula cells resolve to their cached value, and empty cells are
``""`` so downstream code never has to distinguish "missing" kinds.
"""

from __future__ import annotations

import io
import logging
from datetime import date, datetime, time
from enum import StrEnum
from pathlib import PurePath
from typing import Any

import openpyxl
import xlrd

from staffroster.core.exceptions import (
    EmptyWorkbookError,
    UnsupportedFormatError,
    WorkbookReadError,
)
from staffroster.core.types import CellValue, Grid
from staffroster.parsing.dates import format_date

logger = logging.getLogger(__name__)


class SpreadsheetFormat(StrEnum):
    XLSX = "xlsx"  # zip-based OOXML
    XLS = "xls"  # legacy OLE2 binary


_MAGIC_BYTES: dict[bytes, SpreadsheetFormat] = {
    b"PK\x03\x04": SpreadsheetFormat.XLSX,
    b"\xd0\xcf\x11\xe0": SpreadsheetFormat.XLS,
}

_EXTENSION_MAP: dict[str, SpreadsheetFormat] = {
    ".xlsx": SpreadsheetFormat.XLSX,
    ".xlsm": SpreadsheetFormat.XLSX,
    ".xls": SpreadsheetFormat.XLS,
}


def detect_format(data: bytes, filename: str | None = None) -> SpreadsheetFormat:
    """Decide xls vs xlsx from the extension, falling back to the file signature."""
    if filename:
        ext = PurePath(filename).suffix.lower()
        if ext in _EXTENSION_MAP:
            return _EXTENSION_MAP[ext]
        if ext:
            raise UnsupportedFormatError(filename, f"extension {ext!r}")

    for magic, fmt in _MAGIC_BYTES.items():
        if data.startswith(magic):
            return fmt
    raise UnsupportedFormatError(filename, "unrecognized file signature")


def _normalize_value(value: Any) -> CellValue:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return format_date(value.date())
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, int):
        return value
    return str(value)


def _rectangular(rows: list[list[CellValue]]) -> Grid:
    # Trailing blank rows are common in exports; drop them so "zero rows" means empty.
    while rows and all(cell == "" for cell in rows[-1]):
        rows.pop()
    width = max((len(r) for r in rows), default=0)
    return [r + [""] * (width - len(r)) for r in rows]


def _read_xlsx(data: bytes) -> Grid:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise WorkbookReadError(f"Cannot open xlsx workbook: {exc}") from exc

    try:
        if not wb.worksheets:
            raise EmptyWorkbookError("Workbook has no sheets")
        ws = wb.worksheets[0]
        # Read-only mode trusts the stored <dimension>, which some exporters get wrong.
        ws.reset_dimensions()
        rows = [[_normalize_value(v) for v in row] for row in ws.iter_rows(values_only=True)]
    except EmptyWorkbookError:
        raise
    except Exception as exc:
        raise WorkbookReadError(f"Cannot read xlsx sheet: {exc}") from exc
    finally:
        wb.close()
    return _rectangular(rows)


def _xls_cell(cell: Any, datemode: int) -> CellValue:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return ""
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return format_date(xlrd.xldate_as_datetime(cell.value, datemode).date())
        except (ValueError, OverflowError):
            return _normalize_value(cell.value)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    return _normalize_value(cell.value)


def _read_xls(data: bytes) -> Grid:
    try:
        book = xlrd.open_workbook(file_contents=data)
    except Exception as exc:
        raise WorkbookReadError(f"Cannot open xls workbook: {exc}") from exc

    if book.nsheets == 0:
        raise EmptyWorkbookError("Workbook has no sheets")
    sheet = book.sheet_by_index(0)
    rows = [
        [_xls_cell(sheet.cell(r, c), book.datemode) for c in range(sheet.ncols)]
        for r in range(sheet.nrows)
    ]
    return _rectangular(rows)


def decode_workbook(data: bytes, filename: str | None = None) -> Grid:
    """Decode the first sheet of an xls/xlsx payload into a Grid.

    Raises:
        UnsupportedFormatError: neither extension nor signature is xls/xlsx.
        EmptyWorkbookError: no sheets, or the first sheet has zero rows.
        WorkbookReadError: the spreadsheet library rejected the payload.
    """
    fmt = detect_format(data, filename)
    grid = _read_xlsx(data) if fmt is SpreadsheetFormat.XLSX else _read_xls(data)
    if not grid:
        raise EmptyWorkbookError(f"First sheet of {filename or '<buffer>'} has no rows")
    logger.info(
        "Decoded %s workbook %s: %d rows x %d cols",
        fmt.value, filename or "<buffer>", len(grid), len(grid[0]),
    )
    return grid
