"""Tests for workbook decoding over openpyxl-built workbooks and a BIFF8 fixture."""

from __future__ import annotations

import re
from datetime import date, datetime

import pytest

from staffroster.core.exceptions import (
    EmptyWorkbookError,
    UnsupportedFormatError,
    WorkbookReadError,
)
from staffroster.parsing.dates import parse_date
from staffroster.parsing.decoder import SpreadsheetFormat, decode_workbook, detect_format
from tests.fakes import xlsx_bytes
from tests.fakes.workbooks import LEGACY_XLS, rewrite_sheet_xml


class TestDetectFormat:
    def test_extension_wins(self):
        assert detect_format(b"", "roster.XLSX") is SpreadsheetFormat.XLSX
        assert detect_format(b"", "old.xls") is SpreadsheetFormat.XLS
        assert detect_format(b"", "macro.xlsm") is SpreadsheetFormat.XLSX

    def test_signature_without_extension(self):
        assert detect_format(b"PK\x03\x04rest") is SpreadsheetFormat.XLSX
        assert detect_format(b"\xd0\xcf\x11\xe0rest", "export") is SpreadsheetFormat.XLS

    def test_unknown_extension_rejected(self):
        with pytest.raises(UnsupportedFormatError):
            detect_format(b"PK\x03\x04", "roster.csv")

    def test_unknown_signature_rejected(self):
        with pytest.raises(UnsupportedFormatError):
            detect_format(b"name,dept\n")


class TestDecodeXlsx:
    def test_reads_first_sheet_rectangular(self):
        data = xlsx_bytes([["성명", "소속", "직급"], ["김교수", "유도학과"]])
        grid = decode_workbook(data, "roster.xlsx")
        assert grid == [["성명", "소속", "직급"], ["김교수", "유도학과", ""]]

    def test_date_cells_become_display_strings(self):
        data = xlsx_bytes([["임용일"], [datetime(2024, 3, 1)], [date(2019, 9, 1)]])
        grid = decode_workbook(data, "roster.xlsx")
        assert grid[1][0] == "2024.03.01"
        assert grid[2][0] == "2019.09.01"

    def test_date_formatted_serial(self):
        data = xlsx_bytes([["임용일"], [45000]], date_format_cells={(1, 0): "yyyy-mm-dd"})
        grid = decode_workbook(data, "roster.xlsx")
        assert grid[1][0] == "2023.03.15"
        assert parse_date(grid[1][0]) == date(2023, 3, 15)

    def test_plain_serial_stays_numeric(self):
        grid = decode_workbook(xlsx_bytes([["값"], [45000]]), "roster.xlsx")
        assert grid[1][0] == 45000
        assert parse_date(grid[1][0]) == date(2023, 3, 15)

    def test_integral_floats_become_ints(self):
        grid = decode_workbook(xlsx_bytes([["호봉"], [3.0], [2.5]]), "roster.xlsx")
        assert grid[1][0] == 3
        assert isinstance(grid[1][0], int)
        assert grid[2][0] == 2.5

    def test_trailing_blank_rows_dropped(self):
        grid = decode_workbook(xlsx_bytes([["성명"], ["김교수"], [None], [None]]), "roster.xlsx")
        assert grid == [["성명"], ["김교수"]]

    def test_signature_detection_without_filename(self):
        grid = decode_workbook(xlsx_bytes([["성명"]]))
        assert grid == [["성명"]]

    def test_empty_sheet_raises(self):
        with pytest.raises(EmptyWorkbookError):
            decode_workbook(xlsx_bytes([]), "empty.xlsx")

    def test_corrupt_payload_raises(self):
        with pytest.raises(WorkbookReadError):
            decode_workbook(b"PK\x03\x04 not really a zip", "broken.xlsx")

    def test_formula_cells_use_cached_value(self):
        def cache(xml):
            xml, count = re.subn(r"<f>A2\*2</f><v\s*/>|<f>A2\*2</f><v></v>", "<f>A2*2</f><v>42</v>", xml)
            assert count == 1
            return xml

        data = rewrite_sheet_xml(xlsx_bytes([["호봉", "두배"], [21, "=A2*2"]]), cache)
        assert decode_workbook(data, "roster.xlsx") == [["호봉", "두배"], [21, 42]]

    def test_uncalculated_formula_reads_empty(self):
        grid = decode_workbook(xlsx_bytes([["호봉", "두배"], [21, "=A2*2"]]), "roster.xlsx")
        assert grid == [["호봉", "두배"], [21, ""]]

    def test_understated_dimension_ignored(self):
        def shrink(xml):
            xml, count = re.subn(r'<dimension ref="[^"]*"', '<dimension ref="A1"', xml)
            assert count == 1
            return xml

        rows = [["성명", "소속"], ["김교수", "유도학과"], ["이부교", "체육학과"]]
        data = rewrite_sheet_xml(xlsx_bytes(rows), shrink)
        assert decode_workbook(data, "roster.xlsx") == rows


class TestDecodeXls:
    def test_reads_dates_and_numbers(self):
        grid = decode_workbook(LEGACY_XLS.read_bytes(), "legacy_roster.xls")
        assert grid == [
            ["성명", "임용일", "호봉"],
            ["김교수", "2024.03.01", 3],
            ["이부교", "2023.03.01", 12.5],
            ["박연구", "", ""],
        ]
        assert isinstance(grid[1][2], int)

    def test_corrupt_payload_raises(self):
        with pytest.raises(WorkbookReadError):
            decode_workbook(b"\xd0\xcf\x11\xe0" + b"\x00" * 64, "broken.xls")
