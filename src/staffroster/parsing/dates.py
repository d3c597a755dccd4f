"""Date handling for spreadsheet cells.

Source dates arrive as free text with inconsistent separators
("2024.03.01", "2024-03-01", "2024/3/1", "2024.03"), as Excel serial
numbers, or as real date objects when the workbook cell is date-formatted.
Everything is parsed into ``datetime.date`` for comparison and only
rendered back to ``YYYY.MM.DD`` for display.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

# Serial 0 in the 1900 date system; the phantom 1900-02-29 is absorbed by the 30th.
EXCEL_EPOCH = date(1899, 12, 30)
DISPLAY_SEPARATOR = "."

# Serials outside this window are almost certainly plain numbers, not dates.
_MIN_SERIAL = 1
_MAX_SERIAL = 2958465  # 9999-12-31

_FULL_DATE_RE = re.compile(r"(\d{4})\s*[.\-/]\s*(\d{1,2})\s*[.\-/]\s*(\d{1,2})")
_YEAR_MONTH_RE = re.compile(r"(\d{4})\s*[.\-/]\s*(\d{1,2})")
_COMPACT_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")


def excel_serial_to_date(serial: float) -> date:
    """Convert an Excel 1900-system serial number to a date."""
    return EXCEL_EPOCH + timedelta(days=int(serial))


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse a cell value into a date, or None when it is not a date.

    Accepts date/datetime objects, Excel serial numbers, and text in
    ``YYYY.MM.DD`` / ``YYYY-MM-DD`` / ``YYYY/MM/DD`` / ``YYYYMMDD`` or
    ``YYYY.MM`` (first of the month) form.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        if _MIN_SERIAL <= value <= _MAX_SERIAL:
            return excel_serial_to_date(value)
        return None

    text = str(value).strip()
    if not text:
        return None

    m = _FULL_DATE_RE.search(text)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _COMPACT_RE.match(text)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _YEAR_MONTH_RE.search(text)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), 1)

    return None


def format_date(value: date, separator: str = DISPLAY_SEPARATOR) -> str:
    """Render a date as zero-padded ``YYYY.MM.DD`` (or with another separator)."""
    return f"{value.year:04d}{separator}{value.month:02d}{separator}{value.day:02d}"


def display_date(value: Any, separator: str = DISPLAY_SEPARATOR) -> str:
    """Normalize a raw cell for display.

    Parseable values are re-rendered zero-padded; anything else is returned
    as stripped text so nothing typed into the sheet is hidden.
    """
    parsed = parse_date(value)
    if parsed is not None:
        return format_date(parsed, separator)
    if value is None or isinstance(value, bool):
        return ""
    return str(value).strip()


def format_period(start: Any, end: Any) -> str:
    """Render a start/end pair as ``start ~ end``, ``start ~``, ``~ end`` or ``""``."""
    start_text = display_date(start) if start else ""
    end_text = display_date(end) if end else ""
    if start_text and end_text:
        return f"{start_text} ~ {end_text}"
    if start_text:
        return f"{start_text} ~"
    if end_text:
        return f"~ {end_text}"
    return ""


def extract_month(value: Any) -> int:
    """Month number of a date-like value, 0 when it cannot be determined."""
    parsed = parse_date(value)
    return parsed.month if parsed is not None else 0


def contains_day(start: Optional[date], end: Optional[date], day: date) -> bool:
    """True when both bounds are known and ``start <= day <= end``."""
    if start is None or end is None:
        return False
    return start <= day <= end
