"""Header row discovery and column resolution shared by every sheet parser.

Real-world exports put the header on different rows (titles, blank lines
and filter captions above it) and label columns inconsistently, so both
steps match by substring rather than equality.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from staffroster.core.types import NOT_FOUND, ColumnIndexMap, Grid, Row

logger = logging.getLogger(__name__)

DEFAULT_SCAN_ROWS = 10
DEFAULT_MIN_MATCHES = 2


@dataclass(frozen=True)
class Located:
    """The header row was identified by its labels."""

    row: int

    @property
    def matched(self) -> bool:
        return True


@dataclass(frozen=True)
class FellBack:
    """No row matched; ``row`` is the parser's hard-coded guess."""

    row: int

    @property
    def matched(self) -> bool:
        return False


HeaderLocation = Union[Located, FellBack]


def cell_text(row: Sequence[Any] | None, index: int) -> str:
    """Stripped text of ``row[index]``; ``""`` for -1, out-of-range or empty cells."""
    if row is None or index == NOT_FOUND or index < 0 or index >= len(row):
        return ""
    value = row[index]
    if value is None or value == "":
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def row_is_blank(row: Sequence[Any] | None) -> bool:
    return not row or all(cell_text(row, i) == "" for i in range(len(row)))


def _count_matches(row: Row, required: Iterable[str]) -> int:
    texts = [cell_text(row, i) for i in range(len(row))]
    return sum(1 for label in required if any(label in t for t in texts if t))


def locate_header(
    grid: Grid,
    required: Sequence[str],
    *,
    min_matches: int = DEFAULT_MIN_MATCHES,
    fallback_row: int = 0,
    scan_rows: int = DEFAULT_SCAN_ROWS,
) -> HeaderLocation:
    """Find the first row among the first ``scan_rows`` containing enough required labels.

    Never fails: when nothing matches, returns ``FellBack(fallback_row)`` so
    the upload proceeds and the guess is reported to the operator.
    """
    for i in range(min(scan_rows, len(grid))):
        row = grid[i]
        if row_is_blank(row):
            continue
        if _count_matches(row, required) >= min_matches:
            logger.debug("Header row located at index %d", i)
            return Located(i)

    logger.warning(
        "Header row not found (required %s, threshold %d); falling back to row %d",
        list(required), min_matches, fallback_row,
    )
    return FellBack(fallback_row)


def find_column(header: Row, candidates: Sequence[str]) -> int:
    """Leftmost column whose header text contains any candidate label, else -1."""
    for i in range(len(header)):
        text = cell_text(header, i)
        if not text:
            continue
        if any(candidate in text for candidate in candidates):
            return i
    return NOT_FOUND


def resolve_columns(header: Row, fields: Mapping[str, Sequence[str]]) -> ColumnIndexMap:
    """Resolve every logical field independently; unresolved fields map to -1."""
    return {field: find_column(header, candidates) for field, candidates in fields.items()}


def unresolved(columns: ColumnIndexMap) -> list[str]:
    return [field for field, index in columns.items() if index == NOT_FOUND]


def header_row(grid: Grid, location: HeaderLocation) -> Row:
    """The header cells at ``location``, or an empty row if the guess is out of range."""
    if 0 <= location.row < len(grid):
        return grid[location.row]
    return []
