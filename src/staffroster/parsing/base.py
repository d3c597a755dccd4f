"""Base sheet parser with common dependency wiring and header handling."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import ClassVar

from staffroster.core.types import ColumnIndexMap, Grid, Row
from staffroster.models.labels import LabelConfig
from staffroster.models.warnings import HeaderOutcome, WarningCollector
from staffroster.parsing.headers import (
    DEFAULT_SCAN_ROWS,
    HeaderLocation,
    header_row,
    locate_header,
    resolve_columns,
    row_is_blank,
    unresolved,
)

logger = logging.getLogger(__name__)


class BaseSheetParser:
    """Common base for all roster sheet parsers.

    Subclasses declare their header vocabulary as class attributes; label
    tables are injected at construction time and never mutated, so one
    instance may serve concurrent uploads.
    """

    required_labels: ClassVar[Sequence[str]] = ()
    min_matches: ClassVar[int] = 2
    fallback_row: ClassVar[int] = 0
    columns: ClassVar[Mapping[str, Sequence[str]]] = {}

    def __init__(self, labels: LabelConfig, *, scan_rows: int = DEFAULT_SCAN_ROWS) -> None:
        self._labels = labels
        self._scan_rows = scan_rows

    @property
    def labels(self) -> LabelConfig:
        return self._labels

    def _prepare(self, grid: Grid, warnings: WarningCollector) -> tuple[HeaderLocation, ColumnIndexMap]:
        location = locate_header(
            grid,
            self.required_labels,
            min_matches=self.min_matches,
            fallback_row=self.fallback_row,
            scan_rows=self._scan_rows,
        )
        cols = resolve_columns(header_row(grid, location), self.columns)
        missing = unresolved(cols)
        if missing:
            logger.warning("%s: unresolved columns %s", type(self).__name__, missing)

        warnings.header = HeaderOutcome(row=location.row, matched=location.matched)
        warnings.unresolved_columns = missing
        return location, cols

    def _data_rows(self, grid: Grid, location: HeaderLocation, warnings: WarningCollector) -> Iterator[Row]:
        """Rows after the header; blank rows are counted and skipped."""
        for row in grid[location.row + 1:]:
            if row_is_blank(row):
                warnings.skip("blank")
                continue
            yield row
