"""Type aliases used across staffroster."""

from __future__ import annotations

CellValue = str | int | float | bool
Row = list[CellValue]
Grid = list[Row]
ColumnIndexMap = dict[str, int]

NOT_FOUND = -1
