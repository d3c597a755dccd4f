"""Sabbatical/dispatch list parser.

Each person's current dispatch is bucketed into the first half of the
academic year (starting March-August), the second half (September-February),
or the leave table when the status is a leave of absence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from staffroster.core.types import Grid
from staffroster.models.leave import LeaveEntry, ResearchHalves, ResearchLeaveParseResult
from staffroster.models.warnings import WarningCollector
from staffroster.parsing.base import BaseSheetParser
from staffroster.parsing.dates import format_period, parse_date
from staffroster.parsing.headers import cell_text
from staffroster.parsing.history import group_by, select_current

logger = logging.getLogger(__name__)

FIRST_HALF_MONTHS = range(3, 9)
DISPATCH_MARKERS = ("연구년", "파견")


@dataclass(frozen=True)
class DispatchRecord:
    name: str
    college: str
    dept: str
    status: str
    org: str
    start_text: str
    end_text: str
    start: Optional[date]
    end: Optional[date]


def is_first_half(start: Optional[date]) -> bool:
    """Start months 3-8 are the first half; an unknown month counts as first half too."""
    return start is None or start.month in FIRST_HALF_MONTHS


def prior_years_remark(org: str, history: list[DispatchRecord]) -> str:
    years = sorted({r.start.year for r in history if r.start is not None})
    parts = [org] if org else []
    if years:
        parts.append("(" + ", ".join(f"{y}년" for y in years) + ")")
    return " ".join(parts)


class ResearchLeaveParser(BaseSheetParser):
    required_labels = ("성명", "학과", "파견시작일")
    min_matches = 2
    fallback_row = 0
    columns = {
        "college": ["대학"],
        "dept": ["학과", "소속"],
        "name": ["성명", "이름"],
        "employmentStatus": ["재직구분", "구분"],
        "dispatchStart": ["파견시작일", "시작일"],
        "dispatchEnd": ["파견종료일", "종료일"],
        "dispatchOrg": ["파견교/파견기관", "파견교", "파견기관"],
    }

    def parse(self, grid: Grid, *, today: date | None = None) -> ResearchLeaveParseResult:
        today = today or date.today()
        warnings = WarningCollector()
        location, cols = self._prepare(grid, warnings)

        records: list[DispatchRecord] = []
        for row in self._data_rows(grid, location, warnings):
            name = cell_text(row, cols["name"])
            if not name:
                warnings.skip("missingName")
                continue
            start_text = cell_text(row, cols["dispatchStart"])
            end_text = cell_text(row, cols["dispatchEnd"])
            start = parse_date(row[cols["dispatchStart"]]) if start_text else None
            end = parse_date(row[cols["dispatchEnd"]]) if end_text else None
            if start_text and start is None:
                warnings.unparsable_dates += 1
            if end_text and end is None:
                warnings.unparsable_dates += 1
            records.append(
                DispatchRecord(
                    name=name,
                    college=cell_text(row, cols["college"]),
                    dept=cell_text(row, cols["dept"]),
                    status=cell_text(row, cols["employmentStatus"]),
                    org=cell_text(row, cols["dispatchOrg"]),
                    start_text=start_text,
                    end_text=end_text,
                    start=start,
                    end=end,
                )
            )

        halves = ResearchHalves()
        leave: list[LeaveEntry] = []
        leave_status = self._labels.faculty.leave_status
        for name, group in group_by(records, lambda r: r.name).items():
            selection = select_current(group, start=lambda r: r.start, end=lambda r: r.end, today=today)
            if selection is None:
                warnings.skip("noCurrentDispatch")
                continue
            current = selection.current
            entry = LeaveEntry(
                dept=current.dept or current.college or self._labels.faculty.unassigned_dept,
                name=name,
                period=format_period(current.start or current.start_text, current.end or current.end_text),
                remarks=prior_years_remark(current.org, selection.history),
            )
            if any(marker in current.status for marker in DISPATCH_MARKERS):
                (halves.first if is_first_half(current.start) else halves.second).append(entry)
            elif leave_status in current.status:
                leave.append(entry)
            else:
                halves.first.append(entry)

        logger.info(
            "Dispatch list: %d first half, %d second half, %d on leave",
            len(halves.first), len(halves.second), len(leave),
        )
        return ResearchLeaveParseResult(research=halves, leave=leave, warnings=warnings.build())
