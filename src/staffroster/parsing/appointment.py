"""Appointment history parser: who is on a leave of absence today."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from staffroster.core.types import Grid
from staffroster.models.leave import AppointmentParseResult, LeaveEntry
from staffroster.models.warnings import WarningCollector
from staffroster.parsing.base import BaseSheetParser
from staffroster.parsing.dates import display_date, format_period, parse_date
from staffroster.parsing.headers import cell_text
from staffroster.parsing.history import group_by, select_current

logger = logging.getLogger(__name__)

HONORARY_MARKER = "명예"


@dataclass(frozen=True)
class LeaveRecord:
    name: str
    college: str
    dept: str
    status: str
    appointment_type: str
    leave_type: str
    start_text: str
    end_text: str
    start: Optional[date]
    end: Optional[date]

    @property
    def period(self) -> str:
        return format_period(self.start or self.start_text, self.end or self.end_text)


def history_remarks(history: list[LeaveRecord], leave_type: str) -> str:
    """``N차: start ~ end`` for each prior leave, wrapped by the current leave type."""
    remarks = " ".join(
        f"{i}차: {display_date(r.start or r.start_text)} ~ {display_date(r.end or r.end_text)}"
        for i, r in enumerate(history, start=1)
    )
    if leave_type:
        return f"{leave_type} ({remarks})" if remarks else leave_type
    return remarks


class AppointmentLeaveParser(BaseSheetParser):
    required_labels = ("성명", "재직구분", "휴직구분")
    min_matches = 2
    fallback_row = 3
    columns = {
        "college": ["대학"],
        "dept": ["소속"],
        "name": ["성명", "이름"],
        "status": ["재직구분"],
        "appointmentType": ["발령구분"],
        "leaveType": ["휴직구분"],
        "leaveStart": ["휴직시작일"],
        "leaveEnd": ["휴직종료일"],
    }

    def parse(self, grid: Grid, *, today: date | None = None) -> AppointmentParseResult:
        today = today or date.today()
        leave_status = self._labels.faculty.leave_status
        warnings = WarningCollector()
        location, cols = self._prepare(grid, warnings)

        records: list[LeaveRecord] = []
        for row in self._data_rows(grid, location, warnings):
            name = cell_text(row, cols["name"])
            status = cell_text(row, cols["status"])
            if not name or leave_status not in status:
                warnings.skip("notOnLeave")
                continue
            if HONORARY_MARKER in status:
                warnings.skip("honorary")
                continue

            start_text = cell_text(row, cols["leaveStart"])
            end_text = cell_text(row, cols["leaveEnd"])
            start = parse_date(row[cols["leaveStart"]]) if start_text else None
            end = parse_date(row[cols["leaveEnd"]]) if end_text else None
            if start_text and start is None:
                warnings.unparsable_dates += 1
            if end_text and end is None:
                warnings.unparsable_dates += 1
            records.append(
                LeaveRecord(
                    name=name,
                    college=cell_text(row, cols["college"]),
                    dept=cell_text(row, cols["dept"]),
                    status=status,
                    appointment_type=cell_text(row, cols["appointmentType"]),
                    leave_type=cell_text(row, cols["leaveType"]),
                    start_text=start_text,
                    end_text=end_text,
                    start=start,
                    end=end,
                )
            )

        leave: list[LeaveEntry] = []
        for name, group in group_by(records, lambda r: r.name).items():
            selection = select_current(group, start=lambda r: r.start, end=lambda r: r.end, today=today)
            if selection is None:
                warnings.skip("noCurrentLeave")
                continue
            current = selection.current
            leave.append(
                LeaveEntry(
                    dept=current.dept or current.college or self._labels.faculty.unassigned_dept,
                    name=name,
                    period=current.period,
                    remarks=history_remarks(selection.history, current.leave_type),
                )
            )

        logger.info("Appointment history: %d leave rows, %d currently on leave", len(records), len(leave))
        return AppointmentParseResult(leave=leave, warnings=warnings.build())
