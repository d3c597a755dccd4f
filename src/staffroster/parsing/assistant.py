"""Assistant roster parsers.

Both variants read the appointment export filtered to the assistant job
series. ``AssistantRosterParser`` yields a flat, de-duplicated person list;
``AssistantStructureParser`` groups active assistants into colleges and
administrative units for the staffing table, whose ``allocated`` column is
administrator-owned and survives re-uploads (see ``merge_allocations``).
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from datetime import date
from typing import Optional

from staffroster.core.types import ColumnIndexMap, Grid, Row
from staffroster.models.assistant import (
    AssistantCategory,
    AssistantDepartment,
    AssistantEntry,
    AssistantRecord,
    AssistantRoster,
    AssistantRosterSummary,
    AssistantStructure,
    AssistantStructureSummary,
    allocation_key,
)
from staffroster.models.labels import AssistantLabels
from staffroster.models.warnings import WarningCollector
from staffroster.parsing.base import BaseSheetParser
from staffroster.parsing.dates import parse_date
from staffroster.parsing.headers import cell_text

logger = logging.getLogger(__name__)

ASSISTANT_COLUMNS = {
    "college": ["대학"],
    "department": ["소속"],
    "name": ["성명", "이름"],
    "jobSeries": ["직렬"],
    "position": ["직급"],
    "status": ["재직구분"],
    "appointmentType": ["발령구분"],
    "startDate": ["발령시작일", "임용시작일"],
    "endDate": ["발령종료일", "임용종료일"],
}


class _AssistantSheetParser(BaseSheetParser):
    required_labels = ("성명", "직렬", "소속", "재직구분")
    min_matches = 3
    fallback_row = 3
    columns = ASSISTANT_COLUMNS

    @property
    def _assistant(self) -> AssistantLabels:
        return self._labels.assistant

    def _assistant_rows(self, grid: Grid, warnings: WarningCollector) -> tuple[list[Row], ColumnIndexMap]:
        location, cols = self._prepare(grid, warnings)
        rows: list[Row] = []
        for row in self._data_rows(grid, location, warnings):
            if cell_text(row, cols["jobSeries"]) != self._assistant.job_series:
                warnings.skip("notAssistant")
                continue
            rows.append(row)
        return rows, cols

    def _date(self, row: Row, index: int, warnings: WarningCollector) -> Optional[date]:
        if not cell_text(row, index):
            return None
        parsed = parse_date(row[index])
        if parsed is None:
            warnings.unparsable_dates += 1
        return parsed

    def normalize_college(self, college: str) -> str:
        text = college.strip()
        if not text:
            return self._assistant.unknown_college
        for rule in self._assistant.college_aliases:
            if any(fragment in text for fragment in rule.contains):
                return rule.canonical
        return text


class AssistantRosterParser(_AssistantSheetParser):
    """Flat assistant list, one record per ``name|college``."""

    def parse(self, grid: Grid) -> AssistantRoster:
        warnings = WarningCollector()
        rows, cols = self._assistant_rows(grid, warnings)

        by_key: dict[str, AssistantRecord] = {}
        total = 0
        for row in rows:
            name = cell_text(row, cols["name"])
            if not name:
                warnings.skip("missingName")
                continue
            total += 1
            status = cell_text(row, cols["status"])
            appointment_type = cell_text(row, cols["appointmentType"])
            record = AssistantRecord(
                name=name,
                college=self.normalize_college(cell_text(row, cols["college"])),
                department=cell_text(row, cols["department"]),
                position=cell_text(row, cols["position"]),
                employment_status=status,
                appointment_type=appointment_type,
                start_date=self._date(row, cols["startDate"], warnings),
                end_date=self._date(row, cols["endDate"], warnings),
                is_active=self._assistant.active_status in status,
                is_first_appointment=appointment_type == self._assistant.new_appointment_type,
            )
            key = f"{record.name}|{record.college}"
            existing = by_key.get(key)
            if existing is not None:
                warnings.skip("duplicate")
            if existing is None or _newer(record, existing):
                by_key[key] = record

        assistants = list(by_key.values())
        actual_counts = Counter(a.college for a in assistants if a.is_active)
        summary = AssistantRosterSummary(
            total_records=len(assistants),
            total_active=sum(actual_counts.values()),
            total_first_appointments=sum(1 for a in assistants if a.is_first_appointment),
        )
        logger.info(
            "Assistant roster: %d rows, %d unique, %d active", total, len(assistants), summary.total_active,
        )
        return AssistantRoster(
            assistants=assistants,
            actual_counts=dict(actual_counts),
            summary=summary,
            warnings=warnings.build(),
        )


def _newer(candidate: AssistantRecord, current: AssistantRecord) -> bool:
    # A missing start date never wins over a known one.
    if candidate.start_date is None:
        return False
    if current.start_date is None:
        return True
    return candidate.start_date > current.start_date


class AssistantStructureParser(_AssistantSheetParser):
    """Active assistants grouped into colleges and administrative units."""

    def parse(self, grid: Grid) -> AssistantStructure:
        warnings = WarningCollector()
        rows, cols = self._assistant_rows(grid, warnings)

        # One group per (category, main department, co-appointments): the allocation key.
        groups: dict[str, tuple[bool, str, AssistantDepartment]] = {}
        for row in rows:
            if cell_text(row, cols["status"]) != self._assistant.active_status:
                warnings.skip("inactive")
                continue
            name = cell_text(row, cols["name"])
            dept = cell_text(row, cols["department"])
            if not name or not dept:
                warnings.skip("missingNameOrDepartment")
                continue
            college = self.normalize_college(cell_text(row, cols["college"]))
            entry = AssistantEntry(
                name=name,
                is_new=cell_text(row, cols["appointmentType"]) == self._assistant.new_appointment_type,
                start_date=self._date(row, cols["startDate"], warnings),
            )
            category = self.admin_category(college, dept)
            main, subs = self.split_department(dept)
            key = allocation_key(category or college, main, subs)
            if key not in groups:
                groups[key] = (
                    category is not None,
                    category or college,
                    AssistantDepartment(main_dept=main, sub_depts=subs),
                )
            department = groups[key][2]
            department.assistants.append(entry)
            department.current = department.allocated = len(department.assistants)

        colleges: dict[str, list[AssistantDepartment]] = {}
        admin: dict[str, list[AssistantDepartment]] = {}
        for is_admin, name, department in groups.values():
            (admin if is_admin else colleges).setdefault(name, []).append(department)

        college_cats = _ordered(colleges, self._assistant.college_order)
        admin_cats = _ordered(admin, self._assistant.admin_order)
        total_colleges = sum(d.current for c in college_cats for d in c.departments)
        total_admin = sum(d.current for c in admin_cats for d in c.departments)
        logger.info("Assistant structure: %d in colleges, %d in administration", total_colleges, total_admin)
        return AssistantStructure(
            colleges=college_cats,
            administrative=admin_cats,
            summary=AssistantStructureSummary(
                total_colleges=total_colleges,
                total_admin=total_admin,
                grand_total=total_colleges + total_admin,
            ),
            warnings=warnings.build(),
        )

    def admin_category(self, college: str, dept: str) -> str | None:
        """Administrative unit named in the college or department, if any."""
        for unit in self._assistant.admin_order:
            if unit in college or unit in dept:
                return unit
        return None

    def split_department(self, label: str) -> tuple[str, list[str]]:
        """Split a multi-line department cell into the main department and co-appointments."""
        marker = self._assistant.co_appointment_marker
        parts = [p.strip() for p in label.split("\n") if p.strip()]
        main = next((p for p in parts if not p.startswith(marker)), parts[0] if parts else label)
        return main, [p for p in parts if p.startswith(marker)]


def _ordered(groups: dict[str, list[AssistantDepartment]], order: list[str]) -> list[AssistantCategory]:
    known = [AssistantCategory(category_name=n, departments=groups[n]) for n in order if n in groups]
    rest = [AssistantCategory(category_name=n, departments=d) for n, d in groups.items() if n not in order]
    return known + rest


# ---------------------------------------------------------------------------
# Allocations
# ---------------------------------------------------------------------------

def merge_allocations(previous: Mapping[str, int] | None, parsed: AssistantStructure) -> dict[str, int]:
    """Carry stored allocations forward; unseen keys start at the parsed headcount.

    Keys present in ``previous`` but absent from this upload are kept so an
    administrator's number is not lost when a department is briefly empty.
    """
    merged = dict(previous or {})
    for key, headcount in parsed.headcounts().items():
        merged.setdefault(key, headcount)
    return merged


def apply_allocations(structure: AssistantStructure, allocations: Mapping[str, int]) -> AssistantStructure:
    """Copy of ``structure`` with allocated/remaining filled from ``allocations``."""
    out = structure.model_copy(deep=True)
    for category in out.categories():
        for dept in category.departments:
            key = category.key_for(dept)
            dept.allocated = allocations.get(key, dept.current)
            dept.remaining = dept.allocated - dept.current
    return out
