"""Faculty roster parser: active rows -> department/position tree.

Placement consults the department structure passed in, never one frozen at
parse time, so ``classify`` is also used at read time to re-place stored
members against the current structure.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from staffroster.core.types import ColumnIndexMap, Grid, Row
from staffroster.models.department import DepartmentUnit
from staffroster.models.faculty import (
    FacultyMember,
    FacultyParseResult,
    FacultyStats,
    GenderStat,
    PositionLists,
    PositionTier,
    UnitBucket,
)
from staffroster.models.labels import LabelConfig
from staffroster.models.leave import LeaveEntry, ResearchHalves, ResearchLeaveData
from staffroster.models.warnings import ParseWarnings, PlacedInOther, WarningCollector
from staffroster.parsing.base import BaseSheetParser
from staffroster.parsing.dates import format_period, parse_date
from staffroster.parsing.headers import DEFAULT_SCAN_ROWS, cell_text
from staffroster.parsing.labels import PositionLookup

logger = logging.getLogger(__name__)

SECOND_HALF_MONTHS = (8, 9)


class FacultyRosterParser(BaseSheetParser):
    required_labels = ("성명", "직급", "소속", "대학", "재직구분")
    min_matches = 3
    fallback_row = 0
    columns = {
        "college": ["대학"],
        "dept": ["소속"],
        "name": ["성명"],
        "serialType": ["직렬"],
        "position": ["직급"],
        "gender": ["성별"],
        "status": ["재직구분"],
        "firstAppointmentStart": ["최초임용 시작일", "전임교원 최초임용일"],
        "firstAppointmentEnd": ["최초임용 종료일"],
        "reappointmentEnd": ["재임용종료일"],
        "birthDate": ["생년월일"],
        "retirementDate": ["정년일자"],
    }

    def __init__(self, labels: LabelConfig, *, scan_rows: int = DEFAULT_SCAN_ROWS) -> None:
        super().__init__(labels, scan_rows=scan_rows)
        self._lookup = PositionLookup(labels)
        self._faculty = labels.faculty
        self._positions = labels.positions

    # ------------------------------------------------------------------
    # Parse
    # ------------------------------------------------------------------

    def parse(self, grid: Grid, structure: list[DepartmentUnit]) -> FacultyParseResult:
        warnings = WarningCollector()
        location, cols = self._prepare(grid, warnings)

        members: list[FacultyMember] = []
        active = 0
        for row in self._data_rows(grid, location, warnings):
            name = cell_text(row, cols["name"])
            status = cell_text(row, cols["status"])
            if not self._is_active(status):
                warnings.skip("inactive")
                continue
            if not name:
                warnings.skip("missingName")
                continue
            active += 1

            position = cell_text(row, cols["position"])
            if self._lookup.is_skipped(position):
                warnings.skip(f"position:{position}")
                continue
            members.append(self._member(row, cols, name, status, position, warnings))

        tree, _ = self.classify(members, structure, warnings)
        processed = sum(len(people) for unit in tree for _, _, people in unit.leaves())
        logger.info("Faculty roster: %d active rows, %d placed", active, processed)

        return FacultyParseResult(
            members=members,
            faculty_data=tree,
            dept_structure=list(structure),
            full_time_positions=list(self._positions.full_time),
            part_time_positions=list(self._positions.part_time),
            other_positions=list(self._positions.other),
            research_leave_data=self.extract_research_leave(members),
            gender_stats=self.gender_stats(tree),
            stats=FacultyStats(total=active, processed=processed),
            warnings=warnings.build(),
        )

    def _is_active(self, status: str) -> bool:
        return bool(status) and any(s in status for s in self._faculty.active_statuses)

    def _status_label(self, status: str) -> str:
        if self._faculty.leave_status in status:
            return "휴직"
        if self._faculty.sabbatical_status in status:
            return "연구"
        return ""

    def _date(self, row: Row, index: int, warnings: WarningCollector) -> Optional[date]:
        text = cell_text(row, index)
        if not text:
            return None
        parsed = parse_date(row[index])
        if parsed is None:
            warnings.unparsable_dates += 1
        return parsed

    def _member(
        self,
        row: Row,
        cols: ColumnIndexMap,
        name: str,
        status: str,
        position: str,
        warnings: WarningCollector,
    ) -> FacultyMember:
        match = self._lookup.lookup(position)
        reappointment_end = self._date(row, cols["reappointmentEnd"], warnings)
        retirement_date = self._date(row, cols["retirementDate"], warnings)
        honorary = self._positions.honorary
        return FacultyMember(
            name=name,
            employment_status=status,
            status_label=self._status_label(status),
            gender=cell_text(row, cols["gender"]),
            birth_date=self._date(row, cols["birthDate"], warnings),
            first_appointment_start=self._date(row, cols["firstAppointmentStart"], warnings),
            first_appointment_end=self._date(row, cols["firstAppointmentEnd"], warnings),
            reappointment_end=reappointment_end,
            retirement_date=retirement_date,
            is_tenure_guaranteed=(
                reappointment_end is not None
                and reappointment_end == retirement_date
                and position != honorary
                and match.canonical != honorary
            ),
            position=position,
            canonical_position=match.canonical if match.mapped else self._positions.unclassified,
            tier=match.tier,
            college=cell_text(row, cols["college"]),
            dept=cell_text(row, cols["dept"]),
            serial_type=cell_text(row, cols["serialType"]),
        )

    # ------------------------------------------------------------------
    # Classification tree
    # ------------------------------------------------------------------

    def _empty_positions(self) -> PositionLists:
        return {p: [] for p in self._positions.tree_positions}

    def _empty_tree(self, structure: list[DepartmentUnit]) -> dict[str, UnitBucket]:
        tree: dict[str, UnitBucket] = {}
        for unit in structure:
            if unit.name == self._faculty.catch_all:
                continue
            if unit.name == self._faculty.graduate_school or unit.sub_departments:
                tree[unit.name] = UnitBucket(
                    name=unit.name,
                    sub_departments={sub: self._empty_positions() for sub in unit.sub_departments},
                )
            else:
                tree[unit.name] = UnitBucket(name=unit.name, positions=self._empty_positions())
        catch_all = self._faculty.catch_all
        tree[catch_all] = UnitBucket(name=catch_all, positions=self._empty_positions())
        return tree

    def classify(
        self,
        members: list[FacultyMember],
        structure: list[DepartmentUnit],
        warnings: WarningCollector | None = None,
    ) -> tuple[list[UnitBucket], ParseWarnings]:
        """Place each member in exactly one leaf of a tree built from ``structure``.

        Priority: special unit by department, special unit by college,
        graduate school sub-unit, college + sub-unit, then the catch-all unit.
        """
        warnings = warnings if warnings is not None else WarningCollector()
        tree = self._empty_tree(structure)
        flat_units = {name for name, bucket in tree.items() if not bucket.is_nested}
        flat_units.discard(self._faculty.catch_all)
        special = flat_units.intersection(self._faculty.special_units)
        grad = tree.get(self._faculty.graduate_school)
        grad_subs = list(grad.sub_departments) if grad is not None else []

        for member in members:
            position = member.canonical_position
            if member.tier is PositionTier.UNCLASSIFIED:
                position = self._positions.unclassified
                warnings.unmapped_positions[member.position] += 1

            target = self._place(member, tree, special, grad_subs)
            if target is None:
                bucket = tree[self._faculty.catch_all]
                member = member.model_copy(update={"display_name": self._catch_all_label(member)})
                bucket.positions[position].append(member)
                dept_label = member.dept or member.college
                warnings.unknown_departments[dept_label] += 1
                warnings.placed_in_other.append(
                    PlacedInOther(
                        name=member.name,
                        position=member.position,
                        college=member.college,
                        dept=member.dept,
                    )
                )
                continue
            target[position].append(member)

        return list(tree.values()), warnings.build()

    def _place(
        self,
        member: FacultyMember,
        tree: dict[str, UnitBucket],
        special: set[str],
        grad_subs: list[str],
    ) -> PositionLists | None:
        college, dept = member.college, member.dept

        if dept in special:
            return tree[dept].positions
        if college in special:
            return tree[college].positions

        if grad_subs:
            grad = tree[self._faculty.graduate_school].sub_departments
            if college in grad_subs:
                return grad[college]
            if college == self._faculty.graduate_school and dept in grad_subs:
                return grad[dept]
            for sub in grad_subs:
                if dept and sub in dept:
                    return grad[sub]

        bucket = tree.get(college)
        if bucket is not None and dept and dept in bucket.sub_departments:
            return bucket.sub_departments[dept]
        return None

    @staticmethod
    def _catch_all_label(member: FacultyMember) -> str:
        return f"{member.name}({member.position or member.serial_type}, {member.dept or member.college})"

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def _is_second_half(self, member: FacultyMember) -> bool:
        if member.reappointment_end is not None:
            return member.reappointment_end.month in SECOND_HALF_MONTHS
        return False

    def extract_research_leave(self, members: list[FacultyMember]) -> ResearchLeaveData:
        """Sabbatical rows bucketed by semester half, and leave rows, from the roster itself."""
        halves = ResearchHalves()
        leave: list[LeaveEntry] = []
        for member in members:
            entry = LeaveEntry(
                dept=member.dept or self._faculty.unassigned_dept,
                name=member.name,
                period=format_period(member.first_appointment_start, member.reappointment_end),
            )
            if self._faculty.sabbatical_status in member.employment_status:
                (halves.second if self._is_second_half(member) else halves.first).append(entry)
            elif self._faculty.leave_status in member.employment_status:
                leave.append(entry)
        return ResearchLeaveData(research=halves, leave=leave)

    def gender_stats(self, tree: list[UnitBucket]) -> list[GenderStat]:
        """Male/female/unknown tally over the full-time ranks.

        ``total`` counts male and female only; ``unknown`` is reported beside it.
        """
        counts: dict[str, dict[str, int]] = {
            rank: {"male": 0, "female": 0, "unknown": 0} for rank in self._positions.full_time
        }
        for unit in tree:
            for _, position, people in unit.leaves():
                if position not in counts:
                    continue
                for person in people:
                    counts[position][self._gender_key(person.gender)] += 1

        return [
            GenderStat(rank=rank, total=c["male"] + c["female"], **c)
            for rank, c in counts.items()
        ]

    def _gender_key(self, gender: Any) -> str:
        text = str(gender or "").strip()
        if text in self._faculty.male_labels:
            return "male"
        if text in self._faculty.female_labels:
            return "female"
        return "unknown"
