"""Faculty roster records and the classification tree built from them."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

from pydantic import Field

from staffroster.models.base import CamelModel, DisplayDate
from staffroster.models.department import DepartmentUnit
from staffroster.models.leave import ResearchLeaveData
from staffroster.models.warnings import ParseWarnings


class PositionTier(StrEnum):
    FULL_TIME = "fullTime"
    PART_TIME = "partTime"
    OTHER = "other"
    UNCLASSIFIED = "unclassified"


class FacultyMember(CamelModel):
    """One active faculty row, with fields derived once at parse time."""

    name: str
    employment_status: str = ""
    status_label: str = ""  # "휴직", "연구" or ""
    gender: str = ""
    birth_date: Optional[DisplayDate] = None
    first_appointment_start: Optional[DisplayDate] = None
    first_appointment_end: Optional[DisplayDate] = None
    reappointment_end: Optional[DisplayDate] = None
    retirement_date: Optional[DisplayDate] = None
    is_tenure_guaranteed: bool = False
    position: str = ""
    canonical_position: str = ""
    tier: PositionTier = PositionTier.UNCLASSIFIED
    college: str = ""
    dept: str = ""
    serial_type: str = ""
    display_name: str = ""


PositionLists = dict[str, list[FacultyMember]]


class UnitBucket(CamelModel):
    """A top-level node of the roster tree.

    Flat units (centers, institutes) hold people directly under ``positions``;
    units with sub-units hold them under ``sub_departments[sub][position]``.
    """

    name: str
    positions: PositionLists = Field(default_factory=dict)
    sub_departments: dict[str, PositionLists] = Field(default_factory=dict)

    @property
    def is_nested(self) -> bool:
        return bool(self.sub_departments)

    def leaves(self) -> list[tuple[str | None, str, list[FacultyMember]]]:
        """Every (sub-unit, position, people) leaf of this unit."""
        out: list[tuple[str | None, str, list[FacultyMember]]] = []
        for position, people in self.positions.items():
            out.append((None, position, people))
        for sub, positions in self.sub_departments.items():
            for position, people in positions.items():
                out.append((sub, position, people))
        return out


class GenderStat(CamelModel):
    rank: str
    male: int = 0
    female: int = 0
    unknown: int = 0
    total: int = 0


class FacultyStats(CamelModel):
    total: int = 0
    processed: int = 0


class FacultyParseResult(CamelModel):
    """Everything one faculty upload produces, persisted as one snapshot."""

    members: list[FacultyMember] = Field(default_factory=list)
    faculty_data: list[UnitBucket] = Field(default_factory=list)
    dept_structure: list[DepartmentUnit] = Field(default_factory=list)
    full_time_positions: list[str] = Field(default_factory=list)
    part_time_positions: list[str] = Field(default_factory=list)
    other_positions: list[str] = Field(default_factory=list)
    research_leave_data: ResearchLeaveData = ResearchLeaveData()
    gender_stats: list[GenderStat] = Field(default_factory=list)
    stats: FacultyStats = FacultyStats()
    warnings: ParseWarnings = ParseWarnings()

    def to_snapshot_payload(self) -> dict[str, Any]:
        """Stored form: the tree and gender tally are rebuilt from ``members`` at read time."""
        return self.model_dump(
            mode="json", by_alias=True, exclude={"faculty_data", "gender_stats", "dept_structure"},
        )


class TierCounts(CamelModel):
    full_time: int = 0
    part_time: int = 0
    other: int = 0
    unclassified: int = 0
    total: int = 0


class FacultySummary(CamelModel):
    """Headcount totals for the dashboard statistics panel."""

    totals: TierCounts = TierCounts()
    by_position: dict[str, int] = Field(default_factory=dict)
    by_department: dict[str, TierCounts] = Field(default_factory=dict)
