"""Read-side shapes returned by the dashboard service."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from staffroster.models.assistant import (
    AssistantCategory,
    AssistantRosterSummary,
    AssistantStructureSummary,
)
from staffroster.models.base import CamelModel
from staffroster.models.department import DepartmentUnit
from staffroster.models.faculty import FacultyStats, GenderStat, UnitBucket
from staffroster.models.leave import LeaveEntry, LeaveSource, ResearchHalves, ResearchLeaveData
from staffroster.models.snapshot import UploadInfo
from staffroster.models.warnings import ParseWarnings


class FacultyView(CamelModel):
    """Stored roster re-placed against the current department structure."""

    faculty_data: list[UnitBucket] = Field(default_factory=list)
    dept_structure: list[DepartmentUnit] = Field(default_factory=list)
    full_time_positions: list[str] = Field(default_factory=list)
    part_time_positions: list[str] = Field(default_factory=list)
    other_positions: list[str] = Field(default_factory=list)
    research_leave_data: ResearchLeaveData = ResearchLeaveData()
    gender_stats: list[GenderStat] = Field(default_factory=list)
    stats: FacultyStats = FacultyStats()
    warnings: ParseWarnings = ParseWarnings()
    upload: Optional[UploadInfo] = None
    last_updated: Optional[datetime] = None


class AssistantView(CamelModel):
    colleges: list[AssistantCategory] = Field(default_factory=list)
    administrative: list[AssistantCategory] = Field(default_factory=list)
    summary: AssistantStructureSummary = AssistantStructureSummary()
    roster_summary: AssistantRosterSummary = AssistantRosterSummary()
    actual_counts: dict[str, int] = Field(default_factory=dict)
    allocations: dict[str, int] = Field(default_factory=dict)
    version: int = 0
    upload: Optional[UploadInfo] = None
    last_updated: Optional[datetime] = None


class LeaveView(CamelModel):
    """Sabbatical halves plus the merged leave-of-absence table."""

    research: ResearchHalves = ResearchHalves()
    leave: list[LeaveEntry] = Field(default_factory=list)
    sources: dict[str, LeaveSource] = Field(default_factory=dict)
