"""Teaching-assistant roster records, flat and grouped by college/department."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from pydantic import Field

from staffroster.models.base import CamelModel, DisplayDate
from staffroster.models.warnings import ParseWarnings


class AssistantRecord(CamelModel):
    name: str
    college: str = ""
    department: str = ""
    position: str = ""
    employment_status: str = ""
    appointment_type: str = ""
    start_date: Optional[DisplayDate] = None
    end_date: Optional[DisplayDate] = None
    is_active: bool = False
    is_first_appointment: bool = False


class AssistantRosterSummary(CamelModel):
    total_records: int = 0
    total_active: int = 0
    total_first_appointments: int = 0


class AssistantRoster(CamelModel):
    """Flat, de-duplicated assistant list with per-college active counts."""

    assistants: list[AssistantRecord] = Field(default_factory=list)
    actual_counts: dict[str, int] = Field(default_factory=dict)
    summary: AssistantRosterSummary = AssistantRosterSummary()
    warnings: ParseWarnings = ParseWarnings()


class AssistantEntry(CamelModel):
    name: str
    is_new: bool = False
    start_date: Optional[DisplayDate] = None


class AssistantDepartment(CamelModel):
    main_dept: str
    sub_depts: list[str] = Field(default_factory=list)
    allocated: int = 0
    current: int = 0
    remaining: int = 0
    assistants: list[AssistantEntry] = Field(default_factory=list)


class AssistantCategory(CamelModel):
    category_name: str
    departments: list[AssistantDepartment] = Field(default_factory=list)

    def key_for(self, dept: AssistantDepartment) -> str:
        return allocation_key(self.category_name, dept.main_dept, dept.sub_depts)


class AssistantStructureSummary(CamelModel):
    total_colleges: int = 0
    total_admin: int = 0
    grand_total: int = 0


class AssistantStructure(CamelModel):
    """Assistants grouped into academic colleges and administrative units."""

    colleges: list[AssistantCategory] = Field(default_factory=list)
    administrative: list[AssistantCategory] = Field(default_factory=list)
    summary: AssistantStructureSummary = AssistantStructureSummary()
    warnings: ParseWarnings = ParseWarnings()

    def categories(self) -> list[AssistantCategory]:
        return [*self.colleges, *self.administrative]

    def headcounts(self) -> dict[str, int]:
        return {cat.key_for(dept): dept.current for cat in self.categories() for dept in cat.departments}


class AssistantSnapshot(CamelModel):
    """Stored assistant document: both parser variants plus admin-entered allocations."""

    roster: AssistantRoster = AssistantRoster()
    structure: AssistantStructure = AssistantStructure()
    allocations: dict[str, int] = Field(default_factory=dict)


def allocation_key(category: str, main_dept: str, sub_depts: Sequence[str] = ()) -> str:
    """``category|main`` plus one ``|``-separated part per co-appointment line."""
    return "|".join([category, main_dept, *sub_depts])
