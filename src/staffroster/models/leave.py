"""Leave and sabbatical records shared by the faculty, appointment and dispatch parsers."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from staffroster.models.base import CamelModel
from staffroster.models.warnings import ParseWarnings


class LeaveSource(StrEnum):
    FACULTY = "faculty"
    RESEARCH = "research"
    APPOINTMENT = "appointment"


class LeaveEntry(CamelModel):
    """One row of the leave/sabbatical tables on the dashboard."""

    dept: str = "미배정"
    name: str
    period: str = ""
    remarks: str = ""


class ResearchHalves(CamelModel):
    first: list[LeaveEntry] = Field(default_factory=list)
    second: list[LeaveEntry] = Field(default_factory=list)


class ResearchLeaveData(CamelModel):
    """Sabbaticals split by semester half, plus leaves of absence."""

    research: ResearchHalves = ResearchHalves()
    leave: list[LeaveEntry] = Field(default_factory=list)


class AppointmentParseResult(CamelModel):
    """Output of the appointment history parser: only people currently on leave."""

    leave: list[LeaveEntry] = Field(default_factory=list)
    warnings: ParseWarnings = ParseWarnings()


class ResearchLeaveParseResult(ResearchLeaveData):
    """Output of the sabbatical/dispatch parser."""

    warnings: ParseWarnings = ParseWarnings()
