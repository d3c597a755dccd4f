"""Label vocabulary models, loaded from the labels.json configuration asset."""

from __future__ import annotations

from pydantic import Field

from staffroster.models.base import CamelModel
from staffroster.models.department import DepartmentUnit


class PositionLabels(CamelModel):
    """Canonical position tiers and the raw-label tables folded into them."""

    full_time: list[str]
    part_time: list[str]
    other: list[str]
    aliases: dict[str, str] = Field(default_factory=dict)
    other_aliases: dict[str, str] = Field(default_factory=dict)
    unclassified: str = "기타"
    honorary: str = "명예교수"
    skipped: list[str] = Field(default_factory=list)

    @property
    def tree_positions(self) -> list[str]:
        """Every leaf position of the roster tree, unclassified bucket last."""
        return [*self.full_time, *self.part_time, *self.other, self.unclassified]


class FacultyLabels(CamelModel):
    active_statuses: list[str] = Field(default_factory=lambda: ["재직", "연구년", "휴직"])
    sabbatical_status: str = "연구년"
    leave_status: str = "휴직"
    special_units: list[str] = Field(default_factory=list)
    graduate_school: str = "대학원"
    catch_all: str = "기타"
    unassigned_dept: str = "미배정"
    full_time_serial: str = "전임교원"
    male_labels: list[str] = Field(default_factory=lambda: ["남", "남성", "M"])
    female_labels: list[str] = Field(default_factory=lambda: ["여", "여성", "F"])


class CollegeAlias(CamelModel):
    """Any college name containing one of ``contains`` collapses to ``canonical``."""

    contains: list[str]
    canonical: str


class AssistantLabels(CamelModel):
    job_series: str = "조교"
    active_status: str = "재직"
    new_appointment_type: str = "최초임용"
    co_appointment_marker: str = "(겸)"
    unknown_college: str = "기타"
    college_aliases: list[CollegeAlias] = Field(default_factory=list)
    college_order: list[str] = Field(default_factory=list)
    admin_order: list[str] = Field(default_factory=list)


class LabelConfig(CamelModel):
    """Root of the labels.json asset."""

    positions: PositionLabels
    faculty: FacultyLabels = FacultyLabels()
    assistant: AssistantLabels = AssistantLabels()
    default_department_structure: list[DepartmentUnit] = Field(default_factory=list)
