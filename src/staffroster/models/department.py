"""Department structure models: the taxonomy and display order of the roster tree."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from staffroster.models.base import CamelModel


class DepartmentUnit(CamelModel):
    """A top-level unit (college, graduate school, center) and its sub-units."""

    name: str
    sub_departments: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("subDepartments", "subDepts", "sub_departments"),
    )

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("department name must not be blank")
        return v

    @field_validator("sub_departments")
    @classmethod
    def _strip_sub_departments(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v if s and s.strip()]


class DepartmentStructure(CamelModel):
    """Ordered list of units; stored as the ``organization`` snapshot."""

    dept_structure: list[DepartmentUnit] = Field(default_factory=list)
    updated_by: str = "admin"

    def unit(self, name: str) -> DepartmentUnit | None:
        for unit in self.dept_structure:
            if unit.name == name:
                return unit
        return None
