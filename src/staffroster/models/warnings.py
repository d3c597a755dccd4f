"""Operator-facing parse warnings returned alongside every parse result."""

from __future__ import annotations

from collections import Counter

from pydantic import Field

from staffroster.models.base import CamelModel


class HeaderOutcome(CamelModel):
    """Where the header row was taken from, and whether it was matched or guessed."""

    row: int
    matched: bool

    @property
    def fell_back(self) -> bool:
        return not self.matched


class PositionCount(CamelModel):
    position: str
    count: int


class DepartmentCount(CamelModel):
    department: str
    count: int


class PlacedInOther(CamelModel):
    """Enough detail to find a person who landed in the catch-all bucket."""

    name: str
    position: str
    college: str
    dept: str


class ParseWarnings(CamelModel):
    header: HeaderOutcome | None = None
    unresolved_columns: list[str] = Field(default_factory=list)
    unmapped_positions: list[PositionCount] = Field(default_factory=list)
    unknown_departments: list[DepartmentCount] = Field(default_factory=list)
    placed_in_other: list[PlacedInOther] = Field(default_factory=list)
    skipped_rows: dict[str, int] = Field(default_factory=dict)
    unparsable_dates: int = 0

    @property
    def total(self) -> int:
        return len(self.unmapped_positions) + len(self.unknown_departments)


class WarningCollector:
    """Mutable accumulator used during a single parse; frozen via ``build()``."""

    def __init__(self) -> None:
        self.header: HeaderOutcome | None = None
        self.unresolved_columns: list[str] = []
        self.unmapped_positions: Counter[str] = Counter()
        self.unknown_departments: Counter[str] = Counter()
        self.placed_in_other: list[PlacedInOther] = []
        self.skipped_rows: Counter[str] = Counter()
        self.unparsable_dates = 0

    def skip(self, reason: str) -> None:
        self.skipped_rows[reason] += 1

    def build(self) -> ParseWarnings:
        return ParseWarnings(
            header=self.header,
            unresolved_columns=list(self.unresolved_columns),
            unmapped_positions=[
                PositionCount(position=p, count=c) for p, c in self.unmapped_positions.items()
            ],
            unknown_departments=[
                DepartmentCount(department=d, count=c) for d, c in self.unknown_departments.items()
            ],
            placed_in_other=list(self.placed_in_other),
            skipped_rows=dict(self.skipped_rows),
            unparsable_dates=self.unparsable_dates,
        )
