"""Read-side aggregation over the latest snapshots."""

from __future__ import annotations

import logging

from staffroster.core.exceptions import SnapshotNotFoundError
from staffroster.core.protocols import ISnapshotStore
from staffroster.models.assistant import AssistantSnapshot
from staffroster.models.faculty import FacultyParseResult, FacultySummary, PositionTier, TierCounts
from staffroster.models.labels import LabelConfig
from staffroster.models.leave import AppointmentParseResult, ResearchLeaveParseResult
from staffroster.models.snapshot import SnapshotCategory
from staffroster.models.views import AssistantView, FacultyView, LeaveView
from staffroster.parsing.assistant import apply_allocations
from staffroster.parsing.faculty import FacultyRosterParser
from staffroster.parsing.reconcile import reconcile_leave
from staffroster.services.ingest import current_structure

logger = logging.getLogger(__name__)

_TIER_FIELDS = {
    PositionTier.FULL_TIME: "full_time",
    PositionTier.PART_TIME: "part_time",
    PositionTier.OTHER: "other",
    PositionTier.UNCLASSIFIED: "unclassified",
}


class DashboardService:
    """Dashboard views; nothing here is cached, every call reads the latest snapshots."""

    def __init__(self, store: ISnapshotStore, labels: LabelConfig) -> None:
        self._store = store
        self._labels = labels
        self._faculty = FacultyRosterParser(labels)

    def _stored_faculty(self) -> tuple[FacultyParseResult, FacultyView]:
        snapshot = self._store.get_latest(SnapshotCategory.FACULTY)
        if snapshot is None:
            raise SnapshotNotFoundError(SnapshotCategory.FACULTY)
        stored = FacultyParseResult.model_validate(snapshot.payload)
        view = FacultyView(
            full_time_positions=stored.full_time_positions,
            part_time_positions=stored.part_time_positions,
            other_positions=stored.other_positions,
            research_leave_data=stored.research_leave_data,
            stats=stored.stats,
            upload=snapshot.upload,
            last_updated=snapshot.updated_at,
        )
        return stored, view

    def faculty_view(self) -> FacultyView:
        """Stored members re-placed against the current department structure."""
        stored, view = self._stored_faculty()
        units = current_structure(self._store, self._labels).dept_structure
        tree, placement = self._faculty.classify(stored.members, units)
        # Row-level warnings come from the upload; placement ones from this structure.
        warnings = stored.warnings.model_copy(update={
            "unmapped_positions": placement.unmapped_positions,
            "unknown_departments": placement.unknown_departments,
            "placed_in_other": placement.placed_in_other,
        })
        return view.model_copy(update={
            "faculty_data": tree,
            "dept_structure": units,
            "gender_stats": self._faculty.gender_stats(tree),
            "warnings": warnings,
        })

    def faculty_stats(self) -> FacultySummary:
        view = self.faculty_view()
        tiers = {
            **{p: PositionTier.OTHER for p in view.other_positions},
            **{p: PositionTier.PART_TIME for p in view.part_time_positions},
            **{p: PositionTier.FULL_TIME for p in view.full_time_positions},
        }
        totals = TierCounts()
        by_position: dict[str, int] = {}
        by_department: dict[str, TierCounts] = {}
        for unit in view.faculty_data:
            unit_counts = by_department.setdefault(unit.name, TierCounts())
            for _, position, people in unit.leaves():
                count = len(people)
                by_position[position] = by_position.get(position, 0) + count
                field = _TIER_FIELDS[tiers.get(position, PositionTier.UNCLASSIFIED)]
                for counts in (totals, unit_counts):
                    setattr(counts, field, getattr(counts, field) + count)
                    counts.total += count
        return FacultySummary(totals=totals, by_position=by_position, by_department=by_department)

    def assistant_view(self) -> AssistantView | None:
        snapshot = self._store.get_latest(SnapshotCategory.ASSISTANT)
        if snapshot is None:
            return None
        stored = AssistantSnapshot.model_validate(snapshot.payload)
        structure = apply_allocations(stored.structure, stored.allocations)
        return AssistantView(
            colleges=structure.colleges,
            administrative=structure.administrative,
            summary=structure.summary,
            roster_summary=stored.roster.summary,
            actual_counts=stored.roster.actual_counts,
            allocations=stored.allocations,
            version=snapshot.version,
            upload=snapshot.upload,
            last_updated=snapshot.updated_at,
        )

    def leave_view(self) -> LeaveView:
        """Sabbatical halves and the leave table merged from all three sources."""
        faculty = self._store.get_latest(SnapshotCategory.FACULTY)
        research = self._store.get_latest(SnapshotCategory.RESEARCH_LEAVE)
        appointment = self._store.get_latest(SnapshotCategory.APPOINTMENT)

        faculty_data = (
            FacultyParseResult.model_validate(faculty.payload).research_leave_data if faculty else None
        )
        research_data = ResearchLeaveParseResult.model_validate(research.payload) if research else None
        appointment_data = (
            AppointmentParseResult.model_validate(appointment.payload) if appointment else None
        )

        if research_data is not None:
            halves = research_data.research
        elif faculty_data is not None:
            halves = faculty_data.research
        else:
            halves = LeaveView().research

        merged = reconcile_leave(
            faculty_data.leave if faculty_data else [],
            research_data.leave if research_data else [],
            appointment_data.leave if appointment_data else [],
            unassigned=self._labels.faculty.unassigned_dept,
        )
        logger.debug("Leave view built from %d merged entries", len(merged.entries))
        return LeaveView(research=halves, leave=merged.entries, sources=merged.sources)
