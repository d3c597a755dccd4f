"""Tests for the dashboard read views."""

from __future__ import annotations

from datetime import date

import pytest

from staffroster.core.exceptions import SnapshotNotFoundError
from staffroster.models.leave import LeaveSource
from staffroster.services.dashboard import DashboardService
from staffroster.services.ingest import IngestService
from tests.fakes import MemorySnapshotStore, xlsx_bytes
from tests.fakes.workbooks import appointment_rows, faculty_rows, research_rows

TODAY = date(2024, 6, 1)

UPLOADS = {
    "faculty": lambda s: s.ingest_faculty(xlsx_bytes(faculty_rows()), "faculty.xlsx"),
    "research": lambda s: s.ingest_research_leave(xlsx_bytes(research_rows()), "dispatch.xlsx"),
    "appointment": lambda s: s.ingest_appointments(xlsx_bytes(appointment_rows()), "appt.xlsx"),
}


@pytest.fixture
def store():
    return MemorySnapshotStore()


@pytest.fixture
def ingest(store, labels):
    return IngestService(store, labels, today=lambda: TODAY)


@pytest.fixture
def dashboard(store, labels):
    return DashboardService(store, labels)


def _unit(tree, name):
    return next(u for u in tree if u.name == name)


class TestFacultyView:
    def test_missing_snapshot(self, dashboard):
        with pytest.raises(SnapshotNotFoundError):
            dashboard.faculty_view()

    def test_view_matches_upload(self, ingest, dashboard):
        UPLOADS["faculty"](ingest)
        view = dashboard.faculty_view()
        assert view.stats.total == 6
        assert view.faculty_data[-1].name == "기타"
        assert view.upload.filename == "faculty.xlsx"
        assert len(view.dept_structure) == 21
        assert [s.rank for s in view.gender_stats][0] == "교수"

    def test_reclassified_against_current_structure(self, ingest, dashboard, structure):
        UPLOADS["faculty"](ingest)
        units = [u.to_json_dict() for u in structure]
        units[1]["subDepartments"].append("없는학과")
        ingest.update_department_structure(units)

        view = dashboard.faculty_view()
        moved = _unit(view.faculty_data, "무도대학").sub_departments["없는학과"]["조교수"]
        assert [p.name for p in moved] == ["최기타"]
        assert view.warnings.placed_in_other == []
        assert view.warnings.unknown_departments == []
        assert view.warnings.skipped_rows == {"inactive": 1, "blank": 1}

    def test_faculty_stats(self, ingest, dashboard):
        UPLOADS["faculty"](ingest)
        stats = dashboard.faculty_stats()
        totals = stats.totals
        assert (totals.full_time, totals.part_time, totals.other, totals.unclassified) == (4, 0, 1, 1)
        assert totals.total == 6
        assert stats.by_position["특별연구원"] == 1
        assert stats.by_department["무도대학"].full_time == 1
        assert stats.by_department["기타"].full_time == 1
        assert stats.by_department["산학협력단"].other == 1


class TestAssistantView:
    def test_none_before_upload(self, dashboard):
        assert dashboard.assistant_view() is None

    def test_allocations_applied(self, ingest, dashboard):
        UPLOADS["appointment"](ingest)
        ingest.update_allocations({"무도대학|유도학과": 3})
        view = dashboard.assistant_view()
        dept = next(d for d in view.colleges[0].departments if d.main_dept == "유도학과")
        assert (dept.allocated, dept.current, dept.remaining) == (3, 1, 2)
        assert view.actual_counts == {"무도대학": 2, "기획처": 1}
        assert view.summary.grand_total == 3
        assert view.version == 2


class TestLeaveView:
    def test_empty(self, dashboard):
        view = dashboard.leave_view()
        assert view.leave == []
        assert view.research.first == []

    def test_halves_from_faculty_when_no_dispatch_list(self, ingest, dashboard):
        UPLOADS["faculty"](ingest)
        view = dashboard.leave_view()
        assert [e.name for e in view.research.second] == ["이부교"]
        assert [e.name for e in view.leave] == ["최기타"]
        assert view.sources == {"최기타": LeaveSource.FACULTY}

    def test_dispatch_list_replaces_faculty_halves(self, ingest, dashboard):
        UPLOADS["faculty"](ingest)
        UPLOADS["research"](ingest)
        view = dashboard.leave_view()
        assert [e.name for e in view.research.first] == ["김연구"]
        assert [e.name for e in view.research.second] == ["이파견"]

    def test_merged_from_three_sources(self, ingest, dashboard):
        for upload in UPLOADS.values():
            upload(ingest)
        view = dashboard.leave_view()
        assert view.sources == {
            "최기타": LeaveSource.FACULTY,
            "박휴직": LeaveSource.RESEARCH,
            "김휴직": LeaveSource.APPOINTMENT,
        }

    def test_independent_of_upload_order(self, labels):
        views = []
        for order in (["faculty", "research", "appointment"], ["appointment", "research", "faculty"]):
            store = MemorySnapshotStore()
            service = IngestService(store, labels, today=lambda: TODAY)
            for name in order:
                UPLOADS[name](service)
            views.append(DashboardService(store, labels).leave_view().to_json_dict())
        assert views[0] == views[1]
