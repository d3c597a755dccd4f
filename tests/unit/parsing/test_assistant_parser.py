"""Tests for the assistant roster parsers and allocation handling."""

from __future__ import annotations

from datetime import date

import pytest

from staffroster.models.assistant import AssistantCategory, AssistantDepartment, AssistantStructure
from staffroster.parsing.assistant import (
    AssistantRosterParser,
    AssistantStructureParser,
    apply_allocations,
    merge_allocations,
)
from tests.fakes.workbooks import APPOINTMENT_HEADER, appointment_rows


def _row(name, college="무도대학", dept="유도학과", series="조교", status="재직",
         appointment="재임용", start="2024.03.01", end="2025.02.28"):
    return [college, dept, name, series, "조교", status, appointment, start, end, "", "", ""]


def _structure(counts: dict[tuple[str, str], int]) -> AssistantStructure:
    cats: dict[str, list[AssistantDepartment]] = {}
    for (cat, dept), n in counts.items():
        cats.setdefault(cat, []).append(AssistantDepartment(main_dept=dept, allocated=n, current=n))
    return AssistantStructure(
        colleges=[AssistantCategory(category_name=c, departments=d) for c, d in cats.items()],
    )


class TestAssistantRosterParser:
    @pytest.fixture
    def parser(self, labels):
        return AssistantRosterParser(labels)

    def test_filters_job_series(self, parser):
        roster = parser.parse(appointment_rows())
        assert sorted(a.name for a in roster.assistants) == ["조교사", "조교삼", "조교이", "조교일"]
        assert roster.warnings.skipped_rows["notAssistant"] == 4
        assert roster.warnings.header.row == 3

    def test_flags_and_counts(self, parser):
        roster = parser.parse(appointment_rows())
        first = next(a for a in roster.assistants if a.name == "조교일")
        assert first.is_active
        assert first.is_first_appointment
        assert first.start_date == date(2024, 3, 1)
        assert roster.actual_counts == {"무도대학": 2, "기획처": 1}
        summary = roster.summary
        assert (summary.total_records, summary.total_active, summary.total_first_appointments) == (4, 3, 2)

    def test_college_alias_normalized(self, parser):
        roster = parser.parse(appointment_rows())
        retired = next(a for a in roster.assistants if a.name == "조교사")
        assert retired.college == "AI바이오융합대학"
        assert not retired.is_active

    def test_blank_college_is_unknown(self, parser):
        roster = parser.parse([APPOINTMENT_HEADER, _row("홍조교", college="")])
        assert roster.assistants[0].college == "기타"

    def test_duplicate_keeps_latest_start(self, parser):
        grid = [
            APPOINTMENT_HEADER,
            _row("홍조교", start="2022.03.01", status="퇴직"),
            _row("홍조교", start="2024.03.01"),
            _row("홍조교", start=""),
        ]
        roster = parser.parse(grid)
        assert len(roster.assistants) == 1
        assert roster.assistants[0].start_date == date(2024, 3, 1)
        assert roster.assistants[0].is_active
        assert roster.warnings.skipped_rows["duplicate"] == 2


class TestAssistantStructureParser:
    @pytest.fixture
    def parser(self, labels):
        return AssistantStructureParser(labels)

    def test_groups_colleges_and_admin(self, parser):
        structure = parser.parse(appointment_rows())
        assert [c.category_name for c in structure.colleges] == ["무도대학"]
        assert [d.main_dept for d in structure.colleges[0].departments] == ["무도학과", "유도학과"]
        assert [c.category_name for c in structure.administrative] == ["기획처"]
        assert structure.summary.total_colleges == 2
        assert structure.summary.total_admin == 1
        assert structure.summary.grand_total == 3

    def test_new_appointment_flag(self, parser):
        structure = parser.parse(appointment_rows())
        dept = structure.colleges[0].departments[0]
        assert dept.assistants[0].name == "조교일"
        assert dept.assistants[0].is_new
        assert (dept.allocated, dept.current, dept.remaining) == (1, 1, 0)

    def test_only_exact_active_status(self, parser):
        grid = [APPOINTMENT_HEADER, _row("홍조교", status="재직(휴직중)"), _row("김조교")]
        structure = parser.parse(grid)
        assert structure.summary.grand_total == 1
        assert structure.warnings.skipped_rows["inactive"] == 1

    def test_canonical_college_order(self, parser):
        grid = [
            APPOINTMENT_HEADER,
            _row("가", college="신설대학", dept="신설학과"),
            _row("나", college="문화예술대학", dept="무용과"),
            _row("다", college="무도대학", dept="유도학과"),
        ]
        structure = parser.parse(grid)
        assert [c.category_name for c in structure.colleges] == ["무도대학", "문화예술대학", "신설대학"]

    def test_admin_unit_found_in_department(self, parser):
        grid = [APPOINTMENT_HEADER, _row("가", college="본부", dept="교무처 학사팀")]
        structure = parser.parse(grid)
        assert structure.administrative[0].category_name == "교무처"

    def test_co_appointment_split(self, parser):
        main, subs = parser.split_department("(겸)무도학과\n유도학과\n(겸)경호학과")
        assert main == "유도학과"
        assert subs == ["(겸)무도학과", "(겸)경호학과"]

    def test_single_line_department(self, parser):
        assert parser.split_department("유도학과") == ("유도학과", [])

    def test_shared_main_department_keeps_co_appointment_rows_apart(self, parser):
        grid = [
            APPOINTMENT_HEADER,
            _row("가", college="경영대학", dept="경영학과"),
            _row("나", college="경영대학", dept="경영학과"),
            _row("다", college="경영대학", dept="경영학과\n(겸)관광경영학과"),
        ]
        structure = parser.parse(grid)
        depts = structure.colleges[0].departments
        assert [(d.main_dept, d.sub_depts, d.current, d.allocated) for d in depts] == [
            ("경영학과", [], 2, 2),
            ("경영학과", ["(겸)관광경영학과"], 1, 1),
        ]
        assert structure.headcounts() == {"경영대학|경영학과": 2, "경영대학|경영학과|(겸)관광경영학과": 1}

        applied = apply_allocations(structure, merge_allocations(None, structure))
        assert [(d.allocated, d.remaining) for d in applied.colleges[0].departments] == [(2, 0), (1, 0)]

    def test_same_department_written_differently_is_one_group(self, parser):
        grid = [
            APPOINTMENT_HEADER,
            _row("가", dept="유도학과\n(겸)경호학과"),
            _row("나", dept="유도학과\n(겸)경호학과\n"),
        ]
        structure = parser.parse(grid)
        [dept] = structure.colleges[0].departments
        assert dept.current == 2


class TestAllocations:
    def test_stored_allocation_survives_reupload(self):
        parsed = _structure({("A", "x"): 7})
        assert merge_allocations({"A|x": 5}, parsed) == {"A|x": 5}

    def test_first_upload_uses_headcount(self):
        parsed = _structure({("A", "x"): 7, ("B", "y"): 2})
        assert merge_allocations(None, parsed) == {"A|x": 7, "B|y": 2}

    def test_new_department_starts_at_headcount(self):
        parsed = _structure({("A", "x"): 7, ("A", "z"): 3})
        assert merge_allocations({"A|x": 5}, parsed) == {"A|x": 5, "A|z": 3}

    def test_vanished_department_kept(self):
        parsed = _structure({("A", "x"): 1})
        assert merge_allocations({"A|gone": 4}, parsed) == {"A|gone": 4, "A|x": 1}

    def test_apply_computes_remaining(self):
        parsed = _structure({("A", "x"): 7, ("A", "z"): 3})
        applied = apply_allocations(parsed, {"A|x": 5})
        x, z = applied.colleges[0].departments
        assert (x.allocated, x.current, x.remaining) == (5, 7, -2)
        assert (z.allocated, z.remaining) == (3, 0)
        assert parsed.colleges[0].departments[0].allocated == 7

    def test_co_appointment_rows_allocated_separately(self):
        parsed = AssistantStructure(colleges=[AssistantCategory(category_name="A", departments=[
            AssistantDepartment(main_dept="x", allocated=2, current=2),
            AssistantDepartment(main_dept="x", sub_depts=["(겸)y"], allocated=1, current=1),
        ])])
        applied = apply_allocations(parsed, {"A|x": 3, "A|x|(겸)y": 1})
        plain, shared = applied.colleges[0].departments
        assert (plain.allocated, plain.remaining) == (3, 1)
        assert (shared.allocated, shared.remaining) == (1, 0)
