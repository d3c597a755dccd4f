"""Tests for the sabbatical/dispatch list parser."""

from __future__ import annotations

from datetime import date

import pytest

from staffroster.parsing.research_leave import (
    DispatchRecord,
    ResearchLeaveParser,
    is_first_half,
    prior_years_remark,
)
from tests.fakes.workbooks import RESEARCH_HEADER, research_rows

TODAY = date(2024, 6, 1)


@pytest.fixture
def parser(labels):
    return ResearchLeaveParser(labels)


@pytest.fixture
def result(parser):
    return parser.parse(research_rows(), today=TODAY)


class TestParse:
    def test_first_half(self, result):
        assert [e.name for e in result.research.first] == ["김연구"]
        entry = result.research.first[0]
        assert entry.period == "2024.03.01 ~ 2025.02.28"
        assert entry.remarks == "교토대학교 (2019년)"

    def test_second_half_for_january_start(self, result):
        assert [e.name for e in result.research.second] == ["이파견"]
        assert result.research.second[0].remarks == "국립체육연구소"

    def test_leave_status(self, result):
        assert [(e.name, e.dept) for e in result.leave] == [("박휴직", "문화예술대학")]

    def test_no_current_dispatch_counted(self, result):
        assert result.warnings.skipped_rows == {"noCurrentDispatch": 1}

    def test_other_status_goes_to_first_half(self, parser):
        grid = [RESEARCH_HEADER, ["무도대학", "유도학과", "홍", "교환", "2023.10.01", "2024.09.30", ""]]
        assert [e.name for e in parser.parse(grid, today=TODAY).research.first] == ["홍"]

    def test_fallback_header_row_zero(self, parser):
        grid = [["무도대학", "유도학과", "홍"]]
        result = parser.parse(grid, today=TODAY)
        assert result.warnings.header.fell_back
        assert result.warnings.header.row == 0


class TestHelpers:
    @pytest.mark.parametrize("month,first", [(3, True), (8, True), (9, False), (12, False), (1, False), (2, False)])
    def test_is_first_half(self, month, first):
        assert is_first_half(date(2024, month, 1)) is first

    def test_unknown_month_is_first_half(self):
        assert is_first_half(None)

    def test_prior_years_sorted_distinct(self):
        def rec(year):
            return DispatchRecord("김", "", "", "연구년", "", "", "", date(year, 3, 1), date(year + 1, 2, 28))

        assert prior_years_remark("교토대학교", [rec(2021), rec(2015), rec(2021)]) == "교토대학교 (2015년, 2021년)"
        assert prior_years_remark("", [rec(2015)]) == "(2015년)"
        assert prior_years_remark("", []) == ""
