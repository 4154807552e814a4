#!/usr/bin/env python3
"""Tests for heading_dates.py.

Run with: pytest athletes/scripts/tests/test_heading_dates.py -v
"""

import sys
from datetime import date, datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from heading_dates import (
    HEADING_DATE_PATTERN,
    as_date,
    is_section_heading,
    resolve_heading_date,
    same_day,
)


REF_2026 = date(2026, 2, 19)


class TestResolveHeadingDate:
    """Heading line -> calendar date."""

    @pytest.mark.parametrize("line,expected", [
        ("## Thu Feb 19 — Quality run (intervals) + core (short)", date(2026, 2, 19)),
        ("## Feb 19", date(2026, 2, 19)),
        ("## Sun Mar 1 — Rest", date(2026, 3, 1)),
        ("## Wed Dec 31", date(2026, 12, 31)),
        ("##  Mon Jan 5 — Easy", date(2026, 1, 5)),
    ])
    def test_resolves_standard_headings(self, line, expected):
        assert resolve_heading_date(line, REF_2026) == expected

    def test_year_comes_from_reference(self):
        line = "## Thu Feb 19 — Quality run"
        assert resolve_heading_date(line, date(2027, 6, 1)) == date(2027, 2, 19)
        assert resolve_heading_date(line, datetime(2025, 1, 1, 23, 59)) == date(2025, 2, 19)

    def test_title_text_after_date_ignored(self):
        line = "## Fri Feb 20 — Long run (Mar 3 race prep)"
        assert resolve_heading_date(line, REF_2026) == date(2026, 2, 20)

    def test_first_token_wins_even_if_not_a_month(self):
        """'Day 12' is the first token; no retry for the real date."""
        assert resolve_heading_date("## Day 12 — Feb 19", REF_2026) is None

    def test_first_month_token_wins(self):
        assert resolve_heading_date("## Recap of Jan 3 then Feb 19", REF_2026) == date(2026, 1, 3)

    @pytest.mark.parametrize("line", [
        "# Thu Feb 19",
        "### Thu Feb 19",
        "Thu Feb 19",
        " ## Thu Feb 19",
        "## Week 2 overview",
        "## thu feb 19",
        "## FEB 19",
        "",
    ])
    def test_non_matching_lines(self, line):
        assert resolve_heading_date(line, REF_2026) is None

    def test_unknown_month_abbreviation(self):
        assert resolve_heading_date("## Foo 12", REF_2026) is None

    def test_impossible_day(self):
        assert resolve_heading_date("## Feb 30", REF_2026) is None
        assert resolve_heading_date("## Apr 31", REF_2026) is None

    def test_leap_day_depends_on_reference_year(self):
        assert resolve_heading_date("## Sun Feb 29", date(2028, 1, 1)) == date(2028, 2, 29)
        assert resolve_heading_date("## Sun Feb 29", REF_2026) is None

    def test_pattern_is_exported(self):
        match = HEADING_DATE_PATTERN.match("## Thu Feb 19 — x")
        assert match.group(1) == "Feb"
        assert match.group(2) == "19"


class TestHelpers:

    def test_same_day_ignores_time(self):
        assert same_day(datetime(2026, 2, 19, 0, 1), date(2026, 2, 19))
        assert same_day(datetime(2026, 2, 19, 23, 59), datetime(2026, 2, 19, 6, 0))
        assert not same_day(date(2026, 2, 19), date(2025, 2, 19))

    def test_as_date(self):
        assert as_date(datetime(2026, 2, 19, 12, 0)) == date(2026, 2, 19)
        assert as_date(date(2026, 2, 19)) == date(2026, 2, 19)

    def test_is_section_heading(self):
        assert is_section_heading("## Thu Feb 19")
        assert not is_section_heading("### Notes")
        assert not is_section_heading("##Feb 19")
        assert not is_section_heading("# Plan")
