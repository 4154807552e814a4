#!/usr/bin/env python3
"""
Resolve plan headings like "## Thu Feb 19 — Quality run" to calendar dates.

Headings carry no year. The year always comes from the reference date the
caller passes in, so callers must pass the real date being looked at and
never a fixed constant.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from constants import MONTH_ABBREV_TO_NUM

DateLike = Union[date, datetime]

# First "Mon DD" token after the first non-# character following "##"
HEADING_DATE_PATTERN = re.compile(r'^##[^#].*?([A-Z][a-z]{2})\s+(\d{1,2})')

SECTION_HEADING_PREFIX = '## '


def as_date(value: DateLike) -> date:
    """Drop the time part of a datetime; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_section_heading(line: str) -> bool:
    """True for lines that start a new plan section."""
    return line.startswith(SECTION_HEADING_PREFIX)


def resolve_heading_date(line: str, reference_date: DateLike) -> Optional[date]:
    """
    Parse a second-level heading line into a date in reference_date's year.

    Only the first month+day token is considered. If its month isn't a
    standard abbreviation, or the day doesn't exist in that month, the
    heading has no date.
    """
    match = HEADING_DATE_PATTERN.match(line)
    if not match:
        return None

    month = MONTH_ABBREV_TO_NUM.get(match.group(1))
    if month is None:
        return None

    try:
        return date(reference_date.year, month, int(match.group(2)))
    except ValueError:
        return None


def same_day(a: DateLike, b: DateLike) -> bool:
    """Calendar-day equality for dates and datetimes."""
    a, b = as_date(a), as_date(b)
    return (a.year, a.month, a.day) == (b.year, b.month, b.day)
