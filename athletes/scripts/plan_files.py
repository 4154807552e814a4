#!/usr/bin/env python3
"""
Pick the active two-week plan file for a date.

Plan files live in the athlete's coach/ directory and are named
two-week-plan-<start>_to_<end>.md with ISO dates. A file is active for a
date that falls in [start, end + 1 day). When no window contains the date,
the most recently started plan is used.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from constants import COACH_DIR, ISO_DATE_FORMAT, PLAN_FILENAME_PATTERN
from document_store import StorageError
from heading_dates import DateLike, as_date
from logger import get_logger


@dataclass(frozen=True)
class PlanWindow:
    file: str
    start: date
    end: date

    def contains(self, reference_date: DateLike) -> bool:
        # [start, end + 1 day)
        day = as_date(reference_date)
        return self.start <= day < self.end + timedelta(days=1)

    def to_dict(self) -> dict:
        return {
            'file': self.file,
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
        }


def parse_plan_filename(name: str) -> Optional[PlanWindow]:
    """Parse a plan filename into its window, or None if it isn't one."""
    match = PLAN_FILENAME_PATTERN.match(name)
    if not match:
        return None
    try:
        start = datetime.strptime(match.group(1), ISO_DATE_FORMAT).date()
        end = datetime.strptime(match.group(2), ISO_DATE_FORMAT).date()
    except ValueError:
        get_logger().debug("Skipping plan file with invalid date", file=name)
        return None
    return PlanWindow(file=name, start=start, end=end)


def _parse_listing(listing: Iterable[str]) -> List[PlanWindow]:
    windows = []
    for name in listing:
        window = parse_plan_filename(name)
        if window is not None:
            windows.append(window)
    return windows


def list_plan_windows(listing: Iterable[str]) -> List[PlanWindow]:
    """All parseable plan windows, earliest start first."""
    return sorted(_parse_listing(listing), key=lambda w: (w.start, w.file))


def find_active_plan_file(listing: Iterable[str], reference_date: DateLike) -> Optional[str]:
    """
    Return the filename of the plan active on reference_date.

    First window in listing order containing the date wins. Otherwise the
    window with the latest start. None when the listing has no plan files.
    """
    windows = _parse_listing(listing)
    if not windows:
        return None

    matches = [w for w in windows if w.contains(reference_date)]
    if matches:
        if len(matches) > 1:
            get_logger().warning(
                "Overlapping plan windows",
                date=as_date(reference_date).isoformat(),
                files=[w.file for w in matches],
                chosen=matches[0].file,
            )
        return matches[0].file

    latest = max(windows, key=lambda w: w.start)
    get_logger().debug(
        "No plan window contains date, using latest plan",
        date=as_date(reference_date).isoformat(),
        file=latest.file,
    )
    return latest.file


def locate_active_plan(store, reference_date: DateLike, plan_dir: str = COACH_DIR) -> Optional[str]:
    """
    Store-relative path of the active plan file, or None.

    A missing or unreadable plan directory means no plan is configured.
    """
    try:
        listing = store.list(plan_dir)
    except StorageError as e:
        get_logger().warning("Could not list plan directory", dir=plan_dir, error=str(e))
        return None

    name = find_active_plan_file(listing, reference_date)
    if name is None:
        return None
    return f"{plan_dir}/{name}"
