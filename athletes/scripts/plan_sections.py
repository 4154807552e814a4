#!/usr/bin/env python3
"""
Read and replace one day's section of a plan document.

A plan document is a run of sections, each starting at a "## " heading
line and running to the next one (or the end of the file). Headings are
matched to dates with heading_dates.resolve_heading_date(); the first
heading for a day wins.

Patching replaces exactly one section and passes every other line through
untouched. Replacement text must not contain literal "## " lines inside the
body: they would read back as new section boundaries. Whoever produces the
replacement (the coach) owns that rule.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from heading_dates import DateLike, is_section_heading, resolve_heading_date, same_day


@dataclass(frozen=True)
class PlanSection:
    heading: str
    body: str
    found: bool

    def to_dict(self) -> dict:
        return {'heading': self.heading, 'body': self.body, 'found': self.found}


@dataclass(frozen=True)
class PatchResult:
    new_text: str
    success: bool


NOT_FOUND = PlanSection(heading='', body='', found=False)


def find_section_bounds(lines: List[str], target_date: DateLike) -> Optional[Tuple[int, int]]:
    """
    (heading index, end index) of the target day's section, or None.

    end is the index of the next section heading, or len(lines).
    """
    start = None
    for i, line in enumerate(lines):
        day = resolve_heading_date(line, target_date)
        if day is not None and same_day(day, target_date):
            start = i
            break

    if start is None:
        return None

    end = len(lines)
    for i in range(start + 1, len(lines)):
        if is_section_heading(lines[i]):
            end = i
            break

    return start, end


def _heading_text(line: str) -> str:
    return line.lstrip('#').strip()


def extract_section(document_text: str, target_date: DateLike) -> PlanSection:
    """Heading (without "##") and trimmed body of the target day's section."""
    lines = document_text.split('\n')
    bounds = find_section_bounds(lines, target_date)
    if bounds is None:
        return NOT_FOUND

    start, end = bounds
    body = '\n'.join(lines[start + 1:end]).strip()
    return PlanSection(heading=_heading_text(lines[start]), body=body, found=True)


def split_replacement(replacement: str) -> Tuple[Optional[str], str]:
    """
    Split replacement text into (new heading line or None, body).

    A first line starting with "## " is taken as the new heading.
    """
    trimmed = replacement.strip()
    first, _, rest = trimmed.partition('\n')
    if is_section_heading(first):
        return first.rstrip(), rest.strip()
    return None, trimmed


def patch_section(document_text: str, target_date: DateLike, replacement: str) -> PatchResult:
    """
    Replace the target day's section with replacement.

    The section is rewritten as heading, blank line, body, blank line.
    Without a "## " first line in replacement the old heading is kept.
    Returns the unchanged document with success=False when the day has no
    section.
    """
    lines = document_text.split('\n')
    bounds = find_section_bounds(lines, target_date)
    if bounds is None:
        return PatchResult(new_text=document_text, success=False)

    start, end = bounds
    new_heading, body = split_replacement(replacement)
    if new_heading is None:
        new_heading = lines[start]

    new_lines = lines[:start] + [new_heading, '', body, ''] + lines[end:]
    return PatchResult(new_text='\n'.join(new_lines), success=True)
