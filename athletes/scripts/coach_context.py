#!/usr/bin/env python3
"""
Build the system prompt sent to the coach model for one chat turn.

The prompt carries the athlete profile, today's plan section, recent
session notes and the progression rules, followed by the marker grammar
the coach uses to request note saves and plan edits (see coach_markers).
"""

import json
from datetime import date, datetime
from typing import Optional, Tuple, Union

from config_loader import get_config
from constants import (
    NOTES_CONTEXT_CHARS,
    NOTES_HEADER,
    PROFILE_FILE,
    PROGRESSION_CONTEXT_CHARS,
    PROGRESSION_FILE,
)
from coach_actions import notes_file, plan_dir
from heading_dates import as_date
from logger import get_logger
from plan_files import locate_active_plan
from plan_sections import NOT_FOUND, PlanSection, extract_section

NO_PROFILE = "(No profile set. Ask the athlete to complete onboarding.)"

MARKER_INSTRUCTIONS = """\
AFTER your reply, you may append one or both of the following markers if needed. Put them at the very end, each on its own line:

[SAVE_NOTE: one or two sentences about what the athlete mentioned (sleep, soreness, mood, energy, injuries). Only if they shared something personally relevant.]

<PLAN_UPDATE>
## DayOfWeek Month DD — Updated session title
Full replacement markdown for the body of today's plan section. Start with the ## heading line. Only include this if you are changing what they should do today. Write the complete replacement.
</PLAN_UPDATE>

To change a later day in the plan, add its date: <PLAN_UPDATE date="YYYY-MM-DD">.
Inside a PLAN_UPDATE, the ## heading line is the only line that may start with "## ".

IMPORTANT: Only append markers when genuinely needed. Most replies have no markers at all."""


def load_profile_text(store) -> str:
    """Athlete profile block from profile.json, or a placeholder."""
    raw = store.read(PROFILE_FILE)
    if raw is None:
        return NO_PROFILE
    try:
        profile = json.loads(raw)
    except json.JSONDecodeError as e:
        get_logger().warning("Invalid profile.json", athlete=store.athlete_id, error=str(e))
        return NO_PROFILE
    if not isinstance(profile, dict):
        return NO_PROFILE
    return (profile.get('athlete_profile') or '').strip() or NO_PROFILE


def session_notes_summary(store, max_chars: int = NOTES_CONTEXT_CHARS) -> str:
    """Most recent max_chars of the notes log, without its header."""
    notes = store.read(notes_file())
    if not notes:
        return ''
    if notes.startswith(NOTES_HEADER):
        notes = notes[len(NOTES_HEADER):]
    content = notes.strip()
    if len(content) > max_chars:
        return content[-max_chars:]
    return content


def locate_today_section(store, reference: Union[date, datetime]) -> Tuple[Optional[str], PlanSection]:
    """
    (plan file, section) for the reference date.

    The section is always read from the returned file. plan_file is None
    when the athlete has no plan files.
    """
    plan_file = locate_active_plan(store, reference, plan_dir())
    if plan_file is None:
        return None, NOT_FOUND
    text = store.read(plan_file)
    if text is None:
        return plan_file, NOT_FOUND
    return plan_file, extract_section(text, reference)


def load_today_section(store, reference: Union[date, datetime]) -> PlanSection:
    """Today's section from the active plan, NOT_FOUND if there is none."""
    return locate_today_section(store, reference)[1]


def build_coach_system_prompt(store, reference: Union[date, datetime]) -> str:
    section = load_today_section(store, reference)
    if section.found:
        today_plan = f"TODAY'S PLAN ({section.heading}):\n{section.body}"
    else:
        today_plan = "TODAY'S PLAN: Outside the current plan window."

    max_chars = get_config().get('coach.notes_context_chars', NOTES_CONTEXT_CHARS)
    notes = session_notes_summary(store, max_chars)
    notes_block = (
        f"COACH SESSION NOTES (your memory of prior conversations):\n{notes}"
        if notes else None
    )

    progression_file = get_config().get('coach.progression_file', PROGRESSION_FILE)
    progression = (store.read(progression_file) or '')[:PROGRESSION_CONTEXT_CHARS]

    parts = [
        "You are a personal fitness coach with deep knowledge of this athlete. "
        "You are direct, specific, and give actionable advice. Never be vague.",
        load_profile_text(store),
        notes_block,
        today_plan,
        f"PROGRESSION RULES SUMMARY:\n{progression}" if progression else None,
        f"Today's date: {as_date(reference).strftime('%a %b %d %Y')}",
        "Respond in plain text. Be direct, specific, and actionable. Bullet points are fine.",
        MARKER_INSTRUCTIONS,
    ]
    return '\n\n'.join(p for p in parts if p)
