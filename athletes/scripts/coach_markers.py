#!/usr/bin/env python3
"""
Pull structured actions out of a coach reply.

The coach appends markers to its plain-text reply:

    [SAVE_NOTE: slept 5 hours, left knee sore]

    <PLAN_UPDATE date="2026-02-21">
    ## Sat Feb 21 — Easy run
    30 min easy.
    </PLAN_UPDATE>

Markers are removed from the text shown to the athlete. Bracket markers are
stripped before block markers, so a bracket marker inside a block is
removed too. Markers with blank content are removed but produce no action.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from constants import ACTION_EDIT_PLAN, ACTION_SAVE_NOTE
from logger import get_logger

SAVE_NOTE_PATTERN = re.compile(r'\[SAVE_NOTE:([^\]]*)\]')

PLAN_UPDATE_PATTERN = re.compile(
    r'<PLAN_UPDATE(?:\s+date="([^"]*)")?\s*>(.*?)</PLAN_UPDATE>',
    re.DOTALL,
)


@dataclass(frozen=True)
class SaveNote:
    content: str
    kind: str = field(default=ACTION_SAVE_NOTE, init=False)


@dataclass(frozen=True)
class EditPlan:
    replacement: str
    target_date: Optional[str] = None
    kind: str = field(default=ACTION_EDIT_PLAN, init=False)


CoachAction = Union[SaveNote, EditPlan]


@dataclass
class ParsedReply:
    cleaned_text: str
    actions: List[CoachAction]


def parse_actions(agent_text: str) -> ParsedReply:
    """
    Extract actions and return the reply with all markers removed.

    Notes come first, then plan updates, each in order of appearance.
    """
    actions: List[CoachAction] = []

    def take_note(match):
        content = match.group(1).strip()
        if content:
            actions.append(SaveNote(content=content))
        return ''

    def take_plan_update(match):
        replacement = match.group(2).strip()
        if replacement:
            actions.append(EditPlan(replacement=replacement, target_date=match.group(1) or None))
        return ''

    text = SAVE_NOTE_PATTERN.sub(take_note, agent_text)
    text = PLAN_UPDATE_PATTERN.sub(take_plan_update, text)

    if actions:
        get_logger().debug(
            "Parsed coach markers",
            notes=sum(1 for a in actions if isinstance(a, SaveNote)),
            plan_updates=sum(1 for a in actions if isinstance(a, EditPlan)),
        )

    return ParsedReply(cleaned_text=text.strip(), actions=actions)
