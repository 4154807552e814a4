#!/usr/bin/env python3
"""
Apply coach actions to an athlete's notes log and plan files.

Actions run in order and each one is isolated: a failure is reported in
that action's result and never stops the ones after it.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Union

from coach_markers import CoachAction, EditPlan, SaveNote
from config_loader import get_config
from constants import (
    ACTION_EDIT_PLAN,
    ACTION_SAVE_NOTE,
    COACH_DIR,
    ISO_DATE_FORMAT,
    NOTE_TIMESTAMP_FORMAT,
    NOTES_FILE,
    NOTES_HEADER,
)
from heading_dates import as_date
from logger import get_logger
from plan_files import locate_active_plan
from plan_sections import patch_section


@dataclass(frozen=True)
class ActionResult:
    kind: str
    success: bool
    detail: Optional[str] = None

    def to_dict(self) -> dict:
        result = {'type': self.kind, 'success': self.success}
        if self.detail is not None:
            result['detail'] = self.detail
        return result


class ActionError(Exception):
    """An action could not be applied; the message is shown to the athlete."""


def notes_file() -> str:
    return get_config().get('coach.notes_file', NOTES_FILE)


def plan_dir() -> str:
    return get_config().get('coach.plan_dir', COACH_DIR)


def append_note(store, content: str, reference: Union[date, datetime]):
    """Append a timestamped entry to the notes log, creating it if needed."""
    if not isinstance(reference, datetime):
        reference = datetime.combine(reference, datetime.min.time())
    entry = f"\n## {reference.strftime(NOTE_TIMESTAMP_FORMAT)}\n{content.strip()}\n"

    path = notes_file()
    existing, version = store.read_versioned(path)
    if existing is None:
        store.write(path, NOTES_HEADER + entry)
    else:
        store.write(path, existing + entry, expected_version=version)


def parse_target_date(value: Optional[str], reference: Union[date, datetime]) -> date:
    """Calendar date an EditPlan applies to: its own date, else the reference."""
    if not value:
        return as_date(reference)
    try:
        return datetime.strptime(value.strip(), ISO_DATE_FORMAT).date()
    except ValueError:
        raise ActionError(f"invalid plan date '{value}'")


def edit_plan(store, replacement: str, target: date) -> str:
    """Patch the target day's section; returns the plan file that changed."""
    plan_file = locate_active_plan(store, target, plan_dir())
    if plan_file is None:
        raise ActionError(f"no active plan file for {target.isoformat()}")

    text, version = store.read_versioned(plan_file)
    if text is None:
        raise ActionError(f"plan file {plan_file} is missing")

    result = patch_section(text, target, replacement)
    if not result.success:
        raise ActionError(f"no section for {target.isoformat()} in {plan_file}")

    store.write(plan_file, result.new_text, expected_version=version)
    return plan_file


def _execute_one(action: CoachAction, reference, store) -> ActionResult:
    if isinstance(action, SaveNote):
        append_note(store, action.content, reference)
        return ActionResult(kind=ACTION_SAVE_NOTE, success=True)

    if isinstance(action, EditPlan):
        target = parse_target_date(action.target_date, reference)
        plan_file = edit_plan(store, action.replacement, target)
        return ActionResult(kind=ACTION_EDIT_PLAN, success=True, detail=f"updated {target.isoformat()} in {plan_file}")

    raise ActionError(f"unknown action {action!r}")


def execute_actions(actions: List[CoachAction], reference: Union[date, datetime], store) -> List[ActionResult]:
    """
    Run each action against the athlete's store and report per-action results.

    reference is "now" for the request: it timestamps notes and is the
    target day for plan updates that carry no date of their own.
    """
    log = get_logger()
    results = []

    for action in actions:
        kind = getattr(action, 'kind', type(action).__name__)
        try:
            result = _execute_one(action, reference, store)
        except ActionError as e:
            log.warning("Coach action failed", athlete=store.athlete_id, action=kind, detail=str(e))
            result = ActionResult(kind=kind, success=False, detail=str(e))
        except Exception as e:
            log.error("Coach action raised", exc_info=True, athlete=store.athlete_id, action=kind, error=str(e))
            result = ActionResult(kind=kind, success=False, detail=str(e))
        results.append(result)

    if results:
        succeeded = sum(1 for r in results if r.success)
        log.info(
            "Coach actions executed",
            athlete=store.athlete_id,
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )

    return results
