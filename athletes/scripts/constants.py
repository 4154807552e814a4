#!/usr/bin/env python3
"""
Single source of truth for constants used across the dashboard.

All shared constants and athlete path helpers should be defined here to
avoid duplication.
"""

import os
import re
from pathlib import Path
from typing import Dict, List


# === ATHLETE PATH UTILITIES ===
# Use these instead of constructing paths manually throughout the codebase

# Default location of athlete data directories (scripts/../)
ATHLETES_BASE_DIR: Path = Path(__file__).parent.parent.resolve()


def get_data_root() -> Path:
    """
    Get the directory holding one subdirectory per athlete.

    FD_DATA_DIR wins over config.yaml, which wins over ATHLETES_BASE_DIR.
    """
    env_dir = os.environ.get('FD_DATA_DIR')
    if env_dir:
        return Path(env_dir)

    from config_loader import get_config
    configured = get_config().get_path('data_dir')
    return configured or ATHLETES_BASE_DIR


def get_athlete_dir(athlete_id: str) -> Path:
    """Get the base directory for an athlete."""
    return get_data_root() / athlete_id


# === ATHLETE IDS ===

# Alphanumeric, hyphens, underscores only
ATHLETE_ID_PATTERN = re.compile(r'^[a-z0-9][a-z0-9_-]{0,62}[a-z0-9]$|^[a-z0-9]$')
MAX_ATHLETE_ID_LENGTH: int = 64

# Directories under the default data root that are not athletes
RESERVED_ATHLETE_IDS = frozenset({Path(__file__).parent.name})


def validate_athlete_id(athlete_id: str) -> bool:
    """Validate athlete ID is safe for filesystem use."""
    if not athlete_id:
        return False
    if len(athlete_id) > MAX_ATHLETE_ID_LENGTH:
        return False
    if not ATHLETE_ID_PATTERN.match(athlete_id):
        return False
    if '..' in athlete_id or '/' in athlete_id or '\\' in athlete_id:
        return False
    if athlete_id in RESERVED_ATHLETE_IDS:
        return False
    return True


# === COACH FILES ===
# Relative to the athlete directory

COACH_DIR: str = 'coach'
NOTES_FILE: str = 'coach/session-notes.md'
PROGRESSION_FILE: str = 'coach/progression.md'
PROFILE_FILE: str = 'profile.json'

NOTES_HEADER: str = (
    '# Coach Session Notes\n'
    '<!-- Auto-appended by AI coach. Do not edit manually. -->\n'
)

# Max characters of notes / progression rules fed into the coach prompt
NOTES_CONTEXT_CHARS: int = 3000
PROGRESSION_CONTEXT_CHARS: int = 3000


# === PLAN FILES ===

PLAN_FILENAME_PATTERN = re.compile(
    r'^two-week-plan-(\d{4}-\d{2}-\d{2})_to_(\d{4}-\d{2}-\d{2})\.md$'
)

ISO_DATE_FORMAT: str = '%Y-%m-%d'
NOTE_TIMESTAMP_FORMAT: str = '%Y-%m-%d %H:%M'


# === CALENDAR ===

MONTH_ABBREVS: List[str] = [
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec',
]

MONTH_ABBREV_TO_NUM: Dict[str, int] = {
    abbrev: i + 1 for i, abbrev in enumerate(MONTH_ABBREVS)
}


# === ACTION KINDS ===

ACTION_SAVE_NOTE: str = 'save_note'
ACTION_EDIT_PLAN: str = 'edit_plan'
