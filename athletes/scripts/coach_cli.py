#!/usr/bin/env python3
"""
Operator CLI for an athlete's coach files.

Usage:
    python3 coach_cli.py [--json] [-v] [--log-file PATH] today <athlete_id> [--date YYYY-MM-DD]
    python3 coach_cli.py files <athlete_id> [--date YYYY-MM-DD]
    python3 coach_cli.py apply <athlete_id> [--file reply.txt] [--date YYYY-MM-DD]
    python3 coach_cli.py prompt <athlete_id> [--date YYYY-MM-DD]

`apply` reads a coach reply (stdin by default), executes its markers and
prints the cleaned reply.
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from coach_actions import execute_actions, plan_dir
from coach_context import build_coach_system_prompt, load_today_section
from coach_markers import parse_actions
from constants import ISO_DATE_FORMAT, validate_athlete_id
from document_store import DocumentStore
from logger import get_logger
from plan_files import find_active_plan_file, list_plan_windows


def _reference(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    day = datetime.strptime(value, ISO_DATE_FORMAT).date()
    return datetime(day.year, day.month, day.day, 12, 0)


def cmd_today(store: DocumentStore, reference: datetime) -> int:
    section = load_today_section(store, reference)
    if not section.found:
        get_logger().warning("No plan section for date", date=reference.date().isoformat())
        return 1
    print(f"## {section.heading}\n")
    print(section.body)
    return 0


def cmd_files(store: DocumentStore, reference: datetime) -> int:
    log = get_logger()
    listing = store.list(plan_dir())
    windows = list_plan_windows(listing)
    if not windows:
        log.warning("No plan files", athlete=store.athlete_id)
        return 1

    active = find_active_plan_file(listing, reference)
    log.header(f"Plan files for {store.athlete_id}")
    for window in windows:
        marker = '*' if window.file == active else ' '
        log.detail(f"{marker} {window.start} -> {window.end}  {window.file}")
    return 0


def cmd_apply(store: DocumentStore, reference: datetime, reply_text: str) -> int:
    log = get_logger()
    parsed = parse_actions(reply_text)
    results = execute_actions(parsed.actions, reference, store)

    print(parsed.cleaned_text)
    for result in results:
        if result.success:
            log.success(result.kind, detail=result.detail)
        else:
            log.error(result.kind, detail=result.detail)
    return 0 if all(r.success for r in results) else 1


def cmd_prompt(store: DocumentStore, reference: datetime) -> int:
    print(build_coach_system_prompt(store, reference))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Inspect and update an athlete's coach plan files"
    )
    parser.add_argument("--json", action="store_true", help="Structured JSON log output")
    parser.add_argument("--log-file", help="Also write JSON logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in [
        ("today", "Print the plan section for the date"),
        ("files", "List plan files and mark the active one"),
        ("prompt", "Print the coach system prompt"),
    ]:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("athlete_id", help="Athlete ID (directory name)")
        p.add_argument("--date", help="Reference date (YYYY-MM-DD), default today")

    apply_parser = sub.add_parser("apply", help="Execute markers in a coach reply")
    apply_parser.add_argument("athlete_id", help="Athlete ID (directory name)")
    apply_parser.add_argument("--file", help="Reply text file (default: stdin)")
    apply_parser.add_argument("--date", help="Reference date (YYYY-MM-DD), default today")

    args = parser.parse_args(argv)

    log = get_logger()
    if args.json:
        log.set_json_mode(True)
    if args.verbose:
        log.set_level("DEBUG")
    if args.log_file:
        log.add_file_handler(Path(args.log_file))

    if not validate_athlete_id(args.athlete_id):
        parser.error(f"invalid athlete ID: {args.athlete_id}")

    try:
        reference = _reference(args.date)
    except ValueError:
        parser.error(f"invalid date: {args.date}")

    store = DocumentStore.for_athlete(args.athlete_id)

    if args.command == "today":
        return cmd_today(store, reference)
    if args.command == "files":
        return cmd_files(store, reference)
    if args.command == "prompt":
        return cmd_prompt(store, reference)

    if args.file:
        with open(args.file, 'r', encoding='utf-8') as f:
            reply_text = f.read()
    else:
        reply_text = sys.stdin.read()
    return cmd_apply(store, reference, reply_text)


if __name__ == "__main__":
    sys.exit(main())
