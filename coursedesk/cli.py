"""
CLI (Command Line Interface).

    coursedesk list
    coursedesk check <sheet.xlsx|sheet.csv>
    coursedesk import <sheet.xlsx|sheet.csv>
    coursedesk create
    coursedesk edit-schedules <slug>
    coursedesk archive <slug>... [--status ACTIVE|INACTIVE|ARCHIVED]
    coursedesk template <file.xlsx>
    coursedesk export <file.xlsx>

Storage is the service at --api-url / COURSEDESK_API_URL if set,
otherwise the local JSON store (--store / COURSEDESK_STORE).

Note:
- the wizard and the import flow live in coursedesk/interactive.py
- list/archive/template/export print plain text
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

from coursedesk.client import CoursesApi, TransportError
from coursedesk.config import Settings, load_settings
from coursedesk.export_xlsx import describe_schedules, export_courses_to_xlsx, write_import_template
from coursedesk.model import STATUSES
from coursedesk.pipeline import count_active_courses
from coursedesk.storage import JsonCourseStore


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """
    Environment first, command-line flags win.
    """
    settings = load_settings()
    if args.api_url:
        settings.api_url = args.api_url
    if args.store:
        settings.store_path = Path(args.store)
    if args.faculty_id:
        settings.faculty_id = args.faculty_id
    if args.max_active is not None:
        settings.max_active = args.max_active
    return settings


def make_store(settings: Settings) -> Any:
    if settings.api_url:
        return CoursesApi(settings.api_url, timeout=settings.timeout)
    return JsonCourseStore(settings.store_path)


def _cmd_list(store: Any, settings: Settings) -> int:
    courses = store.list_courses(settings.faculty_id)
    if not courses:
        print("No courses.")
        return 0

    for c in sorted(courses, key=lambda c: (str(c.get("code", "")), str(c.get("section", "")))):
        schedules = describe_schedules(c.get("schedules") or []) or "(no schedules)"
        print(
            f"{c.get('slug', '')} | {c.get('code', '')}-{c.get('section', '')} | {c.get('title', '')} | "
            f"{c.get('academicYear', '')} {c.get('semester', '')} | {c.get('status', '')} | {schedules}"
        )
    return 0


def _cmd_archive(args: argparse.Namespace, store: Any, settings: Settings) -> int:
    result = store.set_status(args.slugs, args.status)
    if not result.get("success"):
        print(result.get("error") or "Failed to update courses")
        return 1

    print(f"Updated {result.get('updatedCount', 0)} course(s) to {args.status}.")
    active = count_active_courses(store.list_courses(settings.faculty_id), settings.faculty_id)
    print(f"Active courses: {active} of {settings.max_active}")
    return 0


def _cmd_template(args: argparse.Namespace) -> int:
    out = (args.out or "").strip()
    if not out:
        print("Please provide output .xlsx path.")
        return 1
    path = write_import_template(out)
    print(f"Template written to: {path}")
    return 0


def _cmd_export(args: argparse.Namespace, store: Any, settings: Settings) -> int:
    out = (args.out or "").strip()
    if not out:
        print("Please provide output .xlsx path.")
        return 1

    courses = store.list_courses(settings.faculty_id)
    if not courses:
        print("No courses to export.")
        return 0

    n = export_courses_to_xlsx(courses, out)
    print(f"Exported {n} courses to: {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="coursedesk", description="Course import and schedule assignment")
    parser.add_argument("--api-url", type=str, default=None, help="Course service base URL")
    parser.add_argument("--store", type=str, default=None, help="Local JSON store path")
    parser.add_argument("--faculty-id", type=str, default=None, help="Owner of created courses")
    parser.add_argument("--max-active", type=int, default=None, help="Maximum active courses per owner")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List courses")

    p_check = sub.add_parser("check", help="Validate an import sheet without importing")
    p_check.add_argument("sheet", type=str, help="Sheet path (.xlsx or .csv)")

    p_import = sub.add_parser("import", help="Import courses and assign schedules")
    p_import.add_argument("sheet", type=str, help="Sheet path (.xlsx or .csv)")

    sub.add_parser("create", help="Create one course with schedules")

    p_edit = sub.add_parser("edit-schedules", help="Replace the schedules of a course")
    p_edit.add_argument("slug", type=str, help="Course slug (e.g. cs101-a-1)")

    p_archive = sub.add_parser("archive", help="Archive courses (or set another status)")
    p_archive.add_argument("slugs", nargs="+", help="Course slugs")
    p_archive.add_argument(
        "--status", type=str.upper, choices=STATUSES, default="ARCHIVED", help="New status (default ARCHIVED)"
    )

    p_template = sub.add_parser("template", help="Write an empty import template")
    p_template.add_argument("out", type=str, help="Output file path (e.g. courses.xlsx)")

    p_export = sub.add_parser("export", help="Export courses to .xlsx")
    p_export.add_argument("out", type=str, help="Output file path (e.g. courses.xlsx)")

    return parser


def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "template":
        return _cmd_template(args)

    store = make_store(settings)

    if args.command == "list":
        return _cmd_list(store, settings)
    if args.command == "export":
        return _cmd_export(args, store, settings)
    if args.command == "archive":
        return _cmd_archive(args, store, settings)

    from coursedesk import interactive

    if args.command == "check":
        plan = interactive.flow_check(args.sheet, store, settings)
        return 0 if plan is not None and plan.can_proceed else 1
    if args.command == "import":
        outcome = interactive.flow_import(args.sheet, store, settings)
        return 0 if outcome is not None and outcome.success else 1
    if args.command == "create":
        outcome = interactive.flow_create(store, settings)
        return 0 if outcome is not None and outcome.success else 1
    if args.command == "edit-schedules":
        outcome = interactive.flow_edit(args.slug, store)
        return 0 if outcome is not None and outcome.success else 1

    return 2


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        settings = _settings_from_args(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        raise SystemExit(2)

    try:
        raise SystemExit(_dispatch(args, settings))
    except TransportError as e:
        print(f"Storage unavailable: {e}")
        raise SystemExit(1)
