"""
Local course storage backed by one JSON file.

This module manages the file:

    data/courses.json    {"courses": [ {...course, "schedules": [...]}, ... ]}

It offers the same methods as coursedesk.client.CoursesApi, so the CLI
and the wizard can run offline against a file instead of the service.

Rules enforced on write:
- the natural key (code, section, academic year, semester) is unique
- an ACTIVE course committed without schedules is stored INACTIVE
- replacing schedules is refused if they overlap another ACTIVE course
  of the same faculty member; the conflicts are itemised
- a status change (e.g. archiving) touches all given courses or none
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Optional

from coursedesk.conflicts import find_course_conflicts, parse_wire_entry
from coursedesk.duplicates import natural_key
from coursedesk.model import STATUSES, ScheduleEntry

logger = logging.getLogger(__name__)


def _default_store_path() -> Path:
    """
    courses.json next to the package, used when no --store / COURSEDESK_STORE is given.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "courses.json"


class JsonCourseStore:
    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_store_path()

    # -----------------------------------------------------------------------
    # File access
    # -----------------------------------------------------------------------

    def _load(self) -> list[dict[str, Any]]:
        """
        Missing or unreadable file -> no courses.
        """
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Course store %s is unreadable, starting empty", self.path)
            return []

        courses = data.get("courses", []) if isinstance(data, dict) else []
        return [c for c in courses if isinstance(c, dict)] if isinstance(courses, list) else []

    def _save(self, courses: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"courses": courses}
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def list_courses(self, faculty_id: Optional[str] = None) -> list[dict[str, Any]]:
        courses = self._load()
        if faculty_id is None:
            return courses
        return [c for c in courses if c.get("facultyId") == faculty_id]

    def get_course(self, slug: str) -> Optional[dict[str, Any]]:
        for c in self._load():
            if c.get("slug") == slug:
                return c
        return None

    # -----------------------------------------------------------------------
    # Commits
    # -----------------------------------------------------------------------

    def create_course(self, course: dict[str, Any], schedules: list[dict[str, str]]) -> dict[str, Any]:
        """
        Course and schedules are written together or not at all.
        """
        if not schedules:
            return {"success": False, "error": "Course must have at least one schedule"}

        courses = self._load()
        created, error = _build_course(course, schedules, courses)
        if created is None:
            return {"success": False, "error": error}

        courses.append(created)
        self._save(courses)
        logger.info("Created course %s", created["slug"])
        return {"success": True, "course": created}

    def import_courses(self, courses_in: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Each course is accepted or rejected on its own; `row` in errors is
        the 1-based position in `courses_in`.
        """
        courses = self._load()
        success = 0
        errors: list[dict[str, Any]] = []

        for row, item in enumerate(courses_in, start=1):
            fields = {k: v for k, v in item.items() if k != "schedules"}
            created, error = _build_course(fields, item.get("schedules") or [], courses)
            if created is None:
                errors.append({"row": row, "message": error})
                continue
            courses.append(created)
            success += 1

        if success:
            self._save(courses)
        logger.info("Imported %d course(s), %d failed", success, len(errors))
        return {"results": {"success": success, "failed": len(errors), "errors": errors}}

    def replace_schedules(self, slug: str, schedules: list[dict[str, str]]) -> dict[str, Any]:
        courses = self._load()
        target = next((c for c in courses if c.get("slug") == slug), None)
        if target is None:
            return {"success": False, "error": "Course not found"}

        entries: list[ScheduleEntry] = []
        for raw in schedules:
            entry = parse_wire_entry(raw)
            if entry is None:
                return {"success": False, "error": f"Invalid schedule: {raw!r}"}
            entries.append(entry)

        others = [
            c
            for c in courses
            if c is not target
            and c.get("facultyId") == target.get("facultyId")
            and str(c.get("status", "")).upper() == "ACTIVE"
        ]
        conflicts = find_course_conflicts(entries, others)
        if conflicts:
            return {"success": False, "error": "Schedule conflicts with other courses", "conflicts": conflicts}

        target["schedules"] = [e.to_wire() for e in entries]
        self._save(courses)
        logger.info("Replaced schedules of %s (%d entries)", slug, len(entries))
        return {"success": True}

    def set_status(self, slugs: list[str], status: str) -> dict[str, Any]:
        """
        Move courses to ACTIVE, INACTIVE or ARCHIVED. All slugs must exist,
        otherwise nothing is changed.
        """
        status = str(status or "").strip().upper()
        if status not in STATUSES:
            return {"success": False, "error": "Valid status is required (ACTIVE, INACTIVE, or ARCHIVED)"}
        if not slugs:
            return {"success": False, "error": "At least one course is required"}

        courses = self._load()
        by_slug = {c.get("slug"): c for c in courses}
        missing = [s for s in slugs if s not in by_slug]
        if missing:
            return {"success": False, "error": f"Course not found: {', '.join(missing)}"}

        targets = set(slugs)
        for slug in targets:
            by_slug[slug]["status"] = status
        self._save(courses)
        logger.info("Set status %s on %d course(s)", status, len(targets))
        return {"success": True, "updatedCount": len(targets)}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unique_slug(code: str, section: str, courses: list[dict[str, Any]]) -> str:
    taken = {c.get("slug") for c in courses}
    base = f"{code.lower()}-{section.lower()}"
    n = 1
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def _build_course(
    fields: dict[str, Any],
    schedules: list[dict[str, Any]],
    courses: list[dict[str, Any]],
) -> tuple[Optional[dict[str, Any]], str]:
    """
    Return (course, "") or (None, error message). Nothing is stored here.
    """
    code = str(fields.get("code") or "").strip().upper()
    title = str(fields.get("title") or "").strip()
    section = str(fields.get("section") or "").strip().upper()
    if not code or not title or not section:
        return None, "Course code, title and section are required"

    entries: list[ScheduleEntry] = []
    for raw in schedules:
        entry = parse_wire_entry(raw)
        if entry is None:
            return None, f"Invalid schedule: {raw!r}"
        entries.append(entry)

    status = str(fields.get("status") or "ACTIVE").strip().upper()
    if not entries and status == "ACTIVE":
        # no schedule -> not teachable yet
        status = "INACTIVE"

    course = {
        "id": str(uuid.uuid4()),
        "slug": _unique_slug(code, section, courses),
        "code": code,
        "title": title,
        "section": section,
        "room": str(fields.get("room") or "").strip().upper(),
        "semester": str(fields.get("semester") or "").strip(),
        "academicYear": str(fields.get("academicYear") or "").strip(),
        "classNumber": fields.get("classNumber"),
        "status": status,
        "facultyId": fields.get("facultyId"),
        "schedules": [e.to_wire() for e in entries],
    }

    key = natural_key(course)
    if any(natural_key(c) == key for c in courses):
        return None, f"Course {code}-{section} already exists for {course['academicYear']} {course['semester']}"

    return course, ""
