"""
Excel (.xlsx) export.

Two files are produced here:
- the import template (title, instructions, header row, one example row)
- a course list in the same column layout, plus a 'Schedules' column,
  so an export can be edited and imported again
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from openpyxl import Workbook

from coursedesk.model import HEADERS, Day
from coursedesk.timeparse import format_12_hour, parse_to_minutes

EXAMPLE_ROW = {
    "Course Code": "CS101",
    "Course Title": "Introduction to Programming",
    "Room": "A101",
    "Semester": "1st Semester",
    "Academic Year": "2024-2025",
    "Class Number": "1",
    "Section": "A",
    "Status": "Active",
}

TEMPLATE_TITLE = "COURSE IMPORT TEMPLATE"
TEMPLATE_INSTRUCTIONS = (
    "1. Course Code must be unique within a section, year and semester (e.g., CS101)",
    "2. Semester must be exactly: 1st Semester or 2nd Semester",
    "3. Academic Year is YYYY-YYYY with consecutive years (e.g., 2024-2025)",
    "4. Status must be exactly: Active, Inactive or Archived",
    "5. All fields are required, do not leave any cell empty",
    "6. Do not modify or delete the header row",
    "7. Courses imported without schedules are set to INACTIVE",
)


def describe_schedules(schedules: list[dict[str, Any]]) -> str:
    """
    [{'day': 'Mon', 'fromTime': '08:00', 'toTime': '09:30'}] -> 'Monday 8:00 AM-9:30 AM'
    """
    parts: list[str] = []
    for s in schedules:
        day = Day.parse(s.get("day"))
        start = parse_to_minutes(s.get("fromTime"))
        end = parse_to_minutes(s.get("toTime"))
        if day is None or start is None or end is None:
            continue
        parts.append(f"{day.full} {format_12_hour(start)}-{format_12_hour(end)}")
    return "; ".join(parts)


def _course_row(course: dict[str, Any]) -> list[Any]:
    return [
        course.get("code", ""),
        course.get("title", ""),
        course.get("room", ""),
        course.get("semester", ""),
        course.get("academicYear", ""),
        course.get("classNumber", ""),
        course.get("section", ""),
        str(course.get("status", "")).title(),
        describe_schedules(course.get("schedules") or []),
    ]


def write_import_template(out_path: str | Path) -> Path:
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = "Courses"
    ws.append([TEMPLATE_TITLE])
    ws.append([])
    for line in TEMPLATE_INSTRUCTIONS:
        ws.append([line])
    ws.append([])
    ws.append(list(HEADERS))
    ws.append([EXAMPLE_ROW[h] for h in HEADERS])
    wb.save(out)
    return out


def export_courses_to_xlsx(courses: list[dict[str, Any]], out_path: str | Path) -> int:
    """
    Export courses to an .xlsx file. Returns number of exported courses.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = "Courses"
    ws.append(list(HEADERS) + ["Schedules"])

    count = 0
    for course in sorted(courses, key=lambda c: (str(c.get("code", "")), str(c.get("section", "")))):
        ws.append(_course_row(course))
        count += 1

    wb.save(out)
    return count
