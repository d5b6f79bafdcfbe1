"""
Row validation (spreadsheet row / course form -> CourseCandidate).

Every field rule is evaluated, so a bad row reports all of its problems
at once instead of one per upload attempt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from coursedesk.model import (
    MAX_CLASS_NUMBER,
    MAX_CODE_LEN,
    MAX_ROOM_LEN,
    MAX_SECTION_LEN,
    MAX_TITLE_LEN,
    SEMESTERS,
    STATUSES,
    CourseCandidate,
)

_ACADEMIC_YEAR_RE = re.compile(r"^\d{4}-\d{4}$")
_DIGITS_RE = re.compile(r"^\d+$")
_ROOM_PREFIX_RE = re.compile(r"^room:\s*", re.IGNORECASE)

# header string -> CourseCandidate field
HEADER_FIELDS = {
    "Course Code": "code",
    "Course Title": "title",
    "Room": "room",
    "Semester": "semester",
    "Academic Year": "academic_year",
    "Class Number": "class_number",
    "Section": "section",
    "Status": "status",
}


@dataclass
class RowValidation:
    ok: bool
    value: Optional[CourseCandidate] = None
    errors: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return ", ".join(self.errors)


def _text(x: Any) -> str:
    return "" if x is None else str(x).strip()


def clean_room(raw: Any) -> str:
    """
    ' room: a101 ' -> 'A101'
    """
    return _ROOM_PREFIX_RE.sub("", _text(raw)).strip().upper()


def _check_length(errors: list[str], label: str, value: str, limit: int) -> None:
    if not value:
        errors.append(f"{label} is required")
    elif len(value) > limit:
        errors.append(f"{label} must be at most {limit} characters")


def _check_academic_year(errors: list[str], value: str) -> None:
    if not value:
        errors.append("Academic Year is required")
        return
    if not _ACADEMIC_YEAR_RE.match(value):
        errors.append("Academic Year must be in format YYYY-YYYY (e.g., 2024-2025)")
        return

    first, second = (int(x) for x in value.split("-"))
    if first >= second:
        errors.append("Academic Year: first year must be less than second year (e.g., 2024-2025)")
    elif second - first != 1:
        errors.append("Academic Year must have exactly 1 year difference (e.g., 2024-2025)")


def _parse_class_number(errors: list[str], value: str) -> int:
    if not value:
        errors.append("Class Number is required")
        return 0
    if not _DIGITS_RE.match(value):
        errors.append("Class Number must be a positive integer")
        return 0

    n = int(value)
    if n < 1:
        errors.append("Class Number must be a positive integer")
    elif n > MAX_CLASS_NUMBER:
        errors.append(f"Class Number cannot exceed {MAX_CLASS_NUMBER}")
    return n


def validate_course_fields(fields: Mapping[str, Any], row: Optional[int] = None) -> RowValidation:
    """
    Validate course fields keyed by CourseCandidate attribute names.

    Used directly by the create form; spreadsheet rows go through validate_row.
    """
    errors: list[str] = []

    code = _text(fields.get("code")).upper()
    _check_length(errors, "Course Code", code, MAX_CODE_LEN)

    title = _text(fields.get("title"))
    _check_length(errors, "Course Title", title, MAX_TITLE_LEN)

    section = _text(fields.get("section")).upper()
    _check_length(errors, "Section", section, MAX_SECTION_LEN)

    room = clean_room(fields.get("room"))
    _check_length(errors, "Room", room, MAX_ROOM_LEN)

    semester = _text(fields.get("semester"))
    if not semester:
        errors.append("Semester is required")
    elif semester not in SEMESTERS:
        errors.append(f"Semester must be '{SEMESTERS[0]}' or '{SEMESTERS[1]}'")

    academic_year = _text(fields.get("academic_year"))
    _check_academic_year(errors, academic_year)

    class_number = _parse_class_number(errors, _text(fields.get("class_number")))

    status = _text(fields.get("status")).upper()
    if not status:
        errors.append("Status is required")
    elif status not in STATUSES:
        errors.append("Status must be Active, Inactive or Archived")

    if errors:
        return RowValidation(ok=False, errors=errors)

    return RowValidation(
        ok=True,
        value=CourseCandidate(
            code=code,
            title=title,
            section=section,
            room=room,
            semester=semester,
            academic_year=academic_year,
            class_number=class_number,
            status=status,
            row=row,
        ),
    )


def row_to_fields(row: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map a header-keyed row to field names.

    Headers are matched by name (trimmed, case-insensitive), never by
    column position; unknown columns are ignored.
    """
    by_name = {str(k).strip().lower(): v for k, v in row.items() if k is not None}
    return {attr: by_name.get(header.lower()) for header, attr in HEADER_FIELDS.items()}


def validate_row(row: Mapping[str, Any], row_number: Optional[int] = None) -> RowValidation:
    return validate_course_fields(row_to_fields(row), row=row_number)


def row_code(row: Mapping[str, Any]) -> str:
    """
    Best-effort course code for feedback lines, 'N/A' if missing.
    """
    code = _text(row_to_fields(row).get("code")).upper()
    return code or "N/A"

