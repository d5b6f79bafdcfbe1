"""
Central data model definitions used across the project.

This module defines the canonical structure of courses, schedules and
import feedback so that:
- all modules share the same field names
- the weekday vocabulary (full name in forms, 3-letter form on the wire)
  is converted in exactly one place
- the spreadsheet header strings live next to the record they describe
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from coursedesk.timeparse import format_24_hour


# ---------------------------------------------------------------------------
# Business constants
# ---------------------------------------------------------------------------

SEMESTERS = ("1st Semester", "2nd Semester")
STATUSES = ("ACTIVE", "INACTIVE", "ARCHIVED")

# statuses that count against the per-faculty admission ceiling
CAPPED_STATUSES = ("ACTIVE", "INACTIVE")

MAX_CODE_LEN = 15
MAX_TITLE_LEN = 80
MAX_SECTION_LEN = 10
MAX_ROOM_LEN = 15
MAX_CLASS_NUMBER = 9_999_999_999_999

MIN_DURATION_MINUTES = 30

# wizard time window: 07:00 - 20:00
DAY_START_MINUTES = 7 * 60
DAY_END_MINUTES = 20 * 60

# Spreadsheet headers, in template order. Rows are matched by name.
HEADERS = (
    "Course Code",
    "Course Title",
    "Room",
    "Semester",
    "Academic Year",
    "Class Number",
    "Section",
    "Status",
)


class Day(Enum):
    """
    Weekday with both spellings used by the system.

    `full` is what a person types or sees in a form, `short` is what is
    stored and sent over the wire. Both are total and inverse to each other.
    """

    MONDAY = ("Monday", "Mon")
    TUESDAY = ("Tuesday", "Tue")
    WEDNESDAY = ("Wednesday", "Wed")
    THURSDAY = ("Thursday", "Thu")
    FRIDAY = ("Friday", "Fri")
    SATURDAY = ("Saturday", "Sat")
    SUNDAY = ("Sunday", "Sun")

    @property
    def full(self) -> str:
        return self.value[0]

    @property
    def short(self) -> str:
        return self.value[1]

    @classmethod
    def parse(cls, text: Any) -> Optional["Day"]:
        """
        Accept 'Monday', 'monday', 'Mon', 'MON' ... Returns None if unknown.
        """
        key = "" if text is None else str(text).strip().lower()
        if not key:
            return None
        for day in cls:
            if key in (day.full.lower(), day.short.lower()):
                return day
        return None


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


@dataclass
class ScheduleDraft:
    """
    One row of the schedule form as the user typed it. Any field may be blank.
    """

    day: str = ""
    from_time: str = ""
    to_time: str = ""

    def is_untouched(self) -> bool:
        return not (self.day.strip() or self.from_time.strip() or self.to_time.strip())

    def is_complete(self) -> bool:
        return bool(self.day.strip() and self.from_time.strip() and self.to_time.strip())


@dataclass(frozen=True)
class ScheduleEntry:
    """
    A validated weekly slot. Times are minutes since midnight.
    """

    day: Day
    from_time: int
    to_time: int

    def to_wire(self) -> dict[str, str]:
        return {
            "day": self.day.short,
            "fromTime": format_24_hour(self.from_time),
            "toTime": format_24_hour(self.to_time),
        }

    def to_draft(self) -> ScheduleDraft:
        return ScheduleDraft(
            day=self.day.full,
            from_time=format_24_hour(self.from_time),
            to_time=format_24_hour(self.to_time),
        )


# ---------------------------------------------------------------------------
# Courses & feedback
# ---------------------------------------------------------------------------


@dataclass
class CourseCandidate:
    """
    A course that passed every field rule, ready for duplicate checking.

    `row` is the 1-based sheet row it came from (None for form input).
    """

    code: str
    title: str
    section: str
    room: str
    semester: str
    academic_year: str
    class_number: int
    status: str
    row: Optional[int] = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "title": self.title,
            "section": self.section,
            "room": self.room,
            "semester": self.semester,
            "academicYear": self.academic_year,
            "classNumber": self.class_number,
            "status": self.status,
        }

    @property
    def label(self) -> str:
        return f"{self.code}-{self.section} ({self.academic_year} {self.semester})"


class FeedbackStatus(str, Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class FeedbackEntry:
    """
    One line of an import report.
    """

    row: Optional[int]
    code: str
    status: FeedbackStatus
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "code": self.code, "status": self.status.value, "message": self.message}


@dataclass
class ImportReport:
    """
    Aggregated outcome of an import: counts plus the row-level feedback.
    """

    imported: int = 0
    skipped: int = 0
    failed: int = 0
    feedback: List[FeedbackEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.imported + self.skipped + self.failed
