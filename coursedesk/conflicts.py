"""
Conflict detection.

Given weekly schedule entries, detect overlaps on the same weekday.
Overlap rule:
    start < other_end AND end > other_start

Touching intervals (end == other start) are NOT a conflict.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from coursedesk.model import Day, ScheduleEntry
from coursedesk.timeparse import parse_to_minutes


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def entries_overlap(a: ScheduleEntry, b: ScheduleEntry) -> bool:
    if a.day is not b.day:
        return False
    return overlaps(a.from_time, a.to_time, b.from_time, b.to_time)


def find_overlapping_pairs(entries: Sequence[ScheduleEntry]) -> list[tuple[int, int]]:
    """
    Find overlapping entry index pairs (i, j), each pair appears once (i<j).
    """
    pairs: list[tuple[int, int]] = []

    # O(n^2) is fine, a course has a handful of weekly slots
    for i in range(len(entries)):
        for j in range(i + 1, len(entries)):
            if entries_overlap(entries[i], entries[j]):
                pairs.append((i, j))

    return pairs


def parse_wire_entry(raw: dict[str, Any]) -> ScheduleEntry | None:
    """
    Stored schedule dict -> ScheduleEntry, or None if it is broken.
    """
    day = Day.parse(raw.get("day"))
    start = parse_to_minutes(raw.get("fromTime"))
    end = parse_to_minutes(raw.get("toTime"))
    if day is None or start is None or end is None or end <= start:
        return None
    return ScheduleEntry(day=day, from_time=start, to_time=end)


def find_course_conflicts(
    entries: Iterable[ScheduleEntry],
    other_courses: Iterable[dict[str, Any]],
) -> list[dict[str, str]]:
    """
    Compare new entries with the stored schedules of other courses.

    Returns one item per colliding (entry, course) pair in the shape
    the storage layer reports: {"courseCode", "courseSection", "error"}.
    """
    conflicts: list[dict[str, str]] = []
    new_entries = list(entries)

    for course in other_courses:
        for raw in course.get("schedules") or []:
            existing = parse_wire_entry(raw)
            if existing is None:
                continue
            for entry in new_entries:
                if entries_overlap(entry, existing):
                    conflicts.append(
                        {
                            "courseCode": str(course.get("code", "")),
                            "courseSection": str(course.get("section", "")),
                            "error": (
                                f"Schedule overlaps on {entry.day.full} "
                                f"({raw.get('fromTime')} - {raw.get('toTime')})"
                            ),
                        }
                    )

    return conflicts
