"""
Schedule validation for one course.

Input is the list of form rows the user filled in (ScheduleDraft), output
is either the cleaned list of ScheduleEntry or the first error message.

Checks run in this order and stop at the first failing category:
1. at least one complete row
2. no half-filled rows
3. per-row: known day, parseable times, start < end, >= 30 minutes,
   inside 07:00-20:00 (wizard only)
4. no two rows overlap on the same day
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from coursedesk.conflicts import find_overlapping_pairs
from coursedesk.model import (
    DAY_END_MINUTES,
    DAY_START_MINUTES,
    MIN_DURATION_MINUTES,
    Day,
    ScheduleDraft,
    ScheduleEntry,
)
from coursedesk.timeparse import format_12_hour, parse_to_minutes


@dataclass
class ScheduleValidation:
    ok: bool
    entries: List[ScheduleEntry] = field(default_factory=list)
    error: Optional[str] = None


def _fail(message: str) -> ScheduleValidation:
    return ScheduleValidation(ok=False, error=message)


def validate_schedules(drafts: Sequence[ScheduleDraft], enforce_window: bool = True) -> ScheduleValidation:
    """
    Validate the schedule rows of one course.

    Row numbers in messages are 1-based positions in `drafts`, so they
    match what the user sees in the form.
    """
    numbered = [(n, d) for n, d in enumerate(drafts, start=1) if not d.is_untouched()]
    complete = [(n, d) for n, d in numbered if d.is_complete()]

    if not complete:
        return _fail("Please add at least one complete schedule")

    for n, d in numbered:
        if not d.is_complete():
            return _fail(f"Schedule {n}: Please complete all fields (day, start time, end time)")

    entries: list[ScheduleEntry] = []
    positions: list[int] = []

    for n, d in complete:
        day = Day.parse(d.day)
        if day is None:
            return _fail(f"Schedule {n}: Unknown day '{d.day.strip()}'")

        start = parse_to_minutes(d.from_time)
        if start is None:
            return _fail(f"Schedule {n}: Invalid start time '{d.from_time.strip()}'")
        end = parse_to_minutes(d.to_time)
        if end is None:
            return _fail(f"Schedule {n}: Invalid end time '{d.to_time.strip()}'")

        if start >= end:
            return _fail(f"Schedule {n}: End time must be after start time")
        if end - start < MIN_DURATION_MINUTES:
            return _fail(f"Schedule {n}: Class duration must be at least {MIN_DURATION_MINUTES} minutes")

        if enforce_window and not (
            DAY_START_MINUTES <= start <= DAY_END_MINUTES and DAY_START_MINUTES <= end <= DAY_END_MINUTES
        ):
            return _fail(
                f"Schedule {n}: Classes must be between "
                f"{format_12_hour(DAY_START_MINUTES)} and {format_12_hour(DAY_END_MINUTES)}"
            )

        entries.append(ScheduleEntry(day=day, from_time=start, to_time=end))
        positions.append(n)

    pairs = find_overlapping_pairs(entries)
    if pairs:
        i, j = pairs[0]
        return _fail(
            f"Schedules {positions[i]} and {positions[j]} overlap on {entries[i].day.full}. "
            "Please adjust the times."
        )

    return ScheduleValidation(ok=True, entries=entries)
