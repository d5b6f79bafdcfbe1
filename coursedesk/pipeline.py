"""
Import pipeline (sheet rows -> import plan).

Partitions an uploaded sheet into fresh courses, skipped duplicates and
rows with field errors, then applies the per-faculty admission ceiling.
Nothing is written here: the plan is handed to the schedule wizard, which
owns the commit.

Outcomes:
    READY               every row is fresh
    NEEDS_CONFIRMATION  some rows were skipped/errored, >= 1 fresh remains;
                        the caller must ask before continuing
    NOTHING_TO_IMPORT   no fresh rows at all
    CAPACITY_EXCEEDED   fresh rows would push the owner over the ceiling;
                        the whole batch is refused
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from coursedesk.duplicates import DuplicateIndex
from coursedesk.model import CAPPED_STATUSES, CourseCandidate, FeedbackEntry, FeedbackStatus
from coursedesk.rows import row_code, validate_row

logger = logging.getLogger(__name__)


class ImportOutcome(str, Enum):
    READY = "ready"
    NEEDS_CONFIRMATION = "needs_confirmation"
    NOTHING_TO_IMPORT = "nothing_to_import"
    CAPACITY_EXCEEDED = "capacity_exceeded"


@dataclass
class ImportPlan:
    outcome: ImportOutcome
    fresh: List[CourseCandidate] = field(default_factory=list)
    feedback: List[FeedbackEntry] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def needs_confirmation(self) -> bool:
        return self.outcome is ImportOutcome.NEEDS_CONFIRMATION

    @property
    def can_proceed(self) -> bool:
        return self.outcome in (ImportOutcome.READY, ImportOutcome.NEEDS_CONFIRMATION)

    @property
    def skipped_count(self) -> int:
        return sum(1 for f in self.feedback if f.status is FeedbackStatus.SKIPPED)

    @property
    def error_count(self) -> int:
        return sum(1 for f in self.feedback if f.status is FeedbackStatus.ERROR)

    def confirmation_prompt(self) -> str:
        problems = []
        if self.skipped_count:
            problems.append(f"{self.skipped_count} duplicate course(s)")
        if self.error_count:
            problems.append(f"{self.error_count} invalid row(s)")
        return (
            f"{' and '.join(problems)} found. "
            f"Do you want to continue importing the {len(self.fresh)} valid course(s)?"
        )


def count_active_courses(courses: Iterable[Mapping[str, Any]], faculty_id: Optional[str] = None) -> int:
    """
    Count courses that occupy a slot under the admission ceiling
    (ACTIVE or INACTIVE), optionally only those owned by `faculty_id`.
    """
    n = 0
    for c in courses:
        if str(c.get("status", "")).strip().upper() not in CAPPED_STATUSES:
            continue
        if faculty_id is not None and c.get("facultyId") != faculty_id:
            continue
        n += 1
    return n


def capacity_error(active_count: int, incoming: int, max_active: int) -> Optional[str]:
    """
    None if `incoming` more capped courses still fit, otherwise the message.
    """
    if active_count + incoming <= max_active:
        return None
    return (
        f"Maximum {max_active} active courses reached: you have {active_count} and this would add "
        f"{incoming}. Please archive some courses first."
    )


def plan_import(
    rows: Sequence[Mapping[str, Any]],
    existing_courses: Iterable[Mapping[str, Any]],
    active_count: int,
    max_active: int,
) -> ImportPlan:
    """
    Run row validation and duplicate detection over the whole sheet.

    `rows` are header-keyed dicts in sheet order; feedback rows are their
    1-based positions. `existing_courses` is the snapshot fetched once for
    this batch.
    """
    feedback: list[FeedbackEntry] = []
    valid: list[CourseCandidate] = []

    for row_number, row in enumerate(rows, start=1):
        result = validate_row(row, row_number=row_number)
        if result.ok and result.value is not None:
            valid.append(result.value)
        else:
            feedback.append(FeedbackEntry(row_number, row_code(row), FeedbackStatus.ERROR, result.message))

    index = DuplicateIndex(existing_courses)
    fresh: list[CourseCandidate] = []

    for cand in valid:
        if index.exists(cand):
            feedback.append(
                FeedbackEntry(
                    cand.row,
                    cand.code,
                    FeedbackStatus.SKIPPED,
                    f"Course {cand.label} already exists",
                )
            )
        elif cand in index:
            feedback.append(
                FeedbackEntry(
                    cand.row,
                    cand.code,
                    FeedbackStatus.SKIPPED,
                    f"Duplicate of row {index.claimed_by(cand)} in this file",
                )
            )
        else:
            index.claim(cand)
            fresh.append(cand)

    feedback.sort(key=lambda f: f.row or 0)

    incoming = sum(1 for c in fresh if c.status in CAPPED_STATUSES)
    err = capacity_error(active_count, incoming, max_active)
    if err:
        logger.warning("Import refused: %s", err)
        return ImportPlan(outcome=ImportOutcome.CAPACITY_EXCEEDED, feedback=feedback, error=err)

    if not fresh:
        logger.info("Nothing to import: %d row(s) skipped or invalid", len(feedback))
        return ImportPlan(outcome=ImportOutcome.NOTHING_TO_IMPORT, feedback=feedback)

    outcome = ImportOutcome.NEEDS_CONFIRMATION if feedback else ImportOutcome.READY
    logger.info("Import plan: %d fresh, %d skipped/invalid", len(fresh), len(feedback))
    return ImportPlan(outcome=outcome, fresh=fresh, feedback=feedback)
