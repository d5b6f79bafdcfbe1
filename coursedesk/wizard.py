"""
Schedule wizard: collect weekly schedules for one or more courses, then commit.

States:

    EDITING(i) --next--> EDITING(i+1) ... --next on last--> SUBMITTING --submit--> DONE
         ^  |                                                   |
         +--+ back / skip (import only)                         +-- TransportError: stays SUBMITTING
    any state except DONE --cancel(confirmed=True)--> CANCELLED

What happens on submit depends on the commit strategy the wizard was built
with (CreateCommit, EditCommit, ImportCommit). The wizard itself only
knows about drafts, navigation and validation.

Drafts are kept per course position, so going back and forth never loses
what was typed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence

from coursedesk.client import TransportError
from coursedesk.model import (
    CAPPED_STATUSES,
    CourseCandidate,
    Day,
    FeedbackEntry,
    FeedbackStatus,
    ImportReport,
    ScheduleDraft,
    ScheduleEntry,
)
from coursedesk.pipeline import capacity_error
from coursedesk.schedules import ScheduleValidation, validate_schedules
from coursedesk.timeparse import parse_to_minutes

logger = logging.getLogger(__name__)


class WizardError(Exception):
    """
    An operation that is not allowed in the current state or mode.
    """


class WizardState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass
class WizardOutcome:
    success: bool
    message: str
    feedback: List[FeedbackEntry] = field(default_factory=list)
    # storage conflicts for schedule edits, exactly as reported
    conflicts: List[dict[str, Any]] = field(default_factory=list)
    report: Optional[ImportReport] = None
    course: Optional[dict[str, Any]] = None


def _wire(entries: Sequence[ScheduleEntry]) -> list[dict[str, str]]:
    return [e.to_wire() for e in entries]


# ---------------------------------------------------------------------------
# Commit strategies (one per mode)
# ---------------------------------------------------------------------------


class CommitStrategy:
    mode = ""
    allows_navigation = False

    def course_count(self) -> int:
        raise NotImplementedError

    def course_label(self, index: int) -> str:
        raise NotImplementedError

    def cancel_prompt(self) -> str:
        raise NotImplementedError

    def initial_drafts(self) -> list[list[ScheduleDraft]]:
        return [[ScheduleDraft()] for _ in range(self.course_count())]

    def commit(self, store: Any, schedules: list[list[ScheduleEntry]]) -> WizardOutcome:
        raise NotImplementedError


class CreateCommit(CommitStrategy):
    """
    One new course, created together with its schedules or not at all.
    """

    mode = "create"

    def __init__(
        self,
        course: CourseCandidate,
        faculty_id: Optional[str] = None,
        active_count: int = 0,
        max_active: int = 15,
    ) -> None:
        self.course = course
        self.faculty_id = faculty_id
        self.active_count = active_count
        self.max_active = max_active

    def course_count(self) -> int:
        return 1

    def course_label(self, index: int) -> str:
        return f"{self.course.code} | {self.course.title} | Section {self.course.section} | {self.course.room}"

    def cancel_prompt(self) -> str:
        return f"Cancel creating {self.course.code}-{self.course.section}? The course will not be created."

    def commit(self, store: Any, schedules: list[list[ScheduleEntry]]) -> WizardOutcome:
        incoming = 1 if self.course.status in CAPPED_STATUSES else 0
        err = capacity_error(self.active_count, incoming, self.max_active)
        if err:
            return WizardOutcome(
                success=False,
                message=err,
                feedback=[FeedbackEntry(None, self.course.code, FeedbackStatus.ERROR, err)],
            )

        fields = {**self.course.to_wire(), "facultyId": self.faculty_id}
        result = store.create_course(fields, _wire(schedules[0]))
        if not result.get("success"):
            msg = str(result.get("error") or "Failed to create course")
            return WizardOutcome(
                success=False,
                message=msg,
                feedback=[FeedbackEntry(None, self.course.code, FeedbackStatus.ERROR, msg)],
            )

        msg = f"Course {self.course.code}-{self.course.section} created with {len(schedules[0])} schedule(s)"
        return WizardOutcome(
            success=True,
            message=msg,
            feedback=[FeedbackEntry(None, self.course.code, FeedbackStatus.IMPORTED, msg)],
            course=result.get("course"),
        )


class EditCommit(CommitStrategy):
    """
    Replace the schedules of one stored course. The course itself is not touched.
    """

    mode = "edit"

    def __init__(self, course: dict[str, Any]) -> None:
        if not course.get("slug"):
            raise WizardError("Cannot edit schedules of a course without slug")
        self.course = course

    def course_count(self) -> int:
        return 1

    def course_label(self, index: int) -> str:
        return f"{self.course.get('code', '')} | {self.course.get('title', '')} | Section {self.course.get('section', '')}"

    def cancel_prompt(self) -> str:
        return "Discard your changes? The current schedules will be kept."

    def initial_drafts(self) -> list[list[ScheduleDraft]]:
        drafts: list[ScheduleDraft] = []
        for raw in self.course.get("schedules") or []:
            day = Day.parse(raw.get("day"))
            start = parse_to_minutes(raw.get("fromTime"))
            end = parse_to_minutes(raw.get("toTime"))
            if day is None or start is None or end is None:
                continue
            drafts.append(ScheduleEntry(day=day, from_time=start, to_time=end).to_draft())
        return [drafts or [ScheduleDraft()]]

    def commit(self, store: Any, schedules: list[list[ScheduleEntry]]) -> WizardOutcome:
        slug = str(self.course["slug"])
        result = store.replace_schedules(slug, _wire(schedules[0]))
        if result.get("success"):
            return WizardOutcome(success=True, message="Schedules updated successfully")
        return WizardOutcome(
            success=False,
            message=str(result.get("error") or "Failed to update schedules"),
            conflicts=list(result.get("conflicts") or []),
        )


class ImportCommit(CommitStrategy):
    """
    N imported courses, each committed with its own schedules (possibly none).

    The storage reply is merged with the feedback collected before the
    wizard started (duplicates, invalid rows).
    """

    mode = "import"
    allows_navigation = True

    def __init__(
        self,
        courses: Sequence[CourseCandidate],
        prior_feedback: Iterable[FeedbackEntry] = (),
        faculty_id: Optional[str] = None,
    ) -> None:
        if not courses:
            raise WizardError("Nothing to import")
        self.courses = list(courses)
        self.prior_feedback = list(prior_feedback)
        self.faculty_id = faculty_id

    def course_count(self) -> int:
        return len(self.courses)

    def course_label(self, index: int) -> str:
        c = self.courses[index]
        return f"{c.code} | {c.title} | Section {c.section} | {c.room}"

    def cancel_prompt(self) -> str:
        return f"Cancel the import? None of the {len(self.courses)} course(s) will be imported."

    def commit(self, store: Any, schedules: list[list[ScheduleEntry]]) -> WizardOutcome:
        payload = [
            {**c.to_wire(), "facultyId": self.faculty_id, "schedules": _wire(s)}
            for c, s in zip(self.courses, schedules)
        ]
        results = (store.import_courses(payload) or {}).get("results") or {}
        return self.merge(results, schedules)

    def merge(self, results: dict[str, Any], schedules: list[list[ScheduleEntry]]) -> WizardOutcome:
        # errors name either the 1-based batch position ("row") or the course code
        errors_by_row: dict[int, str] = {}
        errors_by_code: dict[str, list[str]] = {}
        for err in results.get("errors") or []:
            msg = str(err.get("message") or "Failed to import course")
            row = err.get("row")
            if isinstance(row, int) and not isinstance(row, bool):
                errors_by_row[row] = msg
            else:
                code = str(err.get("code") or "N/A").strip().upper()
                errors_by_code.setdefault(code, []).append(msg)

        feedback = list(self.prior_feedback)
        for pos, (c, s) in enumerate(zip(self.courses, schedules), start=1):
            code_errors = errors_by_code.get(c.code.upper())
            if pos in errors_by_row:
                feedback.append(FeedbackEntry(c.row, c.code, FeedbackStatus.ERROR, errors_by_row.pop(pos)))
            elif code_errors:
                feedback.append(FeedbackEntry(c.row, c.code, FeedbackStatus.ERROR, code_errors.pop(0)))
            elif s:
                feedback.append(
                    FeedbackEntry(c.row, c.code, FeedbackStatus.IMPORTED, f"Course created with {len(s)} schedule(s)")
                )
            else:
                feedback.append(
                    FeedbackEntry(c.row, c.code, FeedbackStatus.IMPORTED, "Course created without schedules")
                )
        # errors the service could not tie to a course of this batch
        for msg in errors_by_row.values():
            feedback.append(FeedbackEntry(None, "N/A", FeedbackStatus.ERROR, msg))
        for code, msgs in errors_by_code.items():
            feedback.extend(FeedbackEntry(None, code, FeedbackStatus.ERROR, msg) for msg in msgs)

        feedback.sort(key=lambda f: (f.row is None, f.row or 0))

        prior_skipped = sum(1 for f in self.prior_feedback if f.status is FeedbackStatus.SKIPPED)
        prior_errors = sum(1 for f in self.prior_feedback if f.status is FeedbackStatus.ERROR)
        report = ImportReport(
            imported=int(results.get("success") or 0),
            skipped=prior_skipped,
            failed=prior_errors + int(results.get("failed") or 0),
            feedback=feedback,
        )
        return WizardOutcome(
            success=int(results.get("failed") or 0) == 0,
            message=(
                f"Import completed: {report.imported} imported, "
                f"{report.skipped} skipped, {report.failed} failed"
            ),
            feedback=feedback,
            report=report,
        )


# ---------------------------------------------------------------------------
# Wizard
# ---------------------------------------------------------------------------


class ScheduleWizard:
    def __init__(self, strategy: CommitStrategy) -> None:
        self.strategy = strategy
        self.state = WizardState.EDITING
        self.index = 0
        self.drafts: list[list[ScheduleDraft]] = strategy.initial_drafts()
        # None = not confirmed yet, [] = skipped
        self.confirmed: list[Optional[list[ScheduleEntry]]] = [None] * strategy.course_count()
        self.error: Optional[str] = None
        self.last_error: Optional[str] = None
        self.outcome: Optional[WizardOutcome] = None
        self._committing = False

    # -----------------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------------

    @property
    def mode(self) -> str:
        return self.strategy.mode

    @property
    def total(self) -> int:
        return self.strategy.course_count()

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1

    @property
    def current_label(self) -> str:
        return self.strategy.course_label(self.index)

    @property
    def draft(self) -> list[ScheduleDraft]:
        return self.drafts[self.index]

    def _require(self, *states: WizardState) -> None:
        if self.state not in states:
            raise WizardError(f"Not allowed while {self.state.value}")

    # -----------------------------------------------------------------------
    # Editing
    # -----------------------------------------------------------------------

    def set_draft(self, drafts: Sequence[ScheduleDraft]) -> None:
        self._require(WizardState.EDITING)
        self.drafts[self.index] = [ScheduleDraft(d.day, d.from_time, d.to_time) for d in drafts]

    def next(self) -> ScheduleValidation:
        """
        Validate the current draft. On success store it and move on.
        """
        self._require(WizardState.EDITING)
        result = validate_schedules(self.draft)
        if not result.ok:
            self.error = result.error
            return result

        self.error = None
        self.confirmed[self.index] = result.entries
        self._advance()
        return result

    def back(self) -> list[ScheduleDraft]:
        """
        Return to the previous course; its draft is exactly as it was left.
        """
        self._require(WizardState.EDITING)
        if not self.strategy.allows_navigation:
            raise WizardError(f"Back is not available in {self.mode} mode")
        if self.index == 0:
            raise WizardError("Already at the first course")

        self.error = None
        self.index -= 1
        return self.draft

    def skip(self) -> None:
        """
        Leave the current course without schedules and move on.
        """
        self._require(WizardState.EDITING)
        if not self.strategy.allows_navigation:
            raise WizardError(f"Skip is not available in {self.mode} mode")

        self.error = None
        self.confirmed[self.index] = []
        self._advance()

    def _advance(self) -> None:
        if self.is_last:
            self.state = WizardState.SUBMITTING
            logger.debug("Wizard (%s) ready to submit", self.mode)
        else:
            self.index += 1

    # -----------------------------------------------------------------------
    # Leaving
    # -----------------------------------------------------------------------

    def cancel_prompt(self) -> str:
        return self.strategy.cancel_prompt()

    def cancel(self, confirmed: bool) -> bool:
        """
        Cancel after the user confirmed `cancel_prompt()`. Returns True if cancelled.

        A commit already in flight is not aborted; its result is discarded.
        """
        if self.state in (WizardState.DONE, WizardState.CANCELLED):
            raise WizardError(f"Wizard already {self.state.value}")
        if not confirmed:
            return False

        self.state = WizardState.CANCELLED
        self._discard()
        logger.info("Wizard (%s) cancelled", self.mode)
        return True

    def submit(self, store: Any) -> WizardOutcome:
        """
        Issue the single commit call for this mode.

        TransportError is re-raised and the wizard stays SUBMITTING with
        all drafts intact, so submit can be retried.
        """
        self._require(WizardState.SUBMITTING)
        if self._committing:
            raise WizardError("A submit is already in progress")

        schedules = [c if c is not None else [] for c in self.confirmed]
        self._committing = True
        try:
            outcome = self.strategy.commit(store, schedules)
        except TransportError as e:
            self.last_error = str(e)
            logger.warning("Wizard (%s) submit failed: %s", self.mode, e)
            raise
        finally:
            self._committing = False

        self.last_error = None
        if self.state is WizardState.CANCELLED:
            logger.info("Wizard (%s) was cancelled during submit, result discarded", self.mode)
            return outcome

        self.state = WizardState.DONE
        self.outcome = outcome
        self._discard()
        logger.info("Wizard (%s) done: %s", self.mode, outcome.message)
        return outcome

    def _discard(self) -> None:
        self.drafts = [[] for _ in range(self.total)]
        self.confirmed = [None] * self.total
