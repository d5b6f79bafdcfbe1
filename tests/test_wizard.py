"""
Unit tests for the schedule wizard and its commit strategies.

A fake store records every call, so the tests can check that a cancelled
wizard never commits and that a submit issues exactly one commit call.
"""

import unittest
from typing import Any, Optional

from coursedesk.client import TransportError
from coursedesk.model import CourseCandidate, FeedbackEntry, FeedbackStatus, ScheduleDraft
from coursedesk.wizard import (
    CreateCommit,
    EditCommit,
    ImportCommit,
    ScheduleWizard,
    WizardError,
    WizardState,
)


def course(code: str = "CS101", section: str = "A", row: Optional[int] = None, status: str = "ACTIVE"):
    return CourseCandidate(code, "Intro", section, "A101", "1st Semester", "2024-2025", 1, status, row=row)


MON = [ScheduleDraft("Monday", "08:00", "09:30")]


class FakeStore:
    def __init__(self, fail_times: int = 0, import_results: Optional[dict] = None, replace_result=None) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.fail_times = fail_times
        self.import_results = import_results
        self.replace_result = replace_result or {"success": True}

    def _maybe_fail(self) -> None:
        if self.fail_times:
            self.fail_times -= 1
            raise TransportError("connection refused")

    def create_course(self, fields, schedules):
        self.calls.append(("create", (fields, schedules)))
        self._maybe_fail()
        return {"success": True, "course": {**fields, "slug": "cs101-a-1", "schedules": schedules}}

    def import_courses(self, courses):
        self.calls.append(("import", courses))
        self._maybe_fail()
        if self.import_results is not None:
            return {"results": self.import_results}
        return {"results": {"success": len(courses), "failed": 0, "errors": []}}

    def replace_schedules(self, slug, schedules):
        self.calls.append(("replace", (slug, schedules)))
        self._maybe_fail()
        return self.replace_result


class TestCreateMode(unittest.TestCase):
    def test_create_commits_once(self) -> None:
        store = FakeStore()
        w = ScheduleWizard(CreateCommit(course(), faculty_id="f1"))
        w.set_draft(MON)
        self.assertTrue(w.next().ok)
        self.assertIs(w.state, WizardState.SUBMITTING)

        outcome = w.submit(store)
        self.assertTrue(outcome.success)
        self.assertIs(w.state, WizardState.DONE)
        self.assertEqual(len(store.calls), 1)
        fields, schedules = store.calls[0][1]
        self.assertEqual(fields["facultyId"], "f1")
        self.assertEqual(schedules, [{"day": "Mon", "fromTime": "08:00", "toTime": "09:30"}])

    def test_cancel_never_creates(self) -> None:
        store = FakeStore()
        w = ScheduleWizard(CreateCommit(course()))
        w.set_draft(MON)
        self.assertFalse(w.cancel(False))
        self.assertIs(w.state, WizardState.EDITING)
        self.assertTrue(w.cancel(True))
        self.assertIs(w.state, WizardState.CANCELLED)
        self.assertEqual(store.calls, [])
        with self.assertRaises(WizardError):
            w.submit(store)

    def test_invalid_draft_stays_on_step(self) -> None:
        w = ScheduleWizard(CreateCommit(course()))
        w.set_draft([ScheduleDraft("Monday", "08:00", "08:15")])
        result = w.next()
        self.assertFalse(result.ok)
        self.assertIs(w.state, WizardState.EDITING)
        self.assertEqual(w.error, result.error)

    def test_back_and_skip_not_available(self) -> None:
        w = ScheduleWizard(CreateCommit(course()))
        with self.assertRaises(WizardError):
            w.back()
        with self.assertRaises(WizardError):
            w.skip()

    def test_capacity_checked_before_create(self) -> None:
        store = FakeStore()
        w = ScheduleWizard(CreateCommit(course(), active_count=15, max_active=15))
        w.set_draft(MON)
        w.next()
        outcome = w.submit(store)
        self.assertFalse(outcome.success)
        self.assertEqual(store.calls, [])

    def test_transport_error_keeps_drafts_and_allows_retry(self) -> None:
        store = FakeStore(fail_times=1)
        w = ScheduleWizard(CreateCommit(course()))
        w.set_draft(MON)
        w.next()
        with self.assertRaises(TransportError):
            w.submit(store)
        self.assertIs(w.state, WizardState.SUBMITTING)
        self.assertEqual(w.last_error, "connection refused")
        self.assertIsNotNone(w.confirmed[0])

        outcome = w.submit(store)
        self.assertTrue(outcome.success)
        self.assertIsNone(w.last_error)
        self.assertEqual(len(store.calls), 2)

    def test_cancel_during_commit_discards_result(self) -> None:
        w = ScheduleWizard(CreateCommit(course()))
        store = FakeStore()
        original = store.create_course

        def create_and_cancel(fields, schedules):
            result = original(fields, schedules)
            w.cancel(True)
            return result

        store.create_course = create_and_cancel
        w.set_draft(MON)
        w.next()
        w.submit(store)
        self.assertIs(w.state, WizardState.CANCELLED)
        self.assertIsNone(w.outcome)
        self.assertEqual(len(store.calls), 1)

    def test_cancel_after_done_raises(self) -> None:
        w = ScheduleWizard(CreateCommit(course()))
        w.set_draft(MON)
        w.next()
        w.submit(FakeStore())
        with self.assertRaises(WizardError):
            w.cancel(True)


class TestImportMode(unittest.TestCase):
    def test_back_restores_draft(self) -> None:
        w = ScheduleWizard(ImportCommit([course("CS101", row=1), course("CS102", row=2), course("CS103", row=3)]))
        self.assertEqual(w.total, 3)
        w.set_draft(MON)
        w.next()
        self.assertEqual(w.index, 1)
        second = [ScheduleDraft("Tuesday", "10:00", "11:00")]
        w.set_draft(second)
        w.next()
        self.assertEqual(w.index, 2)

        self.assertEqual(w.back(), second)
        self.assertEqual(w.back(), MON)
        with self.assertRaises(WizardError):
            w.back()

    def test_skipped_courses_are_sent_without_schedules(self) -> None:
        store = FakeStore()
        w = ScheduleWizard(ImportCommit([course("CS101", row=1), course("CS102", row=2)], faculty_id="f1"))
        w.skip()
        w.set_draft(MON)
        w.next()
        outcome = w.submit(store)

        payload = store.calls[0][1]
        self.assertEqual(len(store.calls), 1)
        self.assertEqual(payload[0]["schedules"], [])
        self.assertEqual(len(payload[1]["schedules"]), 1)
        self.assertEqual(payload[0]["facultyId"], "f1")
        self.assertEqual(
            [f.message for f in outcome.feedback],
            ["Course created without schedules", "Course created with 1 schedule(s)"],
        )

    def test_merge_counts_add_up(self) -> None:
        prior = [
            FeedbackEntry(2, "CS100", FeedbackStatus.SKIPPED, "Course CS100-A already exists"),
            FeedbackEntry(4, "N/A", FeedbackStatus.ERROR, "Course Code is required"),
        ]
        store = FakeStore(
            import_results={"success": 1, "failed": 1, "errors": [{"row": 2, "message": "Course CS103-A already exists"}]}
        )
        w = ScheduleWizard(ImportCommit([course("CS101", row=1), course("CS103", row=3)], prior_feedback=prior))
        w.skip()
        w.skip()
        outcome = w.submit(store)

        report = outcome.report
        assert report is not None
        self.assertEqual((report.imported, report.skipped, report.failed), (1, 1, 2))
        self.assertEqual(report.total, 4)
        self.assertEqual([f.row for f in report.feedback], [1, 2, 3, 4])
        self.assertEqual(report.feedback[2].status, FeedbackStatus.ERROR)
        self.assertEqual(outcome.message, "Import completed: 1 imported, 1 skipped, 2 failed")
        self.assertFalse(outcome.success)

    def test_merge_matches_errors_by_code(self) -> None:
        store = FakeStore(
            import_results={
                "success": 1,
                "failed": 2,
                "errors": [
                    {"code": "CS102", "message": "Course must have at least one schedule"},
                    {"code": "ZZ999", "message": "Unexpected failure"},
                ],
            }
        )
        w = ScheduleWizard(ImportCommit([course("CS101", row=1), course("CS102", row=2)]))
        w.set_draft(MON)
        w.next()
        w.skip()
        outcome = w.submit(store)

        statuses = [(f.row, f.code, f.status) for f in outcome.feedback]
        self.assertEqual(
            statuses,
            [
                (1, "CS101", FeedbackStatus.IMPORTED),
                (2, "CS102", FeedbackStatus.ERROR),
                (None, "ZZ999", FeedbackStatus.ERROR),
            ],
        )
        self.assertEqual(outcome.feedback[1].message, "Course must have at least one schedule")

    def test_cancel_discards_drafts(self) -> None:
        store = FakeStore()
        w = ScheduleWizard(ImportCommit([course("CS101"), course("CS102")]))
        w.set_draft(MON)
        w.next()
        self.assertIn("2 course(s)", w.cancel_prompt())
        w.cancel(True)
        self.assertEqual(w.drafts, [[], []])
        self.assertEqual(store.calls, [])

    def test_empty_import_rejected(self) -> None:
        with self.assertRaises(WizardError):
            ImportCommit([])


class TestEditMode(unittest.TestCase):
    STORED = {
        "slug": "cs101-a-1",
        "code": "CS101",
        "title": "Intro",
        "section": "A",
        "schedules": [{"day": "Wed", "fromTime": "13:00", "toTime": "14:30"}],
    }

    def test_initial_draft_from_stored_schedules(self) -> None:
        w = ScheduleWizard(EditCommit(self.STORED))
        self.assertEqual(w.draft, [ScheduleDraft("Wednesday", "13:00", "14:30")])

    def test_conflicts_are_kept_verbatim(self) -> None:
        conflicts = [{"courseCode": "MATH1", "courseSection": "B", "error": "Schedule overlaps on Monday (08:00 - 09:00)"}]
        store = FakeStore(replace_result={"success": False, "error": "Schedule conflicts with other courses", "conflicts": conflicts})
        w = ScheduleWizard(EditCommit(self.STORED))
        w.set_draft(MON)
        w.next()
        outcome = w.submit(store)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.conflicts, conflicts)
        self.assertEqual(store.calls, [("replace", ("cs101-a-1", [{"day": "Mon", "fromTime": "08:00", "toTime": "09:30"}]))])

    def test_slug_required(self) -> None:
        with self.assertRaises(WizardError):
            EditCommit({"code": "CS101"})


if __name__ == "__main__":
    unittest.main()
