"""
Unit tests for conflict detection.

Definition used here:
- A conflict exists if two entries overlap in time on the same weekday.
- Touching endpoints (end == start) is NOT a conflict.
"""

import unittest

from coursedesk.conflicts import find_course_conflicts, find_overlapping_pairs, overlaps
from coursedesk.model import Day, ScheduleEntry


def entry(day: Day, start: int, end: int) -> ScheduleEntry:
    return ScheduleEntry(day=day, from_time=start, to_time=end)


class TestConflicts(unittest.TestCase):
    def test_overlap_same_day(self) -> None:
        entries = [entry(Day.MONDAY, 600, 660), entry(Day.MONDAY, 630, 720)]
        self.assertEqual(find_overlapping_pairs(entries), [(0, 1)])

    def test_no_overlap_touching_end(self) -> None:
        entries = [entry(Day.MONDAY, 600, 660), entry(Day.MONDAY, 660, 720)]
        self.assertEqual(find_overlapping_pairs(entries), [])

    def test_different_day_never_conflicts(self) -> None:
        # identical times, different days
        for a in Day:
            for b in Day:
                if a is b:
                    continue
                with self.subTest(a=a, b=b):
                    self.assertEqual(find_overlapping_pairs([entry(a, 480, 600), entry(b, 480, 600)]), [])

    def test_overlap_is_symmetric(self) -> None:
        self.assertTrue(overlaps(480, 600, 540, 660))
        self.assertTrue(overlaps(540, 660, 480, 600))
        self.assertTrue(overlaps(480, 720, 540, 600))
        self.assertFalse(overlaps(480, 540, 540, 600))
        self.assertFalse(overlaps(540, 600, 480, 540))

    def test_course_conflicts_are_itemised(self) -> None:
        others = [
            {
                "code": "MATH1",
                "section": "B",
                "schedules": [
                    {"day": "Tue", "fromTime": "08:00", "toTime": "09:00"},
                    {"day": "Mon", "fromTime": "10:00", "toTime": "11:00"},
                ],
            },
            {"code": "BIO2", "section": "A", "schedules": [{"day": "Mon", "fromTime": "09:00", "toTime": "10:00"}]},
        ]
        conflicts = find_course_conflicts([entry(Day.MONDAY, 600, 690)], others)
        self.assertEqual(len(conflicts), 1)
        self.assertEqual(conflicts[0]["courseCode"], "MATH1")
        self.assertEqual(conflicts[0]["courseSection"], "B")
        self.assertIn("Monday", conflicts[0]["error"])


if __name__ == "__main__":
    unittest.main()
