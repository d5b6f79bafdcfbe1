"""
Duplicate detection on the natural key (code, section, academic year, semester).

All four parts are trimmed and compared case-insensitively, so 'cs101'/'a'
in a sheet matches a stored 'CS101'/'A'.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

from coursedesk.model import CourseCandidate

NaturalKey = tuple[str, str, str, str]
CourseLike = Union[CourseCandidate, dict[str, Any]]


def _part(x: Any) -> str:
    return "" if x is None else str(x).strip().casefold()


def natural_key(course: CourseLike) -> NaturalKey:
    """
    Build the key from a CourseCandidate or a stored course dict (wire names).
    """
    if isinstance(course, CourseCandidate):
        return (
            _part(course.code),
            _part(course.section),
            _part(course.academic_year),
            _part(course.semester),
        )
    return (
        _part(course.get("code")),
        _part(course.get("section")),
        _part(course.get("academicYear")),
        _part(course.get("semester")),
    )


def is_duplicate(candidate: CourseLike, existing_courses: Iterable[CourseLike]) -> bool:
    key = natural_key(candidate)
    return any(natural_key(c) == key for c in existing_courses)


class DuplicateIndex:
    """
    Key set built once from a course snapshot.

    `claim` also remembers keys of fresh rows, so a sheet that lists the
    same course twice reports the second copy as a duplicate.
    """

    def __init__(self, existing_courses: Iterable[CourseLike] = ()) -> None:
        self._stored: set[NaturalKey] = {natural_key(c) for c in existing_courses}
        self._claimed: dict[NaturalKey, Optional[int]] = {}

    def __contains__(self, course: CourseLike) -> bool:
        key = natural_key(course)
        return key in self._stored or key in self._claimed

    def exists(self, course: CourseLike) -> bool:
        return natural_key(course) in self._stored

    def claimed_by(self, course: CourseLike) -> Optional[int]:
        """
        Sheet row that already claimed this key in the current batch.
        """
        return self._claimed.get(natural_key(course))

    def claim(self, course: CourseCandidate) -> None:
        self._claimed.setdefault(natural_key(course), course.row)
