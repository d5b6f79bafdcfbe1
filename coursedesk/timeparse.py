"""
Time arithmetic.

Every comparison in the project happens on minutes since midnight.
Accepted inputs:
    '14:00'     (24-hour)
    '2:00 PM'   (12-hour, AM/PM in any case, space optional)

A blank input is *absent* (None), not midnight. Malformed input is also
None; the parser never raises, callers decide what an absent value means.
"""

from __future__ import annotations

import re
from typing import Any, Optional

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_MERIDIEM_RE = re.compile(r"(am|pm)", re.IGNORECASE)


def is_blank(text: Any) -> bool:
    return text is None or not str(text).strip()


def parse_to_minutes(text: Any) -> Optional[int]:
    """
    Convert a time string to minutes since midnight, or None.
    """
    if is_blank(text):
        return None

    raw = str(text).strip()
    meridiem = _MERIDIEM_RE.search(raw)

    if meridiem:
        period = meridiem.group(1).upper()
        clock = _MERIDIEM_RE.sub("", raw).strip()
        m = _CLOCK_RE.match(clock)
        if not m:
            return None
        h, mins = int(m.group(1)), int(m.group(2))
        if not (1 <= h <= 12 and 0 <= mins <= 59):
            return None
        # 12 AM is midnight, 12 PM is noon
        if period == "AM" and h == 12:
            h = 0
        elif period == "PM" and h != 12:
            h += 12
        return h * 60 + mins

    m = _CLOCK_RE.match(raw)
    if not m:
        return None
    h, mins = int(m.group(1)), int(m.group(2))
    if not (0 <= h <= 23 and 0 <= mins <= 59):
        return None
    return h * 60 + mins


def format_12_hour(minutes: int) -> str:
    """
    840 -> '2:00 PM'. Display only.
    """
    h, m = divmod(minutes, 60)
    suffix = "PM" if h >= 12 else "AM"
    h12 = h % 12 or 12
    return f"{h12}:{m:02d} {suffix}"


def format_24_hour(minutes: int) -> str:
    """
    840 -> '14:00'. Wire and storage form.
    """
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}"
