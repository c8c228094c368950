# medslot/scheduling/timegrid.py
"""
Time grid

Arithmetic over "HH:MM" wall-clock strings. Comparisons and slot math are
done on integer minutes since midnight.
"""
from __future__ import annotations

import re
from enum import Enum

from medslot.core.errors import InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

_HHMM_RE = re.compile(r"^([0-9]{2}):([0-9]{2})$")


class Ordering(str, Enum):
    BEFORE = "before"
    EQUAL = "equal"
    AFTER = "after"


def parse(value: str) -> int:
    """
    Convert "HH:MM" to minutes since midnight.

    Raises InvalidTimeFormat unless the value is two zero-padded digit groups
    separated by ":", with hours in [0, 23] and minutes in [0, 59].
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"Time must be a HH:MM string, got {type(value).__name__}")

    match = _HHMM_RE.fullmatch(value)
    if not match:
        raise InvalidTimeFormat(f"Invalid time '{value}', expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f"Time '{value}' is out of range")

    return hours * 60 + minutes


def format(minutes: int) -> str:
    """Inverse of parse(): 545 -> "09:05"."""
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def compare(a: str, b: str) -> Ordering:
    left, right = parse(a), parse(b)
    if left < right:
        return Ordering.BEFORE
    if left > right:
        return Ordering.AFTER
    return Ordering.EQUAL


def is_valid(value: str) -> bool:
    try:
        parse(value)
    except InvalidTimeFormat:
        return False
    return True


def enumerate_starts(start_minutes: int, end_minutes: int, step_minutes: int) -> range:
    """
    Offsets start, start+step, ... while offset + step <= end.

    A slot that would cross `end_minutes` is left out. Returns an empty range
    when step <= 0 or start >= end.
    """
    if step_minutes <= 0 or start_minutes >= end_minutes:
        return range(0)
    return range(start_minutes, end_minutes - step_minutes + 1, step_minutes)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open test: [start_a, end_a) vs [start_b, end_b)."""
    return start_a < end_b and start_b < end_a
