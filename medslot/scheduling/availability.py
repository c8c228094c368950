# medslot/scheduling/availability.py
"""
Availability resolver

Turns a doctor's weekly template plus date-specific overrides into the
effective working interval for one calendar date.

Two tiers, no merging:
  1. An override for the exact date always wins (working hours or day off).
  2. Otherwise the first weekly rule whose day matches the date applies.
  3. Neither -> not working.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Mapping, Optional, Sequence, Union

from medslot.core.errors import InvalidAvailabilityRange
from medslot.scheduling import timegrid


class DayOfWeek(str, Enum):
    SUNDAY = "Sunday"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"

    @classmethod
    def of(cls, day: date) -> "DayOfWeek":
        # date.weekday(): Monday == 0. Civil calendar day, no UTC shift.
        return _WEEKDAY_ORDER[day.weekday()]


_WEEKDAY_ORDER = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
    DayOfWeek.SUNDAY,
)


def validate_range(start_time: str, end_time: str) -> None:
    """Raise InvalidTimeFormat / InvalidAvailabilityRange for a bad window."""
    if timegrid.parse(start_time) >= timegrid.parse(end_time):
        raise InvalidAvailabilityRange(
            f"End time ({end_time}) must be after start time ({start_time})"
        )


@dataclass(frozen=True)
class WeeklyRule:
    day_of_week: DayOfWeek
    start_time: str
    end_time: str


@dataclass(frozen=True)
class DateOverride:
    date: date
    is_working: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass(frozen=True)
class ScheduleProfile:
    """Everything the resolver and slot generator need about one doctor."""

    appointment_duration_minutes: int
    weekly_rules: Sequence[WeeklyRule] = ()
    overrides: Mapping[date, DateOverride] = field(default_factory=dict)


@dataclass(frozen=True)
class NotWorking:
    pass


@dataclass(frozen=True)
class Working:
    start_time: str
    end_time: str

    @property
    def start_minutes(self) -> int:
        return timegrid.parse(self.start_time)

    @property
    def end_minutes(self) -> int:
        return timegrid.parse(self.end_time)


EffectiveAvailability = Union[NotWorking, Working]

NOT_WORKING = NotWorking()


def resolve(profile: ScheduleProfile, target_date: date) -> EffectiveAvailability:
    override = profile.overrides.get(target_date)
    if override is not None:
        if not override.is_working:
            return NOT_WORKING
        return Working(override.start_time, override.end_time)

    weekday = DayOfWeek.of(target_date)
    # Duplicate rules for one weekday are allowed by storage; the first in
    # stored order wins.
    for rule in profile.weekly_rules:
        if rule.day_of_week == weekday:
            return Working(rule.start_time, rule.end_time)

    return NOT_WORKING
