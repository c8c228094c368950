from datetime import date

import pytest

from medslot.core.errors import InvalidAvailabilityRange, InvalidTimeFormat
from medslot.scheduling.availability import (
    NOT_WORKING,
    DateOverride,
    DayOfWeek,
    ScheduleProfile,
    WeeklyRule,
    Working,
    resolve,
    validate_range,
)

WEDNESDAY = date(2025, 1, 8)
THURSDAY = date(2025, 1, 9)


def _profile(rules=(), overrides=()):
    return ScheduleProfile(
        appointment_duration_minutes=30,
        weekly_rules=tuple(rules),
        overrides={o.date: o for o in overrides},
    )


@pytest.mark.parametrize(
    "day, name",
    [
        (date(2025, 1, 5), DayOfWeek.SUNDAY),
        (date(2025, 1, 6), DayOfWeek.MONDAY),
        (date(2025, 1, 8), DayOfWeek.WEDNESDAY),
        (date(2025, 1, 11), DayOfWeek.SATURDAY),
    ],
)
def test_day_of_week_uses_civil_calendar(day, name):
    assert DayOfWeek.of(day) is name


def test_weekly_rule_applies_on_matching_day():
    profile = _profile([WeeklyRule(DayOfWeek.WEDNESDAY, "09:00", "17:00")])
    assert resolve(profile, WEDNESDAY) == Working("09:00", "17:00")


def test_no_rule_means_not_working():
    profile = _profile([WeeklyRule(DayOfWeek.WEDNESDAY, "09:00", "17:00")])
    assert resolve(profile, THURSDAY) is NOT_WORKING


def test_override_day_off_beats_weekly_rule():
    profile = _profile(
        [WeeklyRule(DayOfWeek.WEDNESDAY, "09:00", "17:00")],
        [DateOverride(WEDNESDAY, is_working=False)],
    )
    assert resolve(profile, WEDNESDAY) is NOT_WORKING


def test_override_hours_replace_weekly_hours_without_merging():
    profile = _profile(
        [WeeklyRule(DayOfWeek.WEDNESDAY, "09:00", "17:00")],
        [DateOverride(WEDNESDAY, is_working=True, start_time="13:00", end_time="15:00")],
    )
    assert resolve(profile, WEDNESDAY) == Working("13:00", "15:00")


def test_override_can_open_a_day_with_no_weekly_rule():
    profile = _profile(
        overrides=[DateOverride(THURSDAY, is_working=True, start_time="10:00", end_time="12:00")]
    )
    assert resolve(profile, THURSDAY) == Working("10:00", "12:00")


def test_override_only_affects_its_own_date():
    profile = _profile(
        [WeeklyRule(DayOfWeek.WEDNESDAY, "09:00", "17:00")],
        [DateOverride(WEDNESDAY, is_working=False)],
    )
    assert resolve(profile, date(2025, 1, 15)) == Working("09:00", "17:00")


def test_first_matching_weekly_rule_wins():
    profile = _profile(
        [
            WeeklyRule(DayOfWeek.WEDNESDAY, "08:00", "10:00"),
            WeeklyRule(DayOfWeek.WEDNESDAY, "14:00", "18:00"),
        ]
    )
    assert resolve(profile, WEDNESDAY) == Working("08:00", "10:00")


def test_working_exposes_minutes():
    window = Working("09:30", "11:00")
    assert (window.start_minutes, window.end_minutes) == (570, 660)


def test_validate_range():
    validate_range("09:00", "09:30")
    with pytest.raises(InvalidAvailabilityRange):
        validate_range("10:00", "10:00")
    with pytest.raises(InvalidAvailabilityRange):
        validate_range("11:00", "10:00")
    with pytest.raises(InvalidTimeFormat):
        validate_range("9:00", "10:00")
