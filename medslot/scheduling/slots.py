# medslot/scheduling/slots.py
"""
Slot generation

Builds the list of bookable start times for one doctor on one date.
Nothing is cached or reserved: each call recomputes from the template,
the overrides and the current appointment set.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, List

from medslot.scheduling import timegrid
from medslot.scheduling.availability import ScheduleProfile, Working, resolve
from medslot.scheduling.lifecycle import AppointmentStatus


@dataclass(frozen=True)
class BookedInterval:
    """An existing appointment as seen by the slot generator."""

    start_time: str
    end_time: str
    status: str = AppointmentStatus.SCHEDULED.value


def _blocking(existing: Iterable[BookedInterval]) -> list[tuple[int, int]]:
    # Only scheduled appointments hold their time; terminal ones free it.
    return [
        (timegrid.parse(appt.start_time), timegrid.parse(appt.end_time))
        for appt in existing
        if appt.status == AppointmentStatus.SCHEDULED.value
    ]


def _is_past(target_date: date, start_minutes: int, now: datetime) -> bool:
    """True when the slot starts at or before `now` on the current day."""
    if target_date != now.date():
        return False
    slot_start = datetime.combine(target_date, time(start_minutes // 60, start_minutes % 60))
    return slot_start <= now.replace(tzinfo=None)


def generate_available_slots(
    profile: ScheduleProfile,
    target_date: date,
    existing: Iterable[BookedInterval],
    now: datetime,
) -> List[str]:
    """
    Candidate HH:MM start times for `target_date`, ascending.

    Steps:
        1. Resolve effective availability; not working -> [].
        2. Step through the working window every `appointment_duration_minutes`,
           keeping only slots that end on or before the window end.
        3. Drop slots overlapping a scheduled appointment ([start, end) test).
        4. On the clinic's current day, drop slots starting at or before `now`.

    `now` must already be expressed in the clinic's reference offset.
    """
    effective = resolve(profile, target_date)
    if not isinstance(effective, Working):
        return []

    duration = profile.appointment_duration_minutes
    blocked = _blocking(existing)

    slots: List[str] = []
    for start in timegrid.enumerate_starts(
        effective.start_minutes, effective.end_minutes, duration
    ):
        end = start + duration
        if any(timegrid.overlaps(start, end, b_start, b_end) for b_start, b_end in blocked):
            continue
        if _is_past(target_date, start, now):
            continue
        slots.append(timegrid.format(start))

    return slots


def is_bookable(
    profile: ScheduleProfile,
    target_date: date,
    start_time: str,
    duration_minutes: int,
    existing: Iterable[BookedInterval],
    now: datetime,
) -> bool:
    """
    Whether an appointment of `duration_minutes` may start at `start_time`.

    The start must be one of the generated candidates. When the duration
    differs from the profile's current one (an appointment keeps the duration
    it was booked with), the actual interval is also checked against the
    working window and the other scheduled appointments.
    """
    existing = list(existing)
    if start_time not in generate_available_slots(profile, target_date, existing, now):
        return False

    if duration_minutes == profile.appointment_duration_minutes:
        return True

    effective = resolve(profile, target_date)
    start = timegrid.parse(start_time)
    end = start + duration_minutes
    if end > effective.end_minutes:
        return False
    return not any(
        timegrid.overlaps(start, end, b_start, b_end) for b_start, b_end in _blocking(existing)
    )
