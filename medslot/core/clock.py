# medslot/core/clock.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable

from medslot.core.config import settings

Clock = Callable[[], datetime]


def clinic_tz() -> timezone:
    """The single fixed reference offset the clinic runs on."""
    return timezone(timedelta(minutes=settings.CLINIC_UTC_OFFSET_MINUTES))


def clinic_now() -> datetime:
    return datetime.now(clinic_tz())


def clinic_today(now: datetime | None = None) -> date:
    return (now or clinic_now()).date()


def get_clock() -> Clock:
    """
    FastAPI dependency returning the clock. Tests override it with a
    fixed instant.
    """
    return clinic_now
