# medslot/modules/doctors/repository.py
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.modules.doctors.models import AvailabilityOverride, Doctor, WeeklyAvailabilityRule
from medslot.modules.users.models import User, UserRole


def _bookable():
    # Doctor rows outlive a role change or deactivation of their user.
    return Doctor.user_id.in_(
        select(User.id).where(User.role == UserRole.DOCTOR.value, User.is_active.is_(True))
    )


async def get_doctor(db: AsyncSession, doctor_id: UUID) -> Optional[Doctor]:
    return await db.get(Doctor, doctor_id)


async def get_by_user_id(db: AsyncSession, user_id: UUID) -> Optional[Doctor]:
    rows = await db.execute(select(Doctor).where(Doctor.user_id == user_id))
    return rows.scalar_one_or_none()


async def get_bookable_doctor(db: AsyncSession, doctor_id: UUID) -> Optional[Doctor]:
    rows = await db.execute(select(Doctor).where(Doctor.id == doctor_id, _bookable()))
    return rows.scalar_one_or_none()


async def lock_doctor(db: AsyncSession, doctor_id: UUID) -> Optional[Doctor]:
    """
    Load a bookable doctor with a row lock (SELECT ... FOR UPDATE) so
    concurrent bookings for the same doctor run one after the other. SQLite
    ignores the lock; its writes are already serialized.
    """
    rows = await db.execute(
        select(Doctor).where(Doctor.id == doctor_id, _bookable()).with_for_update(of=Doctor)
    )
    return rows.scalar_one_or_none()


async def create_doctor(
    db: AsyncSession,
    *,
    user_id: UUID,
    name: str,
    specialization: str,
    appointment_duration_minutes: int,
) -> Doctor:
    doctor = Doctor(
        user_id=user_id,
        name=name,
        specialization=specialization,
        appointment_duration_minutes=appointment_duration_minutes,
        weekly_rules=[],
    )
    db.add(doctor)
    await db.flush()
    return doctor


async def list_doctors(
    db: AsyncSession, *, q: Optional[str], limit: int, offset: int
) -> tuple[list[Doctor], int]:
    conditions = [_bookable()]
    if q:
        term = f"%{q.strip().lower()}%"
        conditions.append(
            func.lower(Doctor.name).like(term) | func.lower(Doctor.specialization).like(term)
        )

    total = (
        await db.execute(select(func.count()).select_from(Doctor).where(*conditions))
    ).scalar_one()
    rows = await db.execute(
        select(Doctor).where(*conditions).order_by(Doctor.name, Doctor.id).limit(limit).offset(offset)
    )
    return list(rows.scalars().all()), total


async def count_doctors(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(Doctor))).scalar_one()


async def replace_weekly_rules(
    db: AsyncSession,
    doctor: Doctor,
    rules: Iterable[tuple[str, str, str]],
) -> Sequence[WeeklyAvailabilityRule]:
    """
    Full replace of the weekly template. `rules` are (day, start, end)
    tuples; their order is kept in `position`.
    """
    doctor.weekly_rules = [
        WeeklyAvailabilityRule(position=i, day_of_week=day, start_time=start, end_time=end)
        for i, (day, start, end) in enumerate(rules)
    ]
    await db.flush()
    return doctor.weekly_rules


async def list_overrides(
    db: AsyncSession, *, doctor_id: UUID, from_date: Optional[date] = None
) -> Sequence[AvailabilityOverride]:
    stmt = select(AvailabilityOverride).where(AvailabilityOverride.doctor_id == doctor_id)
    if from_date is not None:
        stmt = stmt.where(AvailabilityOverride.date >= from_date)
    rows = await db.execute(stmt.order_by(AvailabilityOverride.date))
    return rows.scalars().all()


async def get_overrides_on(
    db: AsyncSession, *, doctor_id: UUID, dates: Iterable[date]
) -> Sequence[AvailabilityOverride]:
    rows = await db.execute(
        select(AvailabilityOverride).where(
            AvailabilityOverride.doctor_id == doctor_id,
            AvailabilityOverride.date.in_(list(dates)),
        )
    )
    return rows.scalars().all()


async def upsert_override(
    db: AsyncSession,
    *,
    doctor_id: UUID,
    on_date: date,
    is_working: bool,
    start_time: Optional[str],
    end_time: Optional[str],
) -> AvailabilityOverride:
    rows = await db.execute(
        select(AvailabilityOverride).where(
            AvailabilityOverride.doctor_id == doctor_id,
            AvailabilityOverride.date == on_date,
        )
    )
    override = rows.scalar_one_or_none()
    if override is None:
        override = AvailabilityOverride(doctor_id=doctor_id, date=on_date)
        db.add(override)

    override.is_working = is_working
    override.start_time = start_time
    override.end_time = end_time
    await db.flush()
    return override


async def delete_override(db: AsyncSession, *, doctor_id: UUID, on_date: date) -> int:
    res = await db.execute(
        delete(AvailabilityOverride).where(
            AvailabilityOverride.doctor_id == doctor_id,
            AvailabilityOverride.date == on_date,
        )
    )
    return res.rowcount or 0  # type: ignore
