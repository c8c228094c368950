# medslot/modules/appointments/repository.py
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.errors import SlotConflict
from medslot.modules.appointments.models import SCHEDULED_SLOT_INDEX, Appointment
from medslot.scheduling.lifecycle import AppointmentStatus
from medslot.scheduling.slots import BookedInterval


async def get_appointment(session: AsyncSession, appointment_id: UUID) -> Optional[Appointment]:
    return await session.get(Appointment, appointment_id)


async def list_booked_intervals(
    session: AsyncSession,
    *,
    doctor_id: UUID,
    on_date: date,
    exclude_id: Optional[UUID] = None,
) -> List[BookedInterval]:
    """
    Scheduled appointments for one doctor on one date, as plain intervals.
    `exclude_id` leaves out an appointment being rescheduled so it does not
    block itself.
    """
    stmt = select(Appointment.start_time, Appointment.end_time, Appointment.status).where(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == on_date,
        Appointment.status == AppointmentStatus.SCHEDULED.value,
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)

    rows = await session.execute(stmt.order_by(Appointment.start_time))
    return [BookedInterval(start, end, status) for start, end, status in rows.all()]


def _is_slot_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower() if exc.orig else str(exc).lower()
    # PostgreSQL names the index; SQLite only says "UNIQUE constraint failed".
    return SCHEDULED_SLOT_INDEX in message or "unique" in message


async def flush_booking(session: AsyncSession, appt: Appointment) -> Appointment:
    """
    Flush a new or rescheduled appointment. A second scheduled row for the
    same doctor/day/start is rejected by the partial unique index and
    surfaces as SlotConflict.
    """
    session.add(appt)
    try:
        await session.flush()
    except IntegrityError as exc:
        if _is_slot_violation(exc):
            raise SlotConflict(
                f"doctor={appt.doctor_id} date={appt.appointment_date} start={appt.start_time}"
            ) from exc
        raise

    await session.refresh(appt)
    return appt


async def list_appointments(
    session: AsyncSession,
    *,
    doctor_id: Optional[UUID] = None,
    patient_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    status: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    newest_first: bool = False,
) -> tuple[list[Appointment], int]:
    conditions = []
    if doctor_id is not None:
        conditions.append(Appointment.doctor_id == doctor_id)
    if patient_id is not None:
        conditions.append(Appointment.patient_id == patient_id)
    if date_from is not None:
        conditions.append(Appointment.appointment_date >= date_from)
    if date_to is not None:
        conditions.append(Appointment.appointment_date <= date_to)
    if status is not None:
        conditions.append(Appointment.status == status)

    total_stmt = select(func.count()).select_from(Appointment).where(*conditions)
    total = (await session.execute(total_stmt)).scalar_one()

    if newest_first:
        ordering = (Appointment.appointment_date.desc(), Appointment.start_time.desc())
    else:
        ordering = (Appointment.appointment_date, Appointment.start_time)

    stmt = (
        select(Appointment)
        .where(*conditions)
        .order_by(*ordering, Appointment.id)
        .limit(limit)
        .offset(offset)
    )
    rows = (await session.execute(stmt)).unique().scalars().all()
    return list(rows), total


async def count_by_status(session: AsyncSession) -> dict[str, int]:
    rows = await session.execute(
        select(Appointment.status, func.count()).group_by(Appointment.status)
    )
    return {status: count for status, count in rows.all()}
