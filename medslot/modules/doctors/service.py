# medslot/modules/doctors/service.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.errors import Forbidden, NotFound
from medslot.modules.appointments import repository as appointments_repo
from medslot.modules.doctors import repository as repo
from medslot.modules.doctors.models import AvailabilityOverride, Doctor
from medslot.modules.doctors.schemas import (
    DoctorDetail,
    DoctorPage,
    DoctorProfileUpdate,
    DoctorPublic,
    OverridePublic,
    OverrideUpsert,
    WeeklyRulePublic,
    WeeklyTemplateUpdate,
)
from medslot.modules.log import AuditAction, write_audit_log
from medslot.scheduling import availability, slots
from medslot.scheduling.lifecycle import Actor

logger = logging.getLogger(__name__)


# --- helpers shared with the booking service ---

async def get_doctor_or_404(session: AsyncSession, doctor_id: UUID) -> Doctor:
    doctor = await repo.get_doctor(session, doctor_id)
    if doctor is None:
        raise NotFound("Doctor not found", code="doctor_not_found")
    return doctor


def to_schedule_profile(
    doctor: Doctor, overrides: Iterable[AvailabilityOverride] = ()
) -> availability.ScheduleProfile:
    """Map ORM rows onto the pure scheduling profile."""
    return availability.ScheduleProfile(
        appointment_duration_minutes=doctor.appointment_duration_minutes,
        weekly_rules=tuple(
            availability.WeeklyRule(
                day_of_week=availability.DayOfWeek(rule.day_of_week),
                start_time=rule.start_time,
                end_time=rule.end_time,
            )
            for rule in doctor.weekly_rules
        ),
        overrides={
            ov.date: availability.DateOverride(
                date=ov.date,
                is_working=ov.is_working,
                start_time=ov.start_time,
                end_time=ov.end_time,
            )
            for ov in overrides
        },
    )


async def load_schedule_profile(
    session: AsyncSession, doctor: Doctor, on_date: date
) -> availability.ScheduleProfile:
    # Only the override for the requested date can matter.
    overrides = await repo.get_overrides_on(session, doctor_id=doctor.id, dates=[on_date])
    return to_schedule_profile(doctor, overrides)


def _ensure_can_manage(actor: Actor, doctor_id: UUID) -> None:
    if actor.is_admin or actor.is_assigned_doctor(doctor_id):
        return
    raise Forbidden("Only the doctor or an admin can change this schedule", code="not_owner")


# --- profile ---

async def list_doctors(
    session: AsyncSession, *, q: Optional[str], limit: int, offset: int
) -> DoctorPage:
    doctors, total = await repo.list_doctors(session, q=q, limit=limit, offset=offset)
    return DoctorPage(
        items=[DoctorPublic.model_validate(d) for d in doctors],
        total=total,
        limit=limit,
        offset=offset,
        has_next=offset + limit < total,
    )


async def get_doctor_detail(session: AsyncSession, doctor_id: UUID) -> DoctorDetail:
    return DoctorDetail.model_validate(await get_doctor_or_404(session, doctor_id))


async def update_profile(
    session: AsyncSession, actor: Actor, doctor_id: UUID, payload: DoctorProfileUpdate
) -> DoctorPublic:
    """
    Update specialization and/or default duration. Existing appointments
    keep the duration they were booked with.
    """
    _ensure_can_manage(actor, doctor_id)
    doctor = await get_doctor_or_404(session, doctor_id)

    if payload.specialization is not None:
        doctor.specialization = payload.specialization.strip()
    if payload.appointment_duration_minutes is not None:
        doctor.appointment_duration_minutes = payload.appointment_duration_minutes

    await session.flush()
    await write_audit_log(
        session,
        actor.user_id,
        AuditAction.UPDATE_DOCTOR_PROFILE,
        f"doctor={doctor_id} {payload.model_dump(exclude_none=True)}",
    )
    return DoctorPublic.model_validate(doctor)


# --- weekly template ---

async def get_weekly_template(session: AsyncSession, doctor_id: UUID) -> List[WeeklyRulePublic]:
    doctor = await get_doctor_or_404(session, doctor_id)
    return [WeeklyRulePublic.model_validate(rule) for rule in doctor.weekly_rules]


async def set_weekly_template(
    session: AsyncSession, actor: Actor, doctor_id: UUID, payload: WeeklyTemplateUpdate
) -> List[WeeklyRulePublic]:
    _ensure_can_manage(actor, doctor_id)
    doctor = await get_doctor_or_404(session, doctor_id)

    rules = await repo.replace_weekly_rules(
        session,
        doctor,
        [(r.day_of_week.value, r.start_time, r.end_time) for r in payload.rules],
    )
    await write_audit_log(
        session,
        actor.user_id,
        AuditAction.SET_WEEKLY_TEMPLATE,
        f"doctor={doctor_id} rules={len(rules)}",
    )
    return [WeeklyRulePublic.model_validate(rule) for rule in rules]


# --- overrides ---

async def get_overrides(
    session: AsyncSession, doctor_id: UUID, *, from_date: Optional[date] = None
) -> List[OverridePublic]:
    await get_doctor_or_404(session, doctor_id)
    rows: Sequence[AvailabilityOverride] = await repo.list_overrides(
        session, doctor_id=doctor_id, from_date=from_date
    )
    return [OverridePublic.model_validate(ov) for ov in rows]


async def upsert_override(
    session: AsyncSession, actor: Actor, doctor_id: UUID, payload: OverrideUpsert
) -> OverridePublic:
    """
    Create or replace the override for payload.date. Existing appointments
    on that date are left alone even if the new hours no longer cover them.
    """
    _ensure_can_manage(actor, doctor_id)
    await get_doctor_or_404(session, doctor_id)

    override = await repo.upsert_override(
        session,
        doctor_id=doctor_id,
        on_date=payload.date,
        is_working=payload.is_working,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    hours = f"{override.start_time}-{override.end_time}" if override.is_working else "off"
    await write_audit_log(
        session,
        actor.user_id,
        AuditAction.UPSERT_OVERRIDE,
        f"doctor={doctor_id} date={payload.date.isoformat()} {hours}",
    )
    return OverridePublic.model_validate(override)


async def delete_override(
    session: AsyncSession, actor: Actor, doctor_id: UUID, on_date: date
) -> None:
    _ensure_can_manage(actor, doctor_id)
    await get_doctor_or_404(session, doctor_id)

    deleted = await repo.delete_override(session, doctor_id=doctor_id, on_date=on_date)
    if not deleted:
        raise NotFound("Override for this date not found", code="override_not_found")

    await write_audit_log(
        session,
        actor.user_id,
        AuditAction.DELETE_OVERRIDE,
        f"doctor={doctor_id} date={on_date.isoformat()}",
    )


# --- slots ---

async def get_available_slots(
    session: AsyncSession, doctor_id: UUID, on_date: date, now: datetime
) -> List[str]:
    """
    Bookable HH:MM start times for one doctor on one date, recomputed from
    the current template, overrides and scheduled appointments. Doctors
    whose account is no longer an active doctor have no slots.
    """
    doctor = await repo.get_bookable_doctor(session, doctor_id)
    if doctor is None:
        raise NotFound("Doctor not found", code="doctor_not_found")
    profile = await load_schedule_profile(session, doctor, on_date)
    existing = await appointments_repo.list_booked_intervals(
        session, doctor_id=doctor_id, on_date=on_date
    )
    return slots.generate_available_slots(profile, on_date, existing, now)
