# medslot/modules/appointments/service.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.errors import (
    Forbidden,
    NotFound,
    SchedulingError,
    SlotConflict,
    SlotUnavailable,
)
from medslot.modules.appointments import repository as repo
from medslot.modules.appointments.models import Appointment
from medslot.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentListPage,
    AppointmentListParams,
    AppointmentPublic,
    CancelRequest,
    CompleteRequest,
    NoShowRequest,
    RescheduleRequest,
)
from medslot.modules.doctors import repository as doctors_repo
from medslot.modules.doctors import service as doctors_service
from medslot.modules.log import AuditAction, write_audit_log
from medslot.modules.users import repository as users_repo
from medslot.scheduling import slots, timegrid
from medslot.scheduling.lifecycle import (
    Actor,
    AppointmentStatus,
    ensure_assigned_doctor,
    ensure_can_reschedule_or_cancel,
    ensure_can_view,
    ensure_reschedulable,
    ensure_transition,
    require_remarks,
)

logger = logging.getLogger(__name__)


def _to_public(appt: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(appt)


async def _get_or_404(session: AsyncSession, appointment_id: UUID) -> Appointment:
    appt = await repo.get_appointment(session, appointment_id)
    if appt is None:
        raise NotFound("Appointment not found", code="appointment_not_found")
    return appt


async def _resolve_patient_id(
    session: AsyncSession, actor: Actor, requested: Optional[UUID]
) -> UUID:
    """
    Patients always book for themselves. Admins book on behalf of a patient
    and must name one. Doctors cannot create appointments.
    """
    if actor.role == "patient":
        if requested is not None and requested != actor.user_id:
            raise Forbidden("Patients can only book for themselves", code="not_owner")
        return actor.user_id

    if actor.is_admin:
        if requested is None:
            raise SchedulingError(
                "patient_id is required when booking as admin", code="patient_id_required"
            )
        patient = await users_repo.get_by_id(session, requested)
        if patient is None or patient.role != "patient":
            raise NotFound("Patient not found", code="patient_not_found")
        return patient.id

    raise Forbidden("Only patients or admins can book appointments", code="only_patients_can_create")


# CREATE
async def create_appointment(
    session: AsyncSession,
    actor: Actor,
    payload: AppointmentCreateRequest,
    now: datetime,
) -> AppointmentPublic:
    """
    Book a slot.

    Logic:
    - Lock the doctor's row so bookings for one doctor are serialised.
    - The requested start must be one of the currently generated slots.
    - end_time and duration_minutes are snapshotted from the doctor's
      current duration.
    - The partial unique index catches anything the lock could not
      (SQLite ignores FOR UPDATE).
    """
    patient_id = await _resolve_patient_id(session, actor, payload.patient_id)

    doctor = await doctors_repo.lock_doctor(session, payload.doctor_id)
    if doctor is None:
        raise NotFound("Doctor not found", code="doctor_not_found")

    profile = await doctors_service.load_schedule_profile(
        session, doctor, payload.appointment_date
    )
    existing = await repo.list_booked_intervals(
        session, doctor_id=doctor.id, on_date=payload.appointment_date
    )
    available = slots.generate_available_slots(
        profile, payload.appointment_date, existing, now
    )
    if payload.start_time not in available:
        raise SlotUnavailable(
            f"{payload.start_time} on {payload.appointment_date.isoformat()} is not available"
        )

    duration = profile.appointment_duration_minutes
    start = timegrid.parse(payload.start_time)
    appt = Appointment(
        patient_id=patient_id,
        doctor_id=doctor.id,
        appointment_date=payload.appointment_date,
        start_time=payload.start_time,
        end_time=timegrid.format(start + duration),
        duration_minutes=duration,
        status=AppointmentStatus.SCHEDULED.value,
        reason=payload.reason,
        patient_phone=payload.patient_phone or "",
    )

    try:
        appt = await repo.flush_booking(session, appt)
    except SlotConflict as exc:
        logger.warning("Double booking rejected by storage: %s", exc)
        raise SlotUnavailable("This slot was just booked by someone else") from exc

    await write_audit_log(
        session,
        actor.user_id,
        AuditAction.CREATE_APPOINTMENT,
        f"appointment={appt.id} doctor={doctor.id} "
        f"{appt.appointment_date.isoformat()} {appt.start_time}-{appt.end_time}",
    )
    return _to_public(appt)


# READ
async def get_appointment(
    session: AsyncSession, actor: Actor, appointment_id: UUID
) -> AppointmentPublic:
    appt = await _get_or_404(session, appointment_id)
    ensure_can_view(actor, patient_id=appt.patient_id, doctor_id=appt.doctor_id)
    return _to_public(appt)


def _page(rows: list[Appointment], total: int, limit: int, offset: int) -> AppointmentListPage:
    return AppointmentListPage(
        items=[_to_public(a) for a in rows],
        total=total,
        limit=limit,
        offset=offset,
        has_next=offset + limit < total,
    )


async def list_appointments(
    session: AsyncSession,
    actor: Actor,
    params: AppointmentListParams,
) -> AppointmentListPage:
    """
    Filtered appointment list, scoped to the caller:
    - patient => only their own appointments
    - doctor => only appointments on their own profile
    - admin => everything the filter matches
    """
    doctor_id = params.doctor_id
    patient_id = params.patient_id

    if actor.role == "patient":
        if patient_id is not None and patient_id != actor.user_id:
            raise Forbidden("Patients can only list their own appointments", code="not_owner")
        patient_id = actor.user_id
    elif actor.role == "doctor":
        if actor.doctor_id is None or (doctor_id is not None and doctor_id != actor.doctor_id):
            raise Forbidden("Doctors can only list their own appointments", code="not_owner")
        doctor_id = actor.doctor_id

    rows, total = await repo.list_appointments(
        session,
        doctor_id=doctor_id,
        patient_id=patient_id,
        date_from=params.date_from,
        date_to=params.date_to,
        status=params.status.value if params.status else None,
        limit=params.limit,
        offset=params.offset,
    )
    return _page(rows, total, params.limit, params.offset)


async def doctor_schedule(
    session: AsyncSession,
    actor: Actor,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = 100,
    offset: int = 0,
) -> AppointmentListPage:
    """The calling doctor's own appointments, ascending by date and time."""
    if actor.doctor_id is None:
        raise Forbidden("Doctor profile required", code="doctor_only")

    rows, total = await repo.list_appointments(
        session,
        doctor_id=actor.doctor_id,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return _page(rows, total, limit, offset)


# TRANSITIONS
async def reschedule(
    session: AsyncSession,
    actor: Actor,
    appointment_id: UUID,
    payload: RescheduleRequest,
    now: datetime,
) -> AppointmentPublic:
    """
    Move a scheduled appointment to another date/start. The appointment keeps
    the duration it was booked with and does not block its own new slot.
    """
    appt = await _get_or_404(session, appointment_id)
    ensure_can_reschedule_or_cancel(actor, patient_id=appt.patient_id, doctor_id=appt.doctor_id)
    ensure_reschedulable(appt.status)

    doctor = await doctors_repo.lock_doctor(session, appt.doctor_id)
    if doctor is None:
        raise NotFound("Doctor not found", code="doctor_not_found")

    profile = await doctors_service.load_schedule_profile(session, doctor, payload.appointment_date)
    existing = await repo.list_booked_intervals(
        session,
        doctor_id=doctor.id,
        on_date=payload.appointment_date,
        exclude_id=appt.id,
    )
    if not slots.is_bookable(
        profile,
        payload.appointment_date,
        payload.start_time,
        appt.duration_minutes,
        existing,
        now,
    ):
        raise SlotUnavailable(
            f"{payload.start_time} on {payload.appointment_date.isoformat()} is not available"
        )

    previous = f"{appt.appointment_date.isoformat()} {appt.start_time}"
    start = timegrid.parse(payload.start_time)
    appt.appointment_date = payload.appointment_date
    appt.start_time = payload.start_time
    appt.end_time = timegrid.format(start + appt.duration_minutes)
    if payload.reason is not None:
        appt.reason = payload.reason

    try:
        appt = await repo.flush_booking(session, appt)
    except SlotConflict as exc:
        logger.warning("Double booking rejected by storage on reschedule: %s", exc)
        raise SlotUnavailable("This slot was just booked by someone else") from exc

    await write_audit_log(
        session,
        actor.user_id,
        AuditAction.RESCHEDULE_APPOINTMENT,
        f"appointment={appt.id} from {previous} to "
        f"{appt.appointment_date.isoformat()} {appt.start_time}",
    )
    return _to_public(appt)


async def _set_status(
    session: AsyncSession,
    actor: Actor,
    appt: Appointment,
    target: AppointmentStatus,
    action: AuditAction,
) -> AppointmentPublic:
    previous = appt.status
    appt.status = target.value
    await session.flush()
    await session.refresh(appt)
    await write_audit_log(
        session,
        actor.user_id,
        action,
        f"appointment={appt.id} {previous} -> {target.value}",
    )
    return _to_public(appt)


async def cancel(
    session: AsyncSession, actor: Actor, appointment_id: UUID
) -> AppointmentPublic:
    """
    Cancel a scheduled appointment:
    - the owning patient, the assigned doctor, or an admin
    - already terminal -> InvalidTransition
    """
    appt = await _get_or_404(session, appointment_id)
    ensure_can_reschedule_or_cancel(actor, patient_id=appt.patient_id, doctor_id=appt.doctor_id)
    ensure_transition(appt.status, AppointmentStatus.CANCELLED)
    return await _set_status(
        session, actor, appt, AppointmentStatus.CANCELLED, AuditAction.CANCEL_APPOINTMENT
    )


async def complete(
    session: AsyncSession, actor: Actor, appointment_id: UUID, remarks: Optional[str]
) -> AppointmentPublic:
    appt = await _get_or_404(session, appointment_id)
    ensure_assigned_doctor(actor, doctor_id=appt.doctor_id)
    ensure_transition(appt.status, AppointmentStatus.COMPLETED)
    appt.remarks = require_remarks(remarks)
    return await _set_status(
        session, actor, appt, AppointmentStatus.COMPLETED, AuditAction.COMPLETE_APPOINTMENT
    )


async def mark_no_show(
    session: AsyncSession, actor: Actor, appointment_id: UUID
) -> AppointmentPublic:
    appt = await _get_or_404(session, appointment_id)
    ensure_assigned_doctor(actor, doctor_id=appt.doctor_id)
    ensure_transition(appt.status, AppointmentStatus.NOSHOW)
    return await _set_status(
        session, actor, appt, AppointmentStatus.NOSHOW, AuditAction.NOSHOW_APPOINTMENT
    )


async def update_appointment(
    session: AsyncSession,
    actor: Actor,
    appointment_id: UUID,
    payload: RescheduleRequest | CancelRequest | CompleteRequest | NoShowRequest,
    now: datetime,
) -> AppointmentPublic:
    """Route a tagged update to exactly one lifecycle operation."""
    if isinstance(payload, RescheduleRequest):
        return await reschedule(session, actor, appointment_id, payload, now)
    if isinstance(payload, CancelRequest):
        return await cancel(session, actor, appointment_id)
    if isinstance(payload, CompleteRequest):
        return await complete(session, actor, appointment_id, payload.remarks)
    return await mark_no_show(session, actor, appointment_id)
