# medslot/routers/doctor.py
from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.clock import Clock, clinic_today, get_clock
from medslot.db.sql import get_session
from medslot.dependencies import require_doctor_profile
from medslot.modules.appointments import service as appointments_service
from medslot.modules.appointments.schemas import AppointmentListPage
from medslot.modules.doctors import service
from medslot.modules.doctors.schemas import (
    DoctorPublic,
    DoctorProfileUpdate,
    OverridePublic,
    OverrideUpsert,
    WeeklyRulePublic,
    WeeklyTemplateUpdate,
)
from medslot.scheduling.lifecycle import Actor

# Endpoints acting on the calling doctor's own profile.
router = APIRouter(prefix="/doctor", tags=["doctor"])


@router.patch(
    "/profile",
    response_model=DoctorPublic,
    summary="Update own specialization and/or appointment duration",
)
async def update_own_profile(
    payload: DoctorProfileUpdate,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_doctor_profile),
):
    """
    A new duration only applies to slots generated from now on; booked
    appointments keep theirs.
    """
    return await service.update_profile(session, actor, actor.doctor_id, payload)


@router.get(
    "/schedule",
    response_model=AppointmentListPage,
    summary="Own appointments, ascending by date and time",
)
async def own_schedule(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_doctor_profile),
):
    return await appointments_service.doctor_schedule(
        session, actor, date_from=date_from, date_to=date_to, limit=limit, offset=offset
    )


# --- weekly template ---

@router.get(
    "/availability/weekly",
    response_model=List[WeeklyRulePublic],
)
async def get_own_weekly_template(
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_doctor_profile),
):
    return await service.get_weekly_template(session, actor.doctor_id)


@router.put(
    "/availability/weekly",
    response_model=List[WeeklyRulePublic],
    summary="Replace the whole weekly template",
)
async def set_own_weekly_template(
    payload: WeeklyTemplateUpdate,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_doctor_profile),
):
    return await service.set_weekly_template(session, actor, actor.doctor_id, payload)


# --- date overrides ---

@router.get(
    "/availability/overrides",
    response_model=List[OverridePublic],
)
async def get_own_overrides(
    include_past: bool = Query(False, description="Also return overrides before today"),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_doctor_profile),
    clock: Clock = Depends(get_clock),
):
    from_date = None if include_past else clinic_today(clock())
    return await service.get_overrides(session, actor.doctor_id, from_date=from_date)


@router.put(
    "/availability/overrides",
    response_model=OverridePublic,
    summary="Create or replace the override for one date",
)
async def upsert_own_override(
    payload: OverrideUpsert,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_doctor_profile),
):
    return await service.upsert_override(session, actor, actor.doctor_id, payload)


@router.delete(
    "/availability/overrides/{on_date}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_own_override(
    on_date: date,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_doctor_profile),
):
    await service.delete_override(session, actor, actor.doctor_id, on_date)
