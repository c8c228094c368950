# medslot/routers/doctors.py
from __future__ import annotations

from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.clock import Clock, get_clock
from medslot.db.sql import get_session
from medslot.modules.doctors import service
from medslot.modules.doctors.schemas import DoctorDetail, DoctorPage, WeeklyRulePublic

router = APIRouter(tags=["doctors"])


@router.get(
    "/doctors",
    response_model=DoctorPage,
    summary="List doctors (public)",
)
async def doctors_index(
    q: str | None = Query(None, description="Search on name/specialization"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    return await service.list_doctors(session, q=q, limit=limit, offset=offset)


@router.get(
    "/doctors/{doctor_id}",
    response_model=DoctorDetail,
    summary="Doctor profile with weekly template (public)",
)
async def doctors_show(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
):
    return await service.get_doctor_detail(session, doctor_id)


@router.get(
    "/doctors/{doctor_id}/availability/weekly",
    response_model=List[WeeklyRulePublic],
    summary="A doctor's weekly availability template, in stored order",
)
async def doctors_weekly_template(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
):
    return await service.get_weekly_template(session, doctor_id)


@router.get(
    "/doctors/{doctor_id}/available-slots",
    response_model=List[str],
    summary="Bookable HH:MM start times for one date",
)
async def doctors_available_slots(
    doctor_id: UUID,
    on_date: date = Query(..., alias="date", description="YYYY-MM-DD"),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """
    Recomputed on every call from the weekly template, the override for the
    date and the doctor's scheduled appointments. On the clinic's current
    day, start times at or before now are left out.
    """
    return await service.get_available_slots(session, doctor_id, on_date, clock())
