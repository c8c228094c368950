# medslot/routers/appointments.py
from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.clock import Clock, get_clock
from medslot.db.sql import get_session
from medslot.dependencies import get_actor
from medslot.modules.appointments import service
from medslot.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentListPage,
    AppointmentListParams,
    AppointmentPublic,
    AppointmentUpdateRequest,
)
from medslot.scheduling.lifecycle import Actor, AppointmentStatus

router = APIRouter(tags=["appointments"])


@router.post(
    "/appointments",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Book one of a doctor's available slots",
    responses={
        403: {"description": "Doctors cannot book; patients only for themselves"},
        404: {"description": "Doctor or patient not found"},
        409: {"description": "Slot not available"},
    },
)
async def appointments_create(
    payload: AppointmentCreateRequest,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
):
    return await service.create_appointment(session, actor, payload, clock())


def appointment_list_params(
    doctor_id: Optional[UUID] = Query(None),
    patient_id: Optional[UUID] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> AppointmentListParams:
    try:
        return AppointmentListParams(
            doctor_id=doctor_id,
            patient_id=patient_id,
            date_from=date_from,
            date_to=date_to,
            status=status_filter,
            limit=limit,
            offset=offset,
        )
    except ValueError:
        raise HTTPException(
            status_code=422,
            detail="date_from must be on or before date_to",
        )


@router.get(
    "/appointments",
    response_model=AppointmentListPage,
    summary="List appointments visible to the caller",
)
async def appointments_index(
    params: AppointmentListParams = Depends(appointment_list_params),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    return await service.list_appointments(session, actor, params)


@router.get(
    "/appointments/{appointment_id}",
    response_model=AppointmentPublic,
)
async def appointments_show(
    appointment_id: UUID,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    return await service.get_appointment(session, actor, appointment_id)


@router.patch(
    "/appointments/{appointment_id}",
    response_model=AppointmentPublic,
    summary="Reschedule, cancel, complete or mark no-show",
    responses={
        403: {"description": "Caller may not perform this action"},
        409: {"description": "Slot not available or status change not allowed"},
        422: {"description": "Unknown action, extra fields or missing remarks"},
    },
)
async def appointments_update(
    appointment_id: UUID,
    payload: AppointmentUpdateRequest = Body(...),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
):
    """
    Body is one of:
    - {"action": "reschedule", "appointment_date": ..., "start_time": ..., "reason"?: ...}
    - {"action": "cancel"}
    - {"action": "complete", "remarks": ...}
    - {"action": "no_show"}
    """
    return await service.update_appointment(session, actor, appointment_id, payload, clock())


@router.delete(
    "/appointments/{appointment_id}",
    status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
    include_in_schema=False,
)
async def appointments_delete(appointment_id: UUID):
    # Appointments are never deleted, only cancelled.
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="appointments_cannot_be_deleted",
        headers={"Allow": "GET, PATCH"},
    )
