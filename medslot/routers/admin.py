# medslot/routers/admin.py
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.clock import Clock, clinic_today, get_clock
from medslot.db.sql import get_session
from medslot.dependencies import require_roles
from medslot.modules.appointments import service as appointments_service
from medslot.modules.appointments.schemas import AppointmentListPage, AppointmentListParams
from medslot.modules.doctors import service as doctors_service
from medslot.modules.doctors.schemas import (
    DoctorDetail,
    DoctorProfileUpdate,
    DoctorPublic,
    OverridePublic,
    OverrideUpsert,
    WeeklyRulePublic,
    WeeklyTemplateUpdate,
)
from medslot.modules.users import service as users_service
from medslot.modules.users.schemas import (
    Role,
    UserPage,
    UserPublic,
    UserRoleUpdate,
    UserStatusUpdate,
)
from medslot.routers.appointments import appointment_list_params
from medslot.scheduling.lifecycle import Actor

router = APIRouter(prefix="/admin", tags=["admin"])


require_admin = require_roles("admin")


@router.get(
    "/users",
    response_model=UserPage,
    summary="List users (admin only)",
)
async def admin_list_users(
    role: Optional[Role] = Query(None),
    is_active: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, description="Search on email/first_name/last_name"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await users_service.list_users(
        session, role=role, is_active=is_active, q=q, limit=limit, offset=offset
    )


@router.put(
    "/users/{user_id}/status",
    response_model=UserPublic,
    summary="Activate or deactivate a user (admin only)",
)
async def admin_set_user_status(
    user_id: UUID,
    payload: UserStatusUpdate,
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await users_service.set_user_status(session, current_admin, user_id, payload.is_active)


@router.put(
    "/users/{user_id}/role",
    response_model=UserPublic,
    summary="Change a user's role (admin only)",
)
async def admin_set_user_role(
    user_id: UUID,
    payload: UserRoleUpdate,
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await users_service.set_user_role(session, current_admin, user_id, payload.role)


@router.get(
    "/doctors/{doctor_id}",
    response_model=DoctorDetail,
    summary="A doctor's profile and weekly template (admin only)",
)
async def admin_get_doctor(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await doctors_service.get_doctor_detail(session, doctor_id)


@router.put(
    "/doctors/{doctor_id}",
    response_model=DoctorPublic,
    summary="Update a doctor's specialization and/or appointment duration (admin only)",
)
async def admin_update_doctor(
    doctor_id: UUID,
    payload: DoctorProfileUpdate,
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await doctors_service.update_profile(session, current_admin, doctor_id, payload)


@router.put(
    "/doctors/{doctor_id}/availability/weekly",
    response_model=List[WeeklyRulePublic],
    summary="Replace a doctor's weekly template (admin only)",
)
async def admin_set_weekly_template(
    doctor_id: UUID,
    payload: WeeklyTemplateUpdate,
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await doctors_service.set_weekly_template(session, current_admin, doctor_id, payload)


@router.get(
    "/doctors/{doctor_id}/availability/overrides",
    response_model=List[OverridePublic],
)
async def admin_get_overrides(
    doctor_id: UUID,
    include_past: bool = Query(False, description="Also return overrides before today"),
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
    clock: Clock = Depends(get_clock),
):
    from_date = None if include_past else clinic_today(clock())
    return await doctors_service.get_overrides(session, doctor_id, from_date=from_date)


@router.put(
    "/doctors/{doctor_id}/availability/overrides",
    response_model=OverridePublic,
    summary="Create or replace a doctor's override for one date (admin only)",
)
async def admin_upsert_override(
    doctor_id: UUID,
    payload: OverrideUpsert,
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await doctors_service.upsert_override(session, current_admin, doctor_id, payload)


@router.delete(
    "/doctors/{doctor_id}/availability/overrides/{on_date}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def admin_delete_override(
    doctor_id: UUID,
    on_date: date,
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    await doctors_service.delete_override(session, current_admin, doctor_id, on_date)


@router.get(
    "/appointments",
    response_model=AppointmentListPage,
    summary="Appointment oversight: every appointment matching the filter",
)
async def admin_list_appointments(
    params: AppointmentListParams = Depends(appointment_list_params),
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await appointments_service.list_appointments(session, current_admin, params)


@router.get(
    "/stats",
    summary="Counts of users per role, doctors and appointments per status",
)
async def admin_stats(
    session: AsyncSession = Depends(get_session),
    current_admin: Actor = Depends(require_admin),
):
    return await users_service.get_stats(session)
