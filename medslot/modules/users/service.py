# medslot/modules/users/service.py
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.config import settings
from medslot.core.errors import NotFound
from medslot.core.security import create_access_token, create_refresh_token, hash_password, verify_password
from medslot.modules.appointments import repository as appointments_repo
from medslot.modules.doctors import repository as doctors_repo
from medslot.modules.log import AuditAction, write_audit_log
from medslot.modules.users import repository as users_repo
from medslot.modules.users.models import User
from medslot.modules.users.schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    Role,
    UserListItem,
    UserPage,
    UserPublic,
)
from medslot.scheduling.lifecycle import Actor

logger = logging.getLogger(__name__)


# Service-level errors (map them to HTTP in the router)
class EmailAlreadyExists(Exception):
    pass


class InvalidCredentials(Exception):
    pass


class InactiveUser(Exception):
    pass


def to_public(user: User, doctor_id: Optional[UUID] = None) -> UserPublic:
    """
    Convert ORM model to public DTO.
    """
    return UserPublic.model_validate(
        {
            "id": user.id,
            "email": user.email,
            "role": Role(user.role),
            "first_name": user.first_name,
            "last_name": user.last_name,
            "phone": user.phone,
            "is_active": user.is_active,
            "doctor_id": doctor_id,
            "created_at": user.created_at,
            "updated_at": user.updated_at,
        }
    )


async def doctor_id_for(session: AsyncSession, user: User) -> Optional[UUID]:
    if user.role != Role.doctor.value:
        return None
    doctor = await doctors_repo.get_by_user_id(session, user.id)
    return doctor.id if doctor else None


async def register_user(session: AsyncSession, payload: RegisterRequest) -> UserPublic:
    """
    Business flow for user registration:
      1) Normalize and check email uniqueness.
      2) Hash password with bcrypt.
      3) Persist user.
      4) For doctors, create the schedule profile in the same transaction.
      5) Return public DTO.
    """
    email = payload.email.strip().lower()

    # 1) Uniqueness check (early 409 if exists)
    if await users_repo.get_by_email(session, email):
        raise EmailAlreadyExists("email_already_exists")

    # 2) Hash password (never store plain text)
    password_hash = hash_password(payload.password.get_secret_value())

    # 3) Persist
    try:
        user = await users_repo.create_user(
            session,
            email=email,
            password_hash=password_hash,
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
            role=payload.role.value,
        )
    except users_repo.EmailAlreadyExistsError as exc:
        raise EmailAlreadyExists("email_already_exists") from exc

    # 4) Doctor profile
    doctor_id = None
    if payload.role is Role.doctor:
        doctor = await doctors_repo.create_doctor(
            session,
            user_id=user.id,
            name=user.full_name,
            specialization=payload.specialization,
            appointment_duration_minutes=(
                payload.appointment_duration_minutes or settings.DEFAULT_APPOINTMENT_DURATION
            ),
        )
        doctor_id = doctor.id

    logger.info("Registered %s user %s", user.role, user.id)
    return to_public(user, doctor_id)


def _issue_tokens(user: User) -> LoginResponse:
    access = create_access_token(subject=str(user.id), role=user.role)
    refresh = create_refresh_token(subject=str(user.id))
    return LoginResponse(
        access_token=access,
        expires_in=settings.ACCESS_EXPIRES_MIN * 60,
        refresh_token=refresh,
    )


async def login_user(session: AsyncSession, payload: LoginRequest) -> LoginResponse:
    """
    1) Fetch user by email
    2) Verify bcrypt password
    3) Reject deactivated accounts
    4) Issue access and refresh tokens
    """
    user = await users_repo.get_by_email(session, payload.email)
    if not user:
        raise InvalidCredentials("invalid_credentials")

    if not verify_password(payload.password.get_secret_value(), user.password_hash):
        raise InvalidCredentials("invalid_credentials")

    if not user.is_active:
        raise InactiveUser("user_inactive")

    return _issue_tokens(user)


async def refresh_tokens(session: AsyncSession, user_id: str, refresh_token: str) -> LoginResponse:
    user = await users_repo.get_by_id(session, UUID(user_id))
    if not user:
        raise InvalidCredentials("user_not_found")
    if not user.is_active:
        raise InactiveUser("user_inactive")

    return LoginResponse(
        access_token=create_access_token(subject=str(user.id), role=user.role),
        expires_in=settings.ACCESS_EXPIRES_MIN * 60,
        refresh_token=refresh_token,
    )


# --- Admin user management ---

async def list_users(
    session: AsyncSession,
    *,
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    q: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> UserPage:
    users, total = await users_repo.list_users_repo(
        session,
        role=role.value if role else None,
        is_active=is_active,
        q=q,
        limit=limit,
        offset=offset,
    )
    return UserPage(
        items=[UserListItem.model_validate(u) for u in users],
        total=total,
        limit=limit,
        offset=offset,
        has_next=offset + limit < total,
    )


async def _get_user_or_404(session: AsyncSession, user_id: UUID) -> User:
    user = await users_repo.get_by_id(session, user_id)
    if user is None:
        raise NotFound("User not found", code="user_not_found")
    return user


async def set_user_status(
    session: AsyncSession, actor: Actor, user_id: UUID, is_active: bool
) -> UserPublic:
    user = await _get_user_or_404(session, user_id)
    user.is_active = is_active
    await session.flush()
    await session.refresh(user)

    await write_audit_log(
        session,
        actor.user_id,
        AuditAction.UPDATE_USER_STATUS,
        f"user={user.id} is_active={is_active}",
    )
    return to_public(user, await doctor_id_for(session, user))


async def set_user_role(
    session: AsyncSession, actor: Actor, user_id: UUID, role: Role
) -> UserPublic:
    """
    Change a user's role. Promoting to doctor creates a schedule profile
    with the default duration if the user has none yet; the specialization
    can be filled in later through the profile endpoint.
    """
    user = await _get_user_or_404(session, user_id)
    previous = user.role
    user.role = role.value
    await session.flush()

    if role is Role.doctor and await doctors_repo.get_by_user_id(session, user.id) is None:
        await doctors_repo.create_doctor(
            session,
            user_id=user.id,
            name=user.full_name,
            specialization="General",
            appointment_duration_minutes=settings.DEFAULT_APPOINTMENT_DURATION,
        )

    await session.refresh(user)
    await write_audit_log(
        session,
        actor.user_id,
        AuditAction.UPDATE_USER_ROLE,
        f"user={user.id} {previous} -> {role.value}",
    )
    return to_public(user, await doctor_id_for(session, user))


async def get_stats(session: AsyncSession) -> dict:
    users_by_role = await users_repo.count_by_role(session)
    appointments_by_status = await appointments_repo.count_by_status(session)
    return {
        "users_by_role": users_by_role,
        "doctors": await doctors_repo.count_doctors(session),
        "appointments_by_status": appointments_by_status,
        "appointments_total": sum(appointments_by_status.values()),
    }
