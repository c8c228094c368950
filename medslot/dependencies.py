# medslot/dependencies.py
from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.config import settings
from medslot.core.security import InvalidTokenError, decode_token, is_access_token
from medslot.db.sql import get_session
from medslot.modules.doctors.repository import get_by_user_id
from medslot.modules.users.models import User
from medslot.modules.users.repository import get_by_id
from medslot.scheduling.lifecycle import Actor

# IMPORTANT: use /auth/token here so Swagger sends username/password to that endpoint
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/token"
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    try:
        payload = decode_token(token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
        )

    if not is_access_token(payload):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token_type",
        )

    try:
        user_id = UUID(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_claims",
        )

    user = await get_by_id(session, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="user_not_found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="user_inactive",
        )
    return user


async def get_actor(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Actor:
    """
    Request-scoped identity for the booking core. Doctors carry the id of
    their schedule profile.
    """
    doctor_id = None
    if user.role == "doctor":
        doctor = await get_by_user_id(session, user.id)
        doctor_id = doctor.id if doctor else None
    return Actor(user_id=user.id, role=user.role, doctor_id=doctor_id)


def require_roles(*roles: str):
    """
    Role guard factory. Example: Depends(require_roles("admin", "doctor"))
    Resolves to the caller's Actor.
    """
    async def _guard(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="insufficient_role",
            )
        return actor

    return _guard


async def require_doctor_profile(actor: Actor = Depends(require_roles("doctor"))) -> Actor:
    if actor.doctor_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="doctor_profile_not_found",
        )
    return actor
