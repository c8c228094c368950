# medslot/modules/users/repository.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.modules.users.models import User, UserRole


class EmailAlreadyExistsError(Exception):
    """Raised when trying to insert a user with an email that already exists."""


class InvalidUserDataError(Exception):
    """Raised when DB-level constraints fail (e.g., bad CHECK constraints)."""


async def get_by_id(session: AsyncSession, user_id: UUID) -> Optional[User]:
    return await session.get(User, user_id)


async def get_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """
    Returns a User by email (normalized to lowercase) or None.
    """
    email = email.strip().lower()
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    password_hash: str,
    first_name: str,
    last_name: str,
    phone: Optional[str] = None,
    role: UserRole | str = UserRole.PATIENT,
    is_active: bool = True,
) -> User:
    """
    Inserts a new user row and returns the persisted ORM instance.
    Expects an already *hashed* password.
    """
    role_value = role.value if isinstance(role, UserRole) else str(role)

    user = User(
        email=email.strip().lower(),
        password_hash=password_hash,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        phone=phone,
        role=role_value,
        is_active=is_active,
    )

    session.add(user)
    try:
        # Flush to force INSERT and surface constraint violations here
        await session.flush()
    except IntegrityError as exc:
        message = str(exc.orig).lower() if exc.orig else str(exc).lower()
        if "uq_users_email" in message or "unique" in message:
            raise EmailAlreadyExistsError("Email already registered") from exc
        raise InvalidUserDataError("User data violates DB constraints") from exc

    await session.refresh(user)
    return user


async def list_users_repo(
    session: AsyncSession,
    *,
    role: Optional[str],
    is_active: Optional[bool],
    q: Optional[str],
    limit: int,
    offset: int,
) -> tuple[list[User], int]:
    conditions = []
    if role:
        conditions.append(User.role == role)
    if is_active is not None:
        conditions.append(User.is_active == is_active)
    if q:
        term = f"%{q.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(User.email).like(term),
                func.lower(User.first_name).like(term),
                func.lower(User.last_name).like(term),
            )
        )

    total_stmt = select(func.count()).select_from(User).where(*conditions)
    total = (await session.execute(total_stmt)).scalar_one()

    stmt = (
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id)  # tie-breaker for stable paging
        .limit(limit)
        .offset(offset)
    )
    rows = (await session.execute(stmt)).scalars().all()
    return list(rows), total


async def count_by_role(session: AsyncSession) -> dict[str, int]:
    rows = await session.execute(select(User.role, func.count()).group_by(User.role))
    return {role: count for role, count in rows.all()}
