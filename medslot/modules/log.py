# medslot/modules/log.py
from __future__ import annotations

import logging
from enum import Enum
from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.modules.users.models import AuditLog

logger = logging.getLogger("medslot.audit")


class AuditAction(str, Enum):
    CREATE_APPOINTMENT = "CREATE_APPOINTMENT"
    RESCHEDULE_APPOINTMENT = "RESCHEDULE_APPOINTMENT"
    CANCEL_APPOINTMENT = "CANCEL_APPOINTMENT"
    COMPLETE_APPOINTMENT = "COMPLETE_APPOINTMENT"
    NOSHOW_APPOINTMENT = "NOSHOW_APPOINTMENT"
    SET_WEEKLY_TEMPLATE = "SET_WEEKLY_TEMPLATE"
    UPSERT_OVERRIDE = "UPSERT_OVERRIDE"
    DELETE_OVERRIDE = "DELETE_OVERRIDE"
    UPDATE_DOCTOR_PROFILE = "UPDATE_DOCTOR_PROFILE"
    UPDATE_USER_STATUS = "UPDATE_USER_STATUS"
    UPDATE_USER_ROLE = "UPDATE_USER_ROLE"


async def write_audit_log(
    session: AsyncSession,
    user_id: UUID | None,
    action: AuditAction,
    details: str | None = None,
) -> None:
    """
    Write an audit log entry in the caller's transaction: if the operation
    rolls back, so does its audit row.
    """
    await session.execute(
        insert(AuditLog).values(
            user_id=user_id,
            action=action.value,
            details=details,
        )
    )
    logger.info("%s by %s: %s", action.value, user_id, details or "-")
