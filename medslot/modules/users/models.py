# medslot/modules/users/models.py
from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from medslot.db.base import Base, ReprMixin, TimestampMixin, UUIDPKMixin


class AuditLog(Base):
    """One row per booking/availability mutation, written in the same transaction."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text)
    timestamp: Mapped[dt.datetime] = mapped_column(server_default=func.now())


class UserRole(PyEnum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class User(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=UserRole.PATIENT.value
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        CheckConstraint("email = lower(email)", name="email_lowercase"),
        CheckConstraint("role IN ('patient', 'doctor', 'admin')", name="role_valid"),
        Index("ix_users_role", "role"),
        Index("ix_users_active_role", "is_active", "role"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def role_enum(self) -> UserRole:
        """Get role as UserRole enum instance."""
        return UserRole(self.role)
