# medslot/modules/doctors/models.py
from __future__ import annotations

import uuid
import datetime as dt
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medslot.db.base import HHMM, Base, ReprMixin, TimestampMixin, UUIDPKMixin


_DAY_NAMES = "'Sunday','Monday','Tuesday','Wednesday','Thursday','Friday','Saturday'"


class Doctor(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A doctor's schedule profile. One per user with role 'doctor'.
    """

    __tablename__ = "doctors"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(101), nullable=False)
    specialization: Mapped[str] = mapped_column(String(100), nullable=False)

    # Shared by every new slot; appointments snapshot it at booking time.
    appointment_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    # Stored order matters: the first rule matching a weekday wins.
    weekly_rules: Mapped[List["WeeklyAvailabilityRule"]] = relationship(
        back_populates="doctor",
        cascade="all, delete-orphan",
        order_by="WeeklyAvailabilityRule.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_doctors_user_id"),
        CheckConstraint("appointment_duration_minutes > 0", name="duration_positive"),
    )


class WeeklyAvailabilityRule(Base):
    """Recurring working window for one day of the week."""

    __tablename__ = "weekly_availability_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    day_of_week: Mapped[str] = mapped_column(String(9), nullable=False)
    start_time: Mapped[str] = mapped_column(HHMM, nullable=False)
    end_time: Mapped[str] = mapped_column(HHMM, nullable=False)

    doctor: Mapped[Doctor] = relationship(back_populates="weekly_rules")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="rule_time_order"),
        CheckConstraint(f"day_of_week IN ({_DAY_NAMES})", name="rule_day_valid"),
    )


class AvailabilityOverride(Base):
    """
    Exception to the weekly template for one exact date: either a day off
    (is_working = false, no times) or different hours.
    """

    __tablename__ = "availability_overrides"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    is_working: Mapped[bool] = mapped_column(Boolean, nullable=False)
    start_time: Mapped[Optional[str]] = mapped_column(HHMM, nullable=True)
    end_time: Mapped[Optional[str]] = mapped_column(HHMM, nullable=True)

    __table_args__ = (
        UniqueConstraint("doctor_id", "date", name="uq_override_doctor_date"),
        CheckConstraint(
            "start_time IS NULL OR end_time IS NULL OR start_time < end_time",
            name="override_time_order",
        ),
    )
