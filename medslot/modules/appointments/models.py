# medslot/modules/appointments/models.py
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medslot.db.base import HHMM, Base, ReprMixin, TimestampMixin, UUIDPKMixin
from medslot.modules.doctors.models import Doctor
from medslot.modules.users.models import User
from medslot.scheduling.lifecycle import AppointmentStatus

# Partial unique index name; the repository matches IntegrityErrors on it.
SCHEDULED_SLOT_INDEX = "uq_appt_doctor_day_start_scheduled"

_SCHEDULED_ONLY = text("status = 'scheduled'")


class Appointment(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Appointment between a patient (User) and a doctor profile.

    end_time and duration_minutes are fixed at booking time from the doctor's
    duration then in force; later profile changes never resize them.
    """

    __tablename__ = "appointments"

    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctors.id", ondelete="RESTRICT"),
        nullable=False,
    )

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(HHMM, nullable=False)
    end_time: Mapped[str] = mapped_column(HHMM, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AppointmentStatus.SCHEDULED.value,
        server_default=AppointmentStatus.SCHEDULED.value,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    patient_phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")

    patient: Mapped[Optional[User]] = relationship(
        "User",
        foreign_keys=[patient_id],
        lazy="joined",
    )
    doctor: Mapped[Optional[Doctor]] = relationship(
        "Doctor",
        foreign_keys=[doctor_id],
        lazy="joined",
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="appt_time_order"),
        CheckConstraint("duration_minutes > 0", name="appt_duration_positive"),
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled', 'noshow')",
            name="appt_status_valid",
        ),
        # Double-booking guard: one *scheduled* row per doctor, day, start.
        # Cancelled/completed/noshow rows keep their times without blocking.
        Index(
            SCHEDULED_SLOT_INDEX,
            "doctor_id", "appointment_date", "start_time",
            unique=True,
            postgresql_where=_SCHEDULED_ONLY,
            sqlite_where=_SCHEDULED_ONLY,
        ),
        Index("ix_appt_doctor_date_status", "doctor_id", "appointment_date", "status"),
        Index("ix_appt_patient_date", "patient_id", "appointment_date"),
    )
