# medslot/scheduling/lifecycle.py
"""
Appointment lifecycle

    scheduled -> completed | cancelled | noshow

`scheduled` is the only non-terminal state. Every caller is an explicit
Actor resolved per request; who may trigger which transition is decided
here, not by the transport layer.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from medslot.core.errors import Forbidden, InvalidTransition, RemarksRequired


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NOSHOW = "noshow"

    @property
    def is_terminal(self) -> bool:
        return self is not AppointmentStatus.SCHEDULED


TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NOSHOW}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NOSHOW: frozenset(),
}


@dataclass(frozen=True)
class Actor:
    """Request-scoped identity handed to every lifecycle operation."""

    user_id: uuid.UUID
    role: str  # "patient" | "doctor" | "admin"
    doctor_id: Optional[uuid.UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def is_patient_owner(self, patient_id: uuid.UUID) -> bool:
        return self.role == "patient" and self.user_id == patient_id

    def is_assigned_doctor(self, doctor_id: uuid.UUID) -> bool:
        return self.role == "doctor" and self.doctor_id is not None and self.doctor_id == doctor_id


def ensure_transition(current: str | AppointmentStatus, target: AppointmentStatus) -> None:
    current = AppointmentStatus(current)
    if target not in TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot change status from '{current.value}' to '{target.value}'"
        )


def ensure_reschedulable(current: str | AppointmentStatus) -> None:
    current = AppointmentStatus(current)
    if current.is_terminal:
        raise InvalidTransition(
            f"Cannot change date or time of an appointment with status '{current.value}'"
        )


def require_remarks(remarks: Optional[str]) -> str:
    if remarks is None or not remarks.strip():
        raise RemarksRequired("Remarks are required to mark an appointment as completed")
    return remarks.strip()


# Authorization

def ensure_can_view(actor: Actor, *, patient_id: uuid.UUID, doctor_id: uuid.UUID) -> None:
    if actor.is_admin or actor.is_patient_owner(patient_id) or actor.is_assigned_doctor(doctor_id):
        return
    raise Forbidden("Not authorized to access this appointment", code="not_owner")


def ensure_can_reschedule_or_cancel(
    actor: Actor, *, patient_id: uuid.UUID, doctor_id: uuid.UUID
) -> None:
    # Owning patient, assigned doctor, or an administrative override.
    ensure_can_view(actor, patient_id=patient_id, doctor_id=doctor_id)


def ensure_assigned_doctor(actor: Actor, *, doctor_id: uuid.UUID) -> None:
    if not actor.is_assigned_doctor(doctor_id):
        raise Forbidden("Only the assigned doctor can do this", code="doctor_only")
