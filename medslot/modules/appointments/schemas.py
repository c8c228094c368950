# medslot/modules/appointments/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator

from medslot.scheduling import timegrid
from medslot.scheduling.lifecycle import AppointmentStatus

ReasonStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)]


def _hhmm(v: str) -> str:
    timegrid.parse(v)
    return v


class AppointmentCreateRequest(BaseModel):
    """
    Payload to book an appointment.
    - patients book for themselves; patient_id is taken from the caller.
    - admins book on behalf of a patient and must send patient_id.
    """
    model_config = ConfigDict(extra="forbid")

    doctor_id: UUID
    appointment_date: date
    start_time: str = Field(..., description="HH:MM, one of the doctor's available slots")
    reason: ReasonStr
    patient_phone: Optional[str] = Field(default=None, max_length=32)
    patient_id: Optional[UUID] = None

    @field_validator("start_time")
    @classmethod
    def check_start(cls, v: str) -> str:
        return _hhmm(v)


# --- Update variants: one fixed field set per operation ---

class RescheduleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: Literal["reschedule"]
    appointment_date: date
    start_time: str
    reason: Optional[ReasonStr] = None

    @field_validator("start_time")
    @classmethod
    def check_start(cls, v: str) -> str:
        return _hhmm(v)


class CancelRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: Literal["cancel"]


class CompleteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: Literal["complete"]
    # Blank remarks are rejected by the lifecycle with remarks_required.
    remarks: Optional[str] = None


class NoShowRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: Literal["no_show"]


AppointmentUpdateRequest = Annotated[
    Union[RescheduleRequest, CancelRequest, CompleteRequest, NoShowRequest],
    Field(discriminator="action"),
]


class AppointmentPublic(BaseModel):
    """
    DTO returns a detailed appointment.
    """
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    appointment_date: date
    start_time: str
    end_time: str
    duration_minutes: int
    status: AppointmentStatus
    reason: str
    remarks: Optional[str] = None
    patient_phone: str = ""
    created_at: datetime
    updated_at: datetime


class AppointmentListParams(BaseModel):
    doctor_id: Optional[UUID] = None
    patient_id: Optional[UUID] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    status: Optional[AppointmentStatus] = None

    # Pagination
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_range_order(self) -> "AppointmentListParams":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must be on or before date_to")
        return self


class AppointmentListPage(BaseModel):
    """
    Page the appointments list (with pagination).
    """
    items: List[AppointmentPublic]
    total: int
    limit: int
    offset: int
    has_next: bool
