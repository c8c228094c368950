# medslot/modules/doctors/schemas.py
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from medslot.core.config import settings
from medslot.scheduling import timegrid
from medslot.scheduling.availability import DayOfWeek, validate_range


def check_duration_floor(v: Optional[int]) -> Optional[int]:
    if v is not None and v < settings.MIN_APPOINTMENT_DURATION:
        raise ValueError(
            f"appointment_duration_minutes must be at least {settings.MIN_APPOINTMENT_DURATION}"
        )
    return v


class WeeklyRuleIn(BaseModel):
    day_of_week: DayOfWeek
    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")

    @field_validator("start_time", "end_time")
    @classmethod
    def check_hhmm(cls, v: str) -> str:
        timegrid.parse(v)
        return v

    @model_validator(mode="after")
    def check_start_before_end(self) -> "WeeklyRuleIn":
        validate_range(self.start_time, self.end_time)
        return self


class WeeklyRulePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_of_week: DayOfWeek
    start_time: str
    end_time: str


class WeeklyTemplateUpdate(BaseModel):
    """Full replacement of the weekly template. An empty list means no recurring hours."""

    rules: List[WeeklyRuleIn]


class OverrideUpsert(BaseModel):
    date: date
    is_working: bool
    start_time: Optional[str] = Field(default=None, description="HH:MM, required if working")
    end_time: Optional[str] = Field(default=None, description="HH:MM, required if working")

    @model_validator(mode="after")
    def check_times_iff_working(self) -> "OverrideUpsert":
        if not self.is_working:
            # A day off carries no hours.
            self.start_time = None
            self.end_time = None
            return self
        if not self.start_time or not self.end_time:
            raise ValueError("start_time and end_time are required if working")
        validate_range(self.start_time, self.end_time)
        return self


class OverridePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    is_working: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class DoctorPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    name: str
    specialization: str
    appointment_duration_minutes: int


class DoctorDetail(DoctorPublic):
    weekly_rules: List[WeeklyRulePublic] = []


class DoctorProfileUpdate(BaseModel):
    specialization: Optional[str] = Field(default=None, min_length=1, max_length=100)
    appointment_duration_minutes: Optional[int] = Field(default=None, le=24 * 60)

    @field_validator("appointment_duration_minutes")
    @classmethod
    def check_min_duration(cls, v: Optional[int]) -> Optional[int]:
        return check_duration_floor(v)

    @model_validator(mode="after")
    def check_not_empty(self) -> "DoctorProfileUpdate":
        if self.specialization is None and self.appointment_duration_minutes is None:
            raise ValueError("No valid fields provided for update")
        return self


class DoctorPage(BaseModel):
    items: List[DoctorPublic]
    total: int
    limit: int
    offset: int
    has_next: bool
