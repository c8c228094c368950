# medslot/modules/users/schemas.py
from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    SecretStr,
    StringConstraints,
    field_validator,
    model_validator,
)

from medslot.modules.doctors.schemas import check_duration_floor


class Role(str, Enum):
    patient = "patient"
    doctor = "doctor"
    admin = "admin"


NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
PhoneStr = Annotated[str, StringConstraints(pattern=r"^\+?[1-9]\d{1,14}$")]  # E.164 simple

PASSWORD_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d\S]{8,64}$")


class RegisterRequest(BaseModel):
    email: EmailStr = Field(...)
    password: SecretStr = Field(..., description="8–64 chars, at least one letter and one digit")
    first_name: NameStr
    last_name: NameStr
    role: Role = Role.patient
    phone: Optional[PhoneStr] = None

    # Doctor profile (only for role=doctor)
    specialization: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]] = None
    appointment_duration_minutes: Optional[int] = Field(default=None, le=24 * 60)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: SecretStr) -> SecretStr:
        if not PASSWORD_RE.match(v.get_secret_value()):
            raise ValueError(
                "Password must be 8–64 chars and include at least one letter and one digit"
            )
        return v

    @field_validator("appointment_duration_minutes")
    @classmethod
    def check_min_duration(cls, v: Optional[int]) -> Optional[int]:
        return check_duration_floor(v)

    @field_validator("role")
    @classmethod
    def no_self_registered_admins(cls, v: Role) -> Role:
        if v is Role.admin:
            raise ValueError("Admin accounts cannot be self-registered")
        return v

    @model_validator(mode="after")
    def doctor_needs_specialization(self) -> "RegisterRequest":
        if self.role is Role.doctor and not self.specialization:
            raise ValueError("specialization is required for doctors")
        return self


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    role: Role
    first_name: str
    last_name: str
    phone: Optional[str] = None
    is_active: bool
    doctor_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


RegisterResponse = UserPublic
MeResponse = UserPublic


class ErrorResponse(BaseModel):
    error: str
    message: str
    status: int


# --- Login / Refresh ---

class LoginRequest(BaseModel):
    email: EmailStr
    password: SecretStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class TokenPair(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    refresh_token: str | None = None


LoginResponse = TokenPair


class RefreshRequest(BaseModel):
    refresh_token: str


# --- Admin user management ---

class UserListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    role: Role
    first_name: str
    last_name: str
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime


class UserPage(BaseModel):
    items: List[UserListItem]
    total: int
    limit: int
    offset: int
    has_next: bool


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserRoleUpdate(BaseModel):
    role: Role
