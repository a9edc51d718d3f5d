"""Account and authentication schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class AccountRole(str, Enum):
    """Account role enumeration."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    USER = "user"


class Gender(str, Enum):
    """Gender enumeration."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Actor(BaseModel):
    """Verified identity performing an operation."""

    account_id: UUID
    role: AccountRole


class RegisterRequest(BaseModel):
    """Schema for self-registration."""

    name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: AccountRole = AccountRole.USER

    # Doctor profile fields, used when role is doctor
    specialization: str | None = Field(None, min_length=1, max_length=200)
    experience: int | None = Field(None, ge=0)
    education: str | None = None
    description: str | None = None
    consultation_fee: float | None = Field(None, ge=0)

    # Patient profile fields, used when role is user
    age: int | None = Field(None, ge=0, le=150)
    gender: Gender | None = None
    disease_type: str | None = Field(None, max_length=200)
    symptoms: str | None = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim surrounding whitespace."""
        return v.strip()


class LoginRequest(BaseModel):
    """Schema for login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AccountResponse(BaseModel):
    """Account as exposed by the API; never includes the credential hash."""

    id: UUID
    name: str
    email: str
    role: AccountRole
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Token issued after register or login."""

    message: str
    token: str
    user: AccountResponse


def normalize_email(email: str) -> str:
    """Case-normalize an email address for storage and lookup."""
    return email.strip().lower()
