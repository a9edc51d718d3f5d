"""Doctor profile and availability schemas."""

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any
from uuid import UUID

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from clinic_booking.schemas.accounts import AccountResponse
from clinic_booking.schemas.appointments import AppointmentResponse
from clinic_booking.schemas.types import TimeOfDay

logger = structlog.get_logger()


class BreakSlot(BaseModel):
    """Break inside an availability slot."""

    start: TimeOfDay
    end: TimeOfDay


class AvailabilitySlot(BaseModel):
    """A declared open interval on one calendar day."""

    date: date
    start_time: TimeOfDay
    end_time: TimeOfDay
    break_slots: list[BreakSlot] = Field(default_factory=list)
    max_patients: int = Field(default=1, ge=1)
    is_closed: bool = False

    @model_validator(mode="after")
    def check_interval(self) -> "AvailabilitySlot":
        """Ensure the slot ends after it starts."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


def parse_slots(raw_slots: Iterable[dict | AvailabilitySlot]) -> list[AvailabilitySlot]:
    """
    Validate stored slot dicts into slot models.

    Slots that no longer validate (for example an unpadded ``"9:00"`` written
    before times were checked) are skipped and logged.
    """
    slots = []
    for raw in raw_slots:
        if isinstance(raw, AvailabilitySlot):
            slots.append(raw)
            continue
        try:
            slots.append(AvailabilitySlot.model_validate(raw))
        except ValidationError as e:
            logger.warning("availability_slot_skipped", slot=raw, errors=e.error_count())
    return slots


class DoctorProfileResponse(BaseModel):
    """Doctor availability profile."""

    id: UUID
    doctor_id: UUID
    specialization: str
    experience: int = 0
    education: str | None = None
    description: str | None = None
    photo_url: str | None = None
    consultation_fee: float | None = None
    availability: list[AvailabilitySlot] = Field(default_factory=list)
    emergency_holidays: list[date] = Field(default_factory=list)
    rating_average: float = 0.0
    rating_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("availability", mode="before")
    @classmethod
    def skip_invalid_slots(cls, v: Any) -> Any:
        """Drop stored slots that no longer validate."""
        return parse_slots(v) if isinstance(v, list) else v


class DoctorCreate(BaseModel):
    """Schema for an admin creating a doctor account."""

    name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    specialization: str = Field(..., min_length=1, max_length=200)
    experience: int = Field(default=0, ge=0)
    education: str | None = None
    description: str | None = None
    consultation_fee: float | None = Field(None, ge=0)
    availability: list[AvailabilitySlot] = Field(default_factory=list)


class DoctorStatusUpdate(BaseModel):
    """Schema for activating or deactivating a doctor."""

    is_active: bool


class AvailabilityUpdate(BaseModel):
    """Replacement availability calendar."""

    availability: list[AvailabilitySlot] = Field(default_factory=list)
    emergency_holidays: list[date] = Field(default_factory=list)


class DoctorProfileUpdate(BaseModel):
    """Schema for a doctor editing their own profile."""

    name: str | None = Field(None, min_length=2, max_length=120)
    specialization: str | None = Field(None, min_length=1, max_length=200)
    experience: int | None = Field(None, ge=0)
    education: str | None = None
    description: str | None = None
    consultation_fee: float | None = Field(None, ge=0)


class DoctorWithProfile(BaseModel):
    """Doctor account joined with its profile, if any."""

    account: AccountResponse
    profile: DoctorProfileResponse | None = None


class DoctorListing(BaseModel):
    """Public view of an active doctor."""

    id: UUID
    name: str
    email: str
    specialization: str
    experience: int
    education: str | None = None
    description: str | None = None
    consultation_fee: float | None = None
    photo_url: str | None = None
    availability: list[AvailabilitySlot]
    ratings: dict[str, Any]


class DoctorDashboard(BaseModel):
    """Doctor dashboard overview."""

    profile: DoctorProfileResponse | None
    stats: dict[str, int]
    upcoming_appointments: list[AppointmentResponse]
    recent_activities: list[AppointmentResponse]
