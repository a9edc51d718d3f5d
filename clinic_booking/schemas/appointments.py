"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from clinic_booking.schemas.types import TimeOfDay


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DECLINED = "declined"


class ActorRole(str, Enum):
    """Who wrote a note or asked for a reschedule."""

    DOCTOR = "doctor"
    USER = "user"
    ADMIN = "admin"
    SYSTEM = "system"


class RescheduleEntry(BaseModel):
    """One entry of the reschedule history."""

    previous_date: date | None = None
    new_date: date | None = None
    reason: str | None = None
    requested_by: ActorRole
    actioned_by: UUID | None = None
    actioned_at: datetime


class NoteEntry(BaseModel):
    """One appended note."""

    author: UUID | None = None
    role: ActorRole
    content: str
    created_at: datetime


class FileReference(BaseModel):
    """Opaque reference to an uploaded file."""

    file_name: str = Field(..., min_length=1)
    file_url: str = Field(..., min_length=1)
    uploaded_at: datetime | None = None


class AppointmentCreate(BaseModel):
    """Schema for a user requesting an appointment."""

    disease_category: str = Field(..., min_length=1, max_length=200)
    symptoms: str | None = Field(None, max_length=2000)
    details: str | None = Field(None, max_length=2000)
    preferred_date: date
    preferred_start: TimeOfDay | None = None
    preferred_end: TimeOfDay | None = None
    documents: list[FileReference] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_window(self) -> "AppointmentCreate":
        """Validate end time is after start time."""
        if self.preferred_start and self.preferred_end and self.preferred_end <= self.preferred_start:
            raise ValueError("preferred_end must be after preferred_start")
        return self


class AppointmentResponse(BaseModel):
    """Full appointment snapshot."""

    id: UUID
    user_id: UUID
    doctor_id: UUID | None = None
    disease_category: str
    symptoms: str | None = None
    details: str | None = None
    preferred_date: date
    preferred_start: TimeOfDay | None = None
    preferred_end: TimeOfDay | None = None
    scheduled_date: date | None = None
    scheduled_start: TimeOfDay | None = None
    scheduled_end: TimeOfDay | None = None
    status: AppointmentStatus
    cancellation_reason: str | None = None
    confirmation_message: str | None = None
    confirmation_sent_at: datetime | None = None
    completed_at: datetime | None = None
    follow_up_date: date | None = None
    reschedule_history: list[RescheduleEntry] = Field(default_factory=list)
    notes: list[NoteEntry] = Field(default_factory=list)
    prescriptions: list[FileReference] = Field(default_factory=list)
    documents: list[FileReference] = Field(default_factory=list)
    created_by: UUID | None = None
    updated_by: UUID | None = None
    assigned_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AppointmentAction(BaseModel):
    """User-initiated cancel or reschedule request."""

    action: Literal["cancel", "reschedule"]
    reason: str | None = Field(None, max_length=1000)
    new_date: date | None = None
    new_start: TimeOfDay | None = None
    new_end: TimeOfDay | None = None

    @model_validator(mode="after")
    def check_reschedule(self) -> "AppointmentAction":
        """A reschedule must name the new day."""
        if self.action == "reschedule" and self.new_date is None:
            raise ValueError("new_date is required to reschedule")
        return self


class DoctorAppointmentUpdate(BaseModel):
    """Doctor-side outcome update."""

    status: AppointmentStatus | None = None
    notes: str | None = Field(None, max_length=4000)
    prescription: FileReference | None = None
    follow_up_date: date | None = None
    scheduled_date: date | None = None
    scheduled_start: TimeOfDay | None = None
    scheduled_end: TimeOfDay | None = None
    reason: str | None = Field(None, max_length=1000)


class AdminAppointmentUpdate(BaseModel):
    """Admin override of status or committed slot."""

    status: AppointmentStatus | None = None
    scheduled_date: date | None = None
    scheduled_start: TimeOfDay | None = None
    scheduled_end: TimeOfDay | None = None
    reason: str | None = Field(None, max_length=1000)


class AssignDoctorRequest(BaseModel):
    """
    Admin request binding a doctor to an appointment.

    Date and times are kept as raw strings; the assignment workflow parses
    them and reports malformed values as rejections.
    """

    doctor_id: UUID
    scheduled_date: str | None = None
    scheduled_start: str | None = None
    scheduled_end: str | None = None
    notes: str | None = Field(None, max_length=4000)


class AssignmentResponse(BaseModel):
    """Result of a committed assignment."""

    message: str
    appointment: AppointmentResponse
    availability_warning: bool


class NoteCreate(BaseModel):
    """Free-text note to append."""

    content: str = Field(..., min_length=1, max_length=4000)


class AppointmentFilters(BaseModel):
    """Schema for admin appointment filtering."""

    preferred_date: date | None = None
    doctor_id: UUID | None = None
    status: AppointmentStatus | None = None


class UserDashboard(BaseModel):
    """User dashboard overview."""

    upcoming: list[AppointmentResponse]
    history: list[AppointmentResponse]
    stats: dict[str, int]


class PatientSummary(BaseModel):
    """Distinct patient seen by a doctor with their latest appointment."""

    user: dict
    last_appointment: AppointmentResponse
