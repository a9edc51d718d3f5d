"""Patient profile schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from clinic_booking.schemas.accounts import AccountResponse, Gender
from clinic_booking.schemas.appointments import AppointmentResponse, FileReference


class EmergencyContact(BaseModel):
    """Person to reach on the patient's behalf."""

    name: str | None = Field(None, max_length=120)
    phone: str | None = Field(None, max_length=40)
    relation: str | None = Field(None, max_length=60)


class UserProfileFields(BaseModel):
    """Medical background shared by create and update payloads."""

    age: int | None = Field(None, ge=0, le=150)
    gender: Gender | None = None
    disease_type: str | None = Field(None, max_length=200)
    symptoms: str | None = Field(None, max_length=2000)
    medical_history: str | None = Field(None, max_length=5000)
    emergency_contact: EmergencyContact | None = None


class UserProfileUpdate(UserProfileFields):
    """Schema for a user editing their own profile; name lives on the account."""

    name: str | None = Field(None, min_length=2, max_length=120)


class UserProfileResponse(UserProfileFields):
    """Patient profile as exposed by the API."""

    id: UUID
    user_id: UUID
    medical_reports: list[FileReference] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserWithProfile(BaseModel):
    """User account joined with its profile, if any."""

    user: AccountResponse
    profile: UserProfileResponse | None = None


class UserProfileUpdated(UserWithProfile):
    """Result of a profile update."""

    message: str = "Profile updated successfully"


class PatientDetails(BaseModel):
    """What a doctor sees about one of their patients."""

    user: AccountResponse
    profile: UserProfileResponse
    appointments: list[AppointmentResponse]
