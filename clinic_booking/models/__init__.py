"""Database models."""

from clinic_booking.models.accounts import accounts
from clinic_booking.models.appointments import appointments
from clinic_booking.models.base import metadata
from clinic_booking.models.doctor_profiles import doctor_profiles
from clinic_booking.models.user_profiles import user_profiles

__all__ = [
    "accounts",
    "appointments",
    "doctor_profiles",
    "metadata",
    "user_profiles",
]
