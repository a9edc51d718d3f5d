"""Patient profile service."""

from uuid import UUID

import structlog

from clinic_booking.core.exceptions import NotFoundException
from clinic_booking.models.accounts import accounts
from clinic_booking.models.appointments import appointments
from clinic_booking.models.user_profiles import user_profiles
from clinic_booking.schemas.accounts import AccountResponse, Actor
from clinic_booking.schemas.appointments import AppointmentResponse
from clinic_booking.schemas.users import (
    PatientDetails,
    UserProfileFields,
    UserProfileResponse,
    UserProfileUpdate,
    UserProfileUpdated,
    UserWithProfile,
)
from clinic_booking.services.record_store import RecordStore

logger = structlog.get_logger()

# Appointments shown to a doctor looking up a patient
PATIENT_HISTORY_LIMIT = 20


class UserService:
    """Service for patient profiles."""

    def __init__(self, store: RecordStore):
        """Initialize service with a record store."""
        self.store = store

    async def _get_account(self, account_id: UUID) -> dict:
        account = await self.store.find_by_id(accounts, account_id)
        if not account:
            raise NotFoundException("User not found")
        return account

    async def create_profile(self, user_id: UUID, data: UserProfileFields) -> UserProfileResponse:
        """Create the medical profile for a user account."""
        values = {"user_id": user_id, "medical_reports": []}
        values.update(data.model_dump(mode="json", exclude_none=True))

        row = await self.store.create(user_profiles, values)
        return UserProfileResponse.model_validate(row)

    async def get_profile(self, actor: Actor) -> UserWithProfile:
        """The user's account and medical profile, if one was filled in."""
        account = await self._get_account(actor.account_id)
        profile = await self.store.find_one(user_profiles, user_id=account["id"])

        return UserWithProfile(
            user=AccountResponse.model_validate(account),
            profile=UserProfileResponse.model_validate(profile) if profile else None,
        )

    async def update_profile(self, actor: Actor, data: UserProfileUpdate) -> UserProfileUpdated:
        """
        Update the user's name and medical profile.

        Only fields present in the payload are written. The profile is created
        on first update.

        Args:
            actor: Requesting user
            data: Profile fields, optionally with a new account name

        Returns:
            Updated account and profile
        """
        account = await self._get_account(actor.account_id)
        if data.name:
            account = await self.store.save(accounts, account["id"], {"name": data.name.strip()})

        updates = data.model_dump(mode="json", exclude_unset=True, exclude={"name"})

        profile = await self.store.find_one(user_profiles, user_id=account["id"])
        if profile is None:
            result = await self.create_profile(
                account["id"], UserProfileFields.model_validate(updates)
            )
        elif updates:
            saved = await self.store.save(user_profiles, profile["id"], updates)
            result = UserProfileResponse.model_validate(saved)
        else:
            result = UserProfileResponse.model_validate(profile)

        logger.info("user_profile_updated", user_id=str(account["id"]), fields=sorted(updates))
        return UserProfileUpdated(user=AccountResponse.model_validate(account), profile=result)

    async def get_patient_details(self, actor: Actor, patient_id: UUID) -> PatientDetails:
        """
        A patient's profile with their recent appointments with this doctor.

        Raises:
            NotFoundException: If the patient has no profile
        """
        profile = await self.store.find_one(user_profiles, user_id=patient_id)
        if not profile:
            raise NotFoundException("User not found")
        account = await self._get_account(patient_id)

        rows = await self.store.find(
            appointments,
            order_by=[appointments.c.created_at.desc()],
            limit=PATIENT_HISTORY_LIMIT,
            user_id=patient_id,
            doctor_id=actor.account_id,
        )
        return PatientDetails(
            user=AccountResponse.model_validate(account),
            profile=UserProfileResponse.model_validate(profile),
            appointments=[AppointmentResponse.model_validate(row) for row in rows],
        )
