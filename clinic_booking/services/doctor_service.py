"""Doctor service for business logic."""

from datetime import date
from uuid import UUID

import structlog

from clinic_booking.core.exceptions import (
    ConflictException,
    DuplicateRecordException,
    NotFoundException,
)
from clinic_booking.core.security import get_password_hash
from clinic_booking.models.accounts import accounts
from clinic_booking.models.doctor_profiles import doctor_profiles
from clinic_booking.schemas.accounts import AccountResponse, AccountRole, Actor, normalize_email
from clinic_booking.schemas.doctors import (
    AvailabilityUpdate,
    DoctorCreate,
    DoctorListing,
    DoctorProfileResponse,
    DoctorProfileUpdate,
    DoctorWithProfile,
    parse_slots,
)
from clinic_booking.services.record_store import RecordStore

logger = structlog.get_logger()


class DoctorService:
    """Service for doctor accounts and availability profiles."""

    def __init__(self, store: RecordStore):
        """Initialize service with a record store."""
        self.store = store

    async def _get_doctor_account(self, doctor_id: UUID) -> dict:
        doctor = await self.store.find_by_id(accounts, doctor_id)
        if not doctor or doctor["role"] != AccountRole.DOCTOR.value:
            raise NotFoundException("Doctor not found")
        return doctor

    async def create_doctor(self, data: DoctorCreate) -> DoctorWithProfile:
        """
        Create a doctor account together with its profile.

        Raises:
            ConflictException: If the email is already registered
        """
        email = normalize_email(data.email)
        if await self.store.find_one(accounts, email=email):
            raise ConflictException("Email already registered")

        try:
            account = await self.store.create(
                accounts,
                {
                    "name": data.name.strip(),
                    "email": email,
                    "password_hash": get_password_hash(data.password),
                    "role": AccountRole.DOCTOR.value,
                },
            )
        except DuplicateRecordException as e:
            raise ConflictException("Email already registered") from e

        profile = await self.create_profile(
            account["id"],
            specialization=data.specialization,
            experience=data.experience,
            education=data.education,
            description=data.description,
            consultation_fee=data.consultation_fee,
            availability=[slot.model_dump(mode="json") for slot in data.availability],
        )

        logger.info("doctor_created", doctor_id=str(account["id"]))
        return DoctorWithProfile(
            account=AccountResponse.model_validate(account),
            profile=profile,
        )

    async def create_profile(self, doctor_id: UUID, **fields) -> DoctorProfileResponse:
        """Create the availability profile for a doctor account."""
        values = {"doctor_id": doctor_id, "availability": [], "emergency_holidays": []}
        values.update({key: value for key, value in fields.items() if value is not None})

        row = await self.store.create(doctor_profiles, values)
        return DoctorProfileResponse.model_validate(row)

    async def list_doctors(self) -> list[DoctorWithProfile]:
        """Every doctor account with its profile, if configured."""
        doctors = await self.store.find(
            accounts,
            order_by=[accounts.c.created_at.desc()],
            role=AccountRole.DOCTOR.value,
        )
        profiles = await self.store.find(
            doctor_profiles,
            doctor_id=[doctor["id"] for doctor in doctors],
        )
        by_doctor = {profile["doctor_id"]: profile for profile in profiles}

        return [
            DoctorWithProfile(
                account=AccountResponse.model_validate(doctor),
                profile=(
                    DoctorProfileResponse.model_validate(by_doctor[doctor["id"]])
                    if doctor["id"] in by_doctor
                    else None
                ),
            )
            for doctor in doctors
        ]

    async def list_patients(self) -> list[AccountResponse]:
        """Every account with the user role."""
        rows = await self.store.find(
            accounts,
            order_by=[accounts.c.created_at.desc()],
            role=AccountRole.USER.value,
        )
        return [AccountResponse.model_validate(row) for row in rows]

    async def set_doctor_active(self, doctor_id: UUID, is_active: bool) -> AccountResponse:
        """Activate or deactivate a doctor account."""
        await self._get_doctor_account(doctor_id)
        row = await self.store.save(accounts, doctor_id, {"is_active": is_active})
        if row is None:
            raise NotFoundException("Doctor not found")

        logger.info("doctor_status_updated", doctor_id=str(doctor_id), is_active=is_active)
        return AccountResponse.model_validate(row)

    async def delete_doctor(self, doctor_id: UUID) -> None:
        """Delete a doctor's profile, then the account."""
        await self._get_doctor_account(doctor_id)
        await self.store.delete_one(doctor_profiles, doctor_id=doctor_id)
        await self.store.delete_one(accounts, id=doctor_id)
        logger.info("doctor_deleted", doctor_id=str(doctor_id))

    async def list_available_doctors(
        self,
        specialty: str | None = None,
        min_experience: int | None = None,
        on_date: date | None = None,
    ) -> list[DoctorListing]:
        """
        Active doctors with a profile, for users browsing.

        Args:
            specialty: Exact specialization to match
            min_experience: Minimum years of experience
            on_date: Only doctors with an availability slot on this day

        Returns:
            Public doctor listings
        """
        criteria: dict = {}
        if specialty:
            criteria["specialization"] = specialty

        profiles = await self.store.find(doctor_profiles, **criteria)
        listings = []
        for profile in profiles:
            if min_experience is not None and (profile["experience"] or 0) < min_experience:
                continue

            slots = parse_slots(profile.get("availability") or [])
            if on_date and not any(slot.date == on_date for slot in slots):
                continue

            doctor = await self.store.find_by_id(accounts, profile["doctor_id"])
            if not doctor or not doctor["is_active"]:
                continue

            listings.append(
                DoctorListing(
                    id=doctor["id"],
                    name=doctor["name"],
                    email=doctor["email"],
                    specialization=profile["specialization"],
                    experience=profile["experience"] or 0,
                    education=profile["education"],
                    description=profile["description"],
                    consultation_fee=profile["consultation_fee"],
                    photo_url=profile["photo_url"],
                    availability=slots,
                    ratings={
                        "average": profile["rating_average"],
                        "total_reviews": profile["rating_count"],
                    },
                )
            )
        return listings

    async def get_doctor_profile(self, doctor_id: UUID) -> DoctorWithProfile:
        """Public profile of an active doctor."""
        doctor = await self._get_doctor_account(doctor_id)
        profile = await self.store.find_one(doctor_profiles, doctor_id=doctor_id)
        if not profile or not doctor["is_active"]:
            raise NotFoundException("Doctor not found")

        return DoctorWithProfile(
            account=AccountResponse.model_validate(doctor),
            profile=DoctorProfileResponse.model_validate(profile),
        )

    async def update_availability(self, actor: Actor, data: AvailabilityUpdate) -> DoctorProfileResponse:
        """Replace a doctor's availability calendar wholesale."""
        profile = await self.store.find_one(doctor_profiles, doctor_id=actor.account_id)
        if not profile:
            raise NotFoundException("Doctor profile not found")

        payload = data.model_dump(mode="json")
        row = await self.store.save(
            doctor_profiles,
            profile["id"],
            {
                "availability": payload["availability"],
                "emergency_holidays": payload["emergency_holidays"],
            },
        )
        if row is None:
            raise NotFoundException("Doctor profile not found")

        logger.info(
            "availability_updated",
            doctor_id=str(actor.account_id),
            slots=len(data.availability),
        )
        return DoctorProfileResponse.model_validate(row)

    async def update_profile(self, actor: Actor, data: DoctorProfileUpdate) -> DoctorWithProfile:
        """Update the doctor's name and profile details, creating the profile if absent."""
        doctor = await self._get_doctor_account(actor.account_id)
        if data.name:
            doctor = await self.store.save(accounts, doctor["id"], {"name": data.name.strip()})

        updates = data.model_dump(exclude_unset=True, exclude={"name"})
        updates = {key: value for key, value in updates.items() if value is not None}

        profile = await self.store.find_one(doctor_profiles, doctor_id=actor.account_id)
        if profile is None:
            if "specialization" not in updates:
                raise NotFoundException("Doctor profile not found; specialization is required")
            result = await self.create_profile(actor.account_id, **updates)
        elif updates:
            saved = await self.store.save(doctor_profiles, profile["id"], updates)
            result = DoctorProfileResponse.model_validate(saved)
        else:
            result = DoctorProfileResponse.model_validate(profile)

        return DoctorWithProfile(account=AccountResponse.model_validate(doctor), profile=result)
