"""Authentication service for registration and login."""

from datetime import UTC, datetime

import structlog

from clinic_booking.core.exceptions import (
    ConflictException,
    DuplicateRecordException,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from clinic_booking.core.security import create_access_token, get_password_hash, verify_password
from clinic_booking.models.accounts import accounts
from clinic_booking.models.doctor_profiles import doctor_profiles
from clinic_booking.models.user_profiles import user_profiles
from clinic_booking.schemas.accounts import (
    AccountResponse,
    AccountRole,
    Actor,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    normalize_email,
)
from clinic_booking.schemas.doctors import DoctorProfileResponse
from clinic_booking.schemas.users import UserProfileFields, UserProfileResponse
from clinic_booking.services.doctor_service import DoctorService
from clinic_booking.services.record_store import RecordStore
from clinic_booking.services.user_service import UserService

logger = structlog.get_logger()

# Admin accounts are provisioned out of band, never self-registered
SELF_REGISTER_ROLES = frozenset({AccountRole.USER, AccountRole.DOCTOR})


class AuthService:
    """Service for account registration, login and profile lookup."""

    def __init__(self, store: RecordStore):
        """Initialize service with a record store."""
        self.store = store

    @staticmethod
    def _issue(account: dict, message: str) -> AuthResponse:
        token = create_access_token(str(account["id"]), account["role"])
        return AuthResponse(
            message=message,
            token=token,
            user=AccountResponse.model_validate(account),
        )

    async def register(self, data: RegisterRequest) -> AuthResponse:
        """
        Register a new account.

        Args:
            data: Registration payload

        Returns:
            Access token and the created account

        Raises:
            ForbiddenException: If the role cannot self-register
            ValidationException: If a doctor omits their specialization
            ConflictException: If the email is already registered under any role
        """
        if data.role not in SELF_REGISTER_ROLES:
            raise ForbiddenException("Role cannot self-register")
        if data.role is AccountRole.DOCTOR and not data.specialization:
            raise ValidationException("Specialization is required for doctors")

        email = normalize_email(data.email)
        if await self.store.find_one(accounts, email=email):
            raise ConflictException("Email already registered")

        try:
            account = await self.store.create(
                accounts,
                {
                    "name": data.name,
                    "email": email,
                    "password_hash": get_password_hash(data.password),
                    "role": data.role.value,
                },
            )
        except DuplicateRecordException as e:
            raise ConflictException("Email already registered") from e

        if data.role is AccountRole.DOCTOR:
            await DoctorService(self.store).create_profile(
                account["id"],
                specialization=data.specialization,
                experience=data.experience,
                education=data.education,
                description=data.description,
                consultation_fee=data.consultation_fee,
            )
        else:
            await UserService(self.store).create_profile(
                account["id"],
                UserProfileFields(
                    age=data.age,
                    gender=data.gender,
                    disease_type=data.disease_type,
                    symptoms=data.symptoms,
                ),
            )

        logger.info("account_registered", account_id=str(account["id"]), role=data.role.value)
        return self._issue(account, "Registration successful")

    async def login(self, data: LoginRequest) -> AuthResponse:
        """
        Authenticate with email and password.

        Raises:
            UnauthorizedException: Unknown email or wrong password
            ForbiddenException: Account is inactive
        """
        account = await self.store.find_one(accounts, email=normalize_email(data.email))
        if not account:
            raise UnauthorizedException("Invalid credentials")
        if not account["is_active"]:
            raise ForbiddenException("Account is inactive")
        if not verify_password(data.password, account["password_hash"]):
            raise UnauthorizedException("Invalid credentials")

        account = await self.store.save(
            accounts,
            account["id"],
            {"last_login_at": datetime.now(UTC)},
        )
        logger.info("account_logged_in", account_id=str(account["id"]))
        return self._issue(account, "Login successful")

    async def get_me(self, actor: Actor) -> dict:
        """Current account, plus the doctor or patient profile for its role."""
        account = await self.store.find_by_id(accounts, actor.account_id)
        if not account:
            raise NotFoundException("User not found")

        profile = None
        if account["role"] == AccountRole.DOCTOR.value:
            row = await self.store.find_one(doctor_profiles, doctor_id=account["id"])
            profile = DoctorProfileResponse.model_validate(row) if row else None
        elif account["role"] == AccountRole.USER.value:
            row = await self.store.find_one(user_profiles, user_id=account["id"])
            profile = UserProfileResponse.model_validate(row) if row else None

        return {"user": AccountResponse.model_validate(account), "profile": profile}
