"""Authentication endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from clinic_booking.dependencies import CurrentActor, Store
from clinic_booking.schemas.accounts import AccountResponse, AuthResponse, LoginRequest, RegisterRequest
from clinic_booking.schemas.doctors import DoctorProfileResponse
from clinic_booking.schemas.users import UserProfileResponse
from clinic_booking.services.auth_service import AuthService

router = APIRouter()


class MeResponse(BaseModel):
    """Current account with its doctor or patient profile, if any."""

    user: AccountResponse
    profile: DoctorProfileResponse | UserProfileResponse | None = None


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(data: RegisterRequest, store: Store) -> AuthResponse:
    """
    Register a user or doctor account.

    Args:
        data: Registration payload
        store: Record store

    Returns:
        Access token and created account
    """
    return await AuthService(store).register(data)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in with email and password",
)
async def login(data: LoginRequest, store: Store) -> AuthResponse:
    """Exchange credentials for an access token."""
    return await AuthService(store).login(data)


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current account",
)
async def me(actor: CurrentActor, store: Store) -> MeResponse:
    """Return the authenticated account."""
    return MeResponse(**await AuthService(store).get_me(actor))


@router.post(
    "/logout",
    summary="Log out",
)
async def logout(actor: CurrentActor) -> dict[str, str]:
    """Tokens are stateless; the client discards its copy."""
    return {"message": "Logged out successfully"}
