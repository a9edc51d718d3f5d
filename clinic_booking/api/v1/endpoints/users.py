"""User endpoints for browsing doctors and requesting appointments."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_booking.dependencies import Store, UserActor
from clinic_booking.schemas.appointments import (
    AppointmentAction,
    AppointmentCreate,
    AppointmentResponse,
    NoteCreate,
    UserDashboard,
)
from clinic_booking.schemas.doctors import DoctorListing, DoctorWithProfile
from clinic_booking.schemas.users import UserProfileUpdate, UserProfileUpdated, UserWithProfile
from clinic_booking.services.appointment_service import AppointmentService
from clinic_booking.services.doctor_service import DoctorService
from clinic_booking.services.user_service import UserService

router = APIRouter()


@router.get("/dashboard", response_model=UserDashboard, summary="User dashboard")
async def dashboard(user: UserActor, store: Store) -> UserDashboard:
    """Upcoming appointments and visit history."""
    return await AppointmentService(store).user_dashboard(user)


@router.get("/profile", response_model=UserWithProfile, summary="Get my profile")
async def get_profile(user: UserActor, store: Store) -> UserWithProfile:
    """Account and medical profile."""
    return await UserService(store).get_profile(user)


@router.put("/profile", response_model=UserProfileUpdated, summary="Update my profile")
async def update_profile(
    data: UserProfileUpdate,
    user: UserActor,
    store: Store,
) -> UserProfileUpdated:
    """
    Update name and medical background, creating the profile on first use.

    Args:
        data: Fields to change
        user: Authenticated user
        store: Record store

    Returns:
        Updated account and profile
    """
    return await UserService(store).update_profile(user, data)


@router.get("/doctors", response_model=list[DoctorListing], summary="Browse doctors")
async def list_doctors(
    user: UserActor,
    store: Store,
    specialty: str | None = Query(None, description="Specialization"),
    experience: int | None = Query(None, ge=0, description="Minimum years of experience"),
    on_date: date | None = Query(None, alias="date", description="Has a slot on this day"),
) -> list[DoctorListing]:
    """
    List active doctors.

    Args:
        user: Authenticated user
        store: Record store
        specialty: Filter by specialization
        experience: Minimum experience in years
        on_date: Only doctors with availability on this day

    Returns:
        Doctor listings
    """
    return await DoctorService(store).list_available_doctors(specialty, experience, on_date)


@router.get(
    "/doctors/{doctor_id}",
    response_model=DoctorWithProfile,
    summary="Doctor profile",
)
async def get_doctor(doctor_id: UUID, user: UserActor, store: Store) -> DoctorWithProfile:
    """Profile of an active doctor."""
    return await DoctorService(store).get_doctor_profile(doctor_id)


@router.get(
    "/appointments",
    response_model=list[AppointmentResponse],
    summary="List my appointments",
)
async def list_appointments(user: UserActor, store: Store) -> list[AppointmentResponse]:
    """The user's appointments, newest first."""
    return await AppointmentService(store).list_user_appointments(user)


@router.post(
    "/appointments",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request an appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    user: UserActor,
    store: Store,
) -> AppointmentResponse:
    """Create a pending appointment request."""
    return await AppointmentService(store).create_appointment(user, data)


@router.get(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Get one of my appointments",
)
async def get_appointment(
    appointment_id: UUID,
    user: UserActor,
    store: Store,
) -> AppointmentResponse:
    """Fetch an appointment owned by the user."""
    return await AppointmentService(store).get_appointment(appointment_id, user)


@router.patch(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Cancel or reschedule",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentAction,
    user: UserActor,
    store: Store,
) -> AppointmentResponse:
    """
    Cancel or request a reschedule.

    Args:
        appointment_id: Appointment ID
        data: Action with reason and, for a reschedule, the new slot
        user: Authenticated user
        store: Record store

    Returns:
        Updated appointment
    """
    return await AppointmentService(store).user_update_appointment(appointment_id, user, data)


@router.post(
    "/appointments/{appointment_id}/notes",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append a note",
)
async def add_note(
    appointment_id: UUID,
    data: NoteCreate,
    user: UserActor,
    store: Store,
) -> AppointmentResponse:
    """Append a note tagged with the user role."""
    return await AppointmentService(store).add_note(appointment_id, user, data.content)
