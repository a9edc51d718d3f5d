"""Admin-only endpoints for doctors, patients and appointment assignment."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_booking.dependencies import AdminActor, Store
from clinic_booking.schemas.accounts import AccountResponse
from clinic_booking.schemas.appointments import (
    AdminAppointmentUpdate,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
    AssignDoctorRequest,
    AssignmentResponse,
    NoteCreate,
)
from clinic_booking.schemas.doctors import DoctorCreate, DoctorStatusUpdate, DoctorWithProfile
from clinic_booking.services.appointment_service import AppointmentService
from clinic_booking.services.assignment_service import AssignmentService
from clinic_booking.services.doctor_service import DoctorService

router = APIRouter()


@router.get(
    "/doctors",
    response_model=list[DoctorWithProfile],
    summary="List all doctors (admin only)",
)
async def list_doctors(admin: AdminActor, store: Store) -> list[DoctorWithProfile]:
    """Every doctor account with its profile."""
    return await DoctorService(store).list_doctors()


@router.post(
    "/doctors",
    response_model=DoctorWithProfile,
    status_code=status.HTTP_201_CREATED,
    summary="Create a doctor (admin only)",
)
async def create_doctor(data: DoctorCreate, admin: AdminActor, store: Store) -> DoctorWithProfile:
    """
    Create a doctor account and its availability profile.

    Args:
        data: Doctor account and profile fields
        admin: Authenticated admin
        store: Record store

    Returns:
        Created doctor with profile
    """
    return await DoctorService(store).create_doctor(data)


@router.patch(
    "/doctors/{doctor_id}/status",
    response_model=AccountResponse,
    summary="Activate or deactivate a doctor (admin only)",
)
async def update_doctor_status(
    doctor_id: UUID,
    data: DoctorStatusUpdate,
    admin: AdminActor,
    store: Store,
) -> AccountResponse:
    """Toggle whether a doctor can be booked."""
    return await DoctorService(store).set_doctor_active(doctor_id, data.is_active)


@router.delete(
    "/doctors/{doctor_id}",
    summary="Delete a doctor (admin only)",
)
async def delete_doctor(doctor_id: UUID, admin: AdminActor, store: Store) -> dict[str, str]:
    """Remove a doctor's profile and account."""
    await DoctorService(store).delete_doctor(doctor_id)
    return {"message": "Doctor deleted successfully"}


@router.get(
    "/patients",
    response_model=list[AccountResponse],
    summary="List all patients (admin only)",
)
async def list_patients(admin: AdminActor, store: Store) -> list[AccountResponse]:
    """Every account with the user role."""
    return await DoctorService(store).list_patients()


@router.get(
    "/appointments",
    response_model=list[AppointmentResponse],
    summary="List all appointments (admin only)",
)
async def list_appointments(
    admin: AdminActor,
    store: Store,
    preferred_date: date | None = Query(None, alias="date", description="Preferred date"),
    doctor_id: UUID | None = Query(None, alias="doctor", description="Filter by doctor ID"),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
) -> list[AppointmentResponse]:
    """
    List appointments across all users.

    Args:
        admin: Authenticated admin
        store: Record store
        preferred_date: Filter by the patient's preferred day
        doctor_id: Filter by assigned doctor
        status_filter: Filter by status

    Returns:
        Appointments, newest first
    """
    filters = AppointmentFilters(
        preferred_date=preferred_date,
        doctor_id=doctor_id,
        status=status_filter,
    )
    return await AppointmentService(store).list_appointments(filters)


@router.post(
    "/appointments/{appointment_id}/assign",
    response_model=AssignmentResponse,
    summary="Assign a doctor to an appointment (admin only)",
)
async def assign_doctor(
    appointment_id: UUID,
    data: AssignDoctorRequest,
    admin: AdminActor,
    store: Store,
) -> AssignmentResponse:
    """
    Bind a doctor and a concrete slot to a pending or rescheduled appointment.

    Rejections are returned with a ``reason`` field the client can branch on.
    A slot outside the doctor's configured hours succeeds with
    ``availability_warning`` set.
    """
    result = await AssignmentService(store).assign_doctor(appointment_id, data, admin)
    message = "Doctor assigned successfully"
    if result.availability_warning:
        message += " (outside the doctor's configured availability)"

    return AssignmentResponse(
        message=message,
        appointment=result.appointment,
        availability_warning=result.availability_warning,
    )


@router.patch(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Update appointment status or slot (admin only)",
)
async def update_appointment(
    appointment_id: UUID,
    data: AdminAppointmentUpdate,
    admin: AdminActor,
    store: Store,
) -> AppointmentResponse:
    """Admin override of an appointment's status or committed slot."""
    return await AppointmentService(store).admin_update_appointment(appointment_id, admin, data)


@router.post(
    "/appointments/{appointment_id}/notes",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append an admin note",
)
async def add_note(
    appointment_id: UUID,
    data: NoteCreate,
    admin: AdminActor,
    store: Store,
) -> AppointmentResponse:
    """Append a note tagged with the admin role."""
    return await AppointmentService(store).add_note(appointment_id, admin, data.content)
