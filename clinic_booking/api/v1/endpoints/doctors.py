"""Doctor self-service endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_booking.dependencies import DoctorActor, Store
from clinic_booking.schemas.appointments import (
    AppointmentResponse,
    AppointmentStatus,
    DoctorAppointmentUpdate,
    NoteCreate,
    PatientSummary,
)
from clinic_booking.schemas.doctors import (
    AvailabilityUpdate,
    DoctorDashboard,
    DoctorProfileResponse,
    DoctorProfileUpdate,
    DoctorWithProfile,
)
from clinic_booking.schemas.users import PatientDetails
from clinic_booking.services.appointment_service import AppointmentService
from clinic_booking.services.doctor_service import DoctorService
from clinic_booking.services.user_service import UserService

router = APIRouter()


@router.get("/dashboard", response_model=DoctorDashboard, summary="Doctor dashboard")
async def dashboard(doctor: DoctorActor, store: Store) -> DoctorDashboard:
    """Profile, status counts and upcoming appointments."""
    return await AppointmentService(store).doctor_dashboard(doctor)


@router.put(
    "/availability",
    response_model=DoctorProfileResponse,
    summary="Replace availability calendar",
)
async def update_availability(
    data: AvailabilityUpdate,
    doctor: DoctorActor,
    store: Store,
) -> DoctorProfileResponse:
    """
    Replace the doctor's availability slots and emergency holidays.

    Args:
        data: New calendar
        doctor: Authenticated doctor
        store: Record store

    Returns:
        Updated profile
    """
    return await DoctorService(store).update_availability(doctor, data)


@router.put("/profile", response_model=DoctorWithProfile, summary="Update doctor profile")
async def update_profile(
    data: DoctorProfileUpdate,
    doctor: DoctorActor,
    store: Store,
) -> DoctorWithProfile:
    """Update name and professional details."""
    return await DoctorService(store).update_profile(doctor, data)


@router.get(
    "/appointments",
    response_model=list[AppointmentResponse],
    summary="List assigned appointments",
)
async def list_appointments(
    doctor: DoctorActor,
    store: Store,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
) -> list[AppointmentResponse]:
    """Appointments assigned to the doctor, soonest first."""
    return await AppointmentService(store).list_doctor_appointments(doctor, status_filter)


@router.get("/patients", response_model=list[PatientSummary], summary="List patients")
async def list_patients(doctor: DoctorActor, store: Store) -> list[PatientSummary]:
    """Distinct patients with their latest appointment."""
    return await AppointmentService(store).list_doctor_patients(doctor)


@router.get(
    "/patients/{patient_id}",
    response_model=PatientDetails,
    summary="Patient details",
)
async def get_patient(patient_id: UUID, doctor: DoctorActor, store: Store) -> PatientDetails:
    """A patient's profile and their recent appointments with this doctor."""
    return await UserService(store).get_patient_details(doctor, patient_id)


@router.patch(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Update appointment outcome",
)
async def update_appointment(
    appointment_id: UUID,
    data: DoctorAppointmentUpdate,
    doctor: DoctorActor,
    store: Store,
) -> AppointmentResponse:
    """
    Record status, notes, prescription or follow-up for an assigned appointment.

    Args:
        appointment_id: Appointment ID
        data: Outcome fields
        doctor: Authenticated doctor
        store: Record store

    Returns:
        Updated appointment
    """
    return await AppointmentService(store).doctor_update_appointment(appointment_id, doctor, data)


@router.post(
    "/appointments/{appointment_id}/notes",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append a doctor note",
)
async def add_note(
    appointment_id: UUID,
    data: NoteCreate,
    doctor: DoctorActor,
    store: Store,
) -> AppointmentResponse:
    """Append a note tagged with the doctor role."""
    return await AppointmentService(store).add_note(appointment_id, doctor, data.content)
