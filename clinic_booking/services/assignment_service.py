"""Admin assignment of doctors to appointment requests."""

from dataclasses import dataclass
from datetime import date, time
from uuid import UUID

import structlog

from clinic_booking.config import Settings, settings
from clinic_booking.core.exceptions import (
    AppointmentRejection,
    DuplicateRecordException,
    RejectionReason,
)
from clinic_booking.core.timeslots import parse_calendar_date, parse_time_of_day
from clinic_booking.models.accounts import accounts
from clinic_booking.models.appointments import appointments
from clinic_booking.models.doctor_profiles import doctor_profiles
from clinic_booking.schemas.accounts import AccountRole, Actor
from clinic_booking.schemas.appointments import AppointmentResponse, AssignDoctorRequest
from clinic_booking.services.appointment_state import AppointmentStateMachine
from clinic_booking.services.availability import AvailabilityMatch, match_availability
from clinic_booking.services.conflicts import has_conflict
from clinic_booking.services.record_store import RecordStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class AssignmentResult:
    """Committed assignment and whether it fell outside configured hours."""

    appointment: AppointmentResponse
    availability_warning: bool
    availability: AvailabilityMatch


class AssignmentService:
    """Binds a doctor and a concrete slot to a pending or rescheduled appointment."""

    def __init__(self, store: RecordStore, config: Settings | None = None):
        """Initialize service with a record store and optional settings override."""
        self.store = store
        self.config = config or settings
        self.state = AppointmentStateMachine(
            strict=self.config.strict_status_transitions,
            default_cancellation_reason=self.config.default_cancellation_reason,
        )

    async def assign_doctor(
        self,
        appointment_id: UUID,
        request: AssignDoctorRequest,
        actor: Actor,
    ) -> AssignmentResult:
        """
        Assign a doctor to an appointment.

        Steps run in order and stop at the first rejection; nothing is
        written unless every check passes. A window outside the doctor's
        configured hours only raises the availability warning, while a
        live appointment already holding the slot blocks the assignment.

        Args:
            appointment_id: Appointment to assign
            request: Doctor and optional date/start/end overrides
            actor: Verified admin performing the assignment

        Returns:
            Updated appointment and availability warning flag

        Raises:
            AppointmentRejection: With the reason of the failed step
        """
        log = logger.bind(appointment_id=str(appointment_id), doctor_id=str(request.doctor_id))

        try:
            result = await self._assign(appointment_id, request, actor)
        except AppointmentRejection as e:
            log.warning("assignment_rejected", reason=e.reason.value, message=e.message)
            raise

        log.info(
            "doctor_assigned",
            scheduled_date=str(result.appointment.scheduled_date),
            scheduled_start=str(result.appointment.scheduled_start),
            availability=result.availability.value,
            availability_warning=result.availability_warning,
        )
        return result

    async def _assign(
        self,
        appointment_id: UUID,
        request: AssignDoctorRequest,
        actor: Actor,
    ) -> AssignmentResult:
        appointment = await self.store.find_by_id(appointments, appointment_id)
        if not appointment:
            raise AppointmentRejection(RejectionReason.NOT_FOUND, "Appointment not found")

        self.state.check_assignable(appointment)

        doctor = await self.store.find_by_id(accounts, request.doctor_id)
        if (
            not doctor
            or doctor["role"] != AccountRole.DOCTOR.value
            or not doctor["is_active"]
        ):
            raise AppointmentRejection(
                RejectionReason.DOCTOR_UNAVAILABLE,
                "Doctor not found or inactive",
            )

        profile = await self.store.find_one(doctor_profiles, doctor_id=doctor["id"])
        if not profile:
            raise AppointmentRejection(
                RejectionReason.PROFILE_MISSING,
                "Doctor has no availability profile",
            )

        scheduled_date = self._effective_date(request, appointment)
        start, end = self._effective_window(request, appointment)

        availability = match_availability(
            profile.get("availability") or [],
            scheduled_date,
            start,
            end,
        )

        if await has_conflict(self.store, doctor["id"], scheduled_date, start, appointment["id"]):
            raise AppointmentRejection(
                RejectionReason.SLOT_CONFLICT,
                "Doctor already has an appointment in this slot",
            )

        values = self.state.assign(
            appointment,
            doctor=doctor,
            scheduled_date=scheduled_date,
            start=start,
            end=end,
            actor_id=actor.account_id,
            notes=request.notes,
        )

        try:
            saved = await self.store.save(appointments, appointment["id"], values)
        except DuplicateRecordException as e:
            # Another assignment took the slot between the check and the write
            raise AppointmentRejection(
                RejectionReason.SLOT_CONFLICT,
                "Doctor already has an appointment in this slot",
            ) from e

        if saved is None:
            raise AppointmentRejection(RejectionReason.NOT_FOUND, "Appointment not found")

        return AssignmentResult(
            appointment=AppointmentResponse.model_validate(saved),
            availability_warning=availability is not AvailabilityMatch.MATCHED,
            availability=availability,
        )

    @staticmethod
    def _effective_date(request: AssignDoctorRequest, appointment: dict) -> date:
        """Requested date, else the patient's preferred date."""
        raw = request.scheduled_date or appointment.get("preferred_date")
        try:
            return parse_calendar_date(raw)
        except (TypeError, ValueError) as e:
            raise AppointmentRejection(
                RejectionReason.INVALID_DATE,
                f"Invalid appointment date: {raw!r}",
            ) from e

    def _effective_window(
        self,
        request: AssignDoctorRequest,
        appointment: dict,
    ) -> tuple[time, time]:
        """Requested times, else preferred times, else the default slot; field by field."""
        raw_start = (
            request.scheduled_start
            or appointment.get("preferred_start")
            or self.config.default_slot_start
        )
        raw_end = (
            request.scheduled_end
            or appointment.get("preferred_end")
            or self.config.default_slot_end
        )
        if not raw_start or not raw_end:
            raise AppointmentRejection(
                RejectionReason.INVALID_WINDOW,
                "Appointment start and end time are required",
            )

        try:
            start = parse_time_of_day(raw_start)
            end = parse_time_of_day(raw_end)
        except ValueError as e:
            raise AppointmentRejection(RejectionReason.INVALID_WINDOW, str(e)) from e

        if end <= start:
            raise AppointmentRejection(
                RejectionReason.INVALID_WINDOW,
                "Appointment end time must be after start time",
            )
        return start, end
