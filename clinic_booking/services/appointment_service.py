"""Appointment service for business logic."""

from uuid import UUID

import structlog

from clinic_booking.config import Settings, settings
from clinic_booking.core.exceptions import (
    AppointmentRejection,
    DuplicateRecordException,
    ForbiddenException,
    RejectionReason,
)
from clinic_booking.models.accounts import accounts
from clinic_booking.models.appointments import appointments
from clinic_booking.models.doctor_profiles import doctor_profiles
from clinic_booking.schemas.accounts import AccountRole, AccountResponse, Actor
from clinic_booking.schemas.appointments import (
    ActorRole,
    AdminAppointmentUpdate,
    AppointmentAction,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
    DoctorAppointmentUpdate,
    PatientSummary,
    UserDashboard,
)
from clinic_booking.schemas.doctors import DoctorDashboard, DoctorProfileResponse
from clinic_booking.services.appointment_state import AppointmentStateMachine
from clinic_booking.services.conflicts import LIVE_STATUSES
from clinic_booking.services.record_store import RecordStore

logger = structlog.get_logger()

LIVE = sorted(status.value for status in LIVE_STATUSES)


def _not_found() -> AppointmentRejection:
    return AppointmentRejection(RejectionReason.NOT_FOUND, "Appointment not found")


class AppointmentService:
    """Service for the appointment lifecycle outside of admin assignment."""

    def __init__(self, store: RecordStore, config: Settings | None = None):
        """Initialize service with a record store and optional settings override."""
        self.store = store
        self.config = config or settings
        self.state = AppointmentStateMachine(
            strict=self.config.strict_status_transitions,
            default_cancellation_reason=self.config.default_cancellation_reason,
        )

    async def _commit(self, appointment: dict, values: dict) -> AppointmentResponse:
        """Persist a set of changes computed by the state machine."""
        try:
            saved = await self.store.save(appointments, appointment["id"], values)
        except DuplicateRecordException as e:
            raise AppointmentRejection(
                RejectionReason.SLOT_CONFLICT,
                "Doctor already has an appointment in this slot",
            ) from e

        if saved is None:
            raise _not_found()
        return AppointmentResponse.model_validate(saved)

    async def _get_for_actor(self, appointment_id: UUID, actor: Actor) -> dict:
        """
        Load an appointment visible to the actor.

        Users see their own requests, doctors the ones assigned to them and
        admins everything. Anything else reads as not found.
        """
        appointment = await self.store.find_by_id(appointments, appointment_id)
        if not appointment:
            raise _not_found()

        if actor.role is AccountRole.USER and appointment["user_id"] != actor.account_id:
            raise _not_found()
        if actor.role is AccountRole.DOCTOR and appointment["doctor_id"] != actor.account_id:
            raise _not_found()

        return appointment

    async def create_appointment(self, actor: Actor, data: AppointmentCreate) -> AppointmentResponse:
        """
        Create a new appointment request.

        Args:
            actor: Requesting user
            data: Appointment creation data

        Returns:
            Created appointment, pending and without a doctor
        """
        if actor.role is not AccountRole.USER:
            raise ForbiddenException("Only users can request appointments")

        payload = data.model_dump(mode="json")
        values = {
            "user_id": actor.account_id,
            "doctor_id": None,
            "disease_category": data.disease_category.strip(),
            "symptoms": data.symptoms,
            "details": data.details,
            "preferred_date": data.preferred_date,
            "preferred_start": payload["preferred_start"],
            "preferred_end": payload["preferred_end"],
            "status": AppointmentStatus.PENDING.value,
            "documents": payload["documents"],
            "created_by": actor.account_id,
            "updated_by": actor.account_id,
        }

        row = await self.store.create(appointments, values)
        logger.info("appointment_created", appointment_id=str(row["id"]), user_id=str(actor.account_id))
        return AppointmentResponse.model_validate(row)

    async def get_appointment(self, appointment_id: UUID, actor: Actor) -> AppointmentResponse:
        """Get appointment by ID."""
        return AppointmentResponse.model_validate(await self._get_for_actor(appointment_id, actor))

    async def list_user_appointments(self, actor: Actor) -> list[AppointmentResponse]:
        """List a user's appointments, newest first."""
        rows = await self.store.find(
            appointments,
            order_by=[appointments.c.created_at.desc()],
            user_id=actor.account_id,
        )
        return [AppointmentResponse.model_validate(row) for row in rows]

    async def user_update_appointment(
        self,
        appointment_id: UUID,
        actor: Actor,
        data: AppointmentAction,
    ) -> AppointmentResponse:
        """
        Cancel or reschedule one of the user's own appointments.

        A reschedule proposes a new slot; the assigned doctor, if any, stays.
        """
        appointment = await self.store.find_by_id(appointments, appointment_id)
        if not appointment or appointment["user_id"] != actor.account_id:
            raise _not_found()

        if data.action == "cancel":
            values = self.state.cancel(appointment, actor.account_id, ActorRole.USER, data.reason)
            event = "appointment_cancelled"
        else:
            values = self.state.reschedule(
                appointment,
                new_date=data.new_date,
                new_start=data.new_start,
                new_end=data.new_end,
                reason=data.reason,
                requested_by=ActorRole.USER,
                actor_id=actor.account_id,
            )
            event = "appointment_rescheduled"

        result = await self._commit(appointment, values)
        logger.info(event, appointment_id=str(appointment_id), requested_by="user")
        return result

    async def doctor_update_appointment(
        self,
        appointment_id: UUID,
        actor: Actor,
        data: DoctorAppointmentUpdate,
    ) -> AppointmentResponse:
        """
        Record a doctor's outcome for an assigned appointment.

        Status change, note, prescription and follow-up date are applied
        together in one write.
        """
        appointment = await self.store.find_by_id(appointments, appointment_id)
        if not appointment or appointment["doctor_id"] != actor.account_id:
            raise _not_found()

        values: dict = {"updated_by": actor.account_id}

        if data.status is AppointmentStatus.RESCHEDULED and data.scheduled_date:
            values.update(
                self.state.reschedule(
                    appointment,
                    new_date=data.scheduled_date,
                    new_start=data.scheduled_start,
                    new_end=data.scheduled_end,
                    reason=data.reason,
                    requested_by=ActorRole.DOCTOR,
                    actor_id=actor.account_id,
                )
            )
        elif data.status:
            values.update(
                self.state.change_status(
                    appointment, data.status, actor.account_id, ActorRole.DOCTOR, data.reason
                )
            )

        if data.notes:
            values.update(
                self.state.append_note(appointment, actor.account_id, ActorRole.DOCTOR, data.notes)
            )
        if data.prescription:
            values.update(self.state.append_prescription(appointment, data.prescription))
        if data.follow_up_date:
            values["follow_up_date"] = data.follow_up_date

        result = await self._commit(appointment, values)
        logger.info(
            "appointment_status_updated",
            appointment_id=str(appointment_id),
            status=result.status.value,
            actor_role="doctor",
        )
        return result

    async def admin_update_appointment(
        self,
        appointment_id: UUID,
        actor: Actor,
        data: AdminAppointmentUpdate,
    ) -> AppointmentResponse:
        """Admin override of status, committed slot or cancellation reason."""
        appointment = await self.store.find_by_id(appointments, appointment_id)
        if not appointment:
            raise _not_found()

        values: dict = {"updated_by": actor.account_id}
        if data.status:
            values.update(
                self.state.change_status(
                    appointment, data.status, actor.account_id, ActorRole.ADMIN, data.reason
                )
            )
        elif data.reason:
            values["cancellation_reason"] = data.reason

        if data.scheduled_date:
            values.update(
                self.state.move_slot(
                    appointment, data.scheduled_date, data.scheduled_start, data.scheduled_end
                )
            )

        result = await self._commit(appointment, values)
        logger.info(
            "appointment_status_updated",
            appointment_id=str(appointment_id),
            status=result.status.value,
            actor_role="admin",
        )
        return result

    async def add_note(self, appointment_id: UUID, actor: Actor, content: str) -> AppointmentResponse:
        """Append a note written by the actor, tagged with their current role."""
        appointment = await self._get_for_actor(appointment_id, actor)
        values = self.state.append_note(
            appointment, actor.account_id, ActorRole(actor.role.value), content
        )
        values["updated_by"] = actor.account_id
        return await self._commit(appointment, values)

    async def list_appointments(self, filters: AppointmentFilters) -> list[AppointmentResponse]:
        """List appointments across all users for admins, newest first."""
        criteria: dict = {}
        if filters.preferred_date:
            criteria["preferred_date"] = filters.preferred_date
        if filters.doctor_id:
            criteria["doctor_id"] = filters.doctor_id
        if filters.status:
            criteria["status"] = filters.status.value

        rows = await self.store.find(
            appointments,
            order_by=[appointments.c.created_at.desc()],
            **criteria,
        )
        return [AppointmentResponse.model_validate(row) for row in rows]

    async def list_doctor_appointments(
        self,
        actor: Actor,
        status: AppointmentStatus | None = None,
    ) -> list[AppointmentResponse]:
        """List appointments assigned to a doctor, soonest first."""
        criteria: dict = {"doctor_id": actor.account_id}
        if status:
            criteria["status"] = status.value

        rows = await self.store.find(
            appointments,
            order_by=[appointments.c.scheduled_date.asc(), appointments.c.created_at.desc()],
            **criteria,
        )
        return [AppointmentResponse.model_validate(row) for row in rows]

    async def list_doctor_patients(self, actor: Actor) -> list[PatientSummary]:
        """Distinct users a doctor has appointments with, each with the latest one."""
        rows = await self.store.find(
            appointments,
            order_by=[appointments.c.created_at.desc()],
            doctor_id=actor.account_id,
        )

        summaries: list[PatientSummary] = []
        seen: set[UUID] = set()
        for row in rows:
            if row["user_id"] in seen:
                continue
            seen.add(row["user_id"])

            user = await self.store.find_by_id(accounts, row["user_id"])
            if not user:
                continue
            summaries.append(
                PatientSummary(
                    user=AccountResponse.model_validate(user).model_dump(mode="json"),
                    last_appointment=AppointmentResponse.model_validate(row),
                )
            )
        return summaries

    async def user_dashboard(self, actor: Actor) -> UserDashboard:
        """Upcoming live appointments and recent completed history for a user."""
        upcoming = await self.store.find(
            appointments,
            order_by=[appointments.c.scheduled_date.asc()],
            limit=10,
            user_id=actor.account_id,
            status=LIVE,
        )
        history = await self.store.find(
            appointments,
            order_by=[appointments.c.updated_at.desc()],
            limit=10,
            user_id=actor.account_id,
            status=AppointmentStatus.COMPLETED.value,
        )

        return UserDashboard(
            upcoming=[AppointmentResponse.model_validate(row) for row in upcoming],
            history=[AppointmentResponse.model_validate(row) for row in history],
            stats={
                "total": len(upcoming) + len(history),
                "completed": len(history),
                "pending": sum(1 for row in upcoming if row["status"] == "pending"),
            },
        )

    async def doctor_dashboard(self, actor: Actor) -> DoctorDashboard:
        """Profile, status counts and upcoming work for a doctor."""
        profile = await self.store.find_one(doctor_profiles, doctor_id=actor.account_id)
        rows = await self.store.find(
            appointments,
            order_by=[appointments.c.scheduled_date.asc()],
            doctor_id=actor.account_id,
        )
        items = [AppointmentResponse.model_validate(row) for row in rows]

        def count(status: AppointmentStatus) -> int:
            return sum(1 for item in items if item.status is status)

        return DoctorDashboard(
            profile=DoctorProfileResponse.model_validate(profile) if profile else None,
            stats={
                "total_appointments": len(items),
                "pending": count(AppointmentStatus.PENDING),
                "confirmed": count(AppointmentStatus.CONFIRMED),
                "completed": count(AppointmentStatus.COMPLETED),
            },
            upcoming_appointments=[item for item in items if item.status in LIVE_STATUSES][:10],
            recent_activities=items[:20],
        )
