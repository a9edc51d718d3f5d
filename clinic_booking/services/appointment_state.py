"""Appointment status transitions and their side effects.

Each method takes the stored appointment record and returns the column
values to write. Nothing here touches the database, so a caller can
validate a transition, then persist its values in a single update.
"""

from datetime import UTC, date, datetime, time
from uuid import UUID

from clinic_booking.core.exceptions import AppointmentRejection, RejectionReason
from clinic_booking.core.timeslots import format_time_of_day, parse_time_of_day
from clinic_booking.schemas.appointments import (
    ActorRole,
    AppointmentStatus,
    FileReference,
    NoteEntry,
    RescheduleEntry,
)

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.DECLINED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.RESCHEDULED, AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.RESCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.DECLINED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.DECLINED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# Statuses that only make sense once a doctor is bound
DOCTOR_REQUIRED_STATUSES = frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED})

# Statuses from which an admin may (re-)assign a doctor
ASSIGNABLE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.RESCHEDULED})


def build_confirmation_message(
    doctor_name: str,
    scheduled_date: date,
    start: time,
    end: time,
) -> str:
    """Human-readable confirmation sent to the patient."""
    return (
        f"Your appointment with Dr. {doctor_name} is confirmed for "
        f"{scheduled_date.isoformat()} from {format_time_of_day(start)} "
        f"to {format_time_of_day(end)}."
    )


def _stored_time(value: str | None) -> time | None:
    return parse_time_of_day(value) if value else None


class AppointmentStateMachine:
    """Status graph for appointments."""

    def __init__(
        self,
        strict: bool = False,
        default_cancellation_reason: str = "Cancelled by user",
    ):
        """
        Initialize the state machine.

        Args:
            strict: Check every status change against the transition graph.
                When off, only the assignment guard applies.
            default_cancellation_reason: Reason recorded when a user cancels
                without giving one
        """
        self.strict = strict
        self.default_cancellation_reason = default_cancellation_reason

    @staticmethod
    def now() -> datetime:
        """Current timestamp for side effects."""
        return datetime.now(UTC)

    @staticmethod
    def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
        """True if the graph permits moving from ``current`` to ``target``."""
        return current == target or target in ALLOWED_TRANSITIONS[current]

    @staticmethod
    def is_terminal(status: AppointmentStatus) -> bool:
        return status in TERMINAL_STATUSES

    def check_transition(self, appointment: dict, target: AppointmentStatus) -> None:
        """
        Enforce the transition graph when running strict.

        Raises:
            AppointmentRejection: ``invalid_state`` for a forbidden move
        """
        current = AppointmentStatus(appointment["status"])
        if self.strict and not self.can_transition(current, target):
            raise AppointmentRejection(
                RejectionReason.INVALID_STATE,
                f"Cannot move appointment from {current.value} to {target.value}",
            )

    def check_doctor_bound(self, appointment: dict, target: AppointmentStatus) -> None:
        """
        Refuse statuses that need a doctor on an unassigned appointment.

        Raises:
            AppointmentRejection: ``invalid_state`` when moving to confirmed or
                completed without a doctor
        """
        if appointment.get("doctor_id") or target not in DOCTOR_REQUIRED_STATUSES:
            return
        if target is AppointmentStatus.CONFIRMED:
            message = (
                "Appointment has no doctor; confirm it through "
                f"/admin/appointments/{appointment['id']}/assign"
            )
        else:
            message = "Appointment has no doctor and cannot be completed"
        raise AppointmentRejection(RejectionReason.INVALID_STATE, message)

    def check_assignable(self, appointment: dict) -> None:
        """
        Guard against clobbering a settled appointment with a re-assignment.

        Raises:
            AppointmentRejection: ``invalid_state`` if a doctor is already bound
                and the appointment is neither pending nor rescheduled
        """
        status = AppointmentStatus(appointment["status"])
        if appointment.get("doctor_id") and status not in ASSIGNABLE_STATUSES:
            raise AppointmentRejection(
                RejectionReason.INVALID_STATE,
                "Only pending or rescheduled appointments can be (re-)assigned",
            )
        self.check_transition(appointment, AppointmentStatus.CONFIRMED)

    def assign(
        self,
        appointment: dict,
        *,
        doctor: dict,
        scheduled_date: date,
        start: time,
        end: time,
        actor_id: UUID,
        notes: str | None = None,
    ) -> dict:
        """
        Values confirming an appointment with a doctor and a slot.

        The caller runs :meth:`check_assignable` first, before resolving the
        doctor.
        """
        now = self.now()

        values = {
            "doctor_id": doctor["id"],
            "status": AppointmentStatus.CONFIRMED.value,
            "scheduled_date": scheduled_date,
            "scheduled_start": format_time_of_day(start),
            "scheduled_end": format_time_of_day(end),
            "assigned_by": actor_id,
            "updated_by": actor_id,
            "confirmation_message": build_confirmation_message(
                doctor["name"], scheduled_date, start, end
            ),
            "confirmation_sent_at": now,
        }
        if notes:
            values.update(self.append_note(appointment, actor_id, ActorRole.ADMIN, notes))
        return values

    def complete(self, appointment: dict, actor_id: UUID) -> dict:
        """Values marking a visit as done."""
        self.check_transition(appointment, AppointmentStatus.COMPLETED)
        return {
            "status": AppointmentStatus.COMPLETED.value,
            "completed_at": self.now(),
            "updated_by": actor_id,
        }

    def cancel(
        self,
        appointment: dict,
        actor_id: UUID,
        role: ActorRole,
        reason: str | None = None,
    ) -> dict:
        """Values cancelling an appointment; users always leave a reason."""
        self.check_transition(appointment, AppointmentStatus.CANCELLED)
        if not reason and role is ActorRole.USER:
            reason = self.default_cancellation_reason

        values = {
            "status": AppointmentStatus.CANCELLED.value,
            "updated_by": actor_id,
        }
        if reason:
            values["cancellation_reason"] = reason
        return values

    def reschedule(
        self,
        appointment: dict,
        *,
        new_date: date,
        new_start: time | None,
        new_end: time | None,
        reason: str | None,
        requested_by: ActorRole,
        actor_id: UUID,
    ) -> dict:
        """
        Values moving an appointment to a new proposed slot.

        The assigned doctor is kept; the history records the previously
        committed date, or the preferred date if nothing was committed yet.
        """
        self.check_transition(appointment, AppointmentStatus.RESCHEDULED)

        entry = RescheduleEntry(
            previous_date=appointment.get("scheduled_date") or appointment.get("preferred_date"),
            new_date=new_date,
            reason=reason,
            requested_by=requested_by,
            actioned_by=actor_id,
            actioned_at=self.now(),
        )

        return {
            "status": AppointmentStatus.RESCHEDULED.value,
            **self.move_slot(appointment, new_date, new_start, new_end),
            "reschedule_history": [
                *appointment.get("reschedule_history", []),
                entry.model_dump(mode="json"),
            ],
            "updated_by": actor_id,
        }

    def move_slot(
        self,
        appointment: dict,
        new_date: date,
        new_start: time | None,
        new_end: time | None,
    ) -> dict:
        """
        Values moving the committed slot to another day or time.

        Times left out keep their committed value, and an appointment with a
        doctor always keeps a complete window.

        Raises:
            AppointmentRejection: ``invalid_window`` if a doctor-bound
                appointment would lose its times, or the window is inverted
        """
        start = new_start or _stored_time(appointment.get("scheduled_start"))
        end = new_end or _stored_time(appointment.get("scheduled_end"))

        if appointment.get("doctor_id") and (start is None or end is None):
            raise AppointmentRejection(
                RejectionReason.INVALID_WINDOW,
                "Start and end time are required to move an assigned appointment",
            )
        if start is not None and end is not None and end <= start:
            raise AppointmentRejection(
                RejectionReason.INVALID_WINDOW,
                "Appointment end time must be after start time",
            )

        return {
            "scheduled_date": new_date,
            "scheduled_start": format_time_of_day(start) if start else None,
            "scheduled_end": format_time_of_day(end) if end else None,
        }

    def change_status(
        self,
        appointment: dict,
        target: AppointmentStatus,
        actor_id: UUID,
        role: ActorRole,
        reason: str | None = None,
    ) -> dict:
        """Values for a plain status update, with per-status side effects."""
        self.check_doctor_bound(appointment, target)
        if target is AppointmentStatus.COMPLETED:
            return self.complete(appointment, actor_id)
        if target is AppointmentStatus.CANCELLED:
            return self.cancel(appointment, actor_id, role, reason)

        self.check_transition(appointment, target)
        return {"status": target.value, "updated_by": actor_id}

    def append_note(
        self,
        appointment: dict,
        author_id: UUID | None,
        role: ActorRole,
        content: str,
    ) -> dict:
        """Values appending a note; allowed in every status."""
        entry = NoteEntry(author=author_id, role=role, content=content, created_at=self.now())
        return {"notes": [*appointment.get("notes", []), entry.model_dump(mode="json")]}

    def append_prescription(self, appointment: dict, prescription: FileReference) -> dict:
        """Values appending a prescription reference; allowed in every status."""
        stored = prescription.model_copy(
            update={"uploaded_at": prescription.uploaded_at or self.now()}
        )
        return {
            "prescriptions": [
                *appointment.get("prescriptions", []),
                stored.model_dump(mode="json"),
            ]
        }
