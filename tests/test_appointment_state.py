"""Tests for the appointment state machine."""

from datetime import date, time
from uuid import uuid4

import pytest

from clinic_booking.core.exceptions import AppointmentRejection, RejectionReason
from clinic_booking.schemas.appointments import ActorRole, AppointmentStatus, FileReference
from clinic_booking.services.appointment_state import (
    TERMINAL_STATUSES,
    AppointmentStateMachine,
    build_confirmation_message,
)

ACTOR = uuid4()


def record(status: str = "pending", **fields) -> dict:
    base = {
        "id": uuid4(),
        "status": status,
        "doctor_id": None,
        "preferred_date": date(2024, 6, 1),
        "scheduled_date": None,
        "reschedule_history": [],
        "notes": [],
        "prescriptions": [],
    }
    base.update(fields)
    return base


def test_terminal_statuses():
    """Test completed, cancelled and declined have no outgoing edges."""
    assert TERMINAL_STATUSES == {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.DECLINED,
    }


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        ("pending", "confirmed", True),
        ("pending", "declined", True),
        ("pending", "completed", False),
        ("confirmed", "rescheduled", True),
        ("confirmed", "completed", True),
        ("confirmed", "declined", False),
        ("rescheduled", "confirmed", True),
        ("completed", "cancelled", False),
        ("cancelled", "confirmed", False),
    ],
)
def test_transition_graph(current, target, allowed):
    """Test the transition graph edges."""
    assert (
        AppointmentStateMachine.can_transition(
            AppointmentStatus(current), AppointmentStatus(target)
        )
        is allowed
    )


def test_lenient_mode_allows_leaving_terminal_state():
    """Test the default mode only records the change."""
    machine = AppointmentStateMachine()
    values = machine.change_status(
        record("completed", doctor_id=uuid4()), AppointmentStatus.CONFIRMED, ACTOR, ActorRole.DOCTOR
    )
    assert values["status"] == "confirmed"


def test_strict_mode_blocks_terminal_state():
    """Test strict mode refuses moves out of a terminal state."""
    machine = AppointmentStateMachine(strict=True)
    with pytest.raises(AppointmentRejection) as exc_info:
        machine.change_status(
            record("completed", doctor_id=uuid4()), AppointmentStatus.CONFIRMED, ACTOR, ActorRole.DOCTOR
        )
    assert exc_info.value.reason is RejectionReason.INVALID_STATE


@pytest.mark.parametrize("target", [AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED])
def test_status_change_requires_doctor(target):
    """Test confirmed and completed are refused while no doctor is bound."""
    machine = AppointmentStateMachine()
    with pytest.raises(AppointmentRejection) as exc_info:
        machine.change_status(record(), target, ACTOR, ActorRole.ADMIN)
    assert exc_info.value.reason is RejectionReason.INVALID_STATE


def test_status_change_without_doctor_allows_other_statuses():
    """Test unassigned appointments can still be declined or cancelled."""
    machine = AppointmentStateMachine()
    values = machine.change_status(record(), AppointmentStatus.DECLINED, ACTOR, ActorRole.ADMIN)
    assert values["status"] == "declined"


def test_assign_guard_rejects_confirmed_with_doctor():
    """Test settled appointments cannot be re-assigned."""
    machine = AppointmentStateMachine()
    with pytest.raises(AppointmentRejection) as exc_info:
        machine.check_assignable(record("confirmed", doctor_id=uuid4()))
    assert exc_info.value.reason is RejectionReason.INVALID_STATE


def test_assign_sets_schedule_and_message():
    """Test assignment values carry doctor, slot, audit fields and message."""
    machine = AppointmentStateMachine()
    doctor = {"id": uuid4(), "name": "Grey"}

    values = machine.assign(
        record(),
        doctor=doctor,
        scheduled_date=date(2024, 6, 1),
        start=time(10),
        end=time(10, 30),
        actor_id=ACTOR,
        notes="Bring previous ECG",
    )

    assert values["doctor_id"] == doctor["id"]
    assert values["status"] == "confirmed"
    assert values["scheduled_start"] == "10:00"
    assert values["scheduled_end"] == "10:30"
    assert values["assigned_by"] == ACTOR
    assert values["confirmation_sent_at"] is not None
    assert "Dr. Grey" in values["confirmation_message"]
    assert "2024-06-01" in values["confirmation_message"]
    assert values["notes"][0]["role"] == "admin"


def test_confirmation_message():
    """Test the confirmation text embeds doctor, date and times."""
    message = build_confirmation_message("Grey", date(2024, 6, 1), time(9), time(9, 30))
    assert message == (
        "Your appointment with Dr. Grey is confirmed for 2024-06-01 from 09:00 to 09:30."
    )


def test_complete_stamps_completed_at():
    """Test completion records when it happened."""
    values = AppointmentStateMachine().complete(record("confirmed"), ACTOR)
    assert values["status"] == "completed"
    assert values["completed_at"] is not None


def test_user_cancel_defaults_reason():
    """Test users always leave a cancellation reason."""
    machine = AppointmentStateMachine(default_cancellation_reason="Cancelled by user")
    values = machine.cancel(record(), ACTOR, ActorRole.USER)
    assert values["cancellation_reason"] == "Cancelled by user"


def test_admin_cancel_keeps_given_reason_only():
    """Test non-user cancellations do not invent a reason."""
    machine = AppointmentStateMachine()
    assert "cancellation_reason" not in machine.cancel(record(), ACTOR, ActorRole.ADMIN)
    values = machine.cancel(record(), ACTOR, ActorRole.ADMIN, "Clinic closed")
    assert values["cancellation_reason"] == "Clinic closed"


def test_reschedule_records_previous_date_and_keeps_doctor():
    """Test a reschedule appends history and leaves the doctor alone."""
    doctor_id = uuid4()
    appointment = record(
        "confirmed",
        doctor_id=doctor_id,
        scheduled_date=date(2024, 6, 1),
        reschedule_history=[{"requested_by": "user", "actioned_at": "2024-05-01T00:00:00"}],
    )

    values = AppointmentStateMachine().reschedule(
        appointment,
        new_date=date(2024, 6, 8),
        new_start=time(11),
        new_end=time(11, 30),
        reason="Travelling",
        requested_by=ActorRole.USER,
        actor_id=ACTOR,
    )

    assert "doctor_id" not in values
    assert values["status"] == "rescheduled"
    assert values["scheduled_date"] == date(2024, 6, 8)
    assert values["scheduled_start"] == "11:00"
    assert len(values["reschedule_history"]) == 2
    entry = values["reschedule_history"][-1]
    assert entry["previous_date"] == "2024-06-01"
    assert entry["new_date"] == "2024-06-08"
    assert entry["requested_by"] == "user"


def test_reschedule_falls_back_to_preferred_date():
    """Test history uses the preferred date before anything is committed."""
    values = AppointmentStateMachine().reschedule(
        record(),
        new_date=date(2024, 6, 8),
        new_start=None,
        new_end=None,
        reason=None,
        requested_by=ActorRole.USER,
        actor_id=ACTOR,
    )
    assert values["reschedule_history"][0]["previous_date"] == "2024-06-01"
    assert values["scheduled_start"] is None


def test_notes_append_in_order():
    """Test successive notes accumulate without overwriting."""
    machine = AppointmentStateMachine()
    appointment = record()

    appointment.update(machine.append_note(appointment, ACTOR, ActorRole.DOCTOR, "first"))
    appointment.update(machine.append_note(appointment, None, ActorRole.SYSTEM, "second"))

    assert [note["content"] for note in appointment["notes"]] == ["first", "second"]
    assert appointment["notes"][0]["role"] == "doctor"
    assert appointment["notes"][0]["author"] == str(ACTOR)
    assert appointment["notes"][1]["role"] == "system"
    assert all(note["created_at"] for note in appointment["notes"])


def test_notes_allowed_on_terminal_state_even_when_strict():
    """Test appends never depend on status."""
    machine = AppointmentStateMachine(strict=True)
    values = machine.append_note(record("cancelled"), ACTOR, ActorRole.ADMIN, "late note")
    assert len(values["notes"]) == 1


def test_prescription_append_stamps_upload_time():
    """Test prescription references are appended with a timestamp."""
    values = AppointmentStateMachine().append_prescription(
        record("completed"),
        FileReference(file_name="rx.pdf", file_url="https://files.example/rx.pdf"),
    )
    assert values["prescriptions"][0]["file_name"] == "rx.pdf"
    assert values["prescriptions"][0]["uploaded_at"] is not None


def test_move_slot_keeps_committed_times():
    """Test moving only the date keeps the committed window."""
    appointment = record(
        "confirmed",
        doctor_id=uuid4(),
        scheduled_date=date(2024, 6, 1),
        scheduled_start="10:00",
        scheduled_end="10:30",
    )

    values = AppointmentStateMachine().move_slot(appointment, date(2024, 6, 8), None, None)

    assert values == {
        "scheduled_date": date(2024, 6, 8),
        "scheduled_start": "10:00",
        "scheduled_end": "10:30",
    }


def test_move_slot_requires_window_when_doctor_bound():
    """Test an assigned appointment cannot be left without times."""
    appointment = record("rescheduled", doctor_id=uuid4(), scheduled_date=date(2024, 6, 1))
    with pytest.raises(AppointmentRejection) as exc_info:
        AppointmentStateMachine().move_slot(appointment, date(2024, 6, 8), time(9), None)
    assert exc_info.value.reason is RejectionReason.INVALID_WINDOW


def test_move_slot_rejects_inverted_window():
    """Test the end of the moved window must follow its start."""
    appointment = record(
        "confirmed",
        doctor_id=uuid4(),
        scheduled_start="10:00",
        scheduled_end="10:30",
    )
    with pytest.raises(AppointmentRejection) as exc_info:
        AppointmentStateMachine().move_slot(appointment, date(2024, 6, 8), time(11), None)
    assert exc_info.value.reason is RejectionReason.INVALID_WINDOW
