"""Double-booking detection for doctor slots."""

from datetime import date, time
from uuid import UUID

from clinic_booking.core.timeslots import format_time_of_day
from clinic_booking.models.appointments import appointments
from clinic_booking.schemas.appointments import AppointmentStatus
from clinic_booking.services.record_store import RecordStore

LIVE_STATUSES = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.RESCHEDULED,
    }
)


async def find_conflicts(
    store: RecordStore,
    doctor_id: UUID,
    scheduled_date: date,
    scheduled_start: time,
    exclude_appointment_id: UUID | None = None,
) -> list[dict]:
    """
    Live appointments already holding a doctor's exact (date, start) slot.

    Collisions are keyed on the exact start time rather than interval
    overlap; slot boundaries from the availability calendar fix the
    granularity.
    """
    rows = await store.find(
        appointments,
        doctor_id=doctor_id,
        scheduled_date=scheduled_date,
        scheduled_start=format_time_of_day(scheduled_start),
        status=sorted(status.value for status in LIVE_STATUSES),
    )
    return [row for row in rows if row["id"] != exclude_appointment_id]


async def has_conflict(
    store: RecordStore,
    doctor_id: UUID,
    scheduled_date: date,
    scheduled_start: time,
    exclude_appointment_id: UUID | None = None,
) -> bool:
    """True iff another live appointment occupies the doctor's slot."""
    conflicts = await find_conflicts(
        store,
        doctor_id,
        scheduled_date,
        scheduled_start,
        exclude_appointment_id,
    )
    return bool(conflicts)
