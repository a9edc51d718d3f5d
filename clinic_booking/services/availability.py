"""Doctor availability matching."""

from collections.abc import Iterable
from datetime import date, time
from enum import Enum

from clinic_booking.schemas.doctors import AvailabilitySlot, parse_slots


class AvailabilityMatch(str, Enum):
    """Outcome of checking a window against a doctor's calendar."""

    MATCHED = "matched"
    NO_MATCHING_SLOT = "no_matching_slot"
    NOT_CONFIGURED = "not_configured"


def slot_covers(slot: AvailabilitySlot, target_date: date, start: time, end: time) -> bool:
    """True when an open slot on the same calendar day contains the whole window."""
    return (
        not slot.is_closed
        and slot.date == target_date
        and slot.start_time <= start
        and slot.end_time >= end
    )


def match_availability(
    slots: Iterable[dict | AvailabilitySlot],
    target_date: date,
    start: time,
    end: time,
) -> AvailabilityMatch:
    """
    Check a window against a doctor's availability calendar.

    An empty calendar is reported separately from a calendar that has slots
    but none covering the window: doctors who never configured hours stay
    assignable.

    Args:
        slots: Availability slots, in any order and possibly overlapping
        target_date: Calendar day of the candidate window
        start: Window start
        end: Window end

    Returns:
        Match outcome
    """
    raw_slots = list(slots)
    if not raw_slots:
        return AvailabilityMatch.NOT_CONFIGURED

    parsed = parse_slots(raw_slots)
    if any(slot_covers(slot, target_date, start, end) for slot in parsed):
        return AvailabilityMatch.MATCHED

    return AvailabilityMatch.NO_MATCHING_SLOT


def is_within_availability(
    slots: Iterable[dict | AvailabilitySlot],
    target_date: date,
    start: time,
    end: time,
) -> bool:
    """True iff some open slot covers the window; False for an empty calendar too."""
    return match_availability(slots, target_date, start, end) is AvailabilityMatch.MATCHED
