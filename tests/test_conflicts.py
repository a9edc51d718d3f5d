"""Tests for the double-booking detector."""

from datetime import date, time
from uuid import uuid4

import pytest

from clinic_booking.services.conflicts import find_conflicts, has_conflict

JUNE_1 = date(2024, 6, 1)


async def booked(make_appointment, patient, doctor, status="confirmed"):
    return await make_appointment(
        patient,
        doctor_id=doctor["id"],
        status=status,
        scheduled_date=JUNE_1,
        scheduled_start="10:00",
        scheduled_end="10:30",
    )


@pytest.mark.asyncio
async def test_live_booking_conflicts(store, doctor, patient, make_appointment) -> None:
    """Test a confirmed booking at the same date and start is a conflict."""
    existing = await booked(make_appointment, patient, doctor)

    conflicts = await find_conflicts(store, doctor["id"], JUNE_1, time(10, 0))

    assert [row["id"] for row in conflicts] == [existing["id"]]
    assert await has_conflict(store, doctor["id"], JUNE_1, time(10, 0)) is True


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["pending", "rescheduled"])
async def test_other_live_statuses_conflict(store, doctor, patient, make_appointment, status) -> None:
    """Test every live status holds its slot."""
    await booked(make_appointment, patient, doctor, status=status)
    assert await has_conflict(store, doctor["id"], JUNE_1, time(10, 0)) is True


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["completed", "cancelled", "declined"])
async def test_terminal_statuses_do_not_conflict(
    store, doctor, patient, make_appointment, status
) -> None:
    """Test terminal appointments release their slot."""
    await booked(make_appointment, patient, doctor, status=status)
    assert await has_conflict(store, doctor["id"], JUNE_1, time(10, 0)) is False


@pytest.mark.asyncio
async def test_self_is_excluded(store, doctor, patient, make_appointment) -> None:
    """Test an appointment never conflicts with itself."""
    existing = await booked(make_appointment, patient, doctor)
    assert await has_conflict(store, doctor["id"], JUNE_1, time(10, 0), existing["id"]) is False
    assert await has_conflict(store, doctor["id"], JUNE_1, time(10, 0), uuid4()) is True


@pytest.mark.asyncio
async def test_exact_start_only(store, doctor, patient, make_appointment) -> None:
    """Test different starts on the same day do not collide, even when overlapping."""
    await booked(make_appointment, patient, doctor)
    assert await has_conflict(store, doctor["id"], JUNE_1, time(10, 15)) is False
    assert await has_conflict(store, doctor["id"], date(2024, 6, 2), time(10, 0)) is False


@pytest.mark.asyncio
async def test_other_doctor_does_not_conflict(store, doctor, patient, make_appointment) -> None:
    """Test slots are per doctor."""
    await booked(make_appointment, patient, doctor)
    assert await has_conflict(store, uuid4(), JUNE_1, time(10, 0)) is False
