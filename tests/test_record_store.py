"""Tests for the record store."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from clinic_booking.core.exceptions import (
    DuplicateRecordException,
    RejectionReason,
    StoreFailureException,
)
from clinic_booking.models.accounts import accounts
from clinic_booking.models.appointments import appointments
from clinic_booking.schemas.accounts import AccountRole
from clinic_booking.schemas.appointments import AppointmentStatus


@pytest.mark.asyncio
async def test_create_and_find_by_id(store, patient) -> None:
    """Test created records are returned with defaults applied."""
    found = await store.find_by_id(accounts, patient["id"])
    assert found["email"] == patient["email"]
    assert found["is_active"] is True
    assert await store.find_by_id(accounts, uuid4()) is None


@pytest.mark.asyncio
async def test_find_criteria(store, make_account) -> None:
    """Test equality, membership and enum criteria."""
    doctor = await make_account(AccountRole.DOCTOR)
    user = await make_account(AccountRole.USER)
    await make_account(AccountRole.ADMIN)

    doctors = await store.find(accounts, role=AccountRole.DOCTOR)
    assert [row["id"] for row in doctors] == [doctor["id"]]

    both = await store.find(accounts, role=["doctor", "user"])
    assert {row["id"] for row in both} == {doctor["id"], user["id"]}

    assert (await store.find_one(accounts, email=user["email"]))["id"] == user["id"]


@pytest.mark.asyncio
async def test_none_means_is_null(store, patient, make_appointment) -> None:
    """Test None criteria match missing values."""
    unassigned = await make_appointment(patient)
    rows = await store.find(appointments, doctor_id=None)
    assert [row["id"] for row in rows] == [unassigned["id"]]


@pytest.mark.asyncio
async def test_find_order_and_limit(store, patient, make_appointment) -> None:
    """Test ordering and limits pass through."""
    for category in ("b", "a", "c"):
        await make_appointment(patient, disease_category=category)

    rows = await store.find(
        appointments,
        order_by=[appointments.c.disease_category.asc()],
        limit=2,
        user_id=patient["id"],
    )
    assert [row["disease_category"] for row in rows] == ["a", "b"]


@pytest.mark.asyncio
async def test_save_updates_every_field(store, patient, make_appointment) -> None:
    """Test save writes all values and returns the stored record."""
    appointment = await make_appointment(patient)

    saved = await store.save(
        appointments,
        appointment["id"],
        {"status": AppointmentStatus.DECLINED, "cancellation_reason": "No slots"},
    )

    assert saved["status"] == "declined"
    assert saved["cancellation_reason"] == "No slots"
    assert await store.find_by_id(appointments, appointment["id"]) == saved


@pytest.mark.asyncio
async def test_save_missing_record(store) -> None:
    """Test saving a missing record returns None."""
    assert await store.save(appointments, uuid4(), {"status": "declined"}) is None


@pytest.mark.asyncio
async def test_delete_one(store, patient, make_appointment) -> None:
    """Test delete_one reports whether something was removed."""
    appointment = await make_appointment(patient)

    assert await store.delete_one(appointments, id=appointment["id"]) is True
    assert await store.delete_one(appointments, id=appointment["id"]) is False
    assert await store.find_by_id(appointments, appointment["id"]) is None


@pytest.mark.asyncio
async def test_unique_violation_maps_to_duplicate(store, patient) -> None:
    """Test integrity errors surface as duplicate records and leave the session usable."""
    with pytest.raises(DuplicateRecordException):
        await store.create(
            accounts,
            {
                "name": "Copy",
                "email": patient["email"],
                "password_hash": "!unusable",
                "role": "user",
            },
        )

    assert await store.find_by_id(accounts, patient["id"]) is not None


@pytest.mark.asyncio
async def test_driver_fault_maps_to_store_failure(monkeypatch, store) -> None:
    """Test driver faults surface as retryable store failures."""
    monkeypatch.setattr(
        store.db,
        "execute",
        AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("disk I/O error"))),
    )

    with pytest.raises(StoreFailureException) as exc_info:
        await store.find_by_id(accounts, uuid4())

    assert exc_info.value.reason is RejectionReason.STORE_FAILURE
    assert exc_info.value.retryable is True
