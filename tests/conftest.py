import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date
from uuid import uuid4

# Settings are read at import time; point them at throwaway values first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-clinic-booking")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from clinic_booking.core.security import create_access_token
from clinic_booking.database import get_db
from clinic_booking.main import app
from clinic_booking.models import accounts, appointments, doctor_profiles, metadata
from clinic_booking.schemas.accounts import AccountRole, Actor
from clinic_booking.services.record_store import RecordStore

# Placeholder credential hash for accounts that never log in
UNUSED_PASSWORD_HASH = "!unusable"


@pytest_asyncio.fixture
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh SQLite file."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture
def store(db_session: AsyncSession) -> RecordStore:
    """Record store over the test session."""
    return RecordStore(db_session)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_account(store: RecordStore) -> Callable[..., Awaitable[dict]]:
    """Factory inserting an account row."""

    async def _make(
        role: AccountRole = AccountRole.USER,
        name: str | None = None,
        is_active: bool = True,
    ) -> dict:
        suffix = uuid4().hex[:8]
        return await store.create(
            accounts,
            {
                "name": name or f"{role.value.title()} {suffix}",
                "email": f"{role.value}-{suffix}@example.com",
                "password_hash": UNUSED_PASSWORD_HASH,
                "role": role.value,
                "is_active": is_active,
            },
        )

    return _make


@pytest.fixture
def make_profile(store: RecordStore) -> Callable[..., Awaitable[dict]]:
    """Factory inserting a doctor availability profile."""

    async def _make(doctor: dict, availability: list[dict] | None = None) -> dict:
        return await store.create(
            doctor_profiles,
            {
                "doctor_id": doctor["id"],
                "specialization": "General Medicine",
                "experience": 5,
                "availability": availability or [],
                "emergency_holidays": [],
            },
        )

    return _make


@pytest.fixture
def make_appointment(store: RecordStore) -> Callable[..., Awaitable[dict]]:
    """Factory inserting an appointment row."""

    async def _make(user: dict, **overrides) -> dict:
        values = {
            "user_id": user["id"],
            "disease_category": "Cardiology",
            "symptoms": "Chest pain after exercise",
            "preferred_date": date(2024, 6, 1),
            "preferred_start": "10:00",
            "preferred_end": "10:30",
            "status": "pending",
            "reschedule_history": [],
            "notes": [],
            "prescriptions": [],
            "documents": [],
            "created_by": user["id"],
        }
        values.update(overrides)
        return await store.create(appointments, values)

    return _make


@pytest_asyncio.fixture
async def admin(make_account) -> dict:
    """An active admin account."""
    return await make_account(AccountRole.ADMIN, name="Ada Admin")


@pytest_asyncio.fixture
async def doctor(make_account) -> dict:
    """An active doctor account without a profile."""
    return await make_account(AccountRole.DOCTOR, name="Grey")


@pytest_asyncio.fixture
async def patient(make_account) -> dict:
    """An active user account."""
    return await make_account(AccountRole.USER, name="Pat Patient")


def as_actor(account: dict) -> Actor:
    """Actor identity for an account row."""
    return Actor(account_id=account["id"], role=AccountRole(account["role"]))


@pytest.fixture
def actor_for() -> Callable[[dict], Actor]:
    """Build the verified actor for an account row."""
    return as_actor


@pytest.fixture
def auth_headers_for() -> Callable[[dict], dict]:
    """Build bearer headers for an account row."""

    def _headers(account: dict) -> dict:
        token = create_access_token(str(account["id"]), account["role"])
        return {"Authorization": f"Bearer {token}"}

    return _headers
