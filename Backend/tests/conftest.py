"""
Pytest configuration and fixtures for async database testing.

Every test gets its own SQLite file database (sqlite+aiosqlite) with the full
schema created up front, so tests never share ledger state.
"""
import os

# Must be set before bookly.core.db builds the module-level engine.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "bookly-test-secret-0123456789abcdef")

from datetime import time

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bookly.core.config import get_settings
from bookly.core.db import Base, get_session
from bookly.models import Appointment, AppointmentStatus, Business, Customer, Service

OPEN_WEEK = {
    day: {"enabled": True, "start": "09:00", "end": "17:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
}


@pytest.fixture(scope="function")
async def async_engine(tmp_path):
    """Fresh SQLite file database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookly_test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def async_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def client(session_factory):
    """
    FastAPI AsyncClient with the database dependency overridden.

    Each request gets its own session from the per-test factory.
    """
    from bookly.main import app

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ────────────────────────────────────────────────────────────────
# Data Fixtures
# ────────────────────────────────────────────────────────────────

@pytest.fixture
async def business(async_session):
    """Bella Salon, open 09:00-17:00 every day."""
    business = Business(
        name="Bella Owner",
        business_name="Bella Salon",
        slug="bella-salon",
        phone="+15550001111",
        location="Tempe, AZ",
        working_hours=OPEN_WEEK,
    )
    async_session.add(business)
    await async_session.commit()
    await async_session.refresh(business)
    return business


@pytest.fixture
async def other_business(async_session):
    business = Business(
        name="Other Owner",
        business_name="Other Barbers",
        slug="other-barbers",
        working_hours=OPEN_WEEK,
    )
    async_session.add(business)
    await async_session.commit()
    await async_session.refresh(business)
    return business


async def add_service(session, business, name="Haircut", duration_minutes=60, price_cents=3500):
    service = Service(
        business_id=business.id,
        name=name,
        duration_minutes=duration_minutes,
        price_cents=price_cents,
    )
    session.add(service)
    await session.commit()
    await session.refresh(service)
    return service


async def add_appointment(
    session,
    business,
    service,
    day,
    start,
    status=AppointmentStatus.CONFIRMED,
    phone="+15559990000",
):
    customer = Customer(name="Existing Customer", phone=phone)
    session.add(customer)
    await session.flush()
    appointment = Appointment(
        business_id=business.id,
        customer_id=customer.id,
        service_id=service.id,
        date=day,
        time=time.fromisoformat(start),
        duration_minutes=service.duration_minutes,
        status=status,
    )
    session.add(appointment)
    await session.commit()
    await session.refresh(appointment)
    return appointment


@pytest.fixture
async def service(async_session, business):
    """60-minute Haircut at $35.00."""
    return await add_service(async_session, business)


def make_token(business_id: int, **claims) -> str:
    settings = get_settings()
    payload = {"sub": str(business_id), "business_id": business_id, **claims}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def owner_headers(business):
    return {"Authorization": f"Bearer {make_token(business.id)}"}


@pytest.fixture
def other_owner_headers(other_business):
    return {"Authorization": f"Bearer {make_token(other_business.id)}"}
