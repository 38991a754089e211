"""Shared test fixtures for Slotbook API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app

# Import all models to ensure they're registered with Base.metadata
from app.models.appointment import Appointment  # noqa: F401
from app.models.appointment_type import AppointmentType  # noqa: F401
from app.models.business import Business, BusinessSettings  # noqa: F401
from app.models.user import User  # noqa: F401


# Use aiosqlite for fast, isolated tests; one shared connection keeps the memory DB alive
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


async def signup(client, business_name="Test Studio", email="owner@example.com"):
    resp = await client.post("/api/v1/auth/signup", json={
        "business_name": business_name,
        "name": "Owner",
        "email": email,
        "password": "testpass123",
    })
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {
        "token": body["access_token"],
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
        "business_id": body["business_id"],
        "user_id": body["user_id"],
        "slug": body["slug"],
    }


@pytest_asyncio.fixture
async def owner(client):
    """A signed-up owner: token, auth headers, business id and public slug."""
    return await signup(client)


@pytest_asyncio.fixture
async def other_owner(client):
    """A second, unrelated tenant."""
    return await signup(client, business_name="Other Clinic", email="other@example.com")


@pytest.fixture
def booking():
    """Factory for appointment request bodies."""
    def _make(**overrides):
        body = {
            "clientName": "Alice",
            "clientEmail": "alice@example.com",
            "date": "2026-02-20",
            "time": "09:00",
            "durationMinutes": 45,
        }
        body.update(overrides)
        return {k: v for k, v in body.items() if v is not None}
    return _make
