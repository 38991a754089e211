"""Concurrent writers on a real file-backed SQLite database never double-book a slot.

The shared-connection engine in conftest cannot interleave two transactions, so
these tests open their own engine with one connection per session.
"""

import asyncio
from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.database import Base
from app.core.exceptions import SchedulingConflict
from app.models.appointment import Appointment
from app.models.appointment_type import AppointmentType  # noqa: F401
from app.models.business import Business, BusinessSettings  # noqa: F401
from app.models.user import User  # noqa: F401
from app.services import booking, catalog
from app.services.booking import BookingInput

DAY = "2026-02-20"


@pytest_asyncio.fixture
async def sessions(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def business_id(sessions):
    async with sessions() as db:
        business = await catalog.create_business(db, "Race Studio")
        await db.commit()
        return business.id


def slot(client_name, time, duration=45):
    return BookingInput(client_name=client_name, date=DAY, time=time, duration_minutes=duration)


async def active_rows(sessions, business_id):
    async with sessions() as db:
        result = await db.execute(
            select(Appointment.start_minute, Appointment.duration_minutes)
            .where(
                Appointment.business_id == business_id,
                Appointment.date == date.fromisoformat(DAY),
                Appointment.status != "cancelled",
            )
            .order_by(Appointment.start_minute)
        )
        return [(start, start + duration) for start, duration in result.all()]


@pytest.mark.asyncio
@pytest.mark.parametrize("writers", [2, 5])
async def test_concurrent_creates_for_same_slot_book_once(sessions, business_id, writers):
    async def create(i):
        async with sessions() as db:
            try:
                await booking.create_appointment(db, business_id, slot(f"Client {i}", f"09:{i * 5:02d}"))
                return "ok"
            except SchedulingConflict:
                return "conflict"

    results = await asyncio.gather(*(create(i) for i in range(writers)))

    assert results.count("ok") == 1
    assert results.count("conflict") == writers - 1
    assert len(await active_rows(sessions, business_id)) == 1


@pytest.mark.asyncio
async def test_concurrent_updates_onto_overlapping_slots(sessions, business_id):
    async with sessions() as db:
        first, _ = await booking.create_appointment(db, business_id, slot("Alice", "09:00"))
        second, _ = await booking.create_appointment(db, business_id, slot("Bob", "11:00"))

    async def move(appointment, time):
        async with sessions() as db:
            try:
                await booking.update_appointment(
                    db, business_id, appointment["id"], slot(appointment["clientName"], time)
                )
                return "ok"
            except SchedulingConflict:
                return "conflict"

    results = await asyncio.gather(move(first, "10:00"), move(second, "10:15"))

    assert sorted(results) == ["conflict", "ok"]
    rows = await active_rows(sessions, business_id)
    assert len(rows) == 2
    assert rows[0][1] <= rows[1][0]


@pytest.mark.asyncio
async def test_concurrent_uncancel_and_create(sessions, business_id):
    async with sessions() as db:
        cancelled, _ = await booking.create_appointment(db, business_id, slot("Alice", "09:00"))
        await booking.set_status(db, business_id, cancelled["id"], "cancelled")

    async def restore():
        async with sessions() as db:
            try:
                await booking.set_status(db, business_id, cancelled["id"], "confirmed")
                return "ok"
            except SchedulingConflict:
                return "conflict"

    async def take_slot():
        async with sessions() as db:
            try:
                await booking.create_appointment(db, business_id, slot("Bob", "09:30"))
                return "ok"
            except SchedulingConflict:
                return "conflict"

    results = await asyncio.gather(restore(), take_slot())

    assert sorted(results) == ["conflict", "ok"]
    assert len(await active_rows(sessions, business_id)) == 1


@pytest.mark.asyncio
async def test_each_writer_sees_the_others_commit(sessions, business_id):
    async with sessions() as db:
        await booking.create_appointment(db, business_id, slot("Alice", "09:00"))

    async with sessions() as db:
        with pytest.raises(SchedulingConflict, match="9:00 AM–9:45 AM"):
            await booking.create_appointment(db, business_id, slot("Bob", "09:30"))

    async with sessions() as db:
        total = await db.scalar(select(func.count()).select_from(Appointment))
    assert total == 1
