"""Unit tests for slot arithmetic and the per-day booking lock."""

import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.exceptions import ValidationError
from app.services import scheduling


@pytest.mark.parametrize("a,b,expected", [
    ((540, 585), (570, 600), True),    # 9:00-9:45 vs 9:30-10:00
    ((540, 585), (585, 615), False),   # touching end/start
    ((600, 660), (540, 600), False),   # touching start/end
    ((540, 660), (570, 580), True),    # containment
    ((540, 600), (540, 600), True),    # identical
])
def test_overlaps_is_half_open(a, b, expected):
    assert scheduling.overlaps(*a, *b) is expected
    assert scheduling.overlaps(*b, *a) is expected


def test_parse_time_to_minutes():
    assert scheduling.parse_time_to_minutes("00:00") == 0
    assert scheduling.parse_time_to_minutes("09:45") == 585
    assert scheduling.parse_time_to_minutes("23:59:59") == 1439
    for bad in ["9:00", "24:00", "12:60", "noon", "", None]:
        with pytest.raises(ValidationError):
            scheduling.parse_time_to_minutes(bad)


def test_parse_date():
    assert scheduling.parse_date("2026-02-20") == date(2026, 2, 20)
    for bad in ["2026-2-20", "2026-13-01", "2026-02-29", None]:
        with pytest.raises(ValidationError):
            scheduling.parse_date(bad)


def test_human_window():
    assert scheduling.human_window(540, 585) == "9:00 AM–9:45 AM"
    assert scheduling.human_window(705, 780) == "11:45 AM–1:00 PM"
    assert scheduling.human_window(0, 30) == "12:00 AM–12:30 AM"
    assert scheduling.human_window(1410, 1440) == "11:30 PM–12:00 AM"


def test_resolve_duration_precedence():
    assert scheduling.resolve_duration(20, 30) == 20
    assert scheduling.resolve_duration(None, 30) == 30
    assert scheduling.resolve_duration(0, None) == 45
    assert scheduling.resolve_duration("60", None) == 60
    for bad in [-1, 7.5, "abc"]:
        with pytest.raises(ValidationError, match="durationMinutes must be greater than 0"):
            scheduling.resolve_duration(bad, None)


def test_business_lock_key_fits_int32():
    for _ in range(50):
        key = scheduling.business_lock_key(uuid.uuid4())
        assert -(2 ** 31) <= key < 2 ** 31
    assert scheduling.date_lock_key(date(2026, 2, 20)) == 20260220


@pytest.mark.asyncio
async def test_lock_booking_day_takes_advisory_lock_on_postgres():
    db = MagicMock()
    db.bind.dialect.name = "postgresql"
    db.execute = AsyncMock()
    business_id = uuid.uuid4()

    await scheduling.lock_booking_day(db, business_id, date(2026, 2, 20))

    db.execute.assert_awaited_once()
    statement, params = db.execute.call_args.args
    assert "pg_advisory_xact_lock" in str(statement)
    assert params == {
        "business_key": scheduling.business_lock_key(business_id),
        "date_key": 20260220,
    }


@pytest.mark.asyncio
async def test_lock_booking_day_takes_write_lock_on_sqlite():
    db = MagicMock()
    db.bind.dialect.name = "sqlite"
    db.execute = AsyncMock()
    await scheduling.lock_booking_day(db, uuid.uuid4(), date(2026, 2, 20))
    db.execute.assert_awaited_once()
    assert str(db.execute.call_args.args[0]) == scheduling.SQLITE_WRITE_LOCK


@pytest.mark.asyncio
async def test_lock_booking_day_is_noop_on_other_dialects():
    db = MagicMock()
    db.bind.dialect.name = "mysql"
    db.execute = AsyncMock()
    await scheduling.lock_booking_day(db, uuid.uuid4(), date(2026, 2, 20))
    db.execute.assert_not_awaited()
