"""Slot arithmetic and the no-overlap check.

A slot is the half-open interval [start, start + duration) in minutes since
midnight of a tenant-local day. Two slots conflict iff
``a_start < b_end and a_end > b_start``; touching endpoints are compatible.
"""

import logging
import re
from datetime import date, time
from typing import Optional
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import SchedulingConflict, ValidationError
from app.models.appointment import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::[0-5]\d)?$")


def parse_date(value) -> date:
    """Parse a YYYY-MM-DD calendar day."""
    if isinstance(value, date):
        return value
    raw = str(value or "")
    if not DATE_RE.match(raw):
        raise ValidationError("date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError("date must be a valid calendar day")


def parse_time_to_minutes(value) -> int:
    """Parse HH:MM (24h, optional :SS) into minutes since midnight."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    match = TIME_RE.match(str(value or ""))
    if not match:
        raise ValidationError("time must be in HH:MM format")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> time:
    return time(hour=minutes // 60, minute=minutes % 60)


def minutes_to_hhmm(minutes: int) -> str:
    """Convert minutes since midnight to HH:MM string."""
    minutes = max(0, int(minutes))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def human_time(minutes: int) -> str:
    """9:00 AM style label. 24:00 (end of a slot ending at midnight) wraps to 12:00 AM."""
    h, m = divmod(int(minutes), 60)
    suffix = "PM" if h % 24 >= 12 else "AM"
    h12 = (h + 11) % 12 + 1
    return f"{h12}:{m:02d} {suffix}"


def human_window(start: int, end: int) -> str:
    return f"{human_time(start)}–{human_time(end)}"


def resolve_duration(explicit, type_default: Optional[int]) -> int:
    """Explicit value, else the type's default, else the configured default."""
    raw = explicit if explicit not in (None, "", 0) else (type_default or settings.DEFAULT_DURATION_MINUTES)
    try:
        duration = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("durationMinutes must be greater than 0")
    if duration <= 0 or duration != float(raw):
        raise ValidationError("durationMinutes must be greater than 0")
    return duration


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def date_lock_key(day: date) -> int:
    return day.year * 10000 + day.month * 100 + day.day


def business_lock_key(business_id: UUID) -> int:
    """Fold a UUID into a signed 32-bit key for pg_advisory_xact_lock(int, int)."""
    folded = business_id.int & 0xFFFFFFFF
    return folded - (1 << 32) if folded >= (1 << 31) else folded


# Matches no rows but still takes the RESERVED lock and starts the transaction
SQLITE_WRITE_LOCK = "UPDATE businesses SET id = id WHERE 0"


async def lock_booking_day(db: AsyncSession, business_id: UUID, day: date) -> None:
    """Serialize writers for one tenant/day until the transaction ends.

    PostgreSQL takes a transaction-scoped advisory lock (the exclusion constraint
    is the backstop). SQLite has one writer lock per database file; a no-op
    UPDATE opens the write transaction here, before the overlap check reads, so
    a concurrent writer blocks on it until this transaction commits.
    """
    dialect = db.bind.dialect.name
    if dialect == "sqlite":
        await db.execute(text(SQLITE_WRITE_LOCK))
        return
    if dialect != "postgresql":
        return
    await db.execute(
        text("SELECT pg_advisory_xact_lock(:business_key, :date_key)"),
        {"business_key": business_lock_key(business_id), "date_key": date_lock_key(day)},
    )


async def active_appointments_for_day(db: AsyncSession, business_id: UUID, day: date) -> list[Appointment]:
    result = await db.execute(
        select(Appointment)
        .where(
            Appointment.business_id == business_id,
            Appointment.date == day,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )
        .order_by(Appointment.start_minute)
    )
    return list(result.scalars().all())


async def find_blocker(
    db: AsyncSession,
    business_id: UUID,
    day: date,
    start_minute: int,
    duration_minutes: int,
    exclude_id: Optional[UUID] = None,
) -> Optional[Appointment]:
    """Return the first active appointment whose slot intersects the candidate."""
    end_minute = start_minute + duration_minutes
    for other in await active_appointments_for_day(db, business_id, day):
        if exclude_id is not None and other.id == exclude_id:
            continue
        if overlaps(start_minute, end_minute, other.start_minute, other.end_minute):
            return other
    return None


def conflict_for(blocker: Appointment) -> SchedulingConflict:
    window = human_window(blocker.start_minute, blocker.end_minute)
    return SchedulingConflict(f"Time overlaps with another appointment ({window}).", window=window)


async def assert_no_overlap(
    db: AsyncSession,
    business_id: UUID,
    day: date,
    start_minute: int,
    duration_minutes: int,
    exclude_id: Optional[UUID] = None,
) -> None:
    blocker = await find_blocker(db, business_id, day, start_minute, duration_minutes, exclude_id)
    if blocker is not None:
        conflict = conflict_for(blocker)
        logger.info(
            "Booking conflict for business %s on %s at %s: blocked by %s (%s)",
            business_id, day, minutes_to_hhmm(start_minute), blocker.id, conflict.window,
        )
        raise conflict


async def available_slots(
    db: AsyncSession,
    business_id: UUID,
    day,
    duration_minutes=None,
    open_time: str | None = None,
    close_time: str | None = None,
) -> list[str]:
    """Free start times on the public booking grid for one day."""
    target = parse_date(day)
    duration = resolve_duration(duration_minutes, None)
    window_start = parse_time_to_minutes(open_time or settings.PUBLIC_BOOKING_OPEN_TIME)
    window_end = parse_time_to_minutes(close_time or settings.PUBLIC_BOOKING_CLOSE_TIME)
    if window_end <= window_start:
        raise ValidationError("closeTime must be later than openTime")

    blockers = [(a.start_minute, a.end_minute) for a in await active_appointments_for_day(db, business_id, target)]

    slots = []
    slot_start = window_start
    while slot_start + duration <= window_end:
        slot_end = slot_start + duration
        if not any(overlaps(slot_start, slot_end, b_start, b_end) for b_start, b_end in blockers):
            slots.append(minutes_to_hhmm(slot_start))
        slot_start += settings.PUBLIC_SLOT_INTERVAL_MINUTES
    return slots
