"""Booking engine: appointment create/update/status with the no-overlap rule.

For a fixed business and date, non-cancelled appointments never overlap. The
check and the write share one transaction and run under a per-(business, date)
lock, so two concurrent requests cannot both pass the check for the same slot.
Notifications are post-commit hooks: they run after the booking is durable and
can never roll it back.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, or_, select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFound, SchedulingConflict, ValidationError
from app.models.appointment import Appointment, AppointmentSource, AppointmentStatus
from app.services import catalog, scheduling
from app.services.email_service import email_service
from app.services.notification_service import NotificationSummary, PostCommitHooks

logger = logging.getLogger(__name__)

STATUSES = [s.value for s in AppointmentStatus]
SOURCES = [s.value for s in AppointmentSource]

# Field length limits
MAX_CLIENT_NAME = 200
MAX_CLIENT_EMAIL = 320
MAX_NOTES = 5000
MAX_TITLE = 500


@dataclass
class BookingInput:
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    type_id: Optional[str] = None
    title: Optional[str] = None
    duration_minutes: Optional[float] = None
    location: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class ResolvedBooking:
    day: date
    start_minute: int
    duration_minutes: int
    type_id: Optional[UUID]
    title: str
    client_name: str
    client_email: Optional[str]
    location: str
    notes: Optional[str]


def serialize_appointment(appt: Appointment) -> dict:
    return {
        "id": appt.id,
        "typeId": appt.type_id,
        "typeName": appt.type_name or "General",
        "title": appt.title or appt.type_name or "Appointment",
        "clientName": appt.client_name,
        "clientEmail": appt.client_email,
        "date": appt.date.isoformat(),
        "time": scheduling.minutes_to_hhmm(appt.start_minute),
        "durationMinutes": appt.duration_minutes,
        "location": appt.location,
        "notes": appt.notes,
        "status": appt.status,
        "source": appt.source,
        "createdAt": appt.created_at,
    }


def _validate_lengths(data: BookingInput) -> str:
    client_name = (data.client_name or "").strip()
    if not client_name:
        raise ValidationError("clientName is required")
    if len(client_name) > MAX_CLIENT_NAME:
        raise ValidationError(f"clientName is too long (max {MAX_CLIENT_NAME} characters)")
    if data.client_email and len(data.client_email) > MAX_CLIENT_EMAIL:
        raise ValidationError("clientEmail is too long")
    if data.notes and len(data.notes) > MAX_NOTES:
        raise ValidationError(f"notes is too long (max {MAX_NOTES} characters)")
    if data.title and len(data.title) > MAX_TITLE:
        raise ValidationError(f"title is too long (max {MAX_TITLE} characters)")
    if not data.date:
        raise ValidationError("date is required")
    if not data.time:
        raise ValidationError("time is required")
    return client_name


async def resolve_booking(db: AsyncSession, business_id: UUID, data: BookingInput) -> ResolvedBooking:
    """Validate input and fill defaults from the tenant's active catalog."""
    client_name = _validate_lengths(data)
    day = scheduling.parse_date(data.date)

    appt_type = await catalog.get_active_type(db, business_id, data.type_id)
    duration = scheduling.resolve_duration(
        data.duration_minutes, appt_type.duration_minutes if appt_type else None
    )
    start_minute = scheduling.parse_time_to_minutes(data.time)

    return ResolvedBooking(
        day=day,
        start_minute=start_minute,
        duration_minutes=duration,
        type_id=appt_type.id if appt_type else None,
        title=data.title or (appt_type.name if appt_type else None) or "Appointment",
        client_name=client_name,
        client_email=data.client_email or None,
        location=data.location or (appt_type.location_mode if appt_type else None) or "office",
        notes=data.notes or None,
    )


async def _commit_booking(
    db: AsyncSession,
    business_id: UUID,
    day: date,
    start_minute: int,
    duration_minutes: int,
    exclude_id: Optional[UUID] = None,
) -> None:
    """Commit, translating a storage-level exclusion violation into a conflict."""
    try:
        await db.flush()
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Overlap rejected by storage constraint for business %s: %s", business_id, e.orig)
        blocker = await scheduling.find_blocker(db, business_id, day, start_minute, duration_minutes, exclude_id)
        if blocker is not None:
            raise scheduling.conflict_for(blocker)
        raise SchedulingConflict("Time overlaps with another appointment.")


async def _load(db: AsyncSession, business_id: UUID, appointment_id) -> Appointment:
    appt_uuid = catalog.parse_uuid(appointment_id)
    appt = None
    if appt_uuid is not None:
        result = await db.execute(
            select(Appointment)
            .where(Appointment.id == appt_uuid, Appointment.business_id == business_id)
            .execution_options(populate_existing=True)
        )
        appt = result.scalar_one_or_none()
    if appt is None:
        raise NotFound("appointment not found")
    return appt


async def get_appointment(db: AsyncSession, business_id: UUID, appointment_id) -> dict:
    return serialize_appointment(await _load(db, business_id, appointment_id))


async def _notification_context(db: AsyncSession, business_id: UUID) -> tuple[str, Optional[str]]:
    """(business name, owner alert address or None when owner alerts are off)."""
    row = await catalog.get_settings(db, business_id)
    owner_email = row.owner_email if row.notify_owner_email else None
    return row.business_name or settings.DEFAULT_BUSINESS_NAME, owner_email


# ============================================================================
# CREATE / UPDATE
# ============================================================================

async def create_appointment(
    db: AsyncSession,
    business_id: UUID,
    data: BookingInput,
    source: str = AppointmentSource.OWNER.value,
) -> tuple[dict, NotificationSummary]:
    """Book a slot. Owner bookings are confirmed; public-page bookings start pending."""
    if source not in SOURCES:
        raise ValidationError(f"source must be one of: {', '.join(SOURCES)}")
    resolved = await resolve_booking(db, business_id, data)

    await scheduling.lock_booking_day(db, business_id, resolved.day)
    await scheduling.assert_no_overlap(
        db, business_id, resolved.day, resolved.start_minute, resolved.duration_minutes
    )

    status = AppointmentStatus.PENDING.value if source == AppointmentSource.PUBLIC.value else AppointmentStatus.CONFIRMED.value
    appt = Appointment(
        id=uuid.uuid4(),
        business_id=business_id,
        type_id=resolved.type_id,
        title=resolved.title,
        client_name=resolved.client_name,
        client_email=resolved.client_email,
        date=resolved.day,
        time=scheduling.minutes_to_time(resolved.start_minute),
        start_minute=resolved.start_minute,
        duration_minutes=resolved.duration_minutes,
        location=resolved.location,
        notes=resolved.notes,
        status=status,
        source=source,
    )
    db.add(appt)
    appt_id = appt.id
    await _commit_booking(db, business_id, resolved.day, resolved.start_minute, resolved.duration_minutes)

    appointment = serialize_appointment(await _load(db, business_id, appt_id))
    logger.info(
        "Booked %s for business %s on %s at %s (%d min, %s)",
        appt_id, business_id, appointment["date"], appointment["time"], appointment["durationMinutes"], source,
    )

    business_name, owner_email = await _notification_context(db, business_id)
    hooks = PostCommitHooks()
    if appointment["clientEmail"]:
        hooks.add(
            "client_confirmation",
            lambda: email_service.send_booking_confirmation(appointment["clientEmail"], business_name, appointment),
        )
    if owner_email:
        hooks.add(
            "owner_alert",
            lambda: email_service.send_owner_alert(owner_email, business_name, appointment),
        )
    summary = await hooks.run()
    return appointment, summary


async def update_appointment(db: AsyncSession, business_id: UUID, appointment_id, data: BookingInput) -> dict:
    """Full edit; the edited row is excluded from its own overlap check."""
    appt = await _load(db, business_id, appointment_id)
    resolved = await resolve_booking(db, business_id, data)

    await scheduling.lock_booking_day(db, business_id, resolved.day)
    if appt.status != AppointmentStatus.CANCELLED.value:
        await scheduling.assert_no_overlap(
            db, business_id, resolved.day, resolved.start_minute, resolved.duration_minutes, exclude_id=appt.id
        )

    appt.type_id = resolved.type_id
    appt.title = resolved.title
    appt.client_name = resolved.client_name
    appt.client_email = resolved.client_email
    appt.date = resolved.day
    appt.time = scheduling.minutes_to_time(resolved.start_minute)
    appt.start_minute = resolved.start_minute
    appt.duration_minutes = resolved.duration_minutes
    appt.location = resolved.location
    appt.notes = resolved.notes
    appt_id = appt.id
    await _commit_booking(
        db, business_id, resolved.day, resolved.start_minute, resolved.duration_minutes, exclude_id=appt_id
    )

    return serialize_appointment(await _load(db, business_id, appt_id))


# ============================================================================
# STATUS / DELETE
# ============================================================================

async def set_status(
    db: AsyncSession,
    business_id: UUID,
    appointment_id,
    status: str,
    cancellation_reason: Optional[str] = None,
) -> dict:
    """Move to any status; no transition table so the owner can fix mistakes.

    Leaving ``cancelled`` re-occupies the slot, so that move is overlap-checked.
    """
    if status not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
    appt = await _load(db, business_id, appointment_id)
    previous = appt.status

    if previous == AppointmentStatus.CANCELLED.value and status != previous:
        await scheduling.lock_booking_day(db, business_id, appt.date)
        await scheduling.assert_no_overlap(
            db, business_id, appt.date, appt.start_minute, appt.duration_minutes, exclude_id=appt.id
        )

    appt.status = status
    appt_id = appt.id
    slot = (appt.date, appt.start_minute, appt.duration_minutes)
    await _commit_booking(db, business_id, *slot, exclude_id=appt_id)

    appointment = serialize_appointment(await _load(db, business_id, appt_id))
    logger.info("Appointment %s status %s -> %s", appt_id, previous, status)

    if appointment["clientEmail"]:
        business_name, _ = await _notification_context(db, business_id)
        hooks = PostCommitHooks()
        if status == AppointmentStatus.CANCELLED.value:
            hooks.add(
                "cancellation",
                lambda: email_service.send_cancellation(
                    appointment["clientEmail"], business_name, appointment, cancellation_reason
                ),
            )
        else:
            hooks.add(
                "status_change",
                lambda: email_service.send_status_change(appointment["clientEmail"], business_name, appointment),
            )
        await hooks.run()
    return appointment


async def delete_appointment(db: AsyncSession, business_id: UUID, appointment_id) -> None:
    appt = await _load(db, business_id, appointment_id)
    await db.execute(delete(Appointment).where(Appointment.id == appt.id, Appointment.business_id == business_id))
    await db.commit()
    logger.info("Deleted appointment %s for business %s", appt.id, business_id)


# ============================================================================
# READS
# ============================================================================

async def list_appointments(
    db: AsyncSession,
    business_id: UUID,
    day: Optional[str] = None,
    status: Optional[str] = None,
    q: Optional[str] = None,
) -> list[dict]:
    query = select(Appointment).where(Appointment.business_id == business_id)
    if day:
        query = query.where(Appointment.date == scheduling.parse_date(day))
    if status:
        if status not in STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
        query = query.where(Appointment.status == status)
    if q:
        needle = f"%{q.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(Appointment.client_name).like(needle),
                func.lower(func.coalesce(Appointment.client_email, "")).like(needle),
                func.lower(func.coalesce(Appointment.title, "")).like(needle),
            )
        )
    result = await db.execute(query.order_by(Appointment.date, Appointment.start_minute))
    return [serialize_appointment(a) for a in result.scalars().all()]
