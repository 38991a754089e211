"""Tenant backup export and all-or-nothing restore.

Import runs in a single transaction: settings overwrite, wipe of the tenant's
appointments and types, re-insert of types (old id -> new id map), re-insert of
appointments with type ids remapped through that map. Any failure rolls the
whole sequence back and the tenant keeps its prior data.

Restored appointments are not overlap-checked; a backup is trusted to be
internally consistent. On PostgreSQL the exclusion constraint still rejects
overlapping rows, which fails the import as a conflict.
"""

import logging
import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import SchedulingConflict, ValidationError
from app.models.appointment import Appointment, AppointmentSource, AppointmentStatus
from app.models.appointment_type import AppointmentType, LocationMode
from app.services import catalog, scheduling

logger = logging.getLogger(__name__)

BUNDLE_VERSION = 1

STATUSES = {s.value for s in AppointmentStatus}
SOURCES = {s.value for s in AppointmentSource}


def _iso(value) -> str | None:
    return value.isoformat() if value else None


async def export_data(db: AsyncSession, business_id: UUID) -> dict:
    """Snapshot business, settings, full type history (inactive too) and appointments."""
    business = await catalog.get_business(db, business_id)
    settings_row = await catalog.get_settings(db, business_id)
    types = await catalog.list_types(db, business_id, active_only=False)
    result = await db.execute(
        select(Appointment)
        .where(Appointment.business_id == business_id)
        .order_by(Appointment.date, Appointment.start_minute, Appointment.created_at)
    )
    appointments = result.scalars().all()

    logger.info("Exporting business %s: %d types, %d appointments", business_id, len(types), len(appointments))
    return {
        "version": BUNDLE_VERSION,
        "exportedAt": datetime.utcnow().isoformat() + "Z",
        "business": {
            "id": str(business.id),
            "name": business.name,
            "slug": business.slug,
            "owner_email": business.owner_email,
            "timezone": business.timezone,
        },
        "settings": {
            "business_name": settings_row.business_name,
            "owner_email": settings_row.owner_email,
            "timezone": settings_row.timezone,
            "notify_owner_email": bool(settings_row.notify_owner_email),
        },
        "appointmentTypes": [
            {
                "id": str(t.id),
                "name": t.name,
                "duration_minutes": t.duration_minutes,
                "price_cents": t.price_cents,
                "location_mode": t.location_mode,
                "color": t.color,
                "active": bool(t.active),
                "created_at": _iso(t.created_at),
            }
            for t in types
        ],
        "appointments": [
            {
                "id": str(a.id),
                "type_id": str(a.type_id) if a.type_id else None,
                "title": a.title,
                "client_name": a.client_name,
                "client_email": a.client_email,
                "date": a.date.isoformat(),
                "time": scheduling.minutes_to_hhmm(a.start_minute),
                "duration_minutes": a.duration_minutes,
                "location": a.location,
                "notes": a.notes,
                "status": a.status,
                "source": a.source,
                "created_at": _iso(a.created_at),
            }
            for a in appointments
        ],
    }


def normalize_bundle(bundle) -> dict:
    if not isinstance(bundle, dict):
        raise ValidationError("Invalid backup payload.")

    def _dict(key):
        value = bundle.get(key)
        return value if isinstance(value, dict) else {}

    def _list(key):
        value = bundle.get(key)
        return value if isinstance(value, list) else []

    return {
        "business": _dict("business"),
        "settings": _dict("settings"),
        "appointmentTypes": _list("appointmentTypes"),
        "appointments": _list("appointments"),
    }


def _merged_settings(payload: dict) -> dict:
    s, b = payload["settings"], payload["business"]
    name = str(s.get("business_name") or b.get("name") or b.get("business_name") or "").strip()
    notify = s.get("notify_owner_email")
    return {
        "business_name": name or settings.DEFAULT_BUSINESS_NAME,
        "owner_email": s.get("owner_email") or b.get("owner_email") or None,
        "timezone": s.get("timezone") or b.get("timezone") or settings.DEFAULT_TIMEZONE,
        "notify_owner_email": True if notify is None else bool(notify),
    }


def _positive_int(value, default: int, field: str, row_no: int) -> int:
    raw = default if value in (None, "", 0) else value
    try:
        number = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} is invalid in row {row_no}")
    if number <= 0:
        raise ValidationError(f"{field} must be greater than 0 in row {row_no}")
    return number


def _type_row(business_id: UUID, t, row_no: int) -> AppointmentType:
    if not isinstance(t, dict):
        raise ValidationError(f"appointment type row {row_no} is not an object")
    mode = str(t.get("location_mode") or LocationMode.HYBRID.value)
    if mode not in catalog.LOCATION_MODES:
        raise ValidationError(f"location_mode is invalid in appointment type row {row_no}")
    try:
        price = int(t.get("price_cents") or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"price_cents is invalid in appointment type row {row_no}")
    return AppointmentType(
        id=uuid.uuid4(),
        business_id=business_id,
        name=str(t.get("name") or "General").strip() or "General",
        duration_minutes=_positive_int(t.get("duration_minutes"), 45, "duration_minutes", row_no),
        price_cents=max(price, 0),
        location_mode=mode,
        color=t.get("color") or None,
        active=True if t.get("active") is None else bool(t.get("active")),
    )


def _appointment_row(business_id: UUID, a, type_map: dict, row_no: int) -> Appointment:
    if not isinstance(a, dict):
        raise ValidationError(f"appointment row {row_no} is not an object")
    try:
        day = scheduling.parse_date(a.get("date") or datetime.utcnow().date().isoformat())
        start_minute = scheduling.parse_time_to_minutes(str(a.get("time") or "09:00")[:5])
    except ValidationError as e:
        raise ValidationError(f"{e.message} in appointment row {row_no}")
    status = str(a.get("status") or AppointmentStatus.CONFIRMED.value)
    if status not in STATUSES:
        raise ValidationError(f"status is invalid in appointment row {row_no}")
    source = str(a.get("source") or AppointmentSource.OWNER.value)
    if source not in SOURCES:
        raise ValidationError(f"source is invalid in appointment row {row_no}")

    old_type_id = a.get("type_id")
    return Appointment(
        id=uuid.uuid4(),
        business_id=business_id,
        type_id=None if old_type_id is None else type_map.get(str(old_type_id)),
        title=a.get("title") or None,
        client_name=str(a.get("client_name") or "Client").strip() or "Client",
        client_email=a.get("client_email") or None,
        date=day,
        time=scheduling.minutes_to_time(start_minute),
        start_minute=start_minute,
        duration_minutes=_positive_int(a.get("duration_minutes"), 45, "duration_minutes", row_no),
        location=str(a.get("location") or "office"),
        notes=a.get("notes") or None,
        status=status,
        source=source,
    )


async def import_data(db: AsyncSession, business_id: UUID, bundle) -> dict:
    payload = normalize_bundle(bundle)
    merged = _merged_settings(payload)

    try:
        # (a) settings overwrite
        await catalog.update_settings(db, business_id, merged)

        # (b) wipe tenant data; appointments first, they reference types
        await db.execute(delete(Appointment).where(Appointment.business_id == business_id))
        await db.execute(delete(AppointmentType).where(AppointmentType.business_id == business_id))

        # (c) types, remembering old id -> new id
        type_map: dict[str, UUID] = {}
        for row_no, t in enumerate(payload["appointmentTypes"], start=1):
            row = _type_row(business_id, t, row_no)
            db.add(row)
            if t.get("id") is not None:
                type_map[str(t["id"])] = row.id
        await db.flush()

        # (d) appointments, type ids remapped (unknown -> None)
        for row_no, a in enumerate(payload["appointments"], start=1):
            db.add(_appointment_row(business_id, a, type_map, row_no))
        await db.flush()

        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Import for business %s rejected by storage constraint: %s", business_id, e.orig)
        raise SchedulingConflict("Backup contains overlapping appointments.")
    except Exception:
        await db.rollback()
        logger.warning("Import for business %s rolled back", business_id)
        raise

    result = {
        "importedTypes": len(payload["appointmentTypes"]),
        "importedAppointments": len(payload["appointments"]),
    }
    logger.info("Imported backup for business %s: %s", business_id, result)
    return result
