"""Tenant catalog store: businesses, settings, and appointment types.

Pure data access. The only rule enforced here is tenant scoping: every lookup
filters on business_id, so a foreign id behaves exactly like a missing one.
"""

import logging
import re
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFound, ValidationError
from app.models.appointment_type import AppointmentType, LocationMode
from app.models.business import Business, BusinessSettings

logger = logging.getLogger(__name__)

COLORS = [
    "linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
    "linear-gradient(135deg, #f093fb 0%, #f5576c 100%)",
    "linear-gradient(135deg, #4facfe 0%, #00f2fe 100%)",
    "linear-gradient(135deg, #43e97b 0%, #38f9d7 100%)",
]

LOCATION_MODES = {mode.value for mode in LocationMode}


def slugify(name: str) -> str:
    base = re.sub(r"[^a-z0-9]+", "-", str(name or "").lower()).strip("-")
    return base or "business"


def parse_uuid(value) -> Optional[UUID]:
    """Loose id parsing: anything that isn't a UUID is treated as absent."""
    if value in (None, ""):
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def serialize_type(t: AppointmentType) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "durationMinutes": t.duration_minutes,
        "priceCents": t.price_cents,
        "locationMode": t.location_mode,
        "color": t.color,
        "active": bool(t.active),
        "createdAt": t.created_at,
    }


def serialize_settings(row: BusinessSettings, business: Optional[Business] = None) -> dict:
    return {
        "businessId": row.business_id,
        "businessName": row.business_name,
        "ownerEmail": row.owner_email,
        "timezone": row.timezone,
        "notifyOwnerEmail": bool(row.notify_owner_email),
        "slug": business.slug if business else None,
    }


# ============================================================================
# BUSINESSES & SETTINGS
# ============================================================================

async def unique_slug(db: AsyncSession, name: str) -> str:
    base = slugify(name)
    slug, n = base, 1
    while (await db.execute(select(Business.id).where(Business.slug == slug))).first():
        n += 1
        slug = f"{base}-{n}"
    return slug


async def create_business(
    db: AsyncSession,
    name: str,
    owner_email: Optional[str] = None,
    owner_name: Optional[str] = None,
    timezone: Optional[str] = None,
) -> Business:
    """Create a tenant and its settings row. Caller commits."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("businessName is required")
    tz = timezone or settings.DEFAULT_TIMEZONE
    business = Business(
        name=name,
        slug=await unique_slug(db, name),
        owner_email=owner_email,
        owner_name=owner_name,
        timezone=tz,
    )
    db.add(business)
    await db.flush()
    db.add(BusinessSettings(business_id=business.id, business_name=name, owner_email=owner_email, timezone=tz))
    await db.flush()
    logger.info("Created business %s (%s)", business.id, business.slug)
    return business


async def get_business(db: AsyncSession, business_id: UUID) -> Business:
    business = await db.get(Business, business_id)
    if not business:
        raise NotFound("Business not found")
    return business


async def get_business_by_slug(db: AsyncSession, slug: str) -> Business:
    result = await db.execute(select(Business).where(Business.slug == str(slug or "")))
    business = result.scalar_one_or_none()
    if not business:
        raise NotFound("Business not found")
    return business


async def get_settings(db: AsyncSession, business_id: UUID) -> BusinessSettings:
    row = await db.get(BusinessSettings, business_id)
    if row is None:
        business = await get_business(db, business_id)
        row = BusinessSettings(
            business_id=business.id,
            business_name=business.name,
            owner_email=business.owner_email,
            timezone=business.timezone,
            notify_owner_email=True,
        )
        db.add(row)
        await db.flush()
    return row


async def update_settings(db: AsyncSession, business_id: UUID, changes: dict) -> BusinessSettings:
    """Partial settings update, mirrored onto the business row. Caller commits."""
    row = await get_settings(db, business_id)
    business = await get_business(db, business_id)

    if "business_name" in changes:
        name = str(changes["business_name"] or "").strip()
        if not name:
            raise ValidationError("businessName is required")
        row.business_name = business.name = name
    if "owner_email" in changes:
        row.owner_email = business.owner_email = changes["owner_email"] or None
    if "timezone" in changes and changes["timezone"]:
        row.timezone = business.timezone = changes["timezone"]
    if "notify_owner_email" in changes and changes["notify_owner_email"] is not None:
        row.notify_owner_email = bool(changes["notify_owner_email"])
    await db.flush()
    return row


# ============================================================================
# APPOINTMENT TYPES
# ============================================================================

def _validate_type_fields(fields: dict, partial: bool) -> dict:
    clean = {}
    if "name" in fields or not partial:
        name = str(fields.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        if len(name) > 200:
            raise ValidationError("name is too long (max 200 characters)")
        clean["name"] = name
    if fields.get("duration_minutes") is not None or not partial:
        raw = fields.get("duration_minutes")
        if raw is None:
            raw = settings.DEFAULT_DURATION_MINUTES
        if raw <= 0 or int(raw) != raw:
            raise ValidationError("durationMinutes must be greater than 0")
        clean["duration_minutes"] = int(raw)
    if fields.get("price_cents") is not None or not partial:
        raw = fields.get("price_cents") or 0
        if raw < 0 or int(raw) != raw:
            raise ValidationError("priceCents must be 0 or greater")
        clean["price_cents"] = int(raw)
    if fields.get("location_mode") is not None or not partial:
        mode = fields.get("location_mode") or LocationMode.HYBRID.value
        if mode not in LOCATION_MODES:
            raise ValidationError(f"locationMode must be one of: {', '.join(sorted(LOCATION_MODES))}")
        clean["location_mode"] = mode
    if "color" in fields:
        clean["color"] = fields["color"] or None
    if fields.get("active") is not None:
        clean["active"] = bool(fields["active"])
    return clean


async def list_types(db: AsyncSession, business_id: UUID, active_only: bool = True) -> list[AppointmentType]:
    query = select(AppointmentType).where(AppointmentType.business_id == business_id)
    if active_only:
        query = query.where(AppointmentType.active.is_(True))
    result = await db.execute(query.order_by(AppointmentType.created_at, AppointmentType.name))
    return list(result.scalars().all())


async def get_type(db: AsyncSession, business_id: UUID, type_id) -> AppointmentType:
    type_uuid = parse_uuid(type_id)
    row = None
    if type_uuid is not None:
        result = await db.execute(
            select(AppointmentType).where(
                AppointmentType.id == type_uuid,
                AppointmentType.business_id == business_id,
            )
        )
        row = result.scalar_one_or_none()
    if row is None:
        raise NotFound("type not found")
    return row


async def get_active_type(db: AsyncSession, business_id: UUID, type_id) -> Optional[AppointmentType]:
    """Inactive, foreign-tenant, or malformed ids resolve to None, not an error."""
    type_uuid = parse_uuid(type_id)
    if type_uuid is None:
        return None
    result = await db.execute(
        select(AppointmentType).where(
            AppointmentType.id == type_uuid,
            AppointmentType.business_id == business_id,
            AppointmentType.active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def create_type(db: AsyncSession, business_id: UUID, fields: dict) -> AppointmentType:
    clean = _validate_type_fields(fields, partial=False)
    if not clean.get("color"):
        count = (
            await db.execute(
                select(func.count(AppointmentType.id)).where(AppointmentType.business_id == business_id)
            )
        ).scalar_one()
        clean["color"] = COLORS[count % len(COLORS)]
    row = AppointmentType(business_id=business_id, active=True, **clean)
    db.add(row)
    await db.flush()
    return row


async def update_type(db: AsyncSession, business_id: UUID, type_id, fields: dict) -> AppointmentType:
    row = await get_type(db, business_id, type_id)
    for key, value in _validate_type_fields(fields, partial=True).items():
        setattr(row, key, value)
    await db.flush()
    return row


async def deactivate_type(db: AsyncSession, business_id: UUID, type_id) -> AppointmentType:
    """Soft delete: historical appointments keep their reference."""
    row = await get_type(db, business_id, type_id)
    row.active = False
    await db.flush()
    return row
