"""Public booking page API, addressed by business slug. No authentication."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.appointment import AppointmentSource
from app.schemas.appointment import AppointmentCreate, AppointmentCreated, AvailableSlotsResponse
from app.schemas.business import PublicBusinessOut
from app.services import booking, catalog, scheduling

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{slug}", response_model=PublicBusinessOut)
async def get_public_business(slug: str, db: AsyncSession = Depends(get_db)):
    business = await catalog.get_business_by_slug(db, slug)
    types = await catalog.list_types(db, business.id)
    return {
        "name": business.name,
        "slug": business.slug,
        "timezone": business.timezone,
        "types": [catalog.serialize_type(t) for t in types],
    }


@router.get("/{slug}/slots", response_model=AvailableSlotsResponse)
async def get_public_slots(
    slug: str,
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    type_id: Optional[str] = Query(None, alias="typeId"),
    duration_minutes: Optional[float] = Query(None, alias="durationMinutes"),
    db: AsyncSession = Depends(get_db),
):
    business = await catalog.get_business_by_slug(db, slug)
    appt_type = await catalog.get_active_type(db, business.id, type_id)
    duration = scheduling.resolve_duration(duration_minutes, appt_type.duration_minutes if appt_type else None)
    slots = await scheduling.available_slots(db, business.id, date, duration)
    return {"date": date, "duration_minutes": duration, "slots": slots}


@router.post("/{slug}/bookings", response_model=AppointmentCreated, status_code=201)
async def create_public_booking(slug: str, body: AppointmentCreate, db: AsyncSession = Depends(get_db)):
    """Booking request from the public page; starts pending until the owner confirms."""
    business = await catalog.get_business_by_slug(db, slug)
    appointment, notifications = await booking.create_appointment(
        db, business.id, booking.BookingInput(**body.model_dump()), source=AppointmentSource.PUBLIC.value
    )
    logger.info("Public booking %s for %s", appointment["id"], business.slug)
    return {"appointment": appointment, "notifications": notifications.as_dict()}
