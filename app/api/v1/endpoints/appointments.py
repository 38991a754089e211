"""Owner appointment endpoints: booking, edit, status, delete and listing."""

import logging
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_business_id
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentUpdate,
    AppointmentCreated,
    AppointmentEnvelope,
    AppointmentList,
    AvailableSlotsResponse,
    DeleteResult,
    StatusUpdate,
)
from app.services import booking, catalog, scheduling

router = APIRouter()
logger = logging.getLogger(__name__)


def to_booking_input(body: AppointmentCreate) -> booking.BookingInput:
    return booking.BookingInput(**body.model_dump())


@router.post("", response_model=AppointmentCreated, status_code=201)
async def create_appointment(
    body: AppointmentCreate,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    """Book a slot for a client. 400 on validation failure or overlap."""
    appointment, notifications = await booking.create_appointment(db, business_id, to_booking_input(body))
    return {"appointment": appointment, "notifications": notifications.as_dict()}


@router.get("", response_model=AppointmentList)
async def list_appointments(
    date: Optional[str] = None,
    status: Optional[str] = None,
    q: Optional[str] = None,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    return {"appointments": await booking.list_appointments(db, business_id, day=date, status=status, q=q)}


@router.get("/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    type_id: Optional[str] = Query(None, alias="typeId"),
    duration_minutes: Optional[float] = Query(None, alias="durationMinutes"),
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    """Free start times for a day, for the owner's booking form."""
    appt_type = await catalog.get_active_type(db, business_id, type_id)
    duration = scheduling.resolve_duration(duration_minutes, appt_type.duration_minutes if appt_type else None)
    slots = await scheduling.available_slots(db, business_id, date, duration)
    return {"date": date, "duration_minutes": duration, "slots": slots}


@router.get("/{appointment_id}", response_model=AppointmentEnvelope)
async def get_appointment(
    appointment_id: str,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    return {"appointment": await booking.get_appointment(db, business_id, appointment_id)}


@router.put("/{appointment_id}", response_model=AppointmentEnvelope)
async def update_appointment(
    appointment_id: str,
    body: AppointmentUpdate,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    """Full edit. 404 outside tenant scope; 400 on validation failure or overlap."""
    appointment = await booking.update_appointment(db, business_id, appointment_id, to_booking_input(body))
    return {"appointment": appointment}


@router.patch("/{appointment_id}/status", response_model=AppointmentEnvelope)
async def update_status(
    appointment_id: str,
    body: StatusUpdate,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    appointment = await booking.set_status(
        db, business_id, appointment_id, body.status, body.cancellation_reason
    )
    return {"appointment": appointment}


@router.delete("/{appointment_id}", response_model=DeleteResult)
async def delete_appointment(
    appointment_id: str,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    await booking.delete_appointment(db, business_id, appointment_id)
    return {"ok": True}
