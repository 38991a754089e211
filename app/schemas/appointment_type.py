"""Pydantic schemas for the appointment type catalog."""

from datetime import datetime
from typing import Optional
from uuid import UUID
from app.schemas.appointment import CamelModel


class AppointmentTypeCreate(CamelModel):
    name: Optional[str] = None
    duration_minutes: Optional[float] = None
    price_cents: Optional[float] = None
    location_mode: Optional[str] = None
    color: Optional[str] = None


class AppointmentTypeUpdate(CamelModel):
    """Partial update; only fields that are sent change."""
    name: Optional[str] = None
    duration_minutes: Optional[float] = None
    price_cents: Optional[float] = None
    location_mode: Optional[str] = None
    color: Optional[str] = None
    active: Optional[bool] = None


class AppointmentTypeOut(CamelModel):
    id: UUID
    name: str
    duration_minutes: int
    price_cents: int
    location_mode: str
    color: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None


class AppointmentTypeEnvelope(CamelModel):
    type: AppointmentTypeOut


class AppointmentTypeList(CamelModel):
    types: list[AppointmentTypeOut]
