"""Pydantic schemas for Appointments.

Request bodies are deliberately loose (optional strings) so that missing or
malformed fields reach the booking engine and come back as 400s with a
readable message rather than as schema errors.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class AppointmentCreate(CamelModel):
    """Body for POST /appointments and the public booking page."""
    type_id: Optional[str] = None
    title: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    duration_minutes: Optional[float] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class AppointmentUpdate(AppointmentCreate):
    """Body for PUT /appointments/{id}: full edit, same fields as create."""


class StatusUpdate(CamelModel):
    status: str
    cancellation_reason: Optional[str] = None


class AppointmentOut(CamelModel):
    id: UUID
    type_id: Optional[UUID] = None
    type_name: str = "General"
    title: Optional[str] = None
    client_name: str
    client_email: Optional[str] = None
    date: str
    time: str
    duration_minutes: int
    location: str
    notes: Optional[str] = None
    status: str
    source: str
    created_at: Optional[datetime] = None


class NotificationSummaryOut(CamelModel):
    mode: str = "none"
    sent: int = 0


class AppointmentCreated(CamelModel):
    appointment: AppointmentOut
    notifications: NotificationSummaryOut


class AppointmentEnvelope(CamelModel):
    appointment: AppointmentOut


class AppointmentList(CamelModel):
    appointments: list[AppointmentOut]


class AvailableSlotsResponse(CamelModel):
    date: str
    duration_minutes: int
    slots: list[str]  # ["09:00", "09:15", ...]


class DeleteResult(CamelModel):
    ok: bool = True
