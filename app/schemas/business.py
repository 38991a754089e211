"""Pydantic schemas for business profile and settings."""

from typing import Optional
from uuid import UUID
from app.schemas.appointment import CamelModel, AppointmentOut
from app.schemas.appointment_type import AppointmentTypeOut


class SettingsUpdate(CamelModel):
    business_name: Optional[str] = None
    owner_email: Optional[str] = None
    timezone: Optional[str] = None
    notify_owner_email: Optional[bool] = None


class SettingsOut(CamelModel):
    business_id: UUID
    business_name: str
    owner_email: Optional[str] = None
    timezone: str
    notify_owner_email: bool = True
    slug: Optional[str] = None


class SettingsEnvelope(CamelModel):
    settings: SettingsOut


class PublicBusinessOut(CamelModel):
    name: str
    slug: str
    timezone: str
    types: list[AppointmentTypeOut]


class DashboardStats(CamelModel):
    today: int
    week: int
    pending: int
    total: int


class TypeUsage(AppointmentTypeOut):
    booking_count: int = 0


class DashboardOut(CamelModel):
    date: str
    stats: DashboardStats
    appointments: list[AppointmentOut]
    types: list[TypeUsage]
