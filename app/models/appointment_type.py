"""Appointment type (service catalog entry).

Types are soft-deleted (active=False) rather than removed because historical
appointments keep a reference to them.
"""

from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum
from datetime import datetime
from app.core.database import Base


class LocationMode(str, enum.Enum):
    OFFICE = "office"
    VIRTUAL = "virtual"
    PHONE = "phone"
    HYBRID = "hybrid"


class AppointmentType(Base):
    __tablename__ = "appointment_types"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=45)
    price_cents = Column(Integer, nullable=False, default=0)
    location_mode = Column(String, nullable=False, default=LocationMode.HYBRID.value)
    color = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
