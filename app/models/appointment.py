"""Appointment model for booking system."""

from sqlalchemy import Column, String, DateTime, Integer, Date, Time, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from app.core.database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentSource(str, enum.Enum):
    OWNER = "owner"
    PUBLIC = "public"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_business_date_time", "business_id", "date", "time"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    # Nullable: a type may be soft-deleted or missing from an imported backup
    type_id = Column(UUID(as_uuid=True), ForeignKey("appointment_types.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String, nullable=True)
    client_name = Column(String, nullable=False)
    client_email = Column(String, nullable=True)

    # Slot: [start_minute, start_minute + duration_minutes) on a tenant-local day
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    start_minute = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=45)

    location = Column(String, nullable=False, default="office")
    notes = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=AppointmentStatus.CONFIRMED.value, index=True)
    source = Column(String, nullable=False, default=AppointmentSource.OWNER.value)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    appointment_type = relationship("AppointmentType", lazy="joined")

    @property
    def type_name(self) -> str | None:
        return self.appointment_type.name if self.appointment_type else None

    @property
    def end_minute(self) -> int:
        return self.start_minute + self.duration_minutes
