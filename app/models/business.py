"""Business (tenant) model.

Every catalog entry and appointment is scoped by business_id; the business row
is the root of that scoping. BusinessSettings holds the owner-editable profile
used for notifications and exported in backups.
"""

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from app.core.database import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)  # public booking URL
    owner_name = Column(String, nullable=True)
    owner_email = Column(String, nullable=True)
    timezone = Column(String, nullable=False, default="America/Los_Angeles")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    users = relationship("User", back_populates="business")
    settings = relationship("BusinessSettings", back_populates="business", uselist=False)


class BusinessSettings(Base):
    __tablename__ = "business_settings"

    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), primary_key=True)
    business_name = Column(String, nullable=False)
    owner_email = Column(String, nullable=True)
    timezone = Column(String, nullable=False, default="America/Los_Angeles")
    notify_owner_email = Column(Boolean, nullable=False, default=True)

    business = relationship("Business", back_populates="settings")
