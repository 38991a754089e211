"""Owner dashboard: day view, headline counts and per-type usage."""

import logging
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentStatus
from app.models.appointment_type import AppointmentType
from app.services import catalog, scheduling
from app.services.booking import serialize_appointment

logger = logging.getLogger(__name__)


async def _count(db: AsyncSession, *conditions) -> int:
    result = await db.execute(select(func.count(Appointment.id)).where(*conditions))
    return result.scalar_one()


async def dashboard(db: AsyncSession, business_id: UUID, day: Optional[str] = None) -> dict:
    target: date = scheduling.parse_date(day) if day else datetime.utcnow().date()
    scoped = Appointment.business_id == business_id

    stats = {
        "today": await _count(db, scoped, Appointment.date == target),
        "week": await _count(db, scoped, Appointment.date.between(target, target + timedelta(days=6))),
        "pending": await _count(db, scoped, Appointment.status == AppointmentStatus.PENDING.value),
        "total": await _count(db, scoped),
    }

    result = await db.execute(
        select(Appointment).where(scoped, Appointment.date == target).order_by(Appointment.start_minute)
    )
    appointments = [serialize_appointment(a) for a in result.scalars().all()]

    usage = await db.execute(
        select(AppointmentType.id, func.count(Appointment.id))
        .outerjoin(Appointment, Appointment.type_id == AppointmentType.id)
        .where(AppointmentType.business_id == business_id, AppointmentType.active.is_(True))
        .group_by(AppointmentType.id)
    )
    counts = dict(usage.all())
    types = [
        {**catalog.serialize_type(t), "bookingCount": counts.get(t.id, 0)}
        for t in await catalog.list_types(db, business_id)
    ]

    return {"date": target.isoformat(), "stats": stats, "appointments": appointments, "types": types}
