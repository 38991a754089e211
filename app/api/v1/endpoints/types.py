"""Appointment type catalog endpoints."""

import logging
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_business_id
from app.schemas.appointment_type import (
    AppointmentTypeCreate,
    AppointmentTypeUpdate,
    AppointmentTypeEnvelope,
    AppointmentTypeList,
)
from app.services import catalog

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=AppointmentTypeList)
async def list_types(
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    """Active types only; soft-deleted ones stay out of booking forms."""
    types = await catalog.list_types(db, business_id)
    return {"types": [catalog.serialize_type(t) for t in types]}


@router.post("", response_model=AppointmentTypeEnvelope, status_code=201)
async def create_type(
    body: AppointmentTypeCreate,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    row = await catalog.create_type(db, business_id, body.model_dump())
    payload = catalog.serialize_type(row)
    await db.commit()
    logger.info("Created appointment type %s for business %s", row.id, business_id)
    return {"type": payload}


@router.put("/{type_id}", response_model=AppointmentTypeEnvelope)
async def update_type(
    type_id: str,
    body: AppointmentTypeUpdate,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    row = await catalog.update_type(db, business_id, type_id, body.model_dump(exclude_unset=True))
    payload = catalog.serialize_type(row)
    await db.commit()
    return {"type": payload}


@router.delete("/{type_id}", response_model=AppointmentTypeEnvelope)
async def delete_type(
    type_id: str,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the type is deactivated, existing appointments keep it."""
    row = await catalog.deactivate_type(db, business_id, type_id)
    payload = catalog.serialize_type(row)
    await db.commit()
    logger.info("Deactivated appointment type %s for business %s", row.id, business_id)
    return {"type": payload}
