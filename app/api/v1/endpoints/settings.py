"""Business settings endpoints."""

from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_business_id
from app.schemas.business import SettingsEnvelope, SettingsUpdate
from app.services import catalog

router = APIRouter()


@router.get("", response_model=SettingsEnvelope)
async def get_settings(
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    row = await catalog.get_settings(db, business_id)
    business = await catalog.get_business(db, business_id)
    payload = catalog.serialize_settings(row, business)
    await db.commit()
    return {"settings": payload}


@router.put("", response_model=SettingsEnvelope)
async def update_settings(
    body: SettingsUpdate,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    """Partial update; name, owner email and timezone are mirrored onto the business."""
    row = await catalog.update_settings(db, business_id, body.model_dump(exclude_unset=True))
    business = await catalog.get_business(db, business_id)
    payload = catalog.serialize_settings(row, business)
    await db.commit()
    return {"settings": payload}
