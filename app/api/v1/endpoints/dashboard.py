"""Owner dashboard endpoint; the canonical state the client reloads after a sync."""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_business_id
from app.schemas.business import DashboardOut
from app.services.dashboard import dashboard

router = APIRouter()


@router.get("", response_model=DashboardOut)
async def get_dashboard(
    date: Optional[str] = None,
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    return await dashboard(db, business_id, date)
