"""Backup export and restore endpoints."""

import logging
from typing import Any
from uuid import UUID
from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_business_id
from app.schemas.data_transfer import ExportBundle, ImportResult
from app.services import data_transfer

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/export", response_model=ExportBundle)
async def export_data(
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    return await data_transfer.export_data(db, business_id)


@router.post("/import", response_model=ImportResult)
async def import_data(
    bundle: Any = Body(...),
    business_id: UUID = Depends(get_current_business_id),
    db: AsyncSession = Depends(get_db),
):
    """All-or-nothing restore; a malformed row leaves existing data untouched."""
    return await data_transfer.import_data(db, business_id, bundle)
