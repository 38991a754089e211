"""Pydantic schemas for backup export/import.

Bundle rows keep the snake_case keys of the versioned backup format, so these
models do not use camelCase aliases.
"""

from typing import Any, Optional
from pydantic import BaseModel
from app.schemas.appointment import CamelModel


class ImportResult(CamelModel):
    imported_types: int
    imported_appointments: int


class ExportBundle(BaseModel):
    version: int
    exportedAt: str
    business: Optional[dict[str, Any]] = None
    settings: Optional[dict[str, Any]] = None
    appointmentTypes: list[dict[str, Any]]
    appointments: list[dict[str, Any]]
