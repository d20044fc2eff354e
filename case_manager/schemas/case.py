"""
Pydantic schemas for test cases and bulk restore.
"""

from datetime import datetime

from pydantic import Field

from .base import CamelModel


class CaseCreate(CamelModel):
    """Schema for creating a new case inside a folder."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    priority: int = 0
    folder_id: int


class CaseResponse(CamelModel):
    """Schema for case response with all fields."""
    id: int
    title: str
    description: str | None
    priority: int
    folder_id: int
    is_deleted: bool
    created_at: datetime
    updated_at: datetime


class CaseCountResponse(CamelModel):
    """Number of live cases in a project."""
    count: int


class BulkRestoreRequest(CamelModel):
    """Body of a bulk restore call."""
    case_ids: list[int]
