"""
Pydantic schemas for folders.

Defines schemas for creating, updating, and returning folder data
with support for nested structure responses.
"""

from datetime import datetime

from pydantic import Field

from .base import CamelModel


class FolderBase(CamelModel):
    """Base schema with common folder fields."""
    name: str = Field(..., min_length=1, max_length=255)
    detail: str | None = None


class FolderCreate(FolderBase):
    """Schema for creating a new folder."""
    project_id: int
    parent_folder_id: int | None = None


class FolderUpdate(CamelModel):
    """
    Schema for updating or moving an existing folder.

    All fields are optional; only fields present in the body are applied.
    Sending ``parentFolderId: null`` moves the folder to the project root.
    """
    name: str | None = Field(default=None, min_length=1, max_length=255)
    detail: str | None = None
    project_id: int | None = None
    parent_folder_id: int | None = None


class FolderResponse(FolderBase):
    """Schema for folder response with all fields."""
    id: int
    project_id: int
    parent_folder_id: int | None
    created_at: datetime
    updated_at: datetime


class FolderWithChildren(FolderResponse):
    """Recursive folder schema including sub-folders."""
    children: list["FolderWithChildren"] = []


FolderWithChildren.model_rebuild()
