"""
Pydantic schemas package.

Exports all schemas for API request/response validation.
"""

from .folder import (
    FolderBase,
    FolderCreate,
    FolderUpdate,
    FolderResponse,
    FolderWithChildren,
)

from .case import (
    CaseCreate,
    CaseResponse,
    CaseCountResponse,
    BulkRestoreRequest,
)

from .step import (
    CaseStepPosition,
    UnchangedStep,
    UpdatedStep,
    DeletedStep,
    CreatedStep,
    StepMutation,
    StepResponse,
)

__all__ = [
    # Folder schemas
    "FolderBase",
    "FolderCreate",
    "FolderUpdate",
    "FolderResponse",
    "FolderWithChildren",
    # Case schemas
    "CaseCreate",
    "CaseResponse",
    "CaseCountResponse",
    "BulkRestoreRequest",
    # Step schemas
    "CaseStepPosition",
    "UnchangedStep",
    "UpdatedStep",
    "DeletedStep",
    "CreatedStep",
    "StepMutation",
    "StepResponse",
]
