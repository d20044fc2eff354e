"""
Case API routes.

Provides case creation, listing and bulk restore of soft-deleted cases.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import ResourceNotFoundError, ValidationError
from ..models.case import Case
from ..models.folder import Folder
from ..schemas.case import (
    BulkRestoreRequest,
    CaseCountResponse,
    CaseCreate,
    CaseResponse,
)
from ..services.case_restore import restore_cases
from ..services.folder_tree import collect_descendant_ids
from ..services.transaction import transaction

# Search terms longer than this are truncated
MAX_SEARCH_LENGTH = 100

router = APIRouter(prefix="/cases", tags=["cases"])


def _project_folder_ids(project_id: int, db: Session) -> list[int]:
    return [row.id for row in db.query(Folder.id).filter(Folder.project_id == project_id).all()]


@router.post("", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
def create_case(case_data: CaseCreate, db: Session = Depends(get_db)):
    """Create a new case in an existing folder."""
    with transaction(db):
        if db.get(Folder, case_data.folder_id) is None:
            raise ResourceNotFoundError("Folder", case_data.folder_id)
        db_case = Case(
            title=case_data.title,
            description=case_data.description,
            priority=case_data.priority,
            folder_id=case_data.folder_id,
        )
        db.add(db_case)

    db.refresh(db_case)
    return db_case


@router.get("", response_model=list[CaseResponse])
def list_cases(folder_id: int = Query(..., alias="folderId"), db: Session = Depends(get_db)):
    """List live cases stored directly in a folder."""
    return (
        db.query(Case)
        .filter(Case.folder_id == folder_id, Case.is_deleted.is_(False))
        .order_by(Case.id)
        .all()
    )


@router.get("/count", response_model=CaseCountResponse)
def count_cases(project_id: int = Query(..., alias="projectId"), db: Session = Depends(get_db)):
    """Count live cases across all folders of a project."""
    folder_ids = _project_folder_ids(project_id, db)
    if not folder_ids:
        return {"count": 0}
    count = (
        db.query(Case)
        .filter(Case.folder_id.in_(folder_ids), Case.is_deleted.is_(False))
        .count()
    )
    return {"count": count}


@router.get("/search", response_model=list[CaseResponse])
def search_cases(
    project_id: int = Query(..., alias="projectId"),
    search: Optional[str] = None,
    is_deleted: bool = Query(False, alias="isDeleted"),
    db: Session = Depends(get_db),
):
    """
    Search a project's cases by title or description.

    With ``isDeleted=true`` the search runs over soft-deleted cases whose
    folder still belongs to the project.
    """
    folder_ids = _project_folder_ids(project_id, db)
    if not folder_ids:
        return []

    query = db.query(Case).filter(Case.folder_id.in_(folder_ids), Case.is_deleted.is_(is_deleted))
    if search:
        term = search.strip()[:MAX_SEARCH_LENGTH]
        if term:
            pattern = f"%{term}%"
            query = query.filter(or_(Case.title.like(pattern), Case.description.like(pattern)))
    return query.order_by(Case.id).all()


@router.get("/recursive", response_model=list[CaseResponse])
def list_cases_recursive(folder_id: int = Query(..., alias="folderId"), db: Session = Depends(get_db)):
    """List live cases in a folder and in all of its sub-folders."""
    folder_ids = collect_descendant_ids(folder_id, db)
    return (
        db.query(Case)
        .filter(Case.folder_id.in_(folder_ids), Case.is_deleted.is_(False))
        .order_by(Case.id)
        .all()
    )


@router.post("/bulkrestore", status_code=status.HTTP_204_NO_CONTENT)
def bulk_restore(
    restore_data: BulkRestoreRequest,
    project_id: Optional[int] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
):
    """
    Restore soft-deleted cases.

    Cases whose folder no longer exists are moved to the project's root
    folder, which is created if the project has no folder at all.
    """
    if project_id is None:
        raise ValidationError("projectId is required")

    restore_cases(restore_data.case_ids, project_id, db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
