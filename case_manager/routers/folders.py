"""
Folder management API routes.

Provides creation, listing, moving and deletion of project folders.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.folder import Folder
from ..schemas.folder import (
    FolderCreate,
    FolderUpdate,
    FolderResponse,
    FolderWithChildren,
)
from ..services.folder_tree import (
    build_folder_tree,
    create_folder as create_folder_in_tree,
    delete_folder as delete_folder_subtree,
    get_folder as get_folder_or_404,
    move_folder,
)


router = APIRouter(prefix="/folders", tags=["folders"])


@router.get("/tree", response_model=list[FolderWithChildren])
def get_folder_tree(project_id: int = Query(..., alias="projectId"), db: Session = Depends(get_db)):
    """Get the project's folder tree with recursively nested children."""
    folders = db.query(Folder).filter(Folder.project_id == project_id).all()
    return build_folder_tree(folders)


@router.get("", response_model=list[FolderResponse])
def list_folders(project_id: int = Query(..., alias="projectId"), db: Session = Depends(get_db)):
    """List the project's folders as a flat list ordered by id."""
    return (
        db.query(Folder)
        .filter(Folder.project_id == project_id)
        .order_by(Folder.id)
        .all()
    )


@router.post("", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
def create_folder(folder_data: FolderCreate, db: Session = Depends(get_db)):
    """Create a new folder."""
    return create_folder_in_tree(folder_data, db)


@router.get("/{folder_id}", response_model=FolderResponse)
def get_folder(folder_id: int, db: Session = Depends(get_db)):
    """Get a folder by ID."""
    return get_folder_or_404(folder_id, db)


@router.put("/{folder_id}", response_model=FolderResponse)
def update_folder(
    folder_id: int,
    folder_data: FolderUpdate,
    db: Session = Depends(get_db)
):
    """
    Update or move an existing folder.

    Moving a folder into itself or into one of its descendants is rejected
    with 400 and leaves the tree unchanged.
    """
    return move_folder(folder_id, folder_data, db)


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_folder(folder_id: int, db: Session = Depends(get_db)):
    """
    Delete a folder and all of its sub-folders.

    Cases stored in the removed folders are soft-deleted and can be restored
    through ``POST /cases/bulkrestore``.
    """
    delete_folder_subtree(folder_id, db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
