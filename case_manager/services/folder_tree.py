"""
Folder tree service: tree building, move validation and cascading deletion.

Provides functions for:
- Building nested folder trees from flat lists
- Collecting the descendant set of a folder
- Detecting moves that would create a cycle
- Moving/updating a folder
- Deleting a folder subtree while soft-deleting the cases it contains

Tree walks use explicit work-lists rather than recursion, so very deep
trees cannot exhaust the call stack.
"""

import logging
from collections import defaultdict
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import InvalidMoveError, ResourceNotFoundError
from ..models.case import Case
from ..models.folder import Folder
from ..schemas.folder import FolderCreate, FolderUpdate
from .constraints import foreign_keys_suspended
from .transaction import transaction

logger = logging.getLogger(__name__)


def build_folder_tree(folders: list[Folder]) -> list[dict]:
    """
    Build a nested folder tree from a flat list of folders.

    Folders whose parent is not in the list are treated as roots, so a
    partially loaded list still yields every folder exactly once.

    Args:
        folders: Flat list of Folder ORM objects from one project.

    Returns:
        A list of root-level folder dictionaries with nested children.
    """
    known_ids = {folder.id for folder in folders}
    children_map: dict[Optional[int], list[Folder]] = defaultdict(list)
    for folder in folders:
        parent_id = folder.parent_folder_id if folder.parent_folder_id in known_ids else None
        children_map[parent_id].append(folder)

    for parent_id in children_map:
        children_map[parent_id].sort(key=lambda f: f.id)

    def _to_dict(folder: Folder) -> dict:
        return {
            "id": folder.id,
            "name": folder.name,
            "detail": folder.detail,
            "project_id": folder.project_id,
            "parent_folder_id": folder.parent_folder_id,
            "created_at": folder.created_at,
            "updated_at": folder.updated_at,
            "children": [],
        }

    roots = [_to_dict(folder) for folder in children_map.get(None, [])]
    stack = list(roots)
    while stack:
        node = stack.pop()
        for child in children_map.get(node["id"], []):
            child_node = _to_dict(child)
            node["children"].append(child_node)
            stack.append(child_node)

    return roots


def collect_descendant_ids(folder_id: int, db: Session) -> set[int]:
    """
    Collect the ids of a folder and all of its descendants.

    Walks the tree breadth-first, one query per level.
    """
    result = {folder_id}
    frontier = [folder_id]

    while frontier:
        rows = db.query(Folder.id).filter(Folder.parent_folder_id.in_(frontier)).all()
        frontier = [row.id for row in rows if row.id not in result]
        result.update(frontier)

    return result


def detect_circular_reference(
    folder_id: int,
    new_parent_id: int,
    db: Session,
) -> bool:
    """
    Detect if moving a folder under a new parent would create a cycle.

    Follows the parent chain upward from ``new_parent_id``; the move is
    circular if the chain reaches ``folder_id``. Reaching a root (or an
    already visited folder, for data that is already corrupt) means the
    move is safe.
    """
    if new_parent_id == folder_id:
        return True

    visited: set[int] = set()
    current_id: Optional[int] = new_parent_id

    while current_id is not None and current_id not in visited:
        if current_id == folder_id:
            return True
        visited.add(current_id)
        current_id = db.query(Folder.parent_folder_id).filter(Folder.id == current_id).scalar()

    return False


def get_folder(folder_id: int, db: Session) -> Folder:
    folder = db.get(Folder, folder_id)
    if folder is None:
        raise ResourceNotFoundError("Folder", folder_id)
    return folder


def create_folder(folder_data: FolderCreate, db: Session) -> Folder:
    """Create a folder, checking that its parent exists in the same project."""
    with transaction(db):
        if folder_data.parent_folder_id is not None:
            parent = db.get(Folder, folder_data.parent_folder_id)
            if parent is None:
                raise ResourceNotFoundError("Parent folder", folder_data.parent_folder_id)
            if parent.project_id != folder_data.project_id:
                raise InvalidMoveError("Parent folder belongs to a different project")

        db_folder = Folder(
            name=folder_data.name,
            detail=folder_data.detail,
            project_id=folder_data.project_id,
            parent_folder_id=folder_data.parent_folder_id,
        )
        db.add(db_folder)

    db.refresh(db_folder)
    return db_folder


def move_folder(folder_id: int, folder_data: FolderUpdate, db: Session) -> Folder:
    """
    Update a folder's fields, validating any change of parent.

    Raises:
        ResourceNotFoundError: the folder or the new parent does not exist.
        InvalidMoveError: the new parent is the folder itself, one of its
            descendants, or a folder of another project.
    """
    with transaction(db):
        db_folder = get_folder(folder_id, db)
        update_data = folder_data.model_dump(exclude_unset=True)

        # Explicit nulls for non-nullable columns are ignored
        for field in ("name", "project_id"):
            if field in update_data and update_data[field] is None:
                del update_data[field]

        project_id = update_data.get("project_id", db_folder.project_id)
        parent_id = update_data.get("parent_folder_id", db_folder.parent_folder_id)

        if "parent_folder_id" in update_data and parent_id is not None:
            if parent_id == folder_id:
                raise InvalidMoveError("Cannot move folder into itself")

            parent_folder = db.get(Folder, parent_id)
            if parent_folder is None:
                raise ResourceNotFoundError("Parent folder", parent_id)

            if detect_circular_reference(folder_id, parent_id, db):
                raise InvalidMoveError("Cannot move folder into its own descendant")

        if parent_id is not None:
            parent_folder = db.get(Folder, parent_id)
            if parent_folder is not None and parent_folder.project_id != project_id:
                raise InvalidMoveError("Parent folder belongs to a different project")

        if project_id != db_folder.project_id:
            descendant_ids = collect_descendant_ids(folder_id, db)
            db.query(Folder).filter(Folder.id.in_(descendant_ids)).update(
                {Folder.project_id: project_id}, synchronize_session=False
            )

        for field, value in update_data.items():
            setattr(db_folder, field, value)

    db.refresh(db_folder)
    return db_folder


def delete_folder(folder_id: int, db: Session) -> tuple[int, int]:
    """
    Delete a folder and its whole subtree.

    Live cases stored anywhere in the subtree are soft-deleted, then the
    folder rows are hard-deleted with foreign key enforcement suspended so
    the schema's cascade does not physically remove those cases.

    Returns:
        A ``(folders_removed, cases_soft_deleted)`` pair.

    Raises:
        ResourceNotFoundError: the folder does not exist.
    """
    with foreign_keys_suspended(db) as scoped_db:
        with transaction(scoped_db):
            get_folder(folder_id, scoped_db)
            folder_ids = collect_descendant_ids(folder_id, scoped_db)

            cases_deleted = (
                scoped_db.query(Case)
                .filter(Case.folder_id.in_(folder_ids), Case.is_deleted.is_(False))
                .update({Case.is_deleted: True}, synchronize_session=False)
            )
            folders_deleted = (
                scoped_db.query(Folder)
                .filter(Folder.id.in_(folder_ids))
                .delete(synchronize_session=False)
            )

    logger.info(
        "Deleted folder %s: %d folder(s) removed, %d case(s) soft-deleted",
        folder_id, folders_deleted, cases_deleted,
    )
    return folders_deleted, cases_deleted
