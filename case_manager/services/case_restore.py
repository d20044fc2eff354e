"""
Bulk restore of soft-deleted cases.

A soft-deleted case may point at a folder that was hard-deleted after it.
Such cases are moved to the project's root folder before being restored so
no live case ever references a missing folder.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ..config import get_settings
from ..models.case import Case
from ..models.folder import Folder
from .transaction import transaction

logger = logging.getLogger(__name__)


@dataclass
class RestoreSummary:
    """Outcome of a bulk restore."""
    restored: int = 0
    reassigned: int = 0
    root_folder_id: Optional[int] = None


def resolve_root_folder(project_id: int, db: Session) -> Folder:
    """
    Find the folder orphaned cases of a project are moved to.

    Prefers the oldest top-level folder, then any folder of the project, and
    creates a root folder when the project has none.
    """
    root = (
        db.query(Folder)
        .filter(Folder.project_id == project_id, Folder.parent_folder_id.is_(None))
        .order_by(Folder.id)
        .first()
    )
    if root is None:
        root = (
            db.query(Folder)
            .filter(Folder.project_id == project_id)
            .order_by(Folder.id)
            .first()
        )
    if root is None:
        settings = get_settings()
        root = Folder(
            name=settings.root_folder_name,
            detail=settings.root_folder_detail,
            project_id=project_id,
            parent_folder_id=None,
        )
        db.add(root)
        db.flush()
        logger.info("Created root folder %s for project %s", root.id, project_id)
    return root


def restore_cases(case_ids: list[int], project_id: int, db: Session) -> RestoreSummary:
    """
    Restore the given soft-deleted cases in one transaction.

    Ids that do not name a soft-deleted case are ignored; if none match the
    call is a no-op. A case whose folder is gone, or belongs to another
    project, is moved to the project's root folder.
    """
    summary = RestoreSummary()
    if not case_ids:
        return summary

    with transaction(db):
        cases = (
            db.query(Case)
            .filter(Case.id.in_(set(case_ids)), Case.is_deleted.is_(True))
            .populate_existing()
            .all()
        )
        if not cases:
            return summary

        folder_ids = {case.folder_id for case in cases}
        # A folder of another project counts as missing
        existing_ids = {
            row.id
            for row in db.query(Folder.id)
            .filter(Folder.id.in_(folder_ids), Folder.project_id == project_id)
            .all()
        }
        orphans = [case for case in cases if case.folder_id not in existing_ids]

        if orphans:
            root = resolve_root_folder(project_id, db)
            for case in orphans:
                case.folder_id = root.id
            summary.reassigned = len(orphans)
            summary.root_folder_id = root.id

        for case in cases:
            case.is_deleted = False
        summary.restored = len(cases)

    logger.info(
        "Restored %d case(s) in project %s, %d moved to root folder %s",
        summary.restored, project_id, summary.reassigned, summary.root_folder_id,
    )
    return summary
