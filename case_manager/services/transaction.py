"""
Transaction wrapper for multi-step operations.

Every public tree operation runs its work inside ``transaction(db)`` so the
whole unit either commits or leaves no trace.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import TransactionError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run the enclosed block as one atomic unit of work.

    Commits when the block exits cleanly and rolls back on any exception.
    Database failures are logged and surfaced as a single ``TransactionError``
    with a generic message; other exceptions (validation, not found) are
    re-raised unchanged after the rollback.

    Usage:
        with transaction(db):
            db.add(folder)
            ...
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Transaction rolled back after database error", exc_info=exc)
        raise TransactionError() from exc
    except Exception:
        db.rollback()
        raise
