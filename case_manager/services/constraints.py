"""
Scoped suspension of foreign key enforcement.

SQLite only knows physical ON DELETE CASCADE. Folder deletion needs to remove
folder rows without the cascade physically removing the (soft-deleted) cases
that still point at them, so enforcement is switched off for the duration of
that unit of work.

``PRAGMA foreign_keys`` is a per-connection switch that SQLite ignores while a
transaction is open. The switch is therefore flipped on a dedicated
connection, outside any transaction, before and after the work runs, and a
process-wide lock keeps other requests from sharing the window.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import ConstraintToggleError

logger = logging.getLogger(__name__)

_toggle_lock = threading.Lock()


def _set_foreign_keys(connection: Connection, enabled: bool) -> None:
    value = "ON" if enabled else "OFF"
    try:
        if connection.in_transaction():
            connection.rollback()
        connection.exec_driver_sql(f"PRAGMA foreign_keys={value}")
        connection.commit()
    except SQLAlchemyError as exc:
        logger.error("Failed to set PRAGMA foreign_keys=%s", value, exc_info=exc)
        raise ConstraintToggleError() from exc


@contextmanager
def foreign_keys_suspended(db: Session) -> Iterator[Session]:
    """
    Yield a session whose connection has foreign key enforcement disabled.

    Enforcement is restored on every exit path, including when the enclosed
    block raises. If restoring fails, the connection is invalidated so it
    never goes back to the pool with enforcement off.

    Engines other than SQLite get a dedicated session without any toggle.
    """
    engine = db.get_bind()
    with _toggle_lock, engine.connect() as connection:
        if connection.dialect.name != "sqlite":
            with Session(bind=connection) as scoped:
                yield scoped
            return

        _set_foreign_keys(connection, False)
        logger.debug("Foreign key enforcement suspended")
        try:
            with Session(bind=connection) as scoped:
                yield scoped
        finally:
            try:
                _set_foreign_keys(connection, True)
            except ConstraintToggleError:
                connection.invalidate()
                raise
            logger.debug("Foreign key enforcement restored")
