"""
Migration: Add is_deleted column to cases table.

Databases created before soft deletion existed lack the flag; every existing
case is live, so the column defaults to 0.
"""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def migrate(engine: Engine):
    """Add is_deleted column to cases table if it doesn't exist."""
    inspector = inspect(engine)
    if "cases" not in inspector.get_table_names():
        return

    columns = [col["name"] for col in inspector.get_columns("cases")]
    if "is_deleted" not in columns:
        with engine.begin() as conn:
            conn.execute(
                text("ALTER TABLE cases ADD COLUMN is_deleted BOOLEAN DEFAULT 0 NOT NULL")
            )
        logger.info("Migration complete: Added is_deleted column to cases table.")
    else:
        logger.debug("Migration skipped: is_deleted column already exists in cases table.")
