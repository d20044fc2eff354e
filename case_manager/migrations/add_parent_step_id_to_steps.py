"""
Migration: Add parent_step_id column to steps table.

Enables nested steps. Existing steps become top-level steps.
"""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def migrate(engine: Engine):
    """Add parent_step_id column to steps table if it doesn't exist."""
    inspector = inspect(engine)
    if "steps" not in inspector.get_table_names():
        return

    columns = [col["name"] for col in inspector.get_columns("steps")]
    if "parent_step_id" not in columns:
        with engine.begin() as conn:
            conn.execute(
                text(
                    "ALTER TABLE steps ADD COLUMN parent_step_id INTEGER "
                    "REFERENCES steps(id) ON DELETE CASCADE"
                )
            )
        logger.info("Migration complete: Added parent_step_id column to steps table.")
    else:
        logger.debug("Migration skipped: parent_step_id column already exists in steps table.")
