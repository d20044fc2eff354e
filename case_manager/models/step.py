"""
Step models for test case steps.

Steps form a tree through ``parent_step_id``. The ``case_steps`` join table
attaches a step to a case and carries its position among its siblings.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base


class Step(Base):
    """
    SQLAlchemy model for a single test step.

    Deleting a step cascades to its sub-steps at the database level.

    Attributes:
        id: Unique identifier for the step
        step: Action text
        result: Expected result text
        parent_step_id: Optional reference to the parent step
        created_at: Timestamp when the step was created
        updated_at: Timestamp when the step was last updated
    """
    __tablename__ = "steps"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    step: Mapped[str] = mapped_column(Text, default="")
    result: Mapped[str] = mapped_column(Text, default="")
    parent_step_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("steps.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)


class CaseStep(Base):
    """
    Join row between a case and one of its steps.

    Attributes:
        id: Unique identifier for the row
        case_id: Owning case
        step_id: Attached step
        step_no: 1-based position among steps sharing the same parent
    """
    __tablename__ = "case_steps"
    __table_args__ = (UniqueConstraint("case_id", "step_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    case_id: Mapped[int] = mapped_column(
        ForeignKey("cases.id", ondelete="CASCADE"),
        index=True,
    )
    step_id: Mapped[int] = mapped_column(
        ForeignKey("steps.id", ondelete="CASCADE"),
        index=True,
    )
    step_no: Mapped[int] = mapped_column()
