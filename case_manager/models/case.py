"""
Case model for storing test cases.

Cases live in a folder and are soft-deleted through the ``is_deleted`` flag.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base


class Case(Base):
    """
    SQLAlchemy model for test cases.

    Attributes:
        id: Unique identifier for the case
        title: Case title
        description: Optional case description
        priority: Integer priority code
        folder_id: Folder containing the case. May name a folder that no
            longer exists while the case is soft-deleted.
        is_deleted: Soft-delete flag
        created_at: Timestamp when the case was created
        updated_at: Timestamp when the case was last updated
    """
    __tablename__ = "cases"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority: Mapped[int] = mapped_column(default=0)
    folder_id: Mapped[int] = mapped_column(
        ForeignKey("folders.id", ondelete="CASCADE"),
        index=True,
    )
    is_deleted: Mapped[bool] = mapped_column(default=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)
