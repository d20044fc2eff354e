"""
Folder model for organizing test cases.

Folders form one tree per project. Folders can be nested inside other folders.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base


class Folder(Base):
    """
    SQLAlchemy model for folders.

    The schema cascades a hard delete from a parent folder to its child
    folders and to the cases stored in them. Folder deletion in this service
    soft-deletes the cases first and suspends that cascade, see
    ``services.folder_tree.delete_folder``. Ids are never reused, so the
    ``folder_id`` kept by a soft-deleted case cannot name a newer folder.

    Attributes:
        id: Unique identifier for the folder
        project_id: Project the folder belongs to
        parent_folder_id: Optional reference to parent folder (for nesting)
        name: Human-readable name for the folder
        detail: Optional free-form description
        created_at: Timestamp when the folder was created
        updated_at: Timestamp when the folder was last updated
    """
    __tablename__ = "folders"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(index=True)
    parent_folder_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("folders.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255))
    detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)
