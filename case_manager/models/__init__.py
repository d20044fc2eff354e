"""
Models package for the Test Case Manager.

Exports all SQLAlchemy models for database operations.
"""

from .folder import Folder
from .case import Case
from .step import Step, CaseStep

__all__ = [
    "Folder",
    "Case",
    "Step",
    "CaseStep",
]
