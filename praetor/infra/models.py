"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import ClientModel, ProjectModel, TaskModel, TimeEntryModel, Base

__all__ = ["ClientModel", "ProjectModel", "TaskModel", "TimeEntryModel", "Base"]
