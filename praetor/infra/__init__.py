"""Infrastructure layer - Database, configuration and persistence"""

from .db import DatabaseEngine, get_engine, init_db
from .models import ClientModel, ProjectModel, TaskModel, TimeEntryModel

__all__ = [
    "DatabaseEngine",
    "get_engine",
    "init_db",
    "ClientModel",
    "ProjectModel",
    "TaskModel",
    "TimeEntryModel",
]
