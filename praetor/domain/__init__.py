"""Domain layer - Pure business entities"""

from .models import (
    Client,
    EntryDraft,
    GeneralSettings,
    Project,
    ProjectTask,
    StartOfWeek,
    TimeEntry,
)

__all__ = [
    "Client",
    "EntryDraft",
    "GeneralSettings",
    "Project",
    "ProjectTask",
    "StartOfWeek",
    "TimeEntry",
]
