"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Pydantic provides runtime data validation, ensuring data integrity when loading
from YAML config files, the database, or user input in the weekly grid.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from praetor.utils import parse_day


class StartOfWeek(str, Enum):
    MONDAY = "Monday"
    SUNDAY = "Sunday"


class Client(BaseModel):
    """A customer the time is billed to."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str = Field(..., min_length=1, max_length=200)
    is_disabled: bool = False


class Project(BaseModel):
    """A project belonging to exactly one client."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str = Field(..., min_length=1, max_length=200)
    client_id: str
    is_disabled: bool = False


class ProjectTask(BaseModel):
    """
    A task within a project.

    A task may be marked recurring: the pattern, start/end window and duration
    drive the automatic generation of placeholder time entries.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str = Field(..., min_length=1, max_length=200)
    project_id: str
    description: Optional[str] = None
    is_disabled: bool = False

    # Recurrence
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None
    recurrence_start: Optional[datetime.date] = None
    recurrence_end: Optional[datetime.date] = None
    recurrence_duration: Optional[float] = Field(default=None, ge=0)

    @field_validator("recurrence_start", "recurrence_end", mode="before")
    @classmethod
    def _parse_days(cls, value):
        if value is None or value == "":
            return None
        return parse_day(value)


class TimeEntry(BaseModel):
    """
    Represents hours logged against a (client, project, task) on one calendar day.

    Placeholder entries are generated from recurring tasks and are the only
    entries allowed to carry a zero duration.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    user_id: str
    date: datetime.date
    client_id: str
    client_name: Optional[str] = None
    project_id: str
    project_name: Optional[str] = None
    task: str
    duration: float = Field(..., ge=0)
    notes: Optional[str] = None
    is_placeholder: bool = False
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        return parse_day(value)

    @model_validator(mode="after")
    def _check_duration(self) -> "TimeEntry":
        if self.duration <= 0 and not self.is_placeholder:
            raise ValueError("duration must be greater than 0")
        return self


class EntryDraft(BaseModel):
    """Fields of a single entry as typed into the daily form, before validation."""

    date: datetime.date
    client_id: str = ""
    project_id: str = ""
    task: str = ""
    duration: Optional[float] = None
    notes: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        return parse_day(value)


class GeneralSettings(BaseModel):
    """
    Timesheet-wide settings.

    These mirror what an administrator configures once for the whole company.
    """
    model_config = ConfigDict(from_attributes=True)

    start_of_week: StartOfWeek = Field(default=StartOfWeek.MONDAY, description="First day of the weekly grid")
    treat_saturday_as_holiday: bool = Field(default=True, description="Block time logging on Saturdays")
    allow_weekend_selection: bool = Field(default=False, description="Allow logging on weekends and holidays")
    daily_goal: float = Field(default=8.0, ge=0, description="Target daily working hours")

    # Holiday calendar
    holiday_country: str = Field(default="IT", description="ISO country code of the holiday calendar")
    holiday_subdivision: Optional[str] = Field(default=None, description="Optional region/province code")
    holiday_language: Optional[str] = Field(default=None, description="Language of holiday names")

    # Recurring tasks
    recurrence_horizon_days: int = Field(
        default=14,
        ge=0,
        description="How far ahead recurring entries are generated when a task has no end date"
    )
