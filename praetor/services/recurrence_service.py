"""
Recurrence Service - Expands recurring tasks into placeholder time entries.

A recurrence pattern is stored on a task as a short string:

    daily                       every day
    weekly                      the weekday of the recurrence start
    monthly                     the day of month of the recurrence start
    monthly:<occurrence>:<wd>   the first/second/third/fourth/last weekday
                                of each month (wd: 0 = Sunday ... 6 = Saturday)

Resolving a pattern is a pure function of its inputs; the service on top of
it persists one placeholder entry per resolved day.
"""

import calendar
import datetime
import logging
from enum import Enum
from typing import Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError

from praetor.domain.models import GeneralSettings, ProjectTask, TimeEntry
from praetor.infra.repository import (
    ClientRepository,
    ProjectRepository,
    TaskRepository,
    TimeEntryRepository,
)
from praetor.services.calendar_service import CalendarService

logger = logging.getLogger(__name__)

OCCURRENCES = ("first", "second", "third", "fourth", "last")
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class InvalidPatternError(ValueError):
    """Raised when a recurrence pattern string can not be parsed."""


class DailyPattern(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["daily"] = "daily"


class WeeklyPattern(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["weekly"] = "weekly"


class MonthlyPattern(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["monthly"] = "monthly"


class MonthlyWeekdayPattern(BaseModel):
    """Nth or last given weekday of every month."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["monthly-nth-weekday"] = "monthly-nth-weekday"
    occurrence: Literal["first", "second", "third", "fourth", "last"]
    weekday: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")


RecurrenceDescriptor = Union[DailyPattern, WeeklyPattern, MonthlyPattern, MonthlyWeekdayPattern]


class RecurringAction(str, Enum):
    """What to do with existing entries when a task stops recurring."""
    STOP = "stop"
    DELETE_FUTURE = "delete_future"
    DELETE_ALL = "delete_all"


def parse_pattern(pattern: Union[str, RecurrenceDescriptor]) -> RecurrenceDescriptor:
    """
    Parse a stored pattern string into a descriptor.

    Raises:
        InvalidPatternError: if the pattern is not recognized
    """
    if isinstance(pattern, (DailyPattern, WeeklyPattern, MonthlyPattern, MonthlyWeekdayPattern)):
        return pattern
    if not isinstance(pattern, str):
        raise InvalidPatternError(f"Invalid recurrence pattern: {pattern!r}")

    text = pattern.strip()
    if text == "daily":
        return DailyPattern()
    if text == "weekly":
        return WeeklyPattern()
    if text == "monthly":
        return MonthlyPattern()

    parts = text.split(":")
    if len(parts) == 3 and parts[0] == "monthly" and parts[1] in OCCURRENCES:
        try:
            weekday = int(parts[2])
        except ValueError:
            raise InvalidPatternError(f"Invalid weekday in recurrence pattern: {pattern!r}") from None
        if 0 <= weekday <= 6:
            return MonthlyWeekdayPattern(occurrence=parts[1], weekday=weekday)

    raise InvalidPatternError(f"Invalid recurrence pattern: {pattern!r}")


def format_pattern(descriptor: RecurrenceDescriptor) -> str:
    """Inverse of parse_pattern"""
    if isinstance(descriptor, MonthlyWeekdayPattern):
        return f"monthly:{descriptor.occurrence}:{descriptor.weekday}"
    return descriptor.kind


def describe_pattern(pattern: str) -> str:
    """Human readable label, e.g. 'Weekly' or 'Every Last Friday'"""
    try:
        descriptor = parse_pattern(pattern)
    except InvalidPatternError:
        return "Custom..."
    if isinstance(descriptor, MonthlyWeekdayPattern):
        return f"Every {descriptor.occurrence.capitalize()} {WEEKDAY_NAMES[descriptor.weekday]}"
    return descriptor.kind.capitalize()


def nth_weekday_of_month(year: int, month: int, occurrence: str,
                         weekday: int) -> Optional[datetime.date]:
    """
    Date of the Nth (or last) weekday of a month.

    Args:
        weekday: 0 = Sunday ... 6 = Saturday

    Returns:
        The date, or None when the month has no such occurrence
    """
    py_weekday = (weekday - 1) % 7
    _, last_day = calendar.monthrange(year, month)

    if occurrence == "last":
        last = datetime.date(year, month, last_day)
        return last - datetime.timedelta(days=(last.weekday() - py_weekday) % 7)

    first = datetime.date(year, month, 1)
    day = 1 + (py_weekday - first.weekday()) % 7 + 7 * OCCURRENCES.index(occurrence)
    if day > last_day:
        return None
    return datetime.date(year, month, day)


def _months(start_date: datetime.date, end_date: datetime.date) -> Iterator[tuple]:
    year, month = start_date.year, start_date.month
    while (year, month) <= (end_date.year, end_date.month):
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


def _candidates(descriptor: RecurrenceDescriptor, start_date: datetime.date,
                end_date: datetime.date) -> Iterator[datetime.date]:
    if isinstance(descriptor, (DailyPattern, WeeklyPattern)):
        step = datetime.timedelta(days=1 if isinstance(descriptor, DailyPattern) else 7)
        current = start_date
        while current <= end_date:
            yield current
            current += step
        return

    for year, month in _months(start_date, end_date):
        if isinstance(descriptor, MonthlyPattern):
            if start_date.day > calendar.monthrange(year, month)[1]:
                continue
            day = datetime.date(year, month, start_date.day)
        else:
            day = nth_weekday_of_month(year, month, descriptor.occurrence, descriptor.weekday)
            if day is None:
                continue
        if start_date <= day <= end_date:
            yield day


def resolve_occurrences(pattern: Union[str, RecurrenceDescriptor],
                        start_date: datetime.date, end_date: datetime.date,
                        calendar_service: Optional[CalendarService] = None) -> Iterator[datetime.date]:
    """
    Lazily produce the eligible dates of a pattern within [start_date, end_date].

    The pattern is parsed immediately, the dates are produced on iteration.
    Every call returns a fresh iterator over the same dates.

    Args:
        pattern: Pattern string or descriptor
        start_date: First day of the range; also the anchor of weekly/monthly
        end_date: Last day of the range (inclusive); before start gives nothing
        calendar_service: When given, forbidden days are left out

    Raises:
        InvalidPatternError: if the pattern is not recognized
    """
    descriptor = parse_pattern(pattern)
    if end_date < start_date:
        return iter(())

    dates = _candidates(descriptor, start_date, end_date)
    if calendar_service is None:
        return dates
    return (d for d in dates if not calendar_service.is_forbidden(d))


class RecurrenceService:
    """
    Turns recurring tasks into placeholder entries and manages their lifecycle.
    """

    def __init__(self, calendar_service: Optional[CalendarService] = None,
                 settings: Optional[GeneralSettings] = None):
        self.settings = settings or GeneralSettings()
        self.calendar_service = calendar_service or CalendarService.from_settings(self.settings)

        # Repositories
        self.client_repo = ClientRepository()
        self.project_repo = ProjectRepository()
        self.task_repo = TaskRepository()
        self.entry_repo = TimeEntryRepository()

    async def make_recurring(self, task_id: str, pattern: str,
                             start_date: Optional[datetime.date] = None,
                             end_date: Optional[datetime.date] = None,
                             duration: Optional[float] = None) -> ProjectTask:
        """
        Mark a task as recurring.

        Raises:
            InvalidPatternError: if the pattern is not recognized
            ValueError: if the task does not exist
        """
        descriptor = parse_pattern(pattern)
        return await self.task_repo.update(task_id, {
            "is_recurring": True,
            "recurrence_pattern": format_pattern(descriptor),
            "recurrence_start": start_date or datetime.date.today(),
            "recurrence_end": end_date,
            "recurrence_duration": duration,
        })

    async def generate_recurring_entries(self, user_id: str,
                                         today: Optional[datetime.date] = None) -> List[TimeEntry]:
        """
        Create the missing placeholder entries of every recurring task.

        Tasks without an end date are expanded up to the configured horizon.
        A day that already has an entry for the same project and task is left
        alone, so running this twice creates nothing new.

        Returns:
            The created entries
        """
        if today is None:
            today = datetime.date.today()
        horizon = today + datetime.timedelta(days=self.settings.recurrence_horizon_days)

        projects = {p.id: p for p in await self.project_repo.get_all()}
        clients = {c.id: c for c in await self.client_repo.get_all()}
        created: List[TimeEntry] = []

        for task in await self.task_repo.get_recurring():
            project = projects.get(task.project_id)
            client = clients.get(project.client_id) if project else None
            if not project or not client:
                logger.debug(f"Skipping recurring task {task.id}: project or client missing")
                continue

            start = task.recurrence_start or today
            end = task.recurrence_end or horizon
            try:
                dates = resolve_occurrences(task.recurrence_pattern, start, end, self.calendar_service)
            except InvalidPatternError as e:
                logger.warning(f"Skipping recurring task {task.id}: {e}")
                continue

            for day in dates:
                if await self.entry_repo.exists(day, task.project_id, task.name, user_id=user_id):
                    continue
                try:
                    entry = await self.entry_repo.create(TimeEntry(
                        user_id=user_id,
                        date=day,
                        client_id=client.id,
                        client_name=client.name,
                        project_id=project.id,
                        project_name=project.name,
                        task=task.name,
                        duration=task.recurrence_duration or 0,
                        is_placeholder=True,
                    ))
                except SQLAlchemyError as e:
                    logger.error(f"Failed to create recurring entry for task {task.id} on {day}: {e}")
                    continue
                created.append(entry)

        if created:
            logger.info(f"Generated {len(created)} recurring entries for user {user_id}")
        return created

    async def stop_recurring(self, task_id: str, action: Union[RecurringAction, str],
                             today: Optional[datetime.date] = None) -> int:
        """
        Stop a task from recurring and clean up its entries.

        Args:
            task_id: The recurring task
            action: 'stop' removes placeholders only, 'delete_future' removes
                entries from today on, 'delete_all' removes every entry
            today: Reference day for 'delete_future'

        Returns:
            Number of deleted entries
        """
        action = RecurringAction(action)
        task = await self.task_repo.get_by_id(task_id)
        if not task:
            raise ValueError(f"Task {task_id} not found")

        await self.task_repo.update(task_id, {
            "is_recurring": False,
            "recurrence_pattern": None,
            "recurrence_start": None,
            "recurrence_end": None,
        })

        if action == RecurringAction.STOP:
            return await self.entry_repo.bulk_delete(task.project_id, task.name, placeholder_only=True)
        if action == RecurringAction.DELETE_FUTURE:
            return await self.entry_repo.bulk_delete(
                task.project_id, task.name, future_from=today or datetime.date.today()
            )
        return await self.entry_repo.bulk_delete(task.project_id, task.name)
