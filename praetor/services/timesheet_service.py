"""
Timesheet Service - Loads weeks into the grid and stores what the user entered.

Every create and update is an independent request: a failing one is logged
and reported, the others still go through, nothing is rolled back or retried.
"""

import datetime
import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from praetor.domain.models import EntryDraft, GeneralSettings, TimeEntry
from praetor.infra.repository import (
    ClientRepository,
    ProjectRepository,
    TaskRepository,
    TimeEntryRepository,
)
from praetor.services.calendar_service import CalendarService
from praetor.services.goal_service import is_exceeding_goal
from praetor.services.validation import (
    EntryValidationError,
    ValidationResult,
    validate_entry,
)
from praetor.services.weekly_grid import (
    Catalog,
    EntryOperation,
    GridState,
    Submit,
    build_grid,
    reduce,
)

logger = logging.getLogger(__name__)


class OperationFailure(BaseModel):
    """A create or update that storage rejected."""

    kind: str  # "create" or "update"
    row_index: int
    date: datetime.date
    entry_id: Optional[int] = None
    error: str


class SubmitReport(BaseModel):
    created: List[TimeEntry] = Field(default_factory=list)
    updated: List[TimeEntry] = Field(default_factory=list)
    failures: List[OperationFailure] = Field(default_factory=list)
    validation: ValidationResult = Field(default_factory=ValidationResult)

    @property
    def ok(self) -> bool:
        return self.validation.ok and not self.failures


class TimesheetService:
    """
    Connects the weekly grid and the daily entry form to storage.
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

    async def load_catalog(self) -> Catalog:
        """Enabled clients, projects and tasks whose parents are enabled too"""
        clients = await self.client_repo.get_all(include_disabled=False)
        client_ids = {c.id for c in clients}
        projects = [p for p in await self.project_repo.get_all(include_disabled=False)
                    if p.client_id in client_ids]
        project_ids = {p.id for p in projects}
        tasks = [t for t in await self.task_repo.get_all(include_disabled=False)
                 if t.project_id in project_ids]
        return Catalog(clients=clients, projects=projects, tasks=tasks)

    async def load_week(self, user_id: str, reference_date: datetime.date,
                        today: Optional[datetime.date] = None) -> GridState:
        """Build the grid of the week containing reference_date from stored entries"""
        week = self.calendar_service.week_days(reference_date, today=today)
        entries = await self.entry_repo.list_by_range(week[0].date, week[-1].date, user_id=user_id)
        catalog = await self.load_catalog()
        logger.debug(f"Loaded {len(entries)} entries for week of {week[0].date}")
        return build_grid(entries, week, catalog)

    async def submit_week(self, state: GridState, user_id: str) -> Tuple[GridState, SubmitReport]:
        """
        Validate the grid and store its creates and updates.

        Nothing is sent when validation fails. Otherwise creates are issued in
        row then day order, followed by the updates.

        Returns:
            The submitted grid state and a report of what was stored
        """
        state = reduce(state, Submit())
        report = SubmitReport(validation=state.errors)
        if state.plan is None:
            logger.info(f"Week submission blocked by {len(state.errors.errors)} validation errors")
            return state, report

        for operation in state.plan.creates:
            try:
                entry = await self.entry_repo.create(self._entry_from_operation(operation, user_id))
            except (SQLAlchemyError, ValueError) as e:
                logger.error(f"Failed to create entry for {operation.date}: {e}")
                report.failures.append(OperationFailure(
                    kind="create", row_index=operation.row_index, date=operation.date, error=str(e)
                ))
                continue
            report.created.append(entry)

        for operation in state.plan.updates:
            try:
                entry = await self.entry_repo.update(operation.entry_id, operation.update_values())
            except (SQLAlchemyError, ValueError) as e:
                logger.error(f"Failed to update entry {operation.entry_id}: {e}")
                report.failures.append(OperationFailure(
                    kind="update", row_index=operation.row_index, date=operation.date,
                    entry_id=operation.entry_id, error=str(e)
                ))
                continue
            report.updated.append(entry)

        logger.info(
            f"Week submitted: {len(report.created)} created, {len(report.updated)} updated, "
            f"{len(report.failures)} failed"
        )
        return state, report

    @staticmethod
    def _entry_from_operation(operation: EntryOperation, user_id: str) -> TimeEntry:
        return TimeEntry(
            user_id=user_id,
            date=operation.date,
            client_id=operation.client_id,
            client_name=operation.client_name,
            project_id=operation.project_id,
            project_name=operation.project_name,
            task=operation.task,
            duration=operation.duration,
            notes=operation.notes or None,
        )

    async def day_total(self, user_id: str, day: datetime.date) -> float:
        """Hours already logged by a user on a day"""
        entries = await self.entry_repo.list_for_day(day, user_id=user_id)
        return sum(entry.duration for entry in entries)

    async def check_goal(self, user_id: str, day: datetime.date, candidate_duration: float) -> bool:
        """True if logging candidate_duration on day would exceed the daily goal"""
        current = await self.day_total(user_id, day)
        return is_exceeding_goal(candidate_duration, current, self.settings.daily_goal)

    async def add_entry(self, user_id: str, draft: EntryDraft) -> Tuple[TimeEntry, bool]:
        """
        Store a single entry from the daily form.

        Returns:
            The created entry and whether it pushed the day over the goal

        Raises:
            EntryValidationError: if a field is missing or the hours are invalid
        """
        result = validate_entry(draft.client_id, draft.project_id, draft.task, draft.duration)
        if self.calendar_service.is_forbidden(draft.date) and not self.settings.allow_weekend_selection:
            result.add("date", "Time can not be logged on weekends or holidays")
        if not result.ok:
            raise EntryValidationError(result)

        exceeding = await self.check_goal(user_id, draft.date, draft.duration)
        if exceeding:
            logger.info(f"Entry on {draft.date} exceeds the daily goal of {self.settings.daily_goal}h")

        client = await self.client_repo.get_by_id(draft.client_id)
        project = await self.project_repo.get_by_id(draft.project_id)
        entry = await self.entry_repo.create(TimeEntry(
            user_id=user_id,
            date=draft.date,
            client_id=draft.client_id,
            client_name=client.name if client else "Unknown Client",
            project_id=draft.project_id,
            project_name=project.name if project else "General",
            task=draft.task.strip(),
            duration=draft.duration,
            notes=draft.notes or None,
        ))
        return entry, exceeding
