"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Replace the local database by the remote timesheet API
- Mock data for testing
"""

import datetime
import json
import logging
from pathlib import Path
from typing import List, Optional, Dict, Any

from pydantic import ValidationError
from sqlalchemy import select, update, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession

from praetor.domain.models import Client, Project, ProjectTask, TimeEntry, GeneralSettings
from praetor.infra.db import ClientModel, ProjectModel, TaskModel, TimeEntryModel, get_engine

logger = logging.getLogger(__name__)


class _SessionMixin:
    """Session handling shared by all repositories: injected or from the global engine."""

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()


class SettingsRepository:
    """
    Handles General Settings persistence (JSON file based).
    """

    def __init__(self, prefs_path: Optional[Path] = None):
        if prefs_path is None:
            # Keep the settings file next to the database
            url = str(get_engine().engine.url)
            if "sqlite" in url and ":memory:" not in url:
                db_path = url.split("///")[-1]
                prefs_path = Path(db_path).parent / "general_settings.json"
            else:
                prefs_path = Path("general_settings.json")  # Fallback
        self.prefs_path = prefs_path

    async def get_settings(self) -> GeneralSettings:
        """Get current general settings, defaults if none were saved"""
        if not self.prefs_path.exists():
            return GeneralSettings()

        try:
            with open(self.prefs_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return GeneralSettings(**data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Error loading settings from {self.prefs_path}: {e}")
            return GeneralSettings()

    async def update_settings(self, settings: GeneralSettings) -> None:
        """Save general settings"""
        self.prefs_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.prefs_path, 'w', encoding='utf-8') as f:
            json.dump(settings.model_dump(mode="json"), f, indent=2)


class ClientRepository(_SessionMixin):
    """
    Handles Client-related database operations.
    """

    async def get_all(self, include_disabled: bool = True) -> List[Client]:
        """Get all clients, ordered by name"""
        session = await self._get_session()
        async with session:
            stmt = select(ClientModel).order_by(ClientModel.name)
            if not include_disabled:
                stmt = stmt.where(ClientModel.is_disabled == False)
            result = await session.execute(stmt)
            return [Client.model_validate(m) for m in result.scalars().all()]

    async def get_by_id(self, client_id: str) -> Optional[Client]:
        session = await self._get_session()
        async with session:
            model = await session.get(ClientModel, client_id)
            return Client.model_validate(model) if model else None

    async def create(self, client: Client) -> Client:
        """Create a new client"""
        session = await self._get_session()
        async with session:
            model = ClientModel(id=client.id, name=client.name, is_disabled=client.is_disabled)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return Client.model_validate(model)


class ProjectRepository(_SessionMixin):
    """
    Handles Project-related database operations.
    """

    async def get_all(self, include_disabled: bool = True) -> List[Project]:
        """Get all projects, ordered by name"""
        session = await self._get_session()
        async with session:
            stmt = select(ProjectModel).order_by(ProjectModel.name)
            if not include_disabled:
                stmt = stmt.where(ProjectModel.is_disabled == False)
            result = await session.execute(stmt)
            return [Project.model_validate(m) for m in result.scalars().all()]

    async def get_by_id(self, project_id: str) -> Optional[Project]:
        session = await self._get_session()
        async with session:
            model = await session.get(ProjectModel, project_id)
            return Project.model_validate(model) if model else None

    async def create(self, project: Project) -> Project:
        """Create a new project"""
        session = await self._get_session()
        async with session:
            model = ProjectModel(
                id=project.id,
                name=project.name,
                client_id=project.client_id,
                is_disabled=project.is_disabled
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return Project.model_validate(model)


class TaskRepository(_SessionMixin):
    """
    Handles all ProjectTask-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    """

    async def get_all(self, include_disabled: bool = True) -> List[ProjectTask]:
        """Get all tasks, ordered by name"""
        session = await self._get_session()
        async with session:
            stmt = select(TaskModel).order_by(TaskModel.name)
            if not include_disabled:
                stmt = stmt.where(TaskModel.is_disabled == False)
            result = await session.execute(stmt)
            return [ProjectTask.model_validate(m) for m in result.scalars().all()]

    async def get_recurring(self) -> List[ProjectTask]:
        """Get all enabled tasks that are marked recurring"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(
                    and_(TaskModel.is_recurring == True, TaskModel.is_disabled == False)
                )
            )
            return [ProjectTask.model_validate(m) for m in result.scalars().all()]

    async def get_by_id(self, task_id: str) -> Optional[ProjectTask]:
        """Get a specific task by ID"""
        session = await self._get_session()
        async with session:
            model = await session.get(TaskModel, task_id)
            return ProjectTask.model_validate(model) if model else None

    async def create(self, task: ProjectTask) -> ProjectTask:
        """Create a new task"""
        session = await self._get_session()
        async with session:
            model = TaskModel(**task.model_dump())
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return ProjectTask.model_validate(model)

    async def update(self, task_id: str, values: Dict[str, Any]) -> ProjectTask:
        """Update selected fields of a task"""
        session = await self._get_session()
        async with session:
            await session.execute(
                update(TaskModel)
                .where(TaskModel.id == task_id)
                .values(**values)
            )
            await session.commit()
        task = await self.get_by_id(task_id)
        if task is None:
            raise ValueError(f"Task {task_id} not found")
        return task


class TimeEntryRepository(_SessionMixin):
    """
    Handles all TimeEntry-related database operations.
    """

    @staticmethod
    def _to_model(entry: TimeEntry) -> TimeEntryModel:
        return TimeEntryModel(**entry.model_dump(exclude={"id"}))

    async def create(self, entry: TimeEntry) -> TimeEntry:
        """Create a new time entry"""
        session = await self._get_session()
        async with session:
            entry_model = self._to_model(entry)
            session.add(entry_model)
            await session.commit()
            await session.refresh(entry_model)
            return TimeEntry.model_validate(entry_model)

    async def create_many(self, entries: List[TimeEntry]) -> List[TimeEntry]:
        """Create several time entries in one transaction"""
        session = await self._get_session()
        async with session:
            entry_models = [self._to_model(entry) for entry in entries]
            session.add_all(entry_models)
            await session.commit()
            for entry_model in entry_models:
                await session.refresh(entry_model)
            return [TimeEntry.model_validate(em) for em in entry_models]

    async def update(self, entry_id: int, values: Dict[str, Any]) -> TimeEntry:
        """
        Update selected fields of an existing time entry.

        Raises:
            ValueError: if no entry with this ID exists
        """
        session = await self._get_session()
        async with session:
            result = await session.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.id == entry_id)
                .values(**values)
            )
            await session.commit()
            if result.rowcount == 0:
                raise ValueError(f"Time entry {entry_id} not found")
            entry_model = await session.get(TimeEntryModel, entry_id, populate_existing=True)
            return TimeEntry.model_validate(entry_model)

    async def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        session = await self._get_session()
        async with session:
            entry_model = await session.get(TimeEntryModel, entry_id)
            return TimeEntry.model_validate(entry_model) if entry_model else None

    async def list_by_range(self, start_date: datetime.date, end_date: datetime.date,
                            user_id: Optional[str] = None) -> List[TimeEntry]:
        """Get all time entries dated within [start_date, end_date], optionally for one user"""
        session = await self._get_session()
        async with session:
            query = select(TimeEntryModel).where(
                and_(TimeEntryModel.date >= start_date, TimeEntryModel.date <= end_date)
            )
            if user_id is not None:
                query = query.where(TimeEntryModel.user_id == user_id)

            result = await session.execute(
                query.order_by(TimeEntryModel.date, TimeEntryModel.id)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    async def list_for_day(self, day: datetime.date, user_id: Optional[str] = None) -> List[TimeEntry]:
        """Get all time entries of a single day"""
        return await self.list_by_range(day, day, user_id=user_id)

    async def exists(self, day: datetime.date, project_id: str, task: str,
                     user_id: Optional[str] = None) -> bool:
        """Check whether an entry exists for this (date, project, task)"""
        session = await self._get_session()
        async with session:
            query = select(TimeEntryModel.id).where(
                and_(
                    TimeEntryModel.date == day,
                    TimeEntryModel.project_id == project_id,
                    TimeEntryModel.task == task
                )
            )
            if user_id is not None:
                query = query.where(TimeEntryModel.user_id == user_id)
            result = await session.execute(query.limit(1))
            return result.first() is not None

    async def delete(self, entry_id: int) -> None:
        """Delete a time entry by ID"""
        session = await self._get_session()
        async with session:
            await session.execute(
                delete(TimeEntryModel).where(TimeEntryModel.id == entry_id)
            )
            await session.commit()

    async def bulk_delete(self, project_id: str, task: str,
                          future_from: Optional[datetime.date] = None,
                          placeholder_only: bool = False) -> int:
        """
        Delete the entries of one project task.

        Args:
            project_id: Project the task belongs to
            task: Task name
            future_from: Only delete entries dated on or after this day
            placeholder_only: Only delete generated placeholder entries

        Returns:
            Number of deleted entries
        """
        session = await self._get_session()
        async with session:
            stmt = delete(TimeEntryModel).where(
                and_(TimeEntryModel.project_id == project_id, TimeEntryModel.task == task)
            )
            if future_from is not None:
                stmt = stmt.where(TimeEntryModel.date >= future_from)
            if placeholder_only:
                stmt = stmt.where(TimeEntryModel.is_placeholder == True)

            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount
