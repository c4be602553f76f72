"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from praetor.domain.models import Client, Project, ProjectTask
from praetor.infra.db import Base
from praetor.infra.repository import (
    ClientRepository,
    ProjectRepository,
    TaskRepository,
    TimeEntryRepository,
)
from praetor.services.weekly_grid import Catalog


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def catalog() -> Catalog:
    """
    Two clients with projects and tasks, and one client without any project:

    Acme (c1)    -> Website (p1): Design, Development
                 -> Wiki (p2): QA
    Globex (c2)  -> Support Contract (p3): Support
    Initech (c3) -> no projects
    """
    return Catalog(
        clients=[
            Client(id="c1", name="Acme"),
            Client(id="c2", name="Globex"),
            Client(id="c3", name="Initech"),
        ],
        projects=[
            Project(id="p1", name="Website", client_id="c1"),
            Project(id="p2", name="Wiki", client_id="c1"),
            Project(id="p3", name="Support Contract", client_id="c2"),
        ],
        tasks=[
            ProjectTask(id="t1", name="Design", project_id="p1"),
            ProjectTask(id="t2", name="Development", project_id="p1"),
            ProjectTask(id="t3", name="QA", project_id="p2"),
            ProjectTask(id="t4", name="Support", project_id="p3"),
        ],
    )


@pytest_asyncio.fixture
async def seeded_session(db_session, catalog):
    """A session whose database holds the catalog fixture"""
    client_repo = ClientRepository(session=db_session)
    project_repo = ProjectRepository(session=db_session)
    task_repo = TaskRepository(session=db_session)

    for client in catalog.clients:
        await client_repo.create(client)
    for project in catalog.projects:
        await project_repo.create(project)
    for task in catalog.tasks:
        await task_repo.create(task)
    return db_session


def wire_repositories(service, session):
    """Point a service's repositories at the test session"""
    service.client_repo = ClientRepository(session=session)
    service.project_repo = ProjectRepository(session=session)
    service.task_repo = TaskRepository(session=session)
    service.entry_repo = TimeEntryRepository(session=session)
    return service


@pytest.fixture
def wire():
    return wire_repositories
