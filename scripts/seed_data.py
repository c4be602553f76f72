"""
Data Seeder for Praetor.
Populates the database with a demo catalog and a few weeks of entries.
"""

import asyncio
import datetime
import random
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from praetor.domain.models import Client, Project, ProjectTask, TimeEntry
from praetor.infra.config import get_settings
from praetor.infra.db import init_db
from praetor.infra.repository import ClientRepository, ProjectRepository, TaskRepository, TimeEntryRepository
from praetor.services.calendar_service import CalendarService
from praetor.services.recurrence_service import RecurrenceService

# (client, [(project, task names)])
CATALOG = [
    (Client(id="acme", name="Acme Corp"), [
        (Project(id="acme-web", name="Website Redesign", client_id="acme"), ["Design", "Development", "Meetings"]),
        (Project(id="acme-ops", name="Operations", client_id="acme"), ["Support"]),
    ]),
    (Client(id="globex", name="Globex"), [
        (Project(id="globex-erp", name="ERP Rollout", client_id="globex"), ["Analysis", "Training"]),
    ]),
]


async def seed(user_id: str = "demo"):
    settings = get_settings()
    await init_db(settings.get_db_url())
    print("Starting data seeding...")

    client_repo = ClientRepository()
    project_repo = ProjectRepository()
    task_repo = TaskRepository()
    entry_repo = TimeEntryRepository()

    existing_clients = {c.id for c in await client_repo.get_all()}
    tasks = []

    # 1. Create catalog
    for client, projects in CATALOG:
        if client.id in existing_clients:
            print(f"Client exists: {client.name}")
            continue
        print(f"Creating client: {client.name}")
        await client_repo.create(client)
        for project, task_names in projects:
            await project_repo.create(project)
            for name in task_names:
                task = ProjectTask(id=f"{project.id}-{name.lower()}", name=name, project_id=project.id)
                tasks.append((client, project, await task_repo.create(task)))

    if not tasks:
        print("Catalog already seeded.")
        return

    # 2. Four weeks of entries on working days
    calendar_service = CalendarService.from_settings(settings.general)
    today = datetime.date.today()
    current = calendar_service.week_start(today) - datetime.timedelta(weeks=3)

    while current <= today:
        if calendar_service.is_working_day(current):
            for client, project, task in random.sample(tasks, 2):
                await entry_repo.create(TimeEntry(
                    user_id=user_id,
                    date=current,
                    client_id=client.id,
                    client_name=client.name,
                    project_id=project.id,
                    project_name=project.name,
                    task=task.name,
                    duration=random.choice([2, 3, 4]),
                    notes="Seeded entry",
                ))
            print(f"Generated entries for {current}")
        current += datetime.timedelta(days=1)

    # 3. A recurring weekly meeting
    recurrence = RecurrenceService(calendar_service=calendar_service, settings=settings.general)
    await recurrence.make_recurring("acme-web-meetings", "weekly", start_date=today, duration=1)
    created = await recurrence.generate_recurring_entries(user_id)
    print(f"Generated {len(created)} recurring placeholders")

    print("Seeding complete.")


if __name__ == "__main__":
    asyncio.run(seed(*sys.argv[1:2]))
