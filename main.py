#!/usr/bin/env python

"""
Praetor Timesheet - Main Entry Point

Generates the pending recurring entries of a user and prints the current week
as it appears in the weekly grid.

Usage:
    python main.py [user_id]

Requirements:
    - Python 3.10+
    - See pyproject.toml for dependencies
"""

import asyncio
import datetime
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from praetor.infra.config import get_settings
from praetor.infra.db import init_db
from praetor.services import CalendarService, RecurrenceService, TimesheetService
from praetor.services.goal_service import has_met_goal
from praetor.services.weekly_grid import day_totals, week_total


async def run(user_id: str) -> int:
    settings = get_settings()
    await init_db(settings.get_db_url())

    calendar_service = CalendarService.from_settings(settings.general)
    recurrence = RecurrenceService(calendar_service=calendar_service, settings=settings.general)
    created = await recurrence.generate_recurring_entries(user_id)
    print(f"Generated {len(created)} recurring entries")

    timesheet = TimesheetService(calendar_service=calendar_service, settings=settings.general)
    state = await timesheet.load_week(user_id, datetime.date.today())
    totals = day_totals(state)

    for day in state.week:
        marker = "x" if day.is_forbidden else ("*" if has_met_goal(totals[day.date], settings.general.daily_goal) else " ")
        label = f" ({day.holiday_name})" if day.holiday_name else ""
        print(f"[{marker}] {day.date:%a %d.%m.%Y}  {totals[day.date]:5.2f}h{label}")
    print(f"Week total: {week_total(state):.2f}h")
    return 0


def main():
    """Main entry point"""
    settings = get_settings()
    settings.configure_logging()
    user_id = sys.argv[1] if len(sys.argv) > 1 else settings.default_user
    return asyncio.run(run(user_id))


if __name__ == "__main__":
    sys.exit(main())
