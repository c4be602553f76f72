"""Services layer - Business logic"""

from .calendar_service import CalendarService
from .recurrence_service import RecurrenceService
from .timesheet_service import TimesheetService

__all__ = ["CalendarService", "RecurrenceService", "TimesheetService"]
