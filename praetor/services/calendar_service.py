"""
Calendar Service - Handles holidays, weekends and working day logic.

Architecture Decision: Strategy Pattern
The holiday table is looked up through a single callable, so any country's
calendar from the `holidays` package (or a custom table) can be plugged in.

All functions work on calendar days (``datetime.date``), never on zoned
instants, so a day can not shift when converted.
"""

import datetime
from typing import Callable, List, Optional

import holidays
from pydantic import BaseModel

from praetor.domain.models import GeneralSettings, StartOfWeek

HolidayLookup = Callable[[datetime.date], Optional[str]]

SATURDAY = 5
SUNDAY = 6


class WeekDay(BaseModel):
    """One column of the weekly grid."""

    date: datetime.date
    is_today: bool = False
    is_weekend: bool = False
    is_configured_holiday: bool = False
    is_named_holiday: bool = False
    holiday_name: Optional[str] = None
    is_forbidden: bool = False


def is_forbidden(day: datetime.date, config: Optional[GeneralSettings] = None,
                 holiday_lookup: Optional[HolidayLookup] = None) -> bool:
    """
    Check whether time can not be logged on a day.

    Sunday is always forbidden, Saturday only when the config treats it as a
    holiday, and a named holiday is forbidden whatever its weekday. Without a
    config Saturday is a working day.
    """
    weekday = day.weekday()
    if weekday == SUNDAY:
        return True
    if weekday == SATURDAY and config is not None and config.treat_saturday_as_holiday:
        return True
    if holiday_lookup is not None and holiday_lookup(day):
        return True
    return False


class CalendarService:
    """
    Handles holiday and weekend logic for the timesheet.
    Separated from entry logic for Separation of Concerns.
    """

    def __init__(self, treat_saturday_as_holiday: bool = True,
                 start_of_week: StartOfWeek = StartOfWeek.MONDAY,
                 country: str = 'IT', subdivision: Optional[str] = None,
                 language: Optional[str] = None,
                 allow_weekend_selection: bool = False,
                 holiday_lookup: Optional[HolidayLookup] = None):
        """
        Initialize with the holiday calendar and weekend rules.

        Args:
            treat_saturday_as_holiday: Whether Saturday is a non-working day
            start_of_week: First day of a week (Monday or Sunday)
            country: ISO country code of the holiday calendar
            subdivision: Optional region/province of the holiday calendar
            language: Language of holiday names (library default if None)
            allow_weekend_selection: Never mark week days as forbidden
            holiday_lookup: Custom holiday table, replaces the country calendar
        """
        self.config = GeneralSettings(
            treat_saturday_as_holiday=treat_saturday_as_holiday,
            start_of_week=start_of_week,
            allow_weekend_selection=allow_weekend_selection,
        )
        self.treat_saturday_as_holiday = self.config.treat_saturday_as_holiday
        self.start_of_week = self.config.start_of_week
        self.allow_weekend_selection = self.config.allow_weekend_selection

        if holiday_lookup is None:
            country_holidays = holidays.country_holidays(country, subdiv=subdivision, language=language)
            holiday_lookup = country_holidays.get
        self._holiday_lookup = holiday_lookup

    @classmethod
    def from_settings(cls, settings: GeneralSettings) -> "CalendarService":
        """Build the calendar configured in the general settings"""
        return cls(
            treat_saturday_as_holiday=settings.treat_saturday_as_holiday,
            start_of_week=settings.start_of_week,
            country=settings.holiday_country,
            subdivision=settings.holiday_subdivision,
            language=settings.holiday_language,
            allow_weekend_selection=settings.allow_weekend_selection,
        )

    def get_holiday_name(self, date_obj: datetime.date) -> Optional[str]:
        """
        Get the name of the holiday for a given date.

        Returns:
            Holiday name or None if not a holiday
        """
        return self._holiday_lookup(date_obj) or None

    def is_holiday(self, date_obj: datetime.date) -> bool:
        """Check if date is a named holiday"""
        return self.get_holiday_name(date_obj) is not None

    def is_weekend(self, date_obj: datetime.date) -> bool:
        """Check if date is a Saturday or Sunday"""
        return date_obj.weekday() in (SATURDAY, SUNDAY)

    def is_forbidden(self, date_obj: datetime.date) -> bool:
        """Check if time logging is not allowed on a date"""
        return is_forbidden(date_obj, self.config, self._holiday_lookup)

    def is_working_day(self, date_obj: datetime.date) -> bool:
        """Check if a given date is a working day"""
        return not self.is_forbidden(date_obj)

    def get_working_days_in_range(self, start_date: datetime.date,
                                  end_date: datetime.date) -> int:
        """
        Count working days in a date range.

        Args:
            start_date: Start of range (inclusive)
            end_date: End of range (inclusive)

        Returns:
            Number of working days
        """
        working_days = 0
        current = start_date

        while current <= end_date:
            if self.is_working_day(current):
                working_days += 1
            current += datetime.timedelta(days=1)

        return working_days

    def week_start(self, date_obj: datetime.date) -> datetime.date:
        """First day of the week containing date_obj"""
        if self.start_of_week == StartOfWeek.SUNDAY:
            offset = (date_obj.weekday() + 1) % 7
        else:
            offset = date_obj.weekday()
        return date_obj - datetime.timedelta(days=offset)

    def week_days(self, reference: datetime.date,
                  today: Optional[datetime.date] = None) -> List[WeekDay]:
        """
        Build the seven annotated days of the week containing reference.

        Args:
            reference: Any day of the wanted week
            today: Day to flag as today (defaults to the current date)
        """
        if today is None:
            today = datetime.date.today()

        start = self.week_start(reference)
        days = []
        for offset in range(7):
            day = start + datetime.timedelta(days=offset)
            holiday_name = self.get_holiday_name(day)
            is_configured_holiday = day.weekday() == SATURDAY and self.treat_saturday_as_holiday
            forbidden = self.is_forbidden(day) and not self.allow_weekend_selection

            days.append(WeekDay(
                date=day,
                is_today=day == today,
                is_weekend=self.is_weekend(day),
                is_configured_holiday=is_configured_holiday,
                is_named_holiday=holiday_name is not None,
                holiday_name=holiday_name,
                is_forbidden=forbidden,
            ))
        return days
