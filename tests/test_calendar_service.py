"""
Tests for the holiday and weekend eligibility rules.

The default calendar is the Italian one from the holidays library; most tests
pin a custom holiday table so they do not depend on the library's naming.
"""

import datetime
import pytest

from praetor.domain.models import GeneralSettings, StartOfWeek
from praetor.services.calendar_service import CalendarService, is_forbidden

SUNDAYS_2024 = [datetime.date(2024, 1, 7) + datetime.timedelta(weeks=k) for k in range(52)]
SATURDAYS_2024 = [d - datetime.timedelta(days=1) for d in SUNDAYS_2024]


def no_holidays(day):
    return None


def company_holidays(day):
    return {datetime.date(2024, 2, 7): "Founders Day"}.get(day)


class TestItalianHolidays:
    """The default calendar knows the Italian fixed and moving holidays."""

    @pytest.mark.parametrize("day", [
        datetime.date(2026, 1, 1),    # Capodanno
        datetime.date(2026, 1, 6),    # Epifania
        datetime.date(2026, 4, 25),   # Liberazione
        datetime.date(2026, 5, 1),    # Festa del Lavoro
        datetime.date(2026, 6, 2),    # Festa della Repubblica
        datetime.date(2026, 8, 15),   # Ferragosto
        datetime.date(2026, 11, 1),   # Ognissanti
        datetime.date(2026, 12, 8),   # Immacolata
        datetime.date(2026, 12, 25),  # Natale
        datetime.date(2026, 12, 26),  # Santo Stefano
    ])
    def test_fixed_holidays(self, day):
        service = CalendarService()
        assert service.is_holiday(day)
        assert service.get_holiday_name(day)
        assert service.is_forbidden(day)

    def test_easter_monday_is_a_moving_holiday(self):
        service = CalendarService()
        # Easter 2026 is April 5th, Easter 2024 was March 31st
        assert service.is_holiday(datetime.date(2026, 4, 6))
        assert service.is_holiday(datetime.date(2024, 4, 1))
        assert not service.is_holiday(datetime.date(2026, 4, 7))

    def test_ordinary_weekday_is_not_a_holiday(self):
        service = CalendarService()
        day = datetime.date(2024, 2, 6)
        assert not service.is_holiday(day)
        assert service.get_holiday_name(day) is None
        assert service.is_working_day(day)

    def test_other_country_calendar(self):
        """Epiphany is a holiday in Bavaria, Reformation Day is not."""
        service = CalendarService(country="DE", subdivision="BY")
        assert service.is_holiday(datetime.date(2026, 1, 6))
        assert not service.is_holiday(datetime.date(2026, 10, 31))


class TestForbiddenDays:

    @pytest.mark.parametrize("day", SUNDAYS_2024)
    @pytest.mark.parametrize("treat_saturday", [True, False])
    def test_sunday_is_always_forbidden(self, day, treat_saturday):
        assert is_forbidden(day, GeneralSettings(treat_saturday_as_holiday=treat_saturday))
        service = CalendarService(treat_saturday_as_holiday=treat_saturday,
                                  start_of_week=StartOfWeek.SUNDAY,
                                  holiday_lookup=no_holidays)
        assert service.is_forbidden(day)

    @pytest.mark.parametrize("day", SATURDAYS_2024)
    def test_saturday_allowed_unless_configured(self, day):
        assert not is_forbidden(day, GeneralSettings(treat_saturday_as_holiday=False), holiday_lookup=no_holidays)
        assert is_forbidden(day, GeneralSettings(treat_saturday_as_holiday=True), holiday_lookup=no_holidays)
        assert not is_forbidden(day)

    def test_named_holiday_on_saturday_is_forbidden_even_if_saturday_is_workday(self):
        # Liberation Day 2026 falls on a Saturday
        service = CalendarService(treat_saturday_as_holiday=False)
        assert service.is_forbidden(datetime.date(2026, 4, 25))
        assert not service.is_forbidden(datetime.date(2026, 4, 18))

    def test_named_holiday_on_weekday_is_forbidden(self):
        assert is_forbidden(datetime.date(2024, 2, 7), holiday_lookup=company_holidays)
        assert not is_forbidden(datetime.date(2024, 2, 8), holiday_lookup=company_holidays)

    def test_is_idempotent(self):
        service = CalendarService(holiday_lookup=company_holidays)
        day = datetime.date(2024, 2, 7)
        assert [service.is_forbidden(day) for _ in range(3)] == [True, True, True]

    def test_working_days_in_range(self):
        start, end = datetime.date(2024, 2, 1), datetime.date(2024, 2, 29)

        service = CalendarService(treat_saturday_as_holiday=True, holiday_lookup=no_holidays)
        assert service.get_working_days_in_range(start, end) == 21

        service = CalendarService(treat_saturday_as_holiday=False, holiday_lookup=no_holidays)
        assert service.get_working_days_in_range(start, end) == 25


class TestWeekDays:

    def test_monday_start(self):
        service = CalendarService(holiday_lookup=no_holidays)
        week = service.week_days(datetime.date(2024, 2, 7), today=datetime.date(2024, 2, 7))

        assert [d.date for d in week] == [
            datetime.date(2024, 2, 5) + datetime.timedelta(days=i) for i in range(7)
        ]
        assert [d.is_today for d in week] == [False, False, True, False, False, False, False]

    def test_sunday_start(self):
        service = CalendarService(start_of_week=StartOfWeek.SUNDAY, holiday_lookup=no_holidays)
        week = service.week_days(datetime.date(2024, 2, 7))

        assert week[0].date == datetime.date(2024, 2, 4)
        assert week[-1].date == datetime.date(2024, 2, 10)
        # Sunday stays forbidden even when it opens the week
        assert week[0].is_forbidden

    def test_sunday_reference_with_monday_start_belongs_to_previous_monday(self):
        service = CalendarService(holiday_lookup=no_holidays)
        assert service.week_start(datetime.date(2024, 2, 11)) == datetime.date(2024, 2, 5)

    def test_annotations(self):
        service = CalendarService(treat_saturday_as_holiday=True, holiday_lookup=company_holidays)
        week = {d.date: d for d in service.week_days(datetime.date(2024, 2, 5))}

        founders_day = week[datetime.date(2024, 2, 7)]
        assert founders_day.is_named_holiday
        assert founders_day.holiday_name == "Founders Day"
        assert founders_day.is_forbidden
        assert not founders_day.is_weekend

        saturday = week[datetime.date(2024, 2, 10)]
        assert saturday.is_weekend
        assert saturday.is_configured_holiday
        assert saturday.is_forbidden

        monday = week[datetime.date(2024, 2, 5)]
        assert not monday.is_forbidden
        assert monday.holiday_name is None

    def test_saturday_open_when_not_configured(self):
        service = CalendarService(treat_saturday_as_holiday=False, holiday_lookup=no_holidays)
        saturday = service.week_days(datetime.date(2024, 2, 5))[5]

        assert saturday.is_weekend
        assert not saturday.is_configured_holiday
        assert not saturday.is_forbidden

    def test_allow_weekend_selection_unlocks_every_day(self):
        service = CalendarService(allow_weekend_selection=True, holiday_lookup=company_holidays)
        week = service.week_days(datetime.date(2024, 2, 5))

        assert not any(d.is_forbidden for d in week)
        # Annotations are still there for display
        assert week[2].is_named_holiday
        assert week[6].is_weekend

    def test_from_settings(self):
        settings = GeneralSettings(start_of_week="Sunday", treat_saturday_as_holiday=False)
        service = CalendarService.from_settings(settings)

        assert service.start_of_week == StartOfWeek.SUNDAY
        assert not service.is_forbidden(datetime.date(2024, 2, 10))
