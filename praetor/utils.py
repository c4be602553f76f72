import datetime
import math
from typing import Union


def parse_day(value: Union[str, datetime.date]) -> datetime.date:
    """
    Turn a calendar-day value into a ``datetime.date``.

    Accepts a ``date``, a ``datetime`` (its date part is taken as is) or an ISO
    string such as ``'2024-02-05'`` or ``'2024-02-05T00:00:00Z'``. The time
    part of a string is cut off, never converted through a time zone, so the
    day written is the day returned.

    Raises:
        ValueError: if the value is not a recognizable calendar day
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid calendar day: {value!r}")

    date_only = value.strip().split("T")[0].split(" ")[0]
    try:
        return datetime.date.fromisoformat(date_only)
    except ValueError:
        raise ValueError(f"Invalid calendar day: {value!r}. Use YYYY-MM-DD") from None


def format_day(day: datetime.date) -> str:
    """Format a calendar day as 'YYYY-MM-DD'"""
    return day.isoformat()


def parse_hours(value: Union[str, int, float, None]) -> float:
    """
    Parse an hours value as typed into a form.

    Empty input means zero. A decimal comma is accepted ("1,5" -> 1.5).

    Raises:
        ValueError: if the value is not a finite number
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        hours = float(value)
    else:
        text = value.strip().replace(",", ".")
        if not text:
            return 0.0
        hours = float(text)

    if not math.isfinite(hours):
        raise ValueError(f"Invalid hours value: {value!r}")
    return hours
