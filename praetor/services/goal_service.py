"""
Daily goal advisory.

The goal never blocks saving; it only tells the user an entry would push the
day over the configured number of hours.
"""

import datetime
from collections import defaultdict
from typing import Dict, Iterable

from praetor.domain.models import TimeEntry

GOAL_TOLERANCE = 0.01


def is_exceeding_goal(candidate_duration: float, current_day_total: float,
                      daily_goal: float) -> bool:
    """True if adding candidate_duration to the day would exceed the goal"""
    return candidate_duration > 0 and (current_day_total + candidate_duration) > daily_goal


def has_met_goal(day_total: float, daily_goal: float) -> bool:
    """True if a day reached its goal, allowing for rounding of decimal hours"""
    return daily_goal > 0 and day_total >= daily_goal - GOAL_TOLERANCE


def daily_totals(entries: Iterable[TimeEntry]) -> Dict[datetime.date, float]:
    """Sum of logged hours per day"""
    totals: Dict[datetime.date, float] = defaultdict(float)
    for entry in entries:
        totals[entry.date] += entry.duration
    return dict(totals)
