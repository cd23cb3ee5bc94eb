"""
Calendar-date helpers.

Entry dates are plain calendar days. They are parsed straight from the
``YYYY-MM-DD`` text into ``datetime.date`` and never through a timestamp,
so no local UTC offset can shift them by a day.
"""
from datetime import date, timedelta
import re
from typing import Any

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DAYS_PER_WEEK = 7


def parse_calendar_date(value: Any) -> date:
    """
    Parse *value* as a calendar date.

    Accepts ``date`` instances (but not ``datetime``) and strict
    ``YYYY-MM-DD`` strings. Raises ValueError for anything else.
    """
    if isinstance(value, date) and not hasattr(value, "hour"):
        return value
    if isinstance(value, str) and _ISO_DAY.match(value.strip()):
        return date.fromisoformat(value.strip())
    raise ValueError("Dates must be calendar days in YYYY-MM-DD format")


def week_days(week_start: date) -> list[date]:
    """Return the seven consecutive days beginning at *week_start*."""
    return [week_start + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]


def week_end(week_start: date) -> date:
    return week_start + timedelta(days=DAYS_PER_WEEK - 1)


def start_of_week(day: date) -> date:
    """Return the Sunday on or before *day* (weeks run Sunday to Saturday)."""
    # date.weekday(): Monday=0 … Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % DAYS_PER_WEEK)
