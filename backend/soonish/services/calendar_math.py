"""Calendar interval helpers relative to a reference instant.

All functions take naive datetimes in the device-local calendar and return new
datetimes; weeks start on Sunday and "end" boundaries are inclusive at the last
microsecond of the day.
"""
from __future__ import annotations

import calendar
from datetime import datetime, time, timedelta
from typing import Tuple

SEASON_MONTHS = {
    "spring": (3, 5),
    "summer": (6, 8),
    "autumn": (9, 11),
    "winter": (12, 2),
}


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max)


def add_months(value: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_years(value: datetime, years: int) -> datetime:
    return add_months(value, 12 * years)


def start_of_week(now: datetime) -> datetime:
    # weekday(): Monday=0 .. Sunday=6
    days_from_sunday = (now.weekday() + 1) % 7
    return start_of_day(now) - timedelta(days=days_from_sunday)


def end_of_week(now: datetime) -> datetime:
    return end_of_day(start_of_week(now) + timedelta(days=6))


def start_of_month(now: datetime) -> datetime:
    return start_of_day(now.replace(day=1))


def end_of_month(now: datetime) -> datetime:
    last_day = calendar.monthrange(now.year, now.month)[1]
    return end_of_day(now.replace(day=last_day))


def next_month_start(now: datetime) -> datetime:
    return add_months(start_of_month(now), 1)


def next_month_end(now: datetime) -> datetime:
    return end_of_month(next_month_start(now))


def month_after_next_start(now: datetime) -> datetime:
    return add_months(start_of_month(now), 2)


def start_of_year(now: datetime) -> datetime:
    return start_of_day(now.replace(month=1, day=1))


def end_of_year(now: datetime) -> datetime:
    return end_of_day(now.replace(month=12, day=31))


def next_year_start(now: datetime) -> datetime:
    return add_years(start_of_year(now), 1)


def next_year_end(now: datetime) -> datetime:
    return end_of_year(next_year_start(now))


def _season_in_year(season: str, year: int) -> Tuple[datetime, datetime]:
    first_month, last_month = SEASON_MONTHS[season]
    start = datetime(year, first_month, 1)
    end_year = year + 1 if last_month < first_month else year
    end = end_of_month(datetime(end_year, last_month, 1))
    return start, end


def season_range(season: str, now: datetime) -> Tuple[datetime, datetime]:
    """Return the season's range in ``now``'s year, or next year's once it has ended.

    Winter runs from December 1 to the last day of February of the following year.
    """
    if season not in SEASON_MONTHS:
        raise KeyError(season)
    start, end = _season_in_year(season, now.year)
    if end < now:
        start, end = _season_in_year(season, now.year + 1)
    return start, end


def is_month_after_next_in_this_year(now: datetime) -> bool:
    return add_months(now, 2).year == now.year


def days_until(target: datetime, now: datetime) -> int:
    """Whole days from ``now`` to ``target``, truncated toward zero."""
    return int((target - now) / timedelta(days=1))
