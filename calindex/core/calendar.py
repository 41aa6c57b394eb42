# calindex/core/calendar.py
"""
Calendar units -> concrete windows.

Every window runs from the first second of the unit to one second
before the next unit starts, in the given timezone (None = naive).
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

from .exceptions import InvalidCalendarUnit
from .window import TimeWindow


ONE_SECOND = timedelta(seconds=1)


class CalendarUnit(Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


def _midnight(day: date, tz: tzinfo | None) -> datetime:
    return datetime.combine(day, time(), tzinfo=tz)


def _window(first: date, following: date, tz: tzinfo | None) -> TimeWindow:
    return TimeWindow(start=_midnight(first, tz), end=_midnight(following, tz) - ONE_SECOND)


def _first_of_month(year: int, month: int) -> date:
    # month may run past 12 (next month / next quarter)
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    try:
        return date(year, month, 1)
    except ValueError as e:
        raise InvalidCalendarUnit(f"year {year} is out of range") from e


def day_window(year: int, month: int, day: int, *, tz: tzinfo | None = None) -> TimeWindow:
    try:
        first = date(year, month, day)
    except ValueError as e:
        raise InvalidCalendarUnit(f"invalid day {year}-{month}-{day}: {e}") from e
    return _window(first, first + timedelta(days=1), tz)


def week_window(
    year: int,
    week: int,
    *,
    week_start: int = 1,
    tz: tzinfo | None = None,
) -> TimeWindow:
    """
    ISO week `week` of `year`, shifted to start on `week_start`.

    week_start follows the usual 0..6 numbering (0 = Sunday, 1 = Monday,
    ...); the ISO Monday is moved by week_start - 1 days.
    """
    if not isinstance(week_start, int) or not 0 <= week_start <= 6:
        raise InvalidCalendarUnit(f"week_start must be within 0..6, got {week_start!r}")
    try:
        monday = date.fromisocalendar(year, week, 1)
    except ValueError as e:
        raise InvalidCalendarUnit(f"invalid ISO week {year}-W{week}: {e}") from e

    first = monday + timedelta(days=week_start - 1)
    return _window(first, first + timedelta(weeks=1), tz)


def month_window(year: int, month: int, *, tz: tzinfo | None = None) -> TimeWindow:
    if not 1 <= month <= 12:
        raise InvalidCalendarUnit(f"month must be within 1..12, got {month}")
    return _window(_first_of_month(year, month), _first_of_month(year, month + 1), tz)


def quarter_window(year: int, quarter: int, *, tz: tzinfo | None = None) -> TimeWindow:
    if not 1 <= quarter <= 4:
        raise InvalidCalendarUnit(f"quarter must be within 1..4, got {quarter}")
    start_month = 1 + 3 * (quarter - 1)
    return _window(
        _first_of_month(year, start_month),
        _first_of_month(year, start_month + 3),
        tz,
    )


def year_window(year: int, *, tz: tzinfo | None = None) -> TimeWindow:
    return _window(_first_of_month(year, 1), _first_of_month(year + 1, 1), tz)


def resolve_window(
    unit: CalendarUnit | str,
    year: int,
    *,
    month: int | None = None,
    day: int | None = None,
    week: int | None = None,
    quarter: int | None = None,
    week_start: int = 1,
    tz: tzinfo | None = None,
) -> TimeWindow:
    try:
        unit = CalendarUnit(unit)
    except ValueError as e:
        raise InvalidCalendarUnit(f"unknown calendar unit {unit!r}") from e

    if unit is CalendarUnit.YEAR:
        return year_window(year, tz=tz)
    if unit is CalendarUnit.QUARTER:
        return quarter_window(year, _required("quarter", quarter), tz=tz)
    if unit is CalendarUnit.MONTH:
        return month_window(year, _required("month", month), tz=tz)
    if unit is CalendarUnit.WEEK:
        return week_window(year, _required("week", week), week_start=week_start, tz=tz)
    return day_window(year, _required("month", month), _required("day", day), tz=tz)


def _required(name: str, value: int | None) -> int:
    if value is None:
        raise InvalidCalendarUnit(f"`{name}` is required for this calendar unit")
    return value
