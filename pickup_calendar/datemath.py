"""Date arithmetic for month-relative pickup rules.

All functions are pure and timezone-naive: callers hand in wall-clock
date-times that were already localized. Times of day are kept at minute
precision; seconds and microseconds are dropped on input.
"""

from __future__ import annotations

import itertools
import logging
from datetime import date, datetime, time
from enum import IntEnum

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta
from dateutil.relativedelta import weekday as rd_weekday

from .errors import InvalidArgument, NotFound

logger = logging.getLogger("pickup_calendar.datemath")

# Longest search for an Nth weekday. Every week number in [-5, 5] occurs
# at least once a year.
MAX_MONTHS_SEARCHED = 12

_RELATIVE_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)


class DayOfWeek(IntEnum):
    """Day of week, numbered like ``datetime.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def code(self) -> str:
        """Two-letter RFC 5545 weekday code (e.g. "TU")."""
        return self.name[:2]

    def relative(self, n: int | None = None) -> rd_weekday:
        """dateutil relative weekday, e.g. ``FRIDAY.relative(2)`` is FR(+2)."""
        return _RELATIVE_WEEKDAYS[self](n)

    @classmethod
    def parse(cls, value: str | int | DayOfWeek) -> DayOfWeek:
        """Parse a weekday from a code ("FR"), a name ("friday") or an int."""
        if isinstance(value, DayOfWeek):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError as e:
                raise InvalidArgument(f"No such day of week: {value}") from e
        text = value.strip().upper()
        for dow in cls:
            if text in (dow.name, dow.code):
                return dow
        raise InvalidArgument(f"No such day of week: {value!r}")


def as_local(dt: datetime) -> datetime:
    """Drop any tzinfo, keeping the wall-clock value."""
    if dt.tzinfo is not None:
        return dt.replace(tzinfo=None)
    return dt


def truncate_to_minute(dt: datetime) -> datetime:
    """Return ``dt`` (naive) with seconds and microseconds cleared."""
    return as_local(dt).replace(second=0, microsecond=0)


def truncate_time(tod: time) -> time:
    """Return ``tod`` at minute precision, without tzinfo."""
    return time(tod.hour, tod.minute)


def days_in_month(d: date | datetime) -> int:
    """Number of days in the month containing ``d``."""
    return (d + relativedelta(day=31)).day


def validate_day_of_month(day: int) -> None:
    """Raise InvalidArgument unless ``day`` is in [-31, -1] or [1, 31]."""
    if day > 31:
        raise InvalidArgument(f"Maximum day of month value (31) exceeded: {day}")
    if day < -31:
        raise InvalidArgument(f"Minimum day of month value (-31) exceeded: {day}")
    if day == 0:
        raise InvalidArgument(f"No such day of month: {day}")


def next_day_of_month(base: datetime, day: int, time_of_day: time) -> datetime:
    """Find the next date-time on or after ``base`` matching a day of month.

    Args:
        base: Reference date-time
        day: Day of month; 1..31 counts from the start of the month,
            -1..-31 from the end (-1 is the last day)
        time_of_day: Time of the returned date-time

    Returns:
        Earliest matching date-time >= ``base``. Months too short for
        ``day`` are skipped.

    Raises:
        InvalidArgument: If ``day`` is 0 or beyond +/-31
    """
    validate_day_of_month(day)
    base = as_local(base)
    tod = truncate_time(time_of_day)
    first_of_month = base.date().replace(day=1)

    for increment in itertools.count():
        month = first_of_month + relativedelta(months=increment)
        length = days_in_month(month)
        if abs(day) > length:
            logger.debug(f"Not enough days in {month:%Y-%m} for day {day}")
            continue

        dom = day if day > 0 else length + day + 1
        candidate = datetime.combine(month.replace(day=dom), tod)
        if candidate < base:
            logger.debug(f"{candidate} is before base date, moving to next month")
            continue
        return candidate

    raise AssertionError("unreachable")  # pragma: no cover


def next_weekday_of_month(base: datetime, dow: DayOfWeek, week_number: int, time_of_day: time) -> datetime:
    """Find the next Nth (or Nth-from-last) weekday of a month.

    Args:
        base: Reference date-time
        dow: Day of week
        week_number: 1..5 counts occurrences of ``dow`` from the start of the
            month, -1..-5 from the end
        time_of_day: Time of the returned date-time

    Returns:
        Earliest matching date-time >= ``base``

    Raises:
        InvalidArgument: If ``week_number`` is 0
        NotFound: If no month within a year has such a day
    """
    if week_number == 0:
        raise InvalidArgument(f"No such week number: {week_number}")
    base = as_local(base)
    tod = truncate_time(time_of_day)
    first_of_month = base.date().replace(day=1)

    # Anchor the relative weekday at the first or last day of each month.
    month_day = 1 if week_number > 0 else 31

    for increment in range(MAX_MONTHS_SEARCHED):
        month = first_of_month + relativedelta(months=increment)
        found = month + relativedelta(day=month_day, weekday=dow.relative(week_number))
        if (found.year, found.month) != (month.year, month.month):
            logger.debug(f"Can't find {week_number}th {dow.name} in {month:%Y-%m}")
            continue

        candidate = datetime.combine(found, tod)
        if candidate < base:
            logger.debug(f"{candidate} is before base date, moving to next month")
            continue
        return candidate

    raise NotFound(f"Cannot find the {week_number}th {dow.name} within a year")
