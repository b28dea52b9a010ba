"""Recurring pickup calendars (trash day, recycling, monthly bills) stored as iCalendar."""

from .calendar import Calendar
from .datemath import DayOfWeek
from .errors import InvalidArgument, InvalidName, MalformedInput, NotFound, PickupCalendarError
from .event import PickupEvent
from .next_pickups import NextPickups
from .rules import MonthlyByDayOfMonth, MonthlyByWeekdayOfMonth, RecurrenceRule, RemovalOutcome, Weekly
from .store import LocalCalendarStore

__version__ = "0.1.0"

__all__ = [
    "Calendar",
    "DayOfWeek",
    "PickupEvent",
    "NextPickups",
    "Weekly",
    "MonthlyByDayOfMonth",
    "MonthlyByWeekdayOfMonth",
    "RecurrenceRule",
    "RemovalOutcome",
    "LocalCalendarStore",
    "PickupCalendarError",
    "InvalidArgument",
    "InvalidName",
    "MalformedInput",
    "NotFound",
]
