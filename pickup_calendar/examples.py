"""Example calendars, used for demos and tests."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from .calendar import Calendar
from .datemath import DayOfWeek
from .event import PickupEvent
from .rules import MonthlyByDayOfMonth, MonthlyByWeekdayOfMonth, Weekly
from .store import LocalCalendarStore

# Legacy weekly schedule, as stored before calendars were kept as iCalendar
SAMPLE_SCHEDULE = {
    "pickupNames": ["trash", "recycling"],
    "pickupSchedule": {
        "trash": [{"dow": "TUESDAY", "tod": [6, 30]}, {"dow": "FRIDAY", "tod": [6, 30]}],
        "recycling": [{"dow": "FRIDAY", "tod": [6, 30]}],
    },
}


def basic_example_calendar() -> Calendar:
    """Trash on Tuesday and Friday mornings, recycling every other Friday."""
    return Calendar(
        [
            PickupEvent("Trash", datetime(2017, 1, 31, 7, 30), [Weekly(DayOfWeek.TUESDAY)]),
            PickupEvent("Trash", datetime(2017, 2, 3, 7, 30), [Weekly(DayOfWeek.FRIDAY)]),
            PickupEvent("Recycling", datetime(2017, 2, 3, 7, 30), [Weekly(DayOfWeek.FRIDAY, 2)]),
        ]
    )


def complex_example_calendar() -> Calendar:
    """The basic example plus monthly pickups of both kinds."""
    calendar = basic_example_calendar()
    for event in [
        # First and fifteenth of the month
        PickupEvent("Lawn Waste", datetime(2017, 2, 1, 12, 0), [MonthlyByDayOfMonth(1)]),
        PickupEvent("Lawn Waste", datetime(2017, 2, 15, 12, 0), [MonthlyByDayOfMonth(15)]),
        # Last day, and five days before the end
        PickupEvent("scrap metal", datetime(2017, 2, 15, 12, 0), [MonthlyByDayOfMonth(-1)]),
        PickupEvent("mortgage", datetime(2017, 2, 15, 12, 0), [MonthlyByDayOfMonth(-5)]),
        # Second, and second-to-last, Saturday
        PickupEvent("dry cleaning", datetime(2017, 2, 15, 12, 0), [MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, 2)]),
        PickupEvent("hockey team", datetime(2017, 2, 15, 9, 0), [MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, -2)]),
    ]:
        calendar.try_add_rule_set(event)
    return calendar


def create_sample_data(data_dir: Path) -> LocalCalendarStore:
    """Write the example calendars and a legacy schedule under ``data_dir``.

    Args:
        data_dir: Root directory for data

    Returns:
        Store holding the "basic" and "complex" users
    """
    store = LocalCalendarStore(data_dir / "calendars")
    store.save("basic", basic_example_calendar())
    store.save("complex", complex_example_calendar())

    with open(data_dir / "schedule.json", "w", encoding="utf-8") as f:
        json.dump(SAMPLE_SCHEDULE, f, indent=2)

    return store
