"""Migration of legacy weekly schedules into pickup calendars.

Before calendars were stored as iCalendar text, a user's pickups were kept as
a JSON weekly schedule::

    {"pickupNames": ["trash", "recycling"],
     "pickupSchedule": {"trash": [{"dow": "TUESDAY", "tod": [6, 30]}],
                        "recycling": [{"dow": "FRIDAY", "tod": [6, 30]}]},
     "modelVersion": "1"}

Every weekly time becomes an every-week rule in the new calendar.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any

from .calendar import Calendar
from .datemath import DayOfWeek, truncate_time
from .errors import MalformedInput, PickupCalendarError

logger = logging.getLogger("pickup_calendar.legacy")

_SCHEDULE_KEYS = {"pickupNames", "pickupSchedule", "modelVersion"}
_TIME_OF_WEEK_KEYS = {"dow", "tod", "modelVersion"}


@dataclass(frozen=True, order=True)
class TimeOfWeek:
    """A weekday and time of day, ordered Monday 00:00 first."""

    day_of_week: DayOfWeek
    time_of_day: time


@dataclass
class Schedule:
    """Legacy weekly schedule: pickup name to its weekly times."""

    pickup_names: list[str] = field(default_factory=list)
    pickup_schedule: dict[str, list[TimeOfWeek]] = field(default_factory=dict)

    def validate(self) -> int:
        """Repair inconsistencies between names and times.

        Returns:
            Number of repairs made
        """
        repairs = 0
        for name in list(self.pickup_names):
            if not self.pickup_schedule.get(name):
                logger.warning(f"Schedule had a pickup without any times configured: {name}")
                self.pickup_names.remove(name)
                self.pickup_schedule.pop(name, None)
                repairs += 1
        for name, times in list(self.pickup_schedule.items()):
            if not times:
                logger.warning(f"Schedule had a pickup with no times configured: {name}")
                del self.pickup_schedule[name]
                repairs += 1
            elif name not in self.pickup_names:
                logger.warning(f"Pickup names was missing entry that had times configured: {name}")
                self.pickup_names.append(name)
                repairs += 1
        return repairs


def schedule_from_json(text: str) -> Schedule:
    """Parse (and repair) a legacy JSON schedule.

    Raises:
        MalformedInput: If the JSON cannot be parsed or has unexpected fields
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedInput("invalid schedule JSON", e) from e
    if not isinstance(data, dict):
        raise MalformedInput("schedule JSON must be an object")

    unknown = set(data) - _SCHEDULE_KEYS
    if unknown:
        raise MalformedInput(f"unexpected schedule fields: {', '.join(sorted(unknown))}")

    schedule = Schedule(pickup_names=[str(name) for name in data.get("pickupNames") or []])
    for name, entries in (data.get("pickupSchedule") or {}).items():
        times = sorted({_time_of_week(entry) for entry in entries or []})
        schedule.pickup_schedule[str(name)] = times

    repairs = schedule.validate()
    if repairs:
        logger.warning(f"Repaired {repairs} problem(s) in legacy schedule")
    return schedule


def _time_of_week(entry: Any) -> TimeOfWeek:
    if not isinstance(entry, dict) or set(entry) - _TIME_OF_WEEK_KEYS:
        raise MalformedInput(f"invalid schedule time entry: {entry!r}")
    try:
        dow = DayOfWeek.parse(entry["dow"])
        return TimeOfWeek(dow, _parse_time(entry["tod"]))
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedInput(f"invalid schedule time entry: {entry!r}", e) from e


def _parse_time(value: Any) -> time:
    # Times were written either as [hour, minute(, second)] or "HH:MM(:SS)".
    if isinstance(value, list):
        return time(*(int(v) for v in value[:2]))
    return truncate_time(time.fromisoformat(str(value)))


def calendar_from_schedule(schedule: Schedule, now: datetime) -> Calendar:
    """Convert a legacy schedule into a calendar of every-week pickups.

    Each event is anchored on ``now``'s date at its own time of day.

    Raises:
        MalformedInput: If a pickup name in the schedule is unusable
    """
    calendar = Calendar()
    for name in schedule.pickup_names:
        for tow in schedule.pickup_schedule.get(name, []):
            logger.info(f"Migrating {name} pickup on {tow.day_of_week.name} at {tow.time_of_day}")
            try:
                calendar.add_weekly(now, name, tow.day_of_week, tow.time_of_day)
            except PickupCalendarError as e:
                raise MalformedInput(f"invalid schedule pickup {name!r}", e) from e
    return calendar
