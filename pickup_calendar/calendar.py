"""The pickup calendar: an unordered collection of pickup events."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator
from datetime import datetime, time, timedelta

from . import next_pickups
from .datemath import DayOfWeek, next_day_of_month, next_weekday_of_month
from .errors import InvalidArgument
from .event import PickupEvent, normalize_name
from .rules import MonthlyByDayOfMonth, MonthlyByWeekdayOfMonth, RecurrenceRule, Weekly

logger = logging.getLogger("pickup_calendar.calendar")


class Calendar:
    """Collection of pickup events for one user.

    Two calendars are equal when they hold the same events, regardless of
    order. Duplicate rules are refused when added; nothing re-checks them
    afterwards.
    """

    def __init__(self, events: list[PickupEvent] | None = None) -> None:
        """
        Raises:
            InvalidArgument: If an event holds no rules
        """
        self._events: list[PickupEvent] = list(events or [])
        for event in self._events:
            if not event.has_any_rules():
                raise InvalidArgument(f"Will not accept events without rules: {event!r}")

    def __repr__(self) -> str:
        return f"Calendar(events={self._events!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Calendar):
            return NotImplemented
        return Counter(e.key() for e in self._events) == Counter(e.key() for e in other._events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[PickupEvent]:
        return iter(list(self._events))

    def is_empty(self) -> bool:
        return not self._events

    def events(self, name: str | None = None) -> list[PickupEvent]:
        """All events, or the events of one (folded) name."""
        if name is None:
            return list(self._events)
        folded = normalize_name(name)
        return [e for e in self._events if e.name == folded]

    def names(self) -> list[str]:
        """Distinct event names, in insertion order."""
        return list(dict.fromkeys(e.name for e in self._events))

    # Adding

    def try_add_rule_set(self, candidate: PickupEvent, now: datetime | None = None) -> bool:
        """Add a single-rule event unless an existing event already covers it.

        Args:
            candidate: Event holding exactly one rule
            now: Reference instant for the phase comparison (defaults to the
                candidate's anchor)

        Returns:
            True if the event was added, False if it duplicates an existing one

        Raises:
            InvalidArgument: If the candidate does not hold exactly one rule
        """
        if len(candidate.rules) != 1:
            raise InvalidArgument(
                f"Will not accept events without exactly one rule. size={len(candidate.rules)}"
            )
        reference = candidate.anchor if now is None else now
        for existing in self._events:
            if not existing.try_add_rule_set(candidate, reference):
                logger.debug(f"Not adding {candidate!r}: duplicates {existing!r}")
                return False
        self._events.append(candidate)
        logger.debug(f"Added {candidate!r}")
        return True

    def add(self, event_name: str, anchor: datetime, rule: RecurrenceRule, now: datetime | None = None) -> bool:
        """Add ``rule`` under ``event_name`` anchored at ``anchor``.

        Raises:
            InvalidName: If ``event_name`` is blank
            InvalidArgument: If ``rule`` is not a supported rule
        """
        return self.try_add_rule_set(PickupEvent(event_name, anchor, [rule]), now)

    def add_weekly(self, now: datetime, name: str, dow: DayOfWeek, time_of_day: time) -> bool:
        """Pickup every week on ``dow``."""
        anchor = datetime.combine(now.date(), time_of_day)
        return self.add(name, anchor, Weekly(dow, 1), now)

    def add_biweekly(
        self, now: datetime, name: str, dow: DayOfWeek, time_of_day: time, next_week: bool = False
    ) -> bool:
        """Pickup every other week on ``dow``, starting this week or next week."""
        anchor = datetime.combine(now.date(), time_of_day)
        if next_week:
            anchor += timedelta(weeks=1)
        return self.add(name, anchor, Weekly(dow, 2), now)

    def add_day_of_month(self, now: datetime, name: str, day: int, time_of_day: time) -> bool:
        """Pickup every month on ``day`` (negative counts from the month's end)."""
        rule = MonthlyByDayOfMonth(day)
        anchor = next_day_of_month(now, day, time_of_day)
        return self.add(name, anchor, rule, now)

    def add_weekday_of_month(
        self, now: datetime, name: str, dow: DayOfWeek, week_number: int, time_of_day: time
    ) -> bool:
        """Pickup every month on the ``week_number``-th ``dow``."""
        rule = MonthlyByWeekdayOfMonth(dow, week_number)
        anchor = next_weekday_of_month(now, rule.day_of_week, week_number, time_of_day)
        return self.add(name, anchor, rule, now)

    # Deleting

    def delete_by_selector(self, event_name: str, selector: RecurrenceRule, time_of_day: time) -> int:
        """Remove ``selector`` from every event with this name and time of day.

        Events left without rules are destroyed. Both phases of an every-other
        week rule match, so more than one event can be affected.

        Returns:
            Number of events that had a removal applied
        """
        name = normalize_name(event_name)
        removed = 0
        kept: list[PickupEvent] = []
        for event in self._events:
            if event.matches_name_and_time(name, time_of_day) and event.remove_selector(selector).removed:
                removed += 1
                if not event.has_any_rules():
                    logger.debug(f"Destroying event without rules: {event.name} at {event.anchor}")
                    continue
            kept.append(event)
        self._events = kept
        return removed

    def delete_weekly(self, event_name: str, dow: DayOfWeek, time_of_day: time) -> int:
        return self.delete_by_selector(event_name, Weekly(dow, 1), time_of_day)

    def delete_biweekly(self, event_name: str, dow: DayOfWeek, time_of_day: time) -> int:
        return self.delete_by_selector(event_name, Weekly(dow, 2), time_of_day)

    def delete_day_of_month(self, event_name: str, day: int, time_of_day: time) -> int:
        return self.delete_by_selector(event_name, MonthlyByDayOfMonth(day), time_of_day)

    def delete_weekday_of_month(self, event_name: str, dow: DayOfWeek, week_number: int, time_of_day: time) -> int:
        return self.delete_by_selector(event_name, MonthlyByWeekdayOfMonth(dow, week_number), time_of_day)

    def delete_entire_name(self, event_name: str) -> bool:
        """Remove every event with this name; True if any were removed."""
        name = normalize_name(event_name)
        before = len(self._events)
        self._events = [e for e in self._events if e.name != name]
        return len(self._events) != before

    def delete_all(self) -> bool:
        """Empty the calendar; True if it held anything."""
        had_events = bool(self._events)
        self._events = []
        return had_events

    # Queries

    def next_occurrences(self, after: datetime) -> dict[str, datetime]:
        """Soonest occurrence on or after ``after`` for each event name."""
        return next_pickups.next_occurrences(self._events, after)

    def next_occurrence(self, after: datetime, name: str) -> datetime | None:
        """Soonest occurrence on or after ``after`` for one event name."""
        return next_pickups.next_occurrence(self._events, after, name)

    # Storage

    def serialize(self, stamp: datetime | None = None) -> str | None:
        """RFC 5545 text for storage, or None for an empty calendar."""
        from .ical import serialize

        return serialize(self, stamp=stamp)

    @classmethod
    def deserialize(cls, text: str | None) -> Calendar:
        """Build a calendar from stored RFC 5545 text.

        Raises:
            MalformedInput: If the text cannot be parsed
        """
        from .ical import deserialize

        return deserialize(text)
