"""Reduce a calendar to the next occurrence of each pickup name."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING

from .event import PickupEvent, normalize_name

if TYPE_CHECKING:
    from .calendar import Calendar


def next_occurrences(events: Iterable[PickupEvent], after: datetime) -> dict[str, datetime]:
    """Earliest occurrence on or after ``after`` for every event name.

    Several events may share a name (e.g. trash on Tuesday and on Friday);
    the soonest of them wins.
    """
    earliest: dict[str, datetime] = {}
    for event in events:
        occurrence = event.earliest_next_occurrence(after)
        if occurrence is None:
            continue
        current = earliest.get(event.name)
        if current is None or occurrence < current:
            earliest[event.name] = occurrence
    return earliest


def next_occurrence(events: Iterable[PickupEvent], after: datetime, name: str) -> datetime | None:
    """Earliest occurrence on or after ``after`` for one event name."""
    folded = normalize_name(name)
    return next_occurrences((e for e in events if e.name == folded), after).get(folded)


class NextPickups:
    """Next pickup times, soonest first.

    Built for every name in the calendar, or for a single ``name``. A name
    with no events is simply absent from ``pickups``.
    """

    def __init__(self, after: datetime, calendar: Calendar, name: str | None = None) -> None:
        self.after = after
        if name is None:
            found = calendar.next_occurrences(after)
        else:
            folded = normalize_name(name)
            occurrence = calendar.next_occurrence(after, folded)
            found = {} if occurrence is None else {folded: occurrence}

        self.pickups: dict[str, datetime] = dict(sorted(found.items(), key=lambda item: (item[1], item[0])))

    def __repr__(self) -> str:
        return f"NextPickups(after={self.after.isoformat()}, pickups={self.pickups!r})"

    @property
    def count(self) -> int:
        return len(self.pickups)

    def soonest(self) -> tuple[str, datetime] | None:
        """The first pickup due, if any."""
        for item in self.pickups.items():
            return item
        return None
