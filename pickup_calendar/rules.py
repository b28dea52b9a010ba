"""Recurrence rule shapes for pickup events.

Three shapes are supported, each holding exactly one day selector:

- ``Weekly``: a weekday every N weeks
- ``MonthlyByDayOfMonth``: a numbered day, from the start or end of the month
- ``MonthlyByWeekdayOfMonth``: the Nth (or Nth-from-last) weekday of a month

A rule value is also the selector used to find it again when deleting.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Union

from dateutil.rrule import MO, rrule
from dateutil.rrule import WEEKLY as WEEKLY_FREQ

from .datemath import (
    DayOfWeek,
    as_local,
    next_day_of_month,
    next_weekday_of_month,
    truncate_to_minute,
    validate_day_of_month,
)
from .errors import InvalidArgument

logger = logging.getLogger("pickup_calendar.rules")

WEEKLY = "WEEKLY"
MONTHLY = "MONTHLY"


class RemovalOutcome(Enum):
    """Result of removing a selector from a rule."""

    NOT_FOUND = "not-found"
    REMOVED_RULE_NOW_EMPTY = "removed-rule-now-empty"
    REMOVED_RULE_STILL_HAS_ENTRIES = "removed-rule-still-has-entries"

    @property
    def removed(self) -> bool:
        return self is not RemovalOutcome.NOT_FOUND


def _search_start(anchor: datetime, after: datetime) -> datetime:
    # Occurrences never precede the anchor.
    return max(as_local(after), anchor)


class _SingleSelectorRule:
    """Behavior shared by rules that hold one selector."""

    frequency: ClassVar[str]

    def matches_selector(self, selector: RecurrenceRule) -> bool:
        """Check whether ``selector`` names this rule's day(s)."""
        return self == selector

    def remove_selector(self, selector: RecurrenceRule) -> RemovalOutcome:
        """Remove ``selector`` from this rule.

        The rule holds a single selector, so a match always leaves it empty.
        """
        if not self.matches_selector(selector):
            return RemovalOutcome.NOT_FOUND
        return RemovalOutcome.REMOVED_RULE_NOW_EMPTY


@dataclass(frozen=True)
class Weekly(_SingleSelectorRule):
    """Every ``interval`` weeks on ``day_of_week``."""

    day_of_week: DayOfWeek
    interval: int = 1

    frequency: ClassVar[str] = WEEKLY

    def __post_init__(self) -> None:
        object.__setattr__(self, "day_of_week", DayOfWeek.parse(self.day_of_week))
        if self.interval < 1:
            raise InvalidArgument("Interval must be a positive number.")

    def next_occurrence(self, anchor: datetime, after: datetime) -> datetime | None:
        """Next occurrence at the anchor's time of day, on or after ``after``.

        The search starts no earlier than the anchor. Only weeks whose distance from the anchor's week is a multiple of
        ``interval`` qualify. Weeks start on Monday.
        """
        anchor = truncate_to_minute(anchor)
        rule = rrule(WEEKLY_FREQ, interval=self.interval, byweekday=self.day_of_week.value, dtstart=anchor, wkst=MO)
        return rule.after(_search_start(anchor, after), inc=True)

    def with_interval(self, interval: int) -> Weekly:
        return dataclasses.replace(self, interval=interval)

    def to_rrule(self) -> dict[str, Any]:
        recur: dict[str, Any] = {"freq": WEEKLY}
        if self.interval != 1:
            recur["interval"] = self.interval
        recur["byday"] = [self.day_of_week.code]
        return recur


@dataclass(frozen=True)
class MonthlyByDayOfMonth(_SingleSelectorRule):
    """Every month on ``day`` (negative counts back from the month's end)."""

    day: int

    frequency: ClassVar[str] = MONTHLY
    interval: ClassVar[int] = 1

    def __post_init__(self) -> None:
        validate_day_of_month(self.day)

    def next_occurrence(self, anchor: datetime, after: datetime) -> datetime | None:
        anchor = truncate_to_minute(anchor)
        return next_day_of_month(_search_start(anchor, after), self.day, anchor.time())

    def with_interval(self, interval: int) -> MonthlyByDayOfMonth:
        # Monthly rules are always built with interval 1.
        return self

    def to_rrule(self) -> dict[str, Any]:
        return {"freq": MONTHLY, "bymonthday": [self.day]}


@dataclass(frozen=True)
class MonthlyByWeekdayOfMonth(_SingleSelectorRule):
    """Every month on the ``week_number``-th ``day_of_week``."""

    day_of_week: DayOfWeek
    week_number: int

    frequency: ClassVar[str] = MONTHLY
    interval: ClassVar[int] = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "day_of_week", DayOfWeek.parse(self.day_of_week))
        if self.week_number > 5:
            raise InvalidArgument(f"Maximum number of weeks-per-month value (5) exceeded: {self.week_number}")
        if self.week_number < -5:
            raise InvalidArgument(f"Minimum number of weeks-per-month value (-5) exceeded: {self.week_number}")
        if self.week_number == 0:
            raise InvalidArgument("No recurrence meaning for week number 0")

    def next_occurrence(self, anchor: datetime, after: datetime) -> datetime | None:
        anchor = truncate_to_minute(anchor)
        return next_weekday_of_month(_search_start(anchor, after), self.day_of_week, self.week_number, anchor.time())

    def with_interval(self, interval: int) -> MonthlyByWeekdayOfMonth:
        return self

    def to_rrule(self) -> dict[str, Any]:
        return {"freq": MONTHLY, "byday": [f"{self.week_number}{self.day_of_week.code}"]}


RecurrenceRule = Union[Weekly, MonthlyByDayOfMonth, MonthlyByWeekdayOfMonth]
RULE_TYPES = (Weekly, MonthlyByDayOfMonth, MonthlyByWeekdayOfMonth)


def check_rule(rule: Any) -> RecurrenceRule:
    """Return ``rule`` if it is one of the supported shapes."""
    if not isinstance(rule, RULE_TYPES):
        raise InvalidArgument(f"Unsupported recurrence rule: {rule!r}")
    return rule
