"""A named pickup with its anchor date-time and recurrence rules."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, time

from .datemath import truncate_time, truncate_to_minute
from .errors import InvalidArgument, InvalidName
from .rules import RecurrenceRule, RemovalOutcome, check_rule

logger = logging.getLogger("pickup_calendar.event")

UID_DOMAIN = "pickup-calendar"


def normalize_name(name: str | None) -> str:
    """Fold an event name: trimmed and lower-cased.

    Raises:
        InvalidName: If the name is missing or blank
    """
    if name is None:
        raise InvalidName("Will not accept events without names.")
    folded = name.strip().lower()
    if not folded:
        raise InvalidName("Will not accept events with blank names.")
    return folded


class PickupEvent:
    """One named recurring pickup.

    The anchor's time of day is the time of every occurrence. For rules with
    a weekly interval above one, the anchor's week is week zero.
    """

    def __init__(
        self,
        name: str,
        anchor: datetime,
        rules: list[RecurrenceRule] | None = None,
        uid: str | None = None,
    ) -> None:
        self.name: str = normalize_name(name)
        self.anchor: datetime = truncate_to_minute(anchor)
        self.rules: list[RecurrenceRule] = [check_rule(rule) for rule in rules or []]
        self.uid: str | None = uid

    def __repr__(self) -> str:
        return f"PickupEvent(name={self.name!r}, anchor={self.anchor.isoformat()}, rules={self.rules!r})"

    def key(self) -> tuple[str, datetime, tuple[RecurrenceRule, ...]]:
        """Identity used for equality; the stored UID is not part of it."""
        return (self.name, self.anchor, tuple(self.rules))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PickupEvent):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    @property
    def time_of_day(self) -> time:
        return self.anchor.time()

    def get_uid(self) -> str:
        """Stored UID, or one derived from the event's content."""
        if self.uid:
            return self.uid
        seed = f"{self.name}|{self.anchor.isoformat()}|{self.rules!r}"
        return f"{uuid.uuid5(uuid.NAMESPACE_URL, f'{UID_DOMAIN}:{seed}')}@{UID_DOMAIN}"

    def add_rule(self, rule: RecurrenceRule) -> None:
        self.rules.append(check_rule(rule))

    def has_any_rules(self) -> bool:
        return bool(self.rules)

    def matches_name_and_time(self, name: str, time_of_day: time) -> bool:
        """Check the folded name and minute-precision time of day."""
        if normalize_name(name) != self.name:
            return False
        if truncate_time(time_of_day) != self.time_of_day:
            logger.debug(f"no match: event time of day {self.time_of_day} != {time_of_day}")
            return False
        return True

    def remove_selector(self, selector: RecurrenceRule) -> RemovalOutcome:
        """Remove ``selector`` from every rule holding it.

        Rules left empty are dropped. Returns REMOVED_RULE_NOW_EMPTY if any
        rule was dropped, REMOVED_RULE_STILL_HAS_ENTRIES if a removal left
        its rule in place, NOT_FOUND otherwise.
        """
        outcome = RemovalOutcome.NOT_FOUND
        kept: list[RecurrenceRule] = []
        for rule in self.rules:
            result = rule.remove_selector(selector)
            if result is RemovalOutcome.REMOVED_RULE_NOW_EMPTY:
                outcome = result
                continue
            if result is RemovalOutcome.REMOVED_RULE_STILL_HAS_ENTRIES and not outcome.removed:
                outcome = result
            kept.append(rule)
        self.rules = kept
        return outcome

    def earliest_next_occurrence(self, after: datetime) -> datetime | None:
        """Earliest occurrence of any rule on or after ``after``."""
        earliest: datetime | None = None
        for rule in self.rules:
            occurrence = rule.next_occurrence(self.anchor, after)
            if occurrence is None:
                continue
            if earliest is None or occurrence < earliest:
                earliest = occurrence
        return earliest

    def is_duplicate(self, candidate: PickupEvent, now: datetime) -> bool:
        """Check whether ``candidate`` repeats a rule this event already has.

        The candidate must hold exactly one rule. It is a duplicate when the
        names match, an existing rule has the same frequency, interval and
        selector, and both land on the same next date-time from ``now``
        (the candidate from its own anchor, the existing rule from this
        event's anchor). The last check keeps biweekly rules that alternate
        weeks apart.

        Raises:
            InvalidArgument: If the candidate does not hold exactly one rule
        """
        if len(candidate.rules) != 1:
            raise InvalidArgument(
                f"Will not accept events without exactly one rule. size={len(candidate.rules)}"
            )
        if candidate.name != self.name:
            return False

        new_rule = candidate.rules[0]
        new_next = new_rule.next_occurrence(candidate.anchor, now)

        for rule in self.rules:
            if rule.frequency != new_rule.frequency:
                logger.debug(f"no match: frequency={rule.frequency}")
                continue
            if rule.interval != new_rule.interval:
                logger.debug(f"no match: interval={rule.interval}")
                continue
            if not rule.matches_selector(new_rule.with_interval(rule.interval)):
                logger.debug(f"no match: {new_rule!r} not in {rule!r}")
                continue

            existing_next = new_rule.with_interval(rule.interval).next_occurrence(self.anchor, now)
            if existing_next == new_next:
                logger.debug(f"Matched to existing rule: {rule!r}")
                return True
            logger.debug(f"no match: phase {existing_next} != {new_next}")
        return False

    def try_add_rule_set(self, candidate: PickupEvent, now: datetime) -> bool:
        """Return True if ``candidate`` may be added alongside this event."""
        return not self.is_duplicate(candidate, now)
