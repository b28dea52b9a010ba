"""RFC 5545 storage format for pickup calendars.

Each pickup event becomes a VEVENT whose SUMMARY is the event name, whose
DTSTART/DTEND hold the floating local anchor, and which carries one RRULE per
rule:

    RRULE:FREQ=WEEKLY;BYDAY=TU
    RRULE:FREQ=WEEKLY;INTERVAL=2;BYDAY=FR
    RRULE:FREQ=MONTHLY;BYMONTHDAY=-1
    RRULE:FREQ=MONTHLY;BYDAY=2SA

Older stored calendars wrote ``RRULE:FREQ=WEEKLY`` or ``RRULE:FREQ=MONTHLY``
without a day; the day is then taken from DTSTART.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING, Any

from icalendar import Calendar as iCalendar
from icalendar import Event as iEvent

from .datemath import DayOfWeek, as_local
from .errors import MalformedInput, PickupCalendarError
from .event import PickupEvent
from .rules import MONTHLY, WEEKLY, MonthlyByDayOfMonth, MonthlyByWeekdayOfMonth, RecurrenceRule, Weekly

if TYPE_CHECKING:
    from .calendar import Calendar

logger = logging.getLogger("pickup_calendar.ical")

DEFAULT_PRODID = "-//pickup-calendar//EN"

SUPPORTED_RRULE_PARTS = frozenset({"FREQ", "INTERVAL", "BYDAY", "BYMONTHDAY", "WKST"})

_BYDAY_PATTERN = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$")


def serialize(calendar: Calendar, stamp: datetime | None = None, prodid: str = DEFAULT_PRODID) -> str | None:
    """Convert a calendar to iCalendar text.

    Args:
        calendar: Calendar to store
        stamp: Optional DTSTAMP for every VEVENT (naive values are taken as UTC)
        prodid: PRODID of the VCALENDAR

    Returns:
        Complete iCalendar string, or None when the calendar is empty
    """
    if calendar.is_empty():
        return None

    cal = iCalendar()
    cal.add("prodid", prodid)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")

    for event in calendar:
        vevent = iEvent()
        if stamp is not None:
            vevent.add("dtstamp", _to_utc(stamp))
        vevent.add("dtstart", event.anchor)
        vevent.add("dtend", event.anchor)
        vevent.add("summary", event.name)
        vevent.add("uid", event.get_uid())
        for rule in event.rules:
            vevent.add("rrule", rule.to_rrule())
        cal.add_component(vevent)

    ical_str: str = cal.to_ical().decode("utf-8")
    return ical_str


def deserialize(text: str | None) -> Calendar:
    """Parse iCalendar text written by :func:`serialize`.

    Args:
        text: Stored text; None or blank means a first-time user

    Returns:
        Calendar holding one event per recurring VEVENT

    Raises:
        MalformedInput: If the text or one of its events cannot be understood
    """
    from .calendar import Calendar

    if text is None or not text.strip():
        return Calendar()

    try:
        cal = iCalendar.from_ical(text)
    except Exception as e:
        raise MalformedInput("invalid calendar text", e) from e

    if cal.name != "VCALENDAR":
        raise MalformedInput(f"expected VCALENDAR, found {cal.name}")

    events: list[PickupEvent] = []
    for component in cal.walk("VEVENT"):
        event = _event_from_component(component)
        if event is None:
            continue
        events.append(event)
    return Calendar(events)


def _event_from_component(component: Any) -> PickupEvent | None:
    """Build a pickup event from a parsed VEVENT (None if it has no RRULE)."""
    errors = getattr(component, "errors", None)
    if errors:
        raise MalformedInput(f"unparseable VEVENT properties: {errors}")

    summary = component.get("SUMMARY")
    if summary is None:
        raise MalformedInput("VEVENT without SUMMARY")
    dtstart = component.get("DTSTART")
    if dtstart is None:
        raise MalformedInput(f"VEVENT {summary} without DTSTART")
    anchor = _anchor_from_value(dtstart.dt)

    recurs = component.get("RRULE")
    if recurs is None:
        logger.warning(f"Skipping non-recurring VEVENT: {summary}")
        return None
    if not isinstance(recurs, list):
        recurs = [recurs]

    uid = component.get("UID")
    try:
        rules: list[RecurrenceRule] = []
        for recur in recurs:
            rules.extend(rules_from_rrule(recur, anchor))
        return PickupEvent(str(summary), anchor, rules, uid=str(uid) if uid else None)
    except MalformedInput:
        raise
    except PickupCalendarError as e:
        raise MalformedInput(f"invalid VEVENT {summary}", e) from e


def rules_from_rrule(recur: Mapping[str, Any], anchor: datetime) -> list[RecurrenceRule]:
    """Convert one parsed RRULE into single-selector rules.

    Lists such as ``BYDAY=TU,FR`` are split into one rule per entry. An RRULE
    naming no day takes it from ``anchor``.

    Raises:
        MalformedInput: For unsupported frequencies or RRULE parts
    """
    parts = {str(k).upper(): v for k, v in recur.items()}
    unsupported = sorted(set(parts) - SUPPORTED_RRULE_PARTS)
    if unsupported:
        raise MalformedInput(f"unsupported RRULE parts: {', '.join(unsupported)}")

    freq = str(_first(parts, "FREQ") or "").upper()
    interval = _first(parts, "INTERVAL")
    interval = 1 if interval is None else int(interval)
    bydays = [_parse_byday(v) for v in _as_list(parts.get("BYDAY"))]
    monthdays = [int(v) for v in _as_list(parts.get("BYMONTHDAY"))]

    if freq == WEEKLY:
        if monthdays:
            raise MalformedInput("WEEKLY RRULE with BYMONTHDAY")
        if any(offset is not None for offset, _ in bydays):
            raise MalformedInput("WEEKLY RRULE with numbered BYDAY")
        if not bydays:
            bydays = [(None, DayOfWeek(anchor.weekday()))]
        return [Weekly(dow, interval) for _, dow in bydays]

    if freq == MONTHLY:
        if interval != 1:
            raise MalformedInput(f"MONTHLY RRULE with INTERVAL={interval}")
        if any(offset is None for offset, _ in bydays):
            raise MalformedInput("MONTHLY RRULE with unnumbered BYDAY")
        rules: list[RecurrenceRule] = [MonthlyByDayOfMonth(day) for day in monthdays]
        rules.extend(MonthlyByWeekdayOfMonth(dow, offset) for offset, dow in bydays if offset is not None)
        if not rules:
            rules.append(MonthlyByDayOfMonth(anchor.day))
        return rules

    raise MalformedInput(f"unsupported RRULE frequency: {freq or '<none>'}")


def _parse_byday(value: Any) -> tuple[int | None, DayOfWeek]:
    match = _BYDAY_PATTERN.match(str(value).strip().upper())
    if not match:
        raise MalformedInput(f"invalid BYDAY value: {value}")
    offset, code = match.groups()
    return (int(offset) if offset else None), DayOfWeek.parse(code)


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _first(parts: Mapping[str, Any], key: str) -> Any:
    values = _as_list(parts.get(key))
    return values[0] if values else None


def _anchor_from_value(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return as_local(value)
    return datetime.combine(value, time(0, 0))


def _to_utc(dt: datetime) -> datetime:
    # Ensure datetime is in UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
