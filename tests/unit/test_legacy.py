"""Tests for legacy weekly schedule migration."""

import json
import logging
from datetime import datetime, time

import pytest

from pickup_calendar.calendar import Calendar
from pickup_calendar.datemath import DayOfWeek
from pickup_calendar.errors import MalformedInput
from pickup_calendar.event import PickupEvent
from pickup_calendar.legacy import Schedule, TimeOfWeek, calendar_from_schedule, schedule_from_json
from pickup_calendar.rules import Weekly

SCHEDULE_JSON = json.dumps(
    {
        "pickupNames": ["trash", "recycling"],
        "pickupSchedule": {
            "trash": [{"dow": "FRIDAY", "tod": "06:30"}, {"dow": "TUESDAY", "tod": [6, 30]}],
            "recycling": [{"dow": "FRIDAY", "tod": [6, 30]}],
        },
        "modelVersion": "1",
    }
)


def test_schedule_from_json():
    """Test parsing a legacy schedule."""
    schedule = schedule_from_json(SCHEDULE_JSON)

    assert schedule.pickup_names == ["trash", "recycling"]
    assert schedule.pickup_schedule["trash"] == [
        TimeOfWeek(DayOfWeek.TUESDAY, time(6, 30)),
        TimeOfWeek(DayOfWeek.FRIDAY, time(6, 30)),
    ]
    assert schedule.pickup_schedule["recycling"] == [TimeOfWeek(DayOfWeek.FRIDAY, time(6, 30))]


def test_schedule_repairs(caplog):
    """Test that names and times are brought back in line."""
    schedule = Schedule(
        pickup_names=["trash", "glass"],
        pickup_schedule={
            "trash": [TimeOfWeek(DayOfWeek.TUESDAY, time(6, 30))],
            "compost": [TimeOfWeek(DayOfWeek.MONDAY, time(8, 0))],
            "paper": [],
        },
    )

    with caplog.at_level(logging.WARNING, logger="pickup_calendar.legacy"):
        repairs = schedule.validate()

    assert repairs == 3, f"Expected 3 repairs, got {repairs}"
    assert schedule.pickup_names == ["trash", "compost"]
    assert set(schedule.pickup_schedule) == {"trash", "compost"}
    assert "without any times configured: glass" in caplog.text
    assert "missing entry that had times configured: compost" in caplog.text


@pytest.mark.parametrize(
    "text,message",
    [
        ("{not json", "invalid schedule JSON"),
        ("[]", "must be an object"),
        ('{"pickupNames": [], "extra": 1}', "unexpected schedule fields: extra"),
        ('{"pickupSchedule": {"trash": [{"dow": "FUNDAY", "tod": [6, 30]}]}}', "invalid schedule time entry"),
        ('{"pickupSchedule": {"trash": [{"dow": "MONDAY"}]}}', "invalid schedule time entry"),
        ('{"pickupSchedule": {"trash": [{"dow": "MONDAY", "tod": "6:30", "x": 1}]}}', "invalid schedule time entry"),
    ],
)
def test_schedule_from_json_malformed(text, message):
    """Test unreadable legacy schedules."""
    with pytest.raises(MalformedInput, match=message):
        schedule_from_json(text)


def test_calendar_from_schedule():
    """Test converting a schedule into every-week events."""
    now = datetime(2017, 2, 6, 9, 15)
    calendar = calendar_from_schedule(schedule_from_json(SCHEDULE_JSON), now)

    anchor = datetime(2017, 2, 6, 6, 30)
    expected = Calendar(
        [
            PickupEvent("trash", anchor, [Weekly(DayOfWeek.TUESDAY)]),
            PickupEvent("trash", anchor, [Weekly(DayOfWeek.FRIDAY)]),
            PickupEvent("recycling", anchor, [Weekly(DayOfWeek.FRIDAY)]),
        ]
    )
    assert calendar == expected
    assert calendar.next_occurrences(datetime(2017, 2, 8, 10, 27)) == {
        "trash": datetime(2017, 2, 10, 6, 30),
        "recycling": datetime(2017, 2, 10, 6, 30),
    }
