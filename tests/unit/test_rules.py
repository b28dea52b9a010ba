"""Tests for recurrence rule shapes."""

from datetime import datetime

import pytest

from pickup_calendar.datemath import DayOfWeek
from pickup_calendar.errors import InvalidArgument
from pickup_calendar.rules import (
    MONTHLY,
    WEEKLY,
    MonthlyByDayOfMonth,
    MonthlyByWeekdayOfMonth,
    RemovalOutcome,
    Weekly,
    check_rule,
)


def test_weekly_next_occurrence():
    """Test a weekly rule anchored on a Tuesday morning."""
    rule = Weekly(DayOfWeek.TUESDAY)
    anchor = datetime(2017, 1, 31, 7, 30)

    result = rule.next_occurrence(anchor, datetime(2017, 2, 1))
    assert result == datetime(2017, 2, 7, 7, 30), f"Expected 2017-02-07 07:30, got {result}"

    # An occurrence exactly at the reference instant counts
    assert rule.next_occurrence(anchor, datetime(2017, 2, 7, 7, 30)) == datetime(2017, 2, 7, 7, 30)


def test_biweekly_phase():
    """Test that every-other-week rules skip the off week."""
    rule = Weekly(DayOfWeek.FRIDAY, 2)
    wednesday = datetime(2017, 2, 8, 10, 27)

    this_week = rule.next_occurrence(datetime(2017, 2, 3, 7, 30), wednesday)
    assert this_week == datetime(2017, 2, 17, 7, 30), f"Expected Feb 17, got {this_week}"

    next_week = rule.next_occurrence(datetime(2017, 2, 10, 7, 30), wednesday)
    assert next_week == datetime(2017, 2, 10, 7, 30), f"Expected Feb 10, got {next_week}"


def test_biweekly_weeks_start_on_monday():
    """Test that week phase is counted in Monday-based weeks."""
    wednesday = datetime(2017, 2, 15, 12, 0)

    # Sunday the 19th closes the anchor's week, so it is week zero
    sunday = Weekly(DayOfWeek.SUNDAY, 2).next_occurrence(wednesday, wednesday)
    assert sunday == datetime(2017, 2, 19, 12, 0), f"Expected Feb 19, got {sunday}"

    # Monday the 13th precedes the anchor and Monday the 20th is week one
    monday = Weekly(DayOfWeek.MONDAY, 2).next_occurrence(wednesday, wednesday)
    assert monday == datetime(2017, 2, 27, 12, 0), f"Expected Feb 27, got {monday}"

    later = Weekly(DayOfWeek.MONDAY, 2).next_occurrence(wednesday, datetime(2017, 2, 28))
    assert later == datetime(2017, 3, 13, 12, 0), f"Expected Mar 13, got {later}"


def test_occurrences_never_precede_anchor():
    """Test that searches start no earlier than the anchor."""
    anchor = datetime(2017, 2, 15, 12, 0)
    early = datetime(2017, 2, 8, 10, 40)

    assert MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, 2).next_occurrence(anchor, early) == datetime(
        2017, 3, 11, 12, 0
    )
    assert MonthlyByDayOfMonth(1).next_occurrence(anchor, early) == datetime(2017, 3, 1, 12, 0)
    assert Weekly(DayOfWeek.MONDAY).next_occurrence(anchor, early) == datetime(2017, 2, 20, 12, 0)


def test_monthly_by_day_of_month():
    """Test monthly rules counted from either end of the month."""
    anchor = datetime(2017, 1, 15, 12, 0)
    after = datetime(2017, 2, 1)

    assert MonthlyByDayOfMonth(-1).next_occurrence(anchor, after) == datetime(2017, 2, 28, 12, 0)
    assert MonthlyByDayOfMonth(-5).next_occurrence(anchor, after) == datetime(2017, 2, 24, 12, 0)
    assert MonthlyByDayOfMonth(31).next_occurrence(anchor, after) == datetime(2017, 3, 31, 12, 0)


def test_monthly_by_weekday_of_month():
    """Test a fifth-Saturday rule skipping four-Saturday months."""
    rule = MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, 5)
    result = rule.next_occurrence(datetime(2017, 1, 1, 10, 0), datetime(2017, 2, 1))
    assert result == datetime(2017, 4, 29, 10, 0), f"Expected April 29, got {result}"


def test_rule_validation():
    """Test that invalid rule values are rejected at construction."""
    with pytest.raises(InvalidArgument, match="Interval must be a positive number"):
        Weekly(DayOfWeek.FRIDAY, 0)
    with pytest.raises(InvalidArgument, match="No such day of month: 0"):
        MonthlyByDayOfMonth(0)
    with pytest.raises(InvalidArgument, match="exceeded: 32"):
        MonthlyByDayOfMonth(32)
    with pytest.raises(InvalidArgument, match="week number 0"):
        MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, 0)
    with pytest.raises(InvalidArgument, match=r"\(5\) exceeded: 6"):
        MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, 6)
    with pytest.raises(InvalidArgument, match=r"\(-5\) exceeded: -6"):
        MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, -6)
    with pytest.raises(InvalidArgument):
        Weekly("someday")


def test_rule_day_of_week_is_parsed():
    """Test that weekday codes are normalized to DayOfWeek."""
    assert Weekly("fr") == Weekly(DayOfWeek.FRIDAY)
    assert MonthlyByWeekdayOfMonth("SA", -2).day_of_week is DayOfWeek.SATURDAY


def test_frequency_and_interval():
    """Test the frequency class and interval of each shape."""
    assert Weekly(DayOfWeek.FRIDAY, 2).frequency == WEEKLY
    assert Weekly(DayOfWeek.FRIDAY, 2).interval == 2
    assert MonthlyByDayOfMonth(15).frequency == MONTHLY
    assert MonthlyByDayOfMonth(15).interval == 1
    assert MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, 2).frequency == MONTHLY
    assert Weekly(DayOfWeek.FRIDAY).with_interval(2) == Weekly(DayOfWeek.FRIDAY, 2)
    assert MonthlyByDayOfMonth(15).with_interval(3) == MonthlyByDayOfMonth(15)


def test_selectors():
    """Test selector matching and removal outcomes."""
    biweekly = Weekly(DayOfWeek.FRIDAY, 2)
    assert biweekly.matches_selector(Weekly(DayOfWeek.FRIDAY, 2))
    assert not biweekly.matches_selector(Weekly(DayOfWeek.FRIDAY, 1))
    assert not biweekly.matches_selector(MonthlyByDayOfMonth(5))

    assert biweekly.remove_selector(Weekly(DayOfWeek.FRIDAY, 2)) is RemovalOutcome.REMOVED_RULE_NOW_EMPTY
    assert biweekly.remove_selector(Weekly(DayOfWeek.TUESDAY, 2)) is RemovalOutcome.NOT_FOUND

    monthly = MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, -2)
    assert monthly.remove_selector(MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, 2)) is RemovalOutcome.NOT_FOUND
    assert monthly.remove_selector(MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, -2)).removed


def test_to_rrule():
    """Test the RRULE values written for each shape."""
    assert Weekly(DayOfWeek.TUESDAY).to_rrule() == {"freq": "WEEKLY", "byday": ["TU"]}
    assert Weekly(DayOfWeek.FRIDAY, 2).to_rrule() == {"freq": "WEEKLY", "interval": 2, "byday": ["FR"]}
    assert MonthlyByDayOfMonth(-1).to_rrule() == {"freq": "MONTHLY", "bymonthday": [-1]}
    assert MonthlyByWeekdayOfMonth(DayOfWeek.SATURDAY, 2).to_rrule() == {"freq": "MONTHLY", "byday": ["2SA"]}


def test_check_rule():
    """Test that only the supported shapes are accepted."""
    rule = Weekly(DayOfWeek.MONDAY)
    assert check_rule(rule) is rule
    with pytest.raises(InvalidArgument, match="Unsupported recurrence rule"):
        check_rule("FREQ=WEEKLY")
