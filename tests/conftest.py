"""Shared example calendars."""

import pytest

from pickup_calendar.calendar import Calendar
from pickup_calendar.examples import basic_example_calendar, complex_example_calendar


@pytest.fixture
def basic_calendar() -> Calendar:
    return basic_example_calendar()


@pytest.fixture
def complex_calendar() -> Calendar:
    return complex_example_calendar()


@pytest.fixture
def build_complex():
    """Factory for fresh copies of the complex calendar."""
    return complex_example_calendar
