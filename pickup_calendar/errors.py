"""Errors raised by the pickup calendar engine.

Validation problems are raised immediately. "Nothing matched" outcomes are
plain return values, never exceptions.
"""

from __future__ import annotations


class PickupCalendarError(Exception):
    """Base class for all pickup calendar errors."""


class InvalidArgument(PickupCalendarError, ValueError):
    """Out-of-range day, week number or interval."""


class InvalidName(PickupCalendarError, ValueError):
    """Empty or blank event name (or storage key)."""


class MalformedInput(PickupCalendarError, ValueError):
    """Stored calendar or schedule text that cannot be parsed."""

    def __init__(self, message: str, err: Exception | None = None):
        self.err = err
        super().__init__(message)

    def __str__(self) -> str:
        s = super().__str__()
        if self.err:
            return f"{s}: {self.err}"
        return s


class NotFound(PickupCalendarError, LookupError):
    """A date search that should always succeed found nothing."""
