"""Configuration for the pickup calendar tools.

Values come from environment variables; command-line flags override them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .ical import DEFAULT_PRODID

PICKUP_CALENDAR_DATA_DIR = os.getenv("PICKUP_CALENDAR_DATA_DIR")
PICKUP_CALENDAR_PRODID = os.getenv("PICKUP_CALENDAR_PRODID")
PICKUP_CALENDAR_HOST = os.getenv("PICKUP_CALENDAR_HOST")
PICKUP_CALENDAR_PORT = os.getenv("PICKUP_CALENDAR_PORT")
PICKUP_CALENDAR_DEBUG = os.getenv("PICKUP_CALENDAR_DEBUG")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class PickupCalendarConfig:
    """Configuration for calendar storage and the feed server."""

    # Storage
    data_dir: Path = Path(PICKUP_CALENDAR_DATA_DIR or "data")
    prodid: str = PICKUP_CALENDAR_PRODID or DEFAULT_PRODID

    # Feed server
    host: str = PICKUP_CALENDAR_HOST or "127.0.0.1"
    port: int = int(PICKUP_CALENDAR_PORT or 8080)

    debug: bool = _truthy(PICKUP_CALENDAR_DEBUG)
