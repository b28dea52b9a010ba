"""Filesystem storage of pickup calendars.

Each user's calendar is one iCalendar file, ``<root_dir>/<user_id>.ics``.
An empty calendar is stored by removing the file.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path

from .calendar import Calendar
from .errors import InvalidName
from .ical import DEFAULT_PRODID, serialize

logger = logging.getLogger("pickup_calendar.store")

_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._@-]*$")


class LocalCalendarStore:
    """Stores one calendar per user as an ``.ics`` file."""

    def __init__(self, root_dir: Path, prodid: str = DEFAULT_PRODID) -> None:
        """Initialize store.

        Args:
            root_dir: Directory holding the calendar files (created if missing)
            prodid: PRODID written into stored calendars
        """
        self.root_dir: Path = Path(root_dir)
        self.prodid: str = prodid
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _calendar_file(self, user_id: str) -> Path:
        """Get filesystem path for a user's calendar."""
        if not user_id or not _USER_ID_PATTERN.match(user_id):
            raise InvalidName(f"Invalid user id: {user_id!r}")
        return self.root_dir / f"{user_id}.ics"

    def exists(self, user_id: str) -> bool:
        return self._calendar_file(user_id).exists()

    def load_text(self, user_id: str) -> str | None:
        """Stored iCalendar text, or None for a user without a calendar."""
        path = self._calendar_file(user_id)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def load(self, user_id: str) -> Calendar:
        """Load a user's calendar (empty if nothing is stored).

        Raises:
            MalformedInput: If the stored text is corrupt
        """
        return Calendar.deserialize(self.load_text(user_id))

    def save(self, user_id: str, calendar: Calendar, stamp: datetime | None = None) -> None:
        """Store a user's calendar, removing the file when it is empty."""
        path = self._calendar_file(user_id)
        text = serialize(calendar, stamp=stamp, prodid=self.prodid)
        if text is None:
            if path.exists():
                path.unlink()
                logger.debug(f"Removed empty calendar for {user_id}")
            return

        # Write to a temporary file, then replace
        tmp_path = path.with_suffix(".ics.tmp")
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
        logger.debug(f"Stored {len(calendar)} event(s) for {user_id}")

    def delete(self, user_id: str) -> bool:
        """Remove a user's calendar; True if one was stored."""
        path = self._calendar_file(user_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list_users(self) -> list[str]:
        """User ids with a stored calendar, sorted."""
        return sorted(p.stem for p in self.root_dir.glob("*.ics") if p.is_file())
