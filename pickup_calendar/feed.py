"""Read-only HTTP access to stored pickup calendars.

    GET /calendars/{user_id}.ics
        The stored calendar as text/calendar, for calendar subscriptions.

    GET /calendars/{user_id}/next?at=2017-02-08T10:27&name=trash
        Next pickup per name as JSON, soonest first. ``at`` defaults to the
        server's current local time; ``name`` restricts to one pickup.
"""

from __future__ import annotations

import logging
from datetime import datetime

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .errors import InvalidName, MalformedInput
from .next_pickups import NextPickups
from .store import LocalCalendarStore

logger = logging.getLogger("pickup_calendar.feed")


class PickupFeedHandler:
    """Handlers for the calendar feed endpoints."""

    def __init__(self, store: LocalCalendarStore) -> None:
        self.store = store

    async def handle_ics(self, request: Request) -> Response:
        """Handle GET /calendars/{user_id}.ics."""
        user_id = request.path_params["user_id"]
        try:
            text = self.store.load_text(user_id)
        except InvalidName as e:
            return Response(content=str(e), status_code=400, media_type="text/plain")

        if text is None:
            return Response(content=f"No calendar for {user_id}", status_code=404, media_type="text/plain")

        return Response(
            content=text,
            media_type="text/calendar; charset=utf-8",
            headers={
                "Content-Disposition": f'inline; filename="pickups-{user_id}.ics"',
                "Cache-Control": "private, max-age=300",  # Cache for 5 minutes
            },
        )

    async def handle_next(self, request: Request) -> Response:
        """Handle GET /calendars/{user_id}/next."""
        user_id = request.path_params["user_id"]

        at_param = request.query_params.get("at")
        try:
            at = datetime.fromisoformat(at_param) if at_param else datetime.now()
        except ValueError:
            return Response(content=f"Invalid 'at' parameter: {at_param}", status_code=400, media_type="text/plain")

        try:
            if not self.store.exists(user_id):
                return Response(content=f"No calendar for {user_id}", status_code=404, media_type="text/plain")
            calendar = self.store.load(user_id)
            next_pickups = NextPickups(at, calendar, request.query_params.get("name"))
        except InvalidName as e:
            return Response(content=str(e), status_code=400, media_type="text/plain")
        except MalformedInput as e:
            logger.error(f"Stored calendar for {user_id} is corrupt: {e}")
            return Response(content=f"Error reading calendar: {e}", status_code=500, media_type="text/plain")

        return JSONResponse(
            {
                "at": at.isoformat(),
                "pickups": {name: when.isoformat() for name, when in next_pickups.pickups.items()},
            }
        )


def create_app(store: LocalCalendarStore) -> Starlette:
    """Create the feed application for ``store``."""
    handler = PickupFeedHandler(store)
    return Starlette(
        routes=[
            Route("/calendars/{user_id}.ics", handler.handle_ics, methods=["GET"]),
            Route("/calendars/{user_id}/next", handler.handle_next, methods=["GET"]),
        ]
    )
