"""Debug logging setup for the pickup calendar tools."""

from __future__ import annotations

import logging

logger = logging.getLogger("pickup_calendar")


def setup_debug_logging(level: int = logging.DEBUG) -> None:
    """Send pickup_calendar log records to the console."""
    # Configure logger
    logger.setLevel(level)

    # Create console handler with a compact formatter
    handler = logging.StreamHandler()
    handler.setLevel(level)
    formatter = logging.Formatter("%(name)s: %(message)s")
    handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(handler)

    # Prevent propagation to avoid duplicate logs
    logger.propagate = False
