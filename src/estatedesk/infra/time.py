"""Time utilities for consistent date handling."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Return today's date in UTC; the default anchor for availability search."""
    return utc_now().date()
