"""Utility functions for working with dates and times."""

from datetime import datetime, timedelta, timezone

__all__ = [
    "get_current_timestamp",
    "days_ago",
    "hours_ago",
]

def get_current_timestamp() -> datetime:
    """Return the current UTC datetime with micro-second precision.

    This object can be stored directly in MongoDB where it will be written as
    a BSON Date.
    """
    return datetime.now(tz=timezone.utc)


def days_ago(days: float, now: datetime | None = None) -> datetime:
    """Return the cutoff ``days`` before *now* (defaults to the current time)."""
    return (now or get_current_timestamp()) - timedelta(days=days)


def hours_ago(hours: float, now: datetime | None = None) -> datetime:
    return (now or get_current_timestamp()) - timedelta(hours=hours)
