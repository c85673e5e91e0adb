"""UTC time helpers.

Timestamps are kept as timezone-aware UTC datetimes. Normalizing on the
way in keeps every comparison in one frame.
"""
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC.

    Aware values are converted to UTC. Naive values are taken to already
    be in UTC; a room's timezone is a display label only.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
