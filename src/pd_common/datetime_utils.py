"""UTC timestamps and their JSON rendering.

Every timestamp stored or returned is timezone-aware UTC; naive values
coming back from a driver are assumed to be UTC.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    """ISO-8601 string for responses, None stays None."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
