"""Time utilities."""
from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    """Format timestamp as ISO string in UTC."""
    if value is None:
        return None
    return as_utc(value).isoformat()
