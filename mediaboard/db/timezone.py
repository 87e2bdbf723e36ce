"""UTC helpers.

SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns, so
values read from the database are normalized before comparing them with
``utcnow()``.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes; leave aware ones converted to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
