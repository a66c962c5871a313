from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime], tz=timezone.utc) -> Optional[datetime]:
    """Attach ``tz`` to naive datetimes.

    SQLite hands timezone-aware columns back naive, so anything read from the
    database goes through here before being compared with aware values.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_aware(value).astimezone(timezone.utc)
