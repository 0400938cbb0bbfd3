"""
Timezone-aware datetime helpers.
- Store and compute in UTC in DB.
- API responses expose datetimes in the school's timezone (settings.TZ).
"""
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from staffleave.core.config import settings

UTC = timezone.utc
SCHOOL_TZ = ZoneInfo(settings.TZ)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for created_at, decided_at, etc."""
    return datetime.now(UTC)


def today_local() -> date:
    """Current calendar date in the school's timezone"""
    return now_utc().astimezone(SCHOOL_TZ).date()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 in the school's timezone. Naive datetimes are treated as UTC."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(SCHOOL_TZ).isoformat()


def utc_for_storage(dt: Optional[datetime], naive: bool = False) -> Optional[datetime]:
    """
    Normalise a filter bound to UTC so it compares correctly with stored timestamps.

    naive=True drops tzinfo afterwards (SQLite stores UTC wall-clock text and
    ignores any offset on bound values).
    """
    dt = ensure_utc(dt)
    if dt is not None and naive:
        return dt.replace(tzinfo=None)
    return dt
