"""UTC helpers and the daily anchor calendar."""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def floor_to_hour(value: datetime) -> datetime:
    return ensure_utc(value).replace(minute=0, second=0, microsecond=0)


def anchor_instant(now: datetime, tz_name: str, hour: int) -> datetime:
    """UTC instant of ``hour``:00 on now's calendar date in ``tz_name``.

    This is always "today's" anchor in the reference timezone, even when
    ``now`` is still before it.
    """
    tz = ZoneInfo(tz_name)
    local_day = ensure_utc(now).astimezone(tz).date()
    return datetime.combine(local_day, time(hour=hour), tzinfo=tz).astimezone(timezone.utc)


def local_date(value: datetime, tz_name: str) -> date:
    return ensure_utc(value).astimezone(ZoneInfo(tz_name)).date()


def local_hour(value: datetime, tz_name: str) -> int:
    return ensure_utc(value).astimezone(ZoneInfo(tz_name)).hour
