from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


# =============================================================================
# BUSINESS DAYS
# =============================================================================
#
# The shop thinks in local calendar days ("today's cut", "today's sales"),
# storage thinks in UTC. A business day is the half-open UTC interval
# [local midnight, next local midnight), so DST days are 23 or 25 hours long.


def store_timezone(tz_name: str | None = None) -> ZoneInfo:
    if tz_name is None:
        tz_name = current_app.config.get("STORE_TIMEZONE", "UTC")
    return ZoneInfo(tz_name)


def business_date(dt: datetime | None = None, tz_name: str | None = None) -> date:
    """Local calendar date of a UTC-naive instant (defaults to now)."""
    if dt is None:
        dt = utcnow()
    return dt.replace(tzinfo=timezone.utc).astimezone(store_timezone(tz_name)).date()


def _local_midnight_utc(day: date, tz: ZoneInfo) -> datetime:
    local = datetime.combine(day, time.min, tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def day_bounds(day: date, tz_name: str | None = None) -> tuple[datetime, datetime]:
    """UTC-naive [start, end) of a local business day."""
    tz = store_timezone(tz_name)
    return _local_midnight_utc(day, tz), _local_midnight_utc(day + timedelta(days=1), tz)


def month_bounds(month: str, tz_name: str | None = None) -> tuple[datetime, datetime]:
    """UTC-naive [start, end) of a local calendar month given as 'YYYY-MM'."""
    try:
        first = datetime.strptime(month, "%Y-%m").date()
    except (TypeError, ValueError):
        raise ValueError("month must be formatted as YYYY-MM")
    if first.month == 12:
        following = first.replace(year=first.year + 1, month=1)
    else:
        following = first.replace(month=first.month + 1)
    tz = store_timezone(tz_name)
    return _local_midnight_utc(first, tz), _local_midnight_utc(following, tz)


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse 'YYYY-MM-DD'; None / "" -> None."""
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValueError("date must be formatted as YYYY-MM-DD")
