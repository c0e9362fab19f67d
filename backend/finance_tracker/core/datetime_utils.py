from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone


def utcnow_naive() -> datetime:
    """Current UTC time in the shape we store it (timezone-naive)."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime) -> datetime:
    """Normalize datetimes for DB storage.

    We store UTC using a timezone-naive DateTime column. Clients often send ISO
    timestamps with 'Z' (tz-aware). Some drivers error when binding tz-aware
    datetimes into DateTime(timezone=False), and SQLite drops the offset silently.
    """

    if dt.tzinfo is None:
        return dt

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def as_utc(dt: datetime) -> datetime:
    """Treat a DB-stored UTC-naive datetime as UTC-aware for API responses."""

    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc)

    return dt.replace(tzinfo=timezone.utc)


def parse_iso_datetime(value: str) -> datetime:
    # datetime.fromisoformat only accepts a trailing 'Z' on Python 3.11+.
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def shift_years(dt: datetime, years: int) -> datetime:
    """Same calendar day `years` away; Feb 29 falls back to Feb 28."""

    year = dt.year + years
    day = min(dt.day, calendar.monthrange(year, dt.month)[1])
    return dt.replace(year=year, day=day)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)
