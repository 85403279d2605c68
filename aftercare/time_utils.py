# Overview: UTC clock, ISO-8601 parsing/serialization and calendar windows.

"""
All stored timestamps are naive UTC. Aware values coming in through the API
are converted on the way in; serialized values always carry a trailing Z.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are taken as UTC already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2026-11-02T10:00", "...Z" and "...+02:00" all parse to naive UTC.
    None or a blank string gives None; anything else unparseable raises
    ValueError.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 at second precision with a trailing Z; naive input is UTC."""
    if dt is None:
        return None
    return to_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"


def day_window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Midnight on the day of ``start`` to midnight after the day of ``end``."""
    return (
        datetime.combine(start.date(), time.min),
        datetime.combine(end.date(), time.min) + timedelta(days=1),
    )


def trailing_window(days: int, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """[now - days, now) for period reports."""
    end = now or utcnow()
    return end - timedelta(days=days), end
