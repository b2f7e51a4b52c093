from __future__ import annotations

import calendar
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(dt: datetime) -> str:
    return as_utc(dt).isoformat()


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_struct_time(ts: Any) -> Optional[datetime]:
    """Convert a feedparser ``*_parsed`` struct_time (UTC) to a datetime."""
    if not ts:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(ts), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def from_unix(seconds: Any) -> Optional[datetime]:
    if not seconds:
        return None
    try:
        return datetime.fromtimestamp(float(seconds), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort parse of ISO 8601 or RFC 822 timestamps.

    Returns None for empty or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return None
