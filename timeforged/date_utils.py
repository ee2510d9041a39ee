"""Shared timestamp normalization helpers."""
from __future__ import annotations

from datetime import datetime, timezone

# Fixed width so lexical order in SQLite matches chronological order.
STORAGE_FMT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_storage(value: datetime) -> str:
    return ensure_utc(value).strftime(STORAGE_FMT)


def parse_timestamp(token: str) -> datetime:
    """Parse a stored or ISO-8601 timestamp into an aware UTC datetime."""
    cleaned = (token or "").strip()
    if not cleaned:
        raise ValueError("empty timestamp")
    try:
        return datetime.strptime(cleaned, STORAGE_FMT).replace(tzinfo=timezone.utc)
    except ValueError:
        pass
    return ensure_utc(datetime.fromisoformat(cleaned.replace("Z", "+00:00")))
