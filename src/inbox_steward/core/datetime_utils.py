"""Datetime helpers shared across the application."""

from __future__ import annotations

from datetime import UTC, datetime

__all__ = [
    "ensure_utc",
    "serialize_datetime",
    "utc_now",
]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC, treating naive values as already UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def serialize_datetime(value: datetime) -> str:
    """Serialise ``value`` to an ISO 8601 UTC string with millisecond precision."""
    normalized = ensure_utc(value)
    return normalized.isoformat(timespec="milliseconds").replace("+00:00", "Z")
