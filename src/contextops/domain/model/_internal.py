"""Timestamp helpers shared by model value objects."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

# Sort key for observations and records that carry no timestamp.
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime; naive values are read as UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def timestamp_key(value: datetime | None) -> datetime:
    return value if value is not None else EPOCH


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)
