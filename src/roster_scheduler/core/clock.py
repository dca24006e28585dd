"""Time source used by lease checks and schedule generation."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """FastAPI dependency; tests override it with a fixed clock."""
    return utc_now


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on round-trip, stored values are always UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def fixed_clock(moment: datetime) -> Clock:
    frozen = as_utc(moment)

    def _now() -> datetime:
        return frozen

    return _now
