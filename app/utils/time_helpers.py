"""Day arithmetic helpers shared by the nudge engine."""

import math
from datetime import UTC, date, datetime, timedelta

SECONDS_PER_DAY = 86400


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_day(value: datetime) -> date:
    return to_utc(value).date()


def days_between(current_day: datetime, earlier: datetime) -> int:
    """Calendar-day difference between two instants (UTC dates, not 24h periods)."""
    return (utc_day(current_day) - utc_day(earlier)).days


def ceil_days(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
