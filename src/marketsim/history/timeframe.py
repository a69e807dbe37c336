"""Pure time-window queries over price history."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from marketsim.domain.models import PricePoint

TIMEFRAMES: dict[str, timedelta] = {
    "1D": timedelta(days=1),
    "1W": timedelta(weeks=1),
    "1M": timedelta(days=30),
    "3M": timedelta(days=90),
}


def resolve_duration(duration: timedelta | str) -> timedelta:
    """Map a timeframe label such as '1W' to a timedelta."""
    if isinstance(duration, timedelta):
        if duration <= timedelta(0):
            raise ValueError("duration must be positive")
        return duration
    key = duration.strip().upper()
    if key not in TIMEFRAMES:
        supported = ", ".join(TIMEFRAMES)
        raise ValueError(f"Unknown timeframe '{duration}'. Supported: {supported}")
    return TIMEFRAMES[key]


def window(
    history: Sequence[PricePoint],
    now: datetime,
    duration: timedelta | str,
) -> list[PricePoint]:
    """Return the points newer than `now - duration`, keeping their order."""
    cutoff = now - resolve_duration(duration)
    return [point for point in history if point.timestamp > cutoff]
