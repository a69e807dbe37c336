"""Price history storage and timeframe views."""

from .store import DEFAULT_HISTORY_CAPACITY, PriceHistoryStore
from .timeframe import TIMEFRAMES, resolve_duration, window

__all__ = [
    "DEFAULT_HISTORY_CAPACITY",
    "PriceHistoryStore",
    "TIMEFRAMES",
    "resolve_duration",
    "window",
]
