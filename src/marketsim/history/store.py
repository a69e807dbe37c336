"""Bounded per-symbol price history."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

import pandas as pd

from marketsim.domain.models import PricePoint, Symbol

DEFAULT_HISTORY_CAPACITY = 100


class PriceHistoryStore:
    """Keep the most recent `capacity` ticks per symbol, evicting the oldest first."""

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY, symbols: Iterable[Symbol] = ()) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = int(capacity)
        self._series: dict[Symbol, deque[PricePoint]] = {}
        for symbol in symbols:
            self._series[symbol] = deque(maxlen=self.capacity)

    def append(self, symbol: Symbol, point: PricePoint) -> None:
        series = self._series.get(symbol)
        if series is None:
            series = deque(maxlen=self.capacity)
            self._series[symbol] = series
        if series and point.timestamp < series[-1].timestamp:
            raise ValueError(
                f"Out-of-order tick for {symbol}: {point.timestamp.isoformat()} "
                f"is older than {series[-1].timestamp.isoformat()}"
            )
        series.append(point)

    def latest(self, symbol: Symbol) -> PricePoint | None:
        series = self._series.get(symbol)
        if not series:
            return None
        return series[-1]

    def series(self, symbol: Symbol) -> tuple[PricePoint, ...]:
        """Return the symbol's ticks in chronological order."""
        return tuple(self._series.get(symbol, ()))

    def symbols(self) -> list[Symbol]:
        return list(self._series)

    def __len__(self) -> int:
        return sum(len(series) for series in self._series.values())

    def to_frame(self, symbol: Symbol) -> pd.DataFrame:
        """Return the symbol's ticks as a frame with a UTC datetime index."""
        points = self.series(symbol)
        frame = pd.DataFrame(
            {
                "price": [point.price for point in points],
                "volume": [point.volume for point in points],
            },
            index=pd.DatetimeIndex(
                pd.to_datetime([point.timestamp for point in points], utc=True),
                name="timestamp",
            ),
        )
        return frame
