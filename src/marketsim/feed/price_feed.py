"""Tick production with external quotes and synthetic fallback."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime

from marketsim.domain.errors import NoPriceDataError, QuoteSourceUnavailableError
from marketsim.domain.models import PricePoint, Symbol
from marketsim.feed.base import PriceModel, QuoteSource
from marketsim.feed.synthetic import RandomWalkModel

FALLBACK_POLICIES = ("per_call", "sticky")

DEFAULT_BASE_PRICES: dict[Symbol, float] = {
    "AAPL": 175.00,
    "GOOGL": 2800.00,
    "MSFT": 420.00,
    "AMZN": 3400.00,
    "TSLA": 250.00,
}

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class PriceFeed:
    """Produce one tick per symbol per cycle.

    When a quote source is configured it is polled first; a
    QuoteSourceUnavailableError switches the cycle to the synthetic model.
    With the "sticky" policy the source stays disabled until restart, with
    "per_call" it is retried on the next cycle.
    """

    def __init__(
        self,
        symbols: Iterable[Symbol],
        model: PriceModel | None = None,
        quote_source: QuoteSource | None = None,
        base_prices: Mapping[Symbol, float] | None = None,
        price_band: tuple[float, float] | None = None,
        fallback_policy: str = "per_call",
        clock: Clock = utc_now,
    ) -> None:
        self.symbols = list(dict.fromkeys(symbols))
        if not self.symbols:
            raise ValueError("at least one symbol is required")
        if fallback_policy not in FALLBACK_POLICIES:
            raise ValueError(f"fallback_policy must be one of {', '.join(FALLBACK_POLICIES)}")
        if price_band is not None and not 0 < price_band[0] <= price_band[1]:
            raise ValueError("price_band must satisfy 0 < min <= max")
        self.model = model or RandomWalkModel()
        self.quote_source = quote_source
        self.base_prices = dict(DEFAULT_BASE_PRICES if base_prices is None else base_prices)
        self.price_band = price_band
        self.fallback_policy = fallback_policy
        self.clock = clock
        self.source_disabled = False
        self._last: dict[Symbol, float] = {}
        self._last_ts: datetime | None = None
        missing = [
            symbol
            for symbol in self.symbols
            if symbol not in self.base_prices and self.price_band is None
        ]
        if missing:
            raise ValueError(f"No base price or price band configured for {', '.join(missing)}")
        self.logger = logging.getLogger("marketsim.feed")

    def prime(self) -> dict[Symbol, PricePoint]:
        """Set the opening price per symbol and return it as the first tick.

        Base prices win over the band; a reachable quote source overrides both.
        """
        for symbol in self.symbols:
            if symbol in self.base_prices:
                self._last[symbol] = float(self.base_prices[symbol])
            else:
                low, high = self.price_band
                self._last[symbol] = self.model.uniform(low, high)
        self._last.update(self._fetch_external())
        now = self._stamp()
        return {symbol: PricePoint(price=self._last[symbol], timestamp=now) for symbol in self.symbols}

    def next_tick(self, symbol: Symbol, previous_price: float) -> PricePoint:
        """Synthetic step from previous_price."""
        price = self.model.next_price(previous_price)
        self._last[symbol] = price
        return PricePoint(price=price, timestamp=self._stamp())

    def poll(self) -> dict[Symbol, PricePoint]:
        """Produce the next tick for every symbol."""
        if not self._last:
            return self.prime()
        quotes = self._fetch_external()
        now = self._stamp()
        ticks: dict[Symbol, PricePoint] = {}
        for symbol in self.symbols:
            price = quotes.get(symbol)
            if price is None:
                price = self.model.next_price(self.last_price(symbol))
            self._last[symbol] = price
            ticks[symbol] = PricePoint(price=price, timestamp=now)
        return ticks

    def last_price(self, symbol: Symbol) -> float:
        price = self._last.get(symbol)
        if price is None:
            raise NoPriceDataError(f"No price data available for {symbol}")
        return price

    def _stamp(self) -> datetime:
        """Clock reading, held at the last issued timestamp if the clock steps back."""
        now = self.clock()
        if self._last_ts is not None and now < self._last_ts:
            self.logger.warning("Clock moved back from %s to %s", self._last_ts, now)
            now = self._last_ts
        self._last_ts = now
        return now

    @property
    def using_quote_source(self) -> bool:
        return self.quote_source is not None and not self.source_disabled

    def _fetch_external(self) -> dict[Symbol, float]:
        if not self.using_quote_source:
            return {}
        try:
            raw = self.quote_source.fetch_quotes(self.symbols)
        except QuoteSourceUnavailableError as exc:
            if self.fallback_policy == "sticky":
                self.source_disabled = True
                self.logger.warning(
                    "Quote source failed, using simulated prices until restart: %s", exc
                )
            else:
                self.logger.warning("Quote source failed, using simulated prices this cycle: %s", exc)
            return {}
        quotes: dict[Symbol, float] = {}
        for symbol, price in raw.items():
            if symbol not in self.symbols:
                continue
            if (
                isinstance(price, bool)
                or not isinstance(price, (int, float))
                or not math.isfinite(price)
                or price <= 0
            ):
                self.logger.warning("Ignoring invalid quote for %s: %r", symbol, price)
                continue
            quotes[symbol] = float(price)
        return quotes
