"""Fixed-price quote source for deterministic runs."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping

from marketsim.domain.models import Symbol


class StaticQuoteSource:
    """Quote every known symbol at a fixed price.

    Symbols without a configured price are left out of the result, so the
    feed steps them synthetically.
    """

    def __init__(self, prices: Mapping[Symbol, float]) -> None:
        self.prices: dict[Symbol, float] = {}
        for symbol, price in prices.items():
            value = float(price)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"Static price for {symbol} must be positive, got {price!r}")
            self.prices[symbol.strip().upper()] = value

    def fetch_quotes(self, symbols: Iterable[Symbol]) -> dict[Symbol, float]:
        return {symbol: self.prices[symbol] for symbol in symbols if symbol in self.prices}
