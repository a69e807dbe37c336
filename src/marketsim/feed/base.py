"""Price source contracts."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from marketsim.domain.models import Symbol


class PriceModel(Protocol):
    """Synthetic next-price generator."""

    def next_price(self, previous_price: float) -> float:
        """Return the price following previous_price."""

    def uniform(self, low: float, high: float) -> float:
        """Draw an opening price within [low, high]."""


class QuoteSource(Protocol):
    """External quote capability.

    Implementations raise QuoteSourceUnavailableError on any transport or
    parse failure instead of returning partial data.
    """

    def fetch_quotes(self, symbols: Iterable[Symbol]) -> dict[Symbol, float]:
        """Return the latest price per symbol."""
