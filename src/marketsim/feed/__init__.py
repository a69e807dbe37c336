"""Price feed: synthetic model, external quotes and fallback."""

from .base import PriceModel, QuoteSource
from .finnhub import DEFAULT_FINNHUB_BASE_URL, FinnhubQuoteSource
from .price_feed import DEFAULT_BASE_PRICES, FALLBACK_POLICIES, PriceFeed, utc_now
from .static import StaticQuoteSource
from .synthetic import RandomWalkModel

__all__ = [
    "DEFAULT_BASE_PRICES",
    "DEFAULT_FINNHUB_BASE_URL",
    "FALLBACK_POLICIES",
    "FinnhubQuoteSource",
    "PriceFeed",
    "PriceModel",
    "QuoteSource",
    "RandomWalkModel",
    "StaticQuoteSource",
    "utc_now",
]
