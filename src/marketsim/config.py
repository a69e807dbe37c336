"""Environment and CLI runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Self

from dotenv import load_dotenv

from marketsim.feed.finnhub import DEFAULT_FINNHUB_BASE_URL
from marketsim.feed.price_feed import DEFAULT_BASE_PRICES, FALLBACK_POLICIES

DEFAULT_SYMBOLS = list(DEFAULT_BASE_PRICES)
QUOTE_SOURCES = ("synthetic", "finnhub", "static")


def parse_optional_positive_int(value: str | None, *, field_name: str) -> int | None:
    """Parse optional positive integer values from env strings."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    parsed = int(text)
    if parsed <= 0:
        raise ValueError(f"{field_name} must be positive")
    return parsed


def parse_optional_int(value: str | None) -> int | None:
    """Parse an optional integer such as a random seed."""
    if value is None or not value.strip():
        return None
    return int(value.strip())


def parse_optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value.strip())


def parse_symbols(value: str | None, default: list[str] | None = None) -> list[str]:
    """Parse comma-separated symbols."""
    fallback = default or DEFAULT_SYMBOLS
    if not value:
        return list(fallback)
    symbols = [item.strip().upper() for item in value.split(",") if item.strip()]
    return dedupe_symbols(symbols) or list(fallback)


def dedupe_symbols(symbols: list[str]) -> list[str]:
    """Remove duplicate symbols while preserving order."""
    deduped: list[str] = []
    seen: set[str] = set()
    for symbol in symbols:
        if symbol in seen:
            continue
        seen.add(symbol)
        deduped.append(symbol)
    return deduped


def parse_price_map(value: str | None, default: dict[str, float] | None = None) -> dict[str, float]:
    """Parse 'AAPL=175,MSFT=420' into a symbol to price mapping."""
    fallback = dict(DEFAULT_BASE_PRICES if default is None else default)
    if not value or not value.strip():
        return fallback
    prices: dict[str, float] = {}
    for item in value.split(","):
        text = item.strip()
        if not text:
            continue
        if "=" not in text:
            raise ValueError(f"Invalid base price entry '{text}', expected SYMBOL=PRICE")
        symbol, raw_price = text.split("=", 1)
        price = float(raw_price.strip())
        if price <= 0:
            raise ValueError(f"Base price for {symbol.strip().upper()} must be positive")
        prices[symbol.strip().upper()] = price
    return prices


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings."""

    symbols: list[str] = field(default_factory=lambda: list(DEFAULT_SYMBOLS))
    base_prices: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_BASE_PRICES))
    price_band_min: float | None = None
    price_band_max: float | None = None
    interval_seconds: float = 10.0
    max_ticks: int | None = None
    history_capacity: int = 100
    starting_cash: float = 10_000.0
    random_bias: float = 0.48
    max_step_fraction: float = 0.02
    floor_fraction: float = 0.1
    seed: int | None = None
    quote_source: str = "synthetic"
    quote_fallback: str = "per_call"
    finnhub_api_key: str = "demo"
    finnhub_base_url: str = DEFAULT_FINNHUB_BASE_URL
    quote_timeout_seconds: float = 5.0
    state_db_path: str = "state/marketsim_state.db"
    state_key: str = "portfolio"
    events_dir: str = "runs"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from environment variables."""
        load_dotenv()
        raw = cls(
            symbols=parse_symbols(os.getenv("SYMBOLS")),
            base_prices=parse_price_map(os.getenv("BASE_PRICES")),
            price_band_min=parse_optional_float(os.getenv("PRICE_BAND_MIN")),
            price_band_max=parse_optional_float(os.getenv("PRICE_BAND_MAX")),
            interval_seconds=float(os.getenv("INTERVAL_SECONDS", "10")),
            max_ticks=parse_optional_positive_int(os.getenv("MAX_TICKS"), field_name="max_ticks"),
            history_capacity=int(os.getenv("HISTORY_CAPACITY", "100")),
            starting_cash=float(os.getenv("STARTING_CASH", "10000")),
            random_bias=float(os.getenv("RANDOM_BIAS", "0.48")),
            max_step_fraction=float(os.getenv("MAX_STEP_FRACTION", "0.02")),
            floor_fraction=float(os.getenv("FLOOR_FRACTION", "0.1")),
            seed=parse_optional_int(os.getenv("SEED")),
            quote_source=str(os.getenv("QUOTE_SOURCE", "synthetic")).strip().lower(),
            quote_fallback=str(os.getenv("QUOTE_FALLBACK", "per_call")).strip().lower(),
            finnhub_api_key=str(os.getenv("FINNHUB_API_KEY", "demo")).strip(),
            finnhub_base_url=str(os.getenv("FINNHUB_BASE_URL", DEFAULT_FINNHUB_BASE_URL)).strip(),
            quote_timeout_seconds=float(os.getenv("QUOTE_TIMEOUT_SECONDS", "5")),
            state_db_path=str(os.getenv("STATE_DB_PATH", "state/marketsim_state.db")).strip(),
            state_key=str(os.getenv("STATE_KEY", "portfolio")).strip(),
            events_dir=str(os.getenv("EVENTS_DIR", "runs")).strip(),
            log_level=str(os.getenv("LOG_LEVEL", "INFO")).strip().upper(),
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        updated = replace(self, **kwargs)
        return updated.validate()

    def price_band(self) -> tuple[float, float] | None:
        """Return the opening price band, or None when not configured."""
        if self.price_band_min is None or self.price_band_max is None:
            return None
        return self.price_band_min, self.price_band_max

    def validate(self) -> Self:
        """Validate settings fields."""
        if not self.symbols:
            raise ValueError("at least one symbol is required")
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if self.max_ticks is not None and self.max_ticks <= 0:
            raise ValueError("max_ticks must be positive")
        if self.history_capacity <= 0:
            raise ValueError("history_capacity must be positive")
        if self.starting_cash < 0:
            raise ValueError("starting_cash must be non-negative")
        if not 0.0 <= self.random_bias <= 1.0:
            raise ValueError("random_bias must be between 0 and 1")
        if self.max_step_fraction < 0:
            raise ValueError("max_step_fraction must be non-negative")
        if not 0.0 < self.floor_fraction < 1.0:
            raise ValueError("floor_fraction must be between 0 and 1")
        if (self.price_band_min is None) != (self.price_band_max is None):
            raise ValueError("price_band_min and price_band_max must be set together")
        band = self.price_band()
        if band is not None and not 0 < band[0] <= band[1]:
            raise ValueError("price band must satisfy 0 < min <= max")
        missing = [symbol for symbol in self.symbols if symbol not in self.base_prices]
        if missing and band is None:
            raise ValueError(
                f"No base price for {', '.join(missing)}; set BASE_PRICES or a price band"
            )
        if self.quote_source not in QUOTE_SOURCES:
            raise ValueError(f"quote_source must be one of {', '.join(QUOTE_SOURCES)}")
        if self.quote_fallback not in FALLBACK_POLICIES:
            raise ValueError(f"quote_fallback must be one of {', '.join(FALLBACK_POLICIES)}")
        if self.quote_timeout_seconds <= 0:
            raise ValueError("quote_timeout_seconds must be positive")
        if not self.state_key:
            raise ValueError("state_key must not be empty")
        return self
