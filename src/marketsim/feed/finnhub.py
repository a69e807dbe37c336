"""Finnhub HTTP quote source."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable
from typing import Any

import requests

from marketsim.domain.errors import QuoteSourceUnavailableError
from marketsim.domain.models import Symbol

DEFAULT_FINNHUB_BASE_URL = "https://finnhub.io/api/v1"


class FinnhubQuoteSource:
    """Fetch last-trade prices from Finnhub's /quote endpoint.

    All symbols are fetched per call; one failing symbol fails the whole call.
    `timeout` bounds the whole call, not each request: every request gets
    what is left of it, and the call fails once it is used up.
    """

    def __init__(
        self,
        api_key: str = "demo",
        base_url: str = DEFAULT_FINNHUB_BASE_URL,
        timeout: float = 5.0,
        session: requests.Session | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.monotonic = monotonic
        self.logger = logging.getLogger("marketsim.feed.finnhub")

    def fetch_quotes(self, symbols: Iterable[Symbol]) -> dict[Symbol, float]:
        deadline = self.monotonic() + self.timeout
        quotes: dict[Symbol, float] = {}
        for symbol in symbols:
            remaining = deadline - self.monotonic()
            if remaining <= 0:
                raise QuoteSourceUnavailableError(
                    f"Finnhub fetch exceeded {self.timeout}s before {symbol}"
                )
            quotes[symbol] = self.fetch_quote(symbol, timeout=remaining)
        return quotes

    def fetch_quote(self, symbol: Symbol, timeout: float | None = None) -> float:
        payload = self._request(symbol, self.timeout if timeout is None else timeout)
        price = payload.get("c")
        if (
            isinstance(price, bool)
            or not isinstance(price, (int, float))
            or not math.isfinite(price)
            or price <= 0
        ):
            raise QuoteSourceUnavailableError(
                f"Finnhub returned no usable price for {symbol}: {price!r}"
            )
        return float(price)

    def _request(self, symbol: Symbol, timeout: float) -> dict[str, Any]:
        url = f"{self.base_url}/quote"
        params = {"symbol": symbol.strip().upper(), "token": self.api_key}
        try:
            response = self.session.get(url, params=params, timeout=timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise QuoteSourceUnavailableError(f"Finnhub request failed for {symbol}: {exc}") from exc
        except ValueError as exc:
            raise QuoteSourceUnavailableError(
                f"Finnhub returned invalid JSON for {symbol}: {exc}"
            ) from exc
        if not isinstance(payload, dict):
            raise QuoteSourceUnavailableError(f"Finnhub payload for {symbol} is not an object")
        if "error" in payload:
            raise QuoteSourceUnavailableError(f"Finnhub returned an error: {payload['error']}")
        self.logger.debug("Finnhub quote for %s: %s", symbol, payload.get("c"))
        return payload
