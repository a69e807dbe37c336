from __future__ import annotations

import pytest

from marketsim.config import Settings, parse_price_map, parse_symbols

ENV_KEYS = [
    "SYMBOLS",
    "BASE_PRICES",
    "PRICE_BAND_MIN",
    "PRICE_BAND_MAX",
    "INTERVAL_SECONDS",
    "MAX_TICKS",
    "HISTORY_CAPACITY",
    "STARTING_CASH",
    "SEED",
    "QUOTE_SOURCE",
    "QUOTE_FALLBACK",
    "FINNHUB_API_KEY",
    "STATE_DB_PATH",
    "LOG_LEVEL",
]


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("marketsim.config.load_dotenv", lambda *args, **kwargs: None)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)

    settings = Settings.from_env()

    assert settings.symbols == ["AAPL", "GOOGL", "MSFT", "AMZN", "TSLA"]
    assert settings.base_prices["AAPL"] == 175.0
    assert settings.starting_cash == 10_000.0
    assert settings.interval_seconds == 10.0
    assert settings.history_capacity == 100
    assert settings.quote_source == "synthetic"
    assert settings.max_ticks is None
    assert settings.price_band() is None


def test_env_values_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("SYMBOLS", "spy, qqq,spy")
    monkeypatch.setenv("BASE_PRICES", "SPY=500")
    monkeypatch.setenv("PRICE_BAND_MIN", "50")
    monkeypatch.setenv("PRICE_BAND_MAX", "150")
    monkeypatch.setenv("MAX_TICKS", "12")
    monkeypatch.setenv("SEED", "3")
    monkeypatch.setenv("QUOTE_SOURCE", "Finnhub")
    monkeypatch.setenv("QUOTE_FALLBACK", "sticky")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.symbols == ["SPY", "QQQ"]
    assert settings.base_prices == {"SPY": 500.0}
    assert settings.price_band() == (50.0, 150.0)
    assert settings.max_ticks == 12
    assert settings.seed == 3
    assert settings.quote_source == "finnhub"
    assert settings.quote_fallback == "sticky"
    assert settings.log_level == "DEBUG"


def test_invalid_env_values_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("QUOTE_SOURCE", "bloomberg")

    with pytest.raises(ValueError, match="quote_source"):
        Settings.from_env()


def test_validate_rejects_half_configured_band() -> None:
    with pytest.raises(ValueError, match="together"):
        Settings(price_band_min=1.0).validate()


def test_with_overrides_validates() -> None:
    with pytest.raises(ValueError, match="interval_seconds"):
        Settings().with_overrides(interval_seconds=0)


def test_parse_helpers() -> None:
    assert parse_symbols(None) == ["AAPL", "GOOGL", "MSFT", "AMZN", "TSLA"]
    assert parse_symbols(" , ") == ["AAPL", "GOOGL", "MSFT", "AMZN", "TSLA"]
    assert parse_price_map("aapl=1.5, msft = 2") == {"AAPL": 1.5, "MSFT": 2.0}
    with pytest.raises(ValueError):
        parse_price_map("AAPL")
    with pytest.raises(ValueError):
        parse_price_map("AAPL=-1")
