from __future__ import annotations

import pytest

from marketsim.cli import apply_cli_overrides, build_parser, parse_order_spec
from marketsim.config import Settings
from marketsim.domain.models import OrderKind, OrderSide


def test_cli_overrides_produce_expected_settings() -> None:
    parser = build_parser()
    args = parser.parse_args(
        [
            "--symbols",
            "aapl,tsla",
            "--max-ticks",
            "3",
            "--interval-seconds",
            "0.5",
            "--seed",
            "42",
            "--quote-source",
            "finnhub",
            "--quote-fallback",
            "sticky",
            "--history-capacity",
            "250",
            "--starting-cash",
            "100000",
            "--state-db",
            "state/test.db",
            "--events-dir",
            "runs/test",
        ]
    )
    settings = apply_cli_overrides(Settings(), args)

    assert settings.symbols == ["AAPL", "TSLA"]
    assert settings.max_ticks == 3
    assert settings.interval_seconds == 0.5
    assert settings.seed == 42
    assert settings.quote_source == "finnhub"
    assert settings.quote_fallback == "sticky"
    assert settings.history_capacity == 250
    assert settings.starting_cash == 100_000.0
    assert settings.state_db_path == "state/test.db"
    assert settings.events_dir == "runs/test"


def test_cli_rejects_non_positive_max_ticks() -> None:
    parser = build_parser()
    args = parser.parse_args(["--max-ticks", "0"])

    with pytest.raises(ValueError, match="max_ticks must be positive"):
        apply_cli_overrides(Settings(), args)


def test_cli_rejects_symbols_without_prices() -> None:
    parser = build_parser()
    args = parser.parse_args(["--symbols", "NEWCO"])

    with pytest.raises(ValueError, match="No base price for NEWCO"):
        apply_cli_overrides(Settings(), args)


def test_cli_rejects_portfolio_with_orders() -> None:
    parser = build_parser()
    args = parser.parse_args(["--portfolio", "--order", "buy:AAPL:1"])

    with pytest.raises(ValueError, match="--portfolio"):
        apply_cli_overrides(Settings(), args)


def test_parse_market_order_spec() -> None:
    spec = parse_order_spec("buy:aapl:10")

    assert spec.side is OrderSide.BUY
    assert spec.symbol == "AAPL"
    assert spec.quantity == 10
    assert spec.kind is OrderKind.MARKET
    assert spec.price is None


def test_parse_resting_order_spec() -> None:
    spec = parse_order_spec("SELL:TSLA:5:stop:240.5")

    assert spec.side is OrderSide.SELL
    assert spec.kind is OrderKind.STOP
    assert spec.price == 240.5


@pytest.mark.parametrize(
    "value",
    ["buy:AAPL", "hold:AAPL:1", "buy:AAPL:ten", "buy:AAPL:1:trailing:5", "buy:AAPL:1:market:5"],
)
def test_parse_order_spec_rejects_bad_values(value: str) -> None:
    with pytest.raises(ValueError):
        parse_order_spec(value)
