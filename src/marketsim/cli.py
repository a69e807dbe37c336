"""Command-line interface for the market simulator."""

from __future__ import annotations

import argparse
import sys

from marketsim.config import QUOTE_SOURCES, Settings, parse_symbols
from marketsim.domain.models import OrderKind, OrderSide
from marketsim.feed.price_feed import FALLBACK_POLICIES
from marketsim.runtime import OrderSpec, run, show_portfolio


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(description="Paper-trading market simulator")
    parser.add_argument("--symbols", type=str, help="Comma-separated symbols")
    parser.add_argument("--max-ticks", type=int, help="Stop after a fixed number of ticks")
    parser.add_argument("--interval-seconds", type=float, help="Seconds between ticks")
    parser.add_argument("--seed", type=int, help="Seed for the synthetic price model")
    parser.add_argument("--quote-source", choices=list(QUOTE_SOURCES), help="Price source")
    parser.add_argument(
        "--quote-fallback",
        choices=list(FALLBACK_POLICIES),
        help="Retry the quote source every tick or disable it after the first failure",
    )
    parser.add_argument("--history-capacity", type=int, help="Ticks kept per symbol")
    parser.add_argument("--starting-cash", type=float, help="Cash for a fresh portfolio")
    parser.add_argument("--state-db", type=str, help="SQLite state database path")
    parser.add_argument("--events-dir", type=str, help="Run outputs directory")
    parser.add_argument(
        "--order",
        action="append",
        default=[],
        metavar="SIDE:SYMBOL:QTY[:KIND:PRICE]",
        help="Order submitted after opening prices are set, e.g. buy:AAPL:10 or sell:TSLA:5:stop:240",
    )
    parser.add_argument(
        "--portfolio",
        action="store_true",
        help="List persisted cash and positions, then exit",
    )
    return parser


def parse_order_spec(value: str) -> OrderSpec:
    """Parse SIDE:SYMBOL:QTY[:KIND:PRICE]."""
    parts = [part.strip() for part in value.split(":")]
    if len(parts) not in {3, 5}:
        raise ValueError(f"Invalid order '{value}', expected SIDE:SYMBOL:QTY[:KIND:PRICE]")
    try:
        side = OrderSide(parts[0].lower())
    except ValueError as exc:
        raise ValueError(f"Invalid order side '{parts[0]}' in '{value}'") from exc
    symbol = parts[1].upper()
    try:
        quantity = int(parts[2])
    except ValueError as exc:
        raise ValueError(f"Invalid order quantity '{parts[2]}' in '{value}'") from exc
    if len(parts) == 3:
        return OrderSpec(side=side, symbol=symbol, quantity=quantity)
    try:
        kind = OrderKind(parts[3].lower())
    except ValueError as exc:
        raise ValueError(f"Invalid order kind '{parts[3]}' in '{value}'") from exc
    if kind is OrderKind.MARKET:
        raise ValueError(f"Market orders take no price: '{value}'")
    return OrderSpec(side=side, symbol=symbol, quantity=quantity, kind=kind, price=float(parts[4]))


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI values onto environment-derived settings."""
    overrides: dict[str, object] = {}
    if args.symbols:
        overrides["symbols"] = parse_symbols(args.symbols, settings.symbols)
    if args.max_ticks is not None:
        overrides["max_ticks"] = args.max_ticks
    if args.interval_seconds is not None:
        overrides["interval_seconds"] = args.interval_seconds
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.quote_source:
        overrides["quote_source"] = args.quote_source
    if args.quote_fallback:
        overrides["quote_fallback"] = args.quote_fallback
    if args.history_capacity is not None:
        overrides["history_capacity"] = args.history_capacity
    if args.starting_cash is not None:
        overrides["starting_cash"] = args.starting_cash
    if args.state_db:
        overrides["state_db_path"] = args.state_db
    if args.events_dir:
        overrides["events_dir"] = args.events_dir

    merged = settings.with_overrides(**overrides)
    if args.portfolio and args.order:
        raise ValueError("--portfolio cannot be combined with --order")
    return merged


def main() -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args()
    try:
        settings = apply_cli_overrides(Settings.from_env(), args)
        orders = [parse_order_spec(value) for value in args.order]
    except ValueError as exc:
        print(f"Configuration error: {exc}")
        return 2
    if args.portfolio:
        return show_portfolio(settings)
    return run(settings, orders)


if __name__ == "__main__":
    sys.exit(main())
