"""Runtime wiring and tick loop orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from marketsim.config import Settings
from marketsim.domain.errors import SimulatorError
from marketsim.domain.events import TradeEvent
from marketsim.domain.models import OrderKind, OrderResult, OrderSide
from marketsim.engine.scheduler import TickScheduler
from marketsim.engine.simulator import Simulator
from marketsim.feed.base import QuoteSource
from marketsim.feed.finnhub import FinnhubQuoteSource
from marketsim.feed.price_feed import PriceFeed
from marketsim.feed.static import StaticQuoteSource
from marketsim.feed.synthetic import RandomWalkModel
from marketsim.history.store import PriceHistoryStore
from marketsim.ledger.portfolio import PortfolioLedger
from marketsim.logging.event_sink import EventSink, JsonlEventSink, generate_plotly_report
from marketsim.logging.logger import HumanLogger
from marketsim.orders.book import PendingOrderBook
from marketsim.state.sqlite_store import SqliteKeyValueStore
from marketsim.state.store import KeyValueStore


@dataclass(frozen=True)
class OrderSpec:
    """Order requested on the command line."""

    side: OrderSide
    symbol: str
    quantity: int
    kind: OrderKind = OrderKind.MARKET
    price: float | None = None


def run(settings: Settings, orders: list[OrderSpec] | None = None) -> int:
    """Prime prices, submit requested orders and tick until stopped."""
    run_id = uuid4().hex
    run_directory = Path(settings.events_dir) / run_id
    run_directory.mkdir(parents=True, exist_ok=True)
    events_path = run_directory / "events.jsonl"
    report_path = run_directory / "report.html"

    event_sink = JsonlEventSink(str(events_path))
    human_logger = HumanLogger(level=settings.log_level)
    state_store = build_state_store(settings)

    exit_code = 0
    try:
        simulator = build_simulator(
            settings,
            state_store=state_store,
            human_logger=human_logger,
            event_sink=event_sink,
            run_id=run_id,
        )
        human_logger.run_started(run_id, simulator.symbols, settings.quote_source)
        event_sink.emit(
            TradeEvent(
                run_id=run_id,
                event_type="run_started",
                payload={"symbols": simulator.symbols, "quote_source": settings.quote_source},
            )
        )
        simulator.prime()
        for spec in orders or []:
            submit_order_spec(simulator, spec, human_logger)

        scheduler = TickScheduler(
            simulator.tick,
            interval_seconds=settings.interval_seconds,
            max_ticks=settings.max_ticks,
        )
        scheduler.start()
        try:
            while scheduler.running:
                scheduler.join(timeout=0.5)
        finally:
            scheduler.stop()
        if scheduler.error is not None:
            raise scheduler.error
        log_portfolio(simulator, human_logger)
    except KeyboardInterrupt:
        exit_code = 0
    except Exception as exc:
        human_logger.error(str(exc))
        event_sink.emit(
            TradeEvent(run_id=run_id, event_type="error", payload={"message": str(exc)})
        )
        exit_code = 1
    finally:
        try:
            generate_plotly_report(str(events_path), str(report_path))
        finally:
            state_store.close()

    return exit_code


def show_portfolio(settings: Settings) -> int:
    """Print the persisted cash and positions without ticking."""
    human_logger = HumanLogger(level=settings.log_level)
    state_store = build_state_store(settings)
    try:
        ledger = PortfolioLedger.load(
            state_store,
            state_key=settings.state_key,
            starting_cash=settings.starting_cash,
        )
        snapshot = ledger.snapshot()
        human_logger.portfolio(snapshot.cash, snapshot.equity)
        for symbol, position in sorted(snapshot.positions.items()):
            human_logger.position(symbol, position.qty)
    finally:
        state_store.close()
    return 0


def submit_order_spec(
    simulator: Simulator,
    spec: OrderSpec,
    human_logger: HumanLogger,
) -> OrderResult | None:
    """Submit one command-line order; rejections are logged, not raised."""
    try:
        result = simulator.submit_order(
            spec.symbol,
            spec.side,
            spec.quantity,
            kind=spec.kind,
            limit_price=spec.price if spec.kind is OrderKind.LIMIT else None,
            stop_price=spec.price if spec.kind is OrderKind.STOP else None,
        )
    except SimulatorError as exc:
        human_logger.rejected(spec.symbol, spec.side.value, spec.quantity, str(exc))
        return None
    return result


def log_portfolio(simulator: Simulator, human_logger: HumanLogger) -> None:
    snapshot = simulator.portfolio_snapshot()
    human_logger.portfolio(snapshot.cash, snapshot.equity)
    for symbol, position in sorted(snapshot.positions.items()):
        human_logger.position(symbol, position.qty, position.market_value)


def build_simulator(
    settings: Settings,
    state_store: KeyValueStore,
    human_logger: HumanLogger | None = None,
    event_sink: EventSink | None = None,
    run_id: str | None = None,
) -> Simulator:
    """Wire feed, history, order book and ledger from settings."""
    feed = build_price_feed(settings)
    ledger = PortfolioLedger.load(
        state_store,
        state_key=settings.state_key,
        starting_cash=settings.starting_cash,
    )
    return Simulator(
        feed=feed,
        history=PriceHistoryStore(settings.history_capacity, settings.symbols),
        book=PendingOrderBook(),
        ledger=ledger,
        human_logger=human_logger,
        event_sink=event_sink,
        run_id=run_id,
    )


def build_price_feed(settings: Settings) -> PriceFeed:
    model = RandomWalkModel.seeded(
        settings.seed,
        bias=settings.random_bias,
        max_step_fraction=settings.max_step_fraction,
        floor_fraction=settings.floor_fraction,
    )
    return PriceFeed(
        symbols=settings.symbols,
        model=model,
        quote_source=build_quote_source(settings),
        base_prices=settings.base_prices,
        price_band=settings.price_band(),
        fallback_policy=settings.quote_fallback,
    )


def build_quote_source(settings: Settings) -> QuoteSource | None:
    """Select the external quote source, or None for purely synthetic prices."""
    if settings.quote_source == "finnhub":
        return FinnhubQuoteSource(
            api_key=settings.finnhub_api_key,
            base_url=settings.finnhub_base_url,
            timeout=settings.quote_timeout_seconds,
        )
    if settings.quote_source == "static":
        return StaticQuoteSource(settings.base_prices)
    return None


def build_state_store(settings: Settings) -> KeyValueStore:
    return SqliteKeyValueStore(settings.state_db_path)
