"""Simulation controller: tick cycle and command surface."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import pandas as pd

from marketsim.domain.errors import InvalidOrderError, NoPriceDataError, UnknownSymbolError
from marketsim.domain.events import TradeEvent
from marketsim.domain.models import (
    Order,
    OrderKind,
    OrderResult,
    OrderSide,
    OrderStatus,
    PortfolioSnapshot,
    PricePoint,
    Symbol,
    TradeReceipt,
)
from marketsim.feed.price_feed import PriceFeed, utc_now
from marketsim.history.store import PriceHistoryStore
from marketsim.history.timeframe import window
from marketsim.ledger.portfolio import PortfolioLedger
from marketsim.logging.event_sink import EventSink, NullEventSink
from marketsim.logging.logger import HumanLogger
from marketsim.orders.book import PendingOrderBook
from marketsim.orders.validation import validate_quantity, validate_trigger_prices


class Simulator:
    """Own the feed, history, resting orders and ledger for one run.

    A single re-entrant lock serializes each symbol's append/evaluate/execute
    cycle against order submission. The order book only reaches cash
    through `PortfolioLedger.attempt_trade`.
    """

    def __init__(
        self,
        feed: PriceFeed,
        history: PriceHistoryStore,
        book: PendingOrderBook,
        ledger: PortfolioLedger,
        clock: Callable[[], datetime] = utc_now,
        human_logger: HumanLogger | None = None,
        event_sink: EventSink | None = None,
        run_id: str | None = None,
    ) -> None:
        self.feed = feed
        self.history = history
        self.book = book
        self.ledger = ledger
        self.clock = clock
        self.human_logger = human_logger or HumanLogger()
        self.event_sink = event_sink or NullEventSink()
        self.run_id = run_id or uuid4().hex
        self._lock = threading.RLock()

    @property
    def symbols(self) -> list[Symbol]:
        return list(self.feed.symbols)

    def prime(self) -> None:
        """Record opening prices as the first tick of every symbol."""
        for symbol, point in self.feed.prime().items():
            self.process_tick(symbol, point)

    def tick(self) -> list[TradeReceipt]:
        """Advance every symbol by one tick and execute what it triggers."""
        receipts: list[TradeReceipt] = []
        ticks = self.feed.poll()
        for symbol, point in ticks.items():
            receipts.extend(self.process_tick(symbol, point))
        self.human_logger.cycle_summary(len(ticks), len(receipts), len(self.book))
        return receipts

    def process_tick(self, symbol: Symbol, point: PricePoint) -> list[TradeReceipt]:
        """Append the tick, then fire and execute triggered orders in FIFO order."""
        with self._lock:
            self.history.append(symbol, point)
            self.human_logger.tick(symbol, point.price)
            self._emit(
                "tick",
                {
                    "symbol": symbol,
                    "price": point.price,
                    "timestamp": point.timestamp.isoformat(),
                },
            )
            receipts: list[TradeReceipt] = []
            for order in self.book.evaluate(symbol, point.price):
                receipt = self.ledger.attempt_trade(
                    order.symbol, order.side, order.quantity, point.price
                )
                if receipt.ok:
                    self._record_fill(order, receipt)
                    receipts.append(receipt)
                    continue
                # Failed triggered orders are dropped, not retried or re-queued.
                self.human_logger.discarded(order.order_id, symbol, receipt.status.value)
                self._emit(
                    "order_discarded",
                    {
                        "order_id": order.order_id,
                        "symbol": symbol,
                        "side": order.side.value,
                        "qty": order.quantity,
                        "price": point.price,
                        "reason": receipt.status.value,
                    },
                )
            return receipts

    def submit_order(
        self,
        symbol: Symbol,
        side: OrderSide | str,
        quantity: Any,
        kind: OrderKind | str = OrderKind.MARKET,
        limit_price: Any = None,
        stop_price: Any = None,
    ) -> OrderResult:
        """Execute a market order now or rest a limit/stop order in the book.

        Raises InvalidOrderError, InvalidQuantityError, InvalidPriceError,
        NoPriceDataError or UnknownSymbolError without changing any state.
        """
        self._require_symbol(symbol)
        try:
            side = OrderSide(str(side).strip().lower())
            kind = OrderKind(str(kind).strip().lower())
        except ValueError as exc:
            raise InvalidOrderError(f"Invalid order for {symbol}: {exc}") from exc
        qty = validate_quantity(quantity)
        limit, stop = validate_trigger_prices(kind, limit_price, stop_price)
        with self._lock:
            order = Order(
                order_id=uuid4().hex,
                symbol=symbol,
                side=side,
                quantity=qty,
                kind=kind,
                created_at=self.clock(),
                limit_price=limit,
                stop_price=stop,
            )
            if kind is OrderKind.MARKET:
                return self._execute_market(order)
            self.book.submit(order)
            self.human_logger.order_submit(symbol, side.value, qty, kind.value, order.trigger_price)
            self._emit(
                "order_resting",
                {
                    "order_id": order.order_id,
                    "symbol": symbol,
                    "side": side.value,
                    "qty": qty,
                    "kind": kind.value,
                    "trigger_price": order.trigger_price,
                },
            )
            return OrderResult(order=order, status=OrderStatus.RESTING)

    def portfolio_snapshot(self) -> PortfolioSnapshot:
        prices = {symbol: self.current_price(symbol) for symbol in self.symbols}
        for symbol in self.ledger.positions():
            prices.setdefault(symbol, self.current_price(symbol))
        return self.ledger.snapshot(prices)

    def current_price(self, symbol: Symbol) -> float | None:
        latest = self.history.latest(symbol)
        if latest is None:
            return None
        return latest.price

    def history_window(
        self,
        symbol: Symbol,
        duration: timedelta | str,
        now: datetime | None = None,
    ) -> list[PricePoint]:
        self._require_symbol(symbol)
        return window(self.history.series(symbol), now or self.clock(), duration)

    def history_frame(self, symbol: Symbol) -> pd.DataFrame:
        self._require_symbol(symbol)
        return self.history.to_frame(symbol)

    def _execute_market(self, order: Order) -> OrderResult:
        price = self.current_price(order.symbol)
        if price is None:
            raise NoPriceDataError(f"No price data available for {order.symbol}")
        self.human_logger.order_submit(order.symbol, order.side.value, order.quantity, order.kind.value)
        receipt = self.ledger.attempt_trade(order.symbol, order.side, order.quantity, price)
        if not receipt.ok:
            self.human_logger.rejected(
                order.symbol, order.side.value, order.quantity, receipt.status.value
            )
            self._emit(
                "order_rejected",
                {
                    "order_id": order.order_id,
                    "symbol": order.symbol,
                    "side": order.side.value,
                    "qty": order.quantity,
                    "price": price,
                    "reason": receipt.status.value,
                },
            )
            return OrderResult(
                order=order,
                status=OrderStatus.REJECTED,
                receipt=receipt,
                reason=receipt.status.value,
            )
        self._record_fill(order, receipt)
        return OrderResult(order=order, status=OrderStatus.FILLED, receipt=receipt)

    def _record_fill(self, order: Order, receipt: TradeReceipt) -> None:
        self.human_logger.fill(
            receipt.symbol, receipt.side.value, receipt.quantity, receipt.price, receipt.cash_after
        )
        self._emit(
            "fill",
            {
                "order_id": order.order_id,
                "symbol": receipt.symbol,
                "side": receipt.side.value,
                "qty": receipt.quantity,
                "kind": order.kind.value,
                "price": receipt.price,
                "cash_after": receipt.cash_after,
            },
        )

    def _require_symbol(self, symbol: Symbol) -> None:
        if symbol not in self.feed.symbols:
            supported = ", ".join(self.feed.symbols)
            raise UnknownSymbolError(f"Unknown symbol '{symbol}'. Supported: {supported}")

    def _emit(self, event_type: str, payload: dict[str, Any]) -> None:
        self.event_sink.emit(TradeEvent(run_id=self.run_id, event_type=event_type, payload=payload))
