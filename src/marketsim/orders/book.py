"""Resting limit/stop orders evaluated against each new tick."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import replace

from marketsim.domain.models import Order, OrderKind, OrderSide, Symbol
from marketsim.orders.validation import validate_quantity, validate_trigger_prices


def is_triggered(order: Order, current_price: float) -> bool:
    """Return whether a resting order fires at the given tick price."""
    if order.kind is OrderKind.LIMIT and order.limit_price is not None:
        if order.side is OrderSide.BUY:
            return current_price <= order.limit_price
        return current_price >= order.limit_price
    if order.kind is OrderKind.STOP and order.stop_price is not None:
        if order.side is OrderSide.BUY:
            return current_price >= order.stop_price
        return current_price <= order.stop_price
    return False


class PendingOrderBook:
    """Per-symbol FIFO lists of resting orders.

    Submission and evaluation share one lock, so an order is either fully
    visible to the next evaluation or not submitted yet.
    """

    def __init__(self) -> None:
        self._orders: dict[Symbol, list[Order]] = {}
        self._lock = threading.Lock()

    def submit(self, order: Order) -> None:
        """Validate and append a limit or stop order to its symbol's list."""
        if order.kind is OrderKind.MARKET:
            raise ValueError("Market orders execute immediately and never rest in the book")
        quantity = validate_quantity(order.quantity)
        limit, stop = validate_trigger_prices(order.kind, order.limit_price, order.stop_price)
        order = replace(order, quantity=quantity, limit_price=limit, stop_price=stop)
        with self._lock:
            self._orders.setdefault(order.symbol, []).append(order)

    def evaluate(self, symbol: Symbol, current_price: float) -> list[Order]:
        """Remove and return the orders triggered by current_price, in submission order."""
        with self._lock:
            resting = self._orders.get(symbol)
            if not resting:
                return []
            triggered: list[Order] = []
            remaining: list[Order] = []
            for order in resting:
                if is_triggered(order, current_price):
                    triggered.append(order)
                else:
                    remaining.append(order)
            self._orders[symbol] = remaining
            return triggered

    def resting(self, symbol: Symbol) -> tuple[Order, ...]:
        with self._lock:
            return tuple(self._orders.get(symbol, ()))

    def symbols(self) -> list[Symbol]:
        with self._lock:
            return [symbol for symbol, orders in self._orders.items() if orders]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(orders) for orders in self._orders.values())

    def __iter__(self) -> Iterator[Order]:
        with self._lock:
            snapshot = [order for orders in self._orders.values() for order in orders]
        return iter(snapshot)
