"""Authoritative cash and position ledger."""

from __future__ import annotations

import json
import logging
import math
import threading
from collections.abc import Mapping
from typing import Any, Self

from marketsim.domain.models import (
    OrderSide,
    PortfolioSnapshot,
    Position,
    Symbol,
    TradeReceipt,
    TradeStatus,
)
from marketsim.orders.validation import validate_price, validate_quantity
from marketsim.state.store import KeyValueStore

DEFAULT_STARTING_CASH = 10_000.0
PORTFOLIO_STATE_KEY = "portfolio"

logger = logging.getLogger("marketsim.ledger")


class PortfolioLedger:
    """Sole owner of cash and share counts.

    Every trade is all-or-nothing and runs under one lock, so cash shared by
    all symbols is never mutated concurrently. Successful trades are written
    to the key-value store before the lock is released, so stored records
    follow trade order. A failing store is logged and does not undo the
    trade.
    """

    def __init__(
        self,
        cash: float = DEFAULT_STARTING_CASH,
        positions: Mapping[Symbol, int] | None = None,
        store: KeyValueStore | None = None,
        state_key: str = PORTFOLIO_STATE_KEY,
    ) -> None:
        if not math.isfinite(cash) or cash < 0:
            raise ValueError("cash must be a non-negative number")
        self._cash = float(cash)
        self._positions: dict[Symbol, int] = {}
        for symbol, qty in (positions or {}).items():
            if int(qty) < 0:
                raise ValueError(f"position for {symbol} must be non-negative")
            if int(qty) > 0:
                self._positions[symbol] = int(qty)
        self.store = store
        self.state_key = state_key
        self._lock = threading.Lock()

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        state_key: str = PORTFOLIO_STATE_KEY,
        starting_cash: float = DEFAULT_STARTING_CASH,
    ) -> Self:
        """Restore the ledger from the store, defaulting when absent or malformed."""
        cash, positions = decode_portfolio_record(store.get(state_key), starting_cash)
        return cls(cash=cash, positions=positions, store=store, state_key=state_key)

    @property
    def cash(self) -> float:
        return self._cash

    def position(self, symbol: Symbol) -> int:
        with self._lock:
            return self._positions.get(symbol, 0)

    def positions(self) -> dict[Symbol, int]:
        with self._lock:
            return dict(self._positions)

    def attempt_trade(
        self,
        symbol: Symbol,
        side: OrderSide,
        quantity: int,
        price: float,
    ) -> TradeReceipt:
        """Execute a whole-share trade at price, or refuse it without side effects."""
        quantity = validate_quantity(quantity)
        price = validate_price(price)
        side = OrderSide(side)
        total = quantity * price
        with self._lock:
            held = self._positions.get(symbol, 0)
            if side is OrderSide.BUY:
                if total > self._cash:
                    return self._receipt(symbol, side, quantity, price, TradeStatus.INSUFFICIENT_FUNDS)
                self._cash -= total
                self._positions[symbol] = held + quantity
            else:
                if quantity > held:
                    return self._receipt(symbol, side, quantity, price, TradeStatus.INSUFFICIENT_SHARES)
                self._cash += total
                remaining = held - quantity
                if remaining == 0:
                    self._positions.pop(symbol, None)
                else:
                    self._positions[symbol] = remaining
            receipt = self._receipt(symbol, side, quantity, price, TradeStatus.FILLED)
            self._persist(self.to_record())
        return receipt

    def snapshot(self, prices: Mapping[Symbol, float | None] | None = None) -> PortfolioSnapshot:
        """Copy of cash and holdings; unpriced holdings are valued at zero."""
        marks = prices or {}
        with self._lock:
            cash = self._cash
            holdings = dict(self._positions)
        positions: dict[Symbol, Position] = {}
        market_value = 0.0
        for symbol, qty in holdings.items():
            price = marks.get(symbol)
            value = qty * float(price) if price is not None else 0.0
            market_value += value
            positions[symbol] = Position(symbol=symbol, qty=qty, price=price, market_value=value)
        return PortfolioSnapshot(cash=cash, equity=cash + market_value, positions=positions)

    def to_record(self) -> dict[str, Any]:
        return {
            "cash": self._cash,
            "positions": [[symbol, qty] for symbol, qty in self._positions.items()],
        }

    def _persist(self, record: dict[str, Any]) -> None:
        if self.store is None:
            return
        try:
            self.store.set(self.state_key, json.dumps(record))
        except Exception as exc:
            logger.error("Failed to persist portfolio under %r: %s", self.state_key, exc)

    def _receipt(
        self,
        symbol: Symbol,
        side: OrderSide,
        quantity: int,
        price: float,
        status: TradeStatus,
    ) -> TradeReceipt:
        return TradeReceipt(
            symbol=symbol,
            side=side,
            quantity=quantity,
            price=price,
            status=status,
            cash_after=self._cash,
        )


def decode_portfolio_record(
    raw: str | None,
    starting_cash: float = DEFAULT_STARTING_CASH,
) -> tuple[float, dict[Symbol, int]]:
    """Parse a stored portfolio record into cash and positions.

    Positions may be a list of [symbol, qty] pairs or a JSON string of such
    pairs under either "positions" or "portfolio".
    """
    if raw is None:
        return float(starting_cash), {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Stored portfolio is not valid JSON; starting fresh")
        return float(starting_cash), {}
    if not isinstance(parsed, dict):
        logger.warning("Stored portfolio is not an object; starting fresh")
        return float(starting_cash), {}

    cash = parsed.get("cash")
    if (
        isinstance(cash, bool)
        or not isinstance(cash, (int, float))
        or not math.isfinite(cash)
        or cash < 0
    ):
        cash = float(starting_cash)

    pairs = parsed.get("positions", parsed.get("portfolio", []))
    if isinstance(pairs, str):
        try:
            pairs = json.loads(pairs)
        except ValueError:
            logger.warning("Stored positions are not valid JSON; ignoring them")
            pairs = []
    if not isinstance(pairs, list):
        pairs = []

    positions: dict[Symbol, int] = {}
    for entry in pairs:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            logger.warning("Skipping malformed stored position %r", entry)
            continue
        symbol, qty = entry
        if not isinstance(symbol, str) or isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
            logger.warning("Skipping malformed stored position %r", entry)
            continue
        if qty > 0:
            positions[symbol] = qty
    return float(cash), positions
