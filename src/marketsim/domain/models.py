"""Core simulation domain models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from marketsim.domain.errors import InsufficientFundsError, InsufficientSharesError

Symbol = str


class OrderSide(StrEnum):
    """Supported order directions."""

    BUY = "buy"
    SELL = "sell"


class OrderKind(StrEnum):
    """Supported order types."""

    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"


class TradeStatus(StrEnum):
    """Outcome of a ledger trade attempt."""

    FILLED = "filled"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_SHARES = "insufficient_shares"


class OrderStatus(StrEnum):
    """Outcome of an order submission."""

    FILLED = "filled"
    RESTING = "resting"
    REJECTED = "rejected"


@dataclass(frozen=True)
class PricePoint:
    """Single timestamped price observation."""

    price: float
    timestamp: datetime
    volume: int | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.price) or self.price <= 0:
            raise ValueError(f"price must be positive, got {self.price}")
        if self.volume is not None and self.volume < 0:
            raise ValueError(f"volume must be non-negative, got {self.volume}")


@dataclass(frozen=True)
class Order:
    """Order intent. Limit and stop orders rest until triggered."""

    order_id: str
    symbol: Symbol
    side: OrderSide
    quantity: int
    kind: OrderKind
    created_at: datetime
    limit_price: float | None = None
    stop_price: float | None = None

    @property
    def trigger_price(self) -> float | None:
        if self.kind is OrderKind.LIMIT:
            return self.limit_price
        if self.kind is OrderKind.STOP:
            return self.stop_price
        return None


@dataclass(frozen=True)
class Position:
    """Display row for a held symbol."""

    symbol: Symbol
    qty: int
    price: float | None = None
    market_value: float = 0.0


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Read-only copy of the ledger used for display and valuation."""

    cash: float
    equity: float
    positions: dict[Symbol, Position] = field(default_factory=dict)

    def quantity(self, symbol: Symbol) -> int:
        position = self.positions.get(symbol)
        return 0 if position is None else position.qty


@dataclass(frozen=True)
class TradeReceipt:
    """Result of a single ledger trade attempt."""

    symbol: Symbol
    side: OrderSide
    quantity: int
    price: float
    status: TradeStatus
    cash_after: float

    @property
    def ok(self) -> bool:
        return self.status is TradeStatus.FILLED

    @property
    def notional(self) -> float:
        return self.quantity * self.price

    def raise_for_status(self) -> None:
        """Raise the matching domain error when the trade was refused."""
        if self.status is TradeStatus.INSUFFICIENT_FUNDS:
            raise InsufficientFundsError(
                f"Not enough cash to buy {self.quantity} {self.symbol} "
                f"(${self.notional:,.2f} > ${self.cash_after:,.2f})"
            )
        if self.status is TradeStatus.INSUFFICIENT_SHARES:
            raise InsufficientSharesError(
                f"Not enough shares to sell {self.quantity} {self.symbol}"
            )


@dataclass(frozen=True)
class OrderResult:
    """Submission result returned by the command surface."""

    order: Order
    status: OrderStatus
    receipt: TradeReceipt | None = None
    reason: str | None = None
