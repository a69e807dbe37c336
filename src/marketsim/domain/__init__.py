"""Domain models, errors and event types."""

from .errors import (
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidOrderError,
    InvalidPriceError,
    InvalidQuantityError,
    NoPriceDataError,
    QuoteSourceUnavailableError,
    SimulatorError,
    UnknownSymbolError,
)
from .events import TradeEvent
from .models import (
    Order,
    OrderKind,
    OrderResult,
    OrderSide,
    OrderStatus,
    PortfolioSnapshot,
    Position,
    PricePoint,
    Symbol,
    TradeReceipt,
    TradeStatus,
)

__all__ = [
    "InsufficientFundsError",
    "InsufficientSharesError",
    "InvalidOrderError",
    "InvalidPriceError",
    "InvalidQuantityError",
    "NoPriceDataError",
    "Order",
    "OrderKind",
    "OrderResult",
    "OrderSide",
    "OrderStatus",
    "PortfolioSnapshot",
    "Position",
    "PricePoint",
    "QuoteSourceUnavailableError",
    "SimulatorError",
    "Symbol",
    "TradeEvent",
    "TradeReceipt",
    "TradeStatus",
    "UnknownSymbolError",
]
