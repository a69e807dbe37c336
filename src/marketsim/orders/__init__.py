"""Pending order book and order validation."""

from .book import PendingOrderBook, is_triggered
from .validation import validate_price, validate_quantity, validate_trigger_prices

__all__ = [
    "PendingOrderBook",
    "is_triggered",
    "validate_price",
    "validate_quantity",
    "validate_trigger_prices",
]
