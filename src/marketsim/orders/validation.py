"""Order field validation shared by the book, ledger and command surface."""

from __future__ import annotations

import math
from numbers import Integral, Real
from typing import Any

from marketsim.domain.errors import InvalidPriceError, InvalidQuantityError
from marketsim.domain.models import OrderKind


def validate_quantity(value: Any) -> int:
    """Return a positive whole share count or raise InvalidQuantityError."""
    if isinstance(value, bool):
        raise InvalidQuantityError(f"quantity must be a positive integer, got {value!r}")
    if isinstance(value, Integral):
        quantity = int(value)
    elif isinstance(value, Real) and math.isfinite(float(value)) and float(value).is_integer():
        quantity = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        quantity = int(value.strip())
    else:
        raise InvalidQuantityError(f"quantity must be a positive integer, got {value!r}")
    if quantity <= 0:
        raise InvalidQuantityError(f"quantity must be a positive integer, got {value!r}")
    return quantity


def validate_price(value: Any, *, field_name: str = "price") -> float:
    """Return a positive finite price or raise InvalidPriceError."""
    if value is None or isinstance(value, bool):
        raise InvalidPriceError(f"{field_name} must be a positive number, got {value!r}")
    try:
        price = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidPriceError(f"{field_name} must be a positive number, got {value!r}") from exc
    if not math.isfinite(price) or price <= 0:
        raise InvalidPriceError(f"{field_name} must be a positive number, got {value!r}")
    return price


def validate_trigger_prices(
    kind: OrderKind,
    limit_price: Any = None,
    stop_price: Any = None,
) -> tuple[float | None, float | None]:
    """Validate the price field each order kind requires."""
    if kind is OrderKind.LIMIT:
        return validate_price(limit_price, field_name="limit_price"), None
    if kind is OrderKind.STOP:
        return None, validate_price(stop_price, field_name="stop_price")
    return None, None
