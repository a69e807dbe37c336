"""Portfolio ledger."""

from .portfolio import (
    DEFAULT_STARTING_CASH,
    PORTFOLIO_STATE_KEY,
    PortfolioLedger,
    decode_portfolio_record,
)

__all__ = [
    "DEFAULT_STARTING_CASH",
    "PORTFOLIO_STATE_KEY",
    "PortfolioLedger",
    "decode_portfolio_record",
]
