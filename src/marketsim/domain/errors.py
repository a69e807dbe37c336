"""Custom exceptions for the simulation core."""


class SimulatorError(Exception):
    """Base exception for all simulator errors."""


class InvalidQuantityError(SimulatorError):
    """Raised when a share count is not a positive integer."""


class InvalidPriceError(SimulatorError):
    """Raised when a limit, stop or execution price is not positive."""


class InsufficientFundsError(SimulatorError):
    """Raised when a buy costs more than the available cash."""


class InsufficientSharesError(SimulatorError):
    """Raised when a sell exceeds the held share count."""


class NoPriceDataError(SimulatorError):
    """Raised when no tick exists yet for a symbol."""


class UnknownSymbolError(SimulatorError):
    """Raised when a symbol is outside the configured universe."""


class QuoteSourceUnavailableError(SimulatorError):
    """Raised by quote sources on transport or parse failure."""


class InvalidOrderError(SimulatorError):
    """Raised when an order side or kind is not recognised."""
