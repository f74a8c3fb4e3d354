"""
Exceptions raised by barsim. Strategy callback errors are never wrapped.
"""


class BacktestError(Exception):
    """Base class for fatal simulation errors."""


class PreconditionError(BacktestError):
    """Raised when a run is set up or driven incorrectly (bad input length, wrong state)."""


class DataError(BacktestError, ValueError):
    """Raised when an input bar series is malformed (e.g. missing OHLCV columns)."""
