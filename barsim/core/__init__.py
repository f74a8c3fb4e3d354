"""Core: config, types, errors, logging."""

from barsim.core.config import load_config, Config
from barsim.core.errors import BacktestError, PreconditionError, DataError
from barsim.core.types import (
    Bar,
    ExitReason,
    Position,
    TimestampedValue,
    Trade,
    TradeDirection,
)
from barsim.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "BacktestError",
    "PreconditionError",
    "DataError",
    "Bar",
    "ExitReason",
    "Position",
    "TimestampedValue",
    "Trade",
    "TradeDirection",
    "setup_logging",
]
