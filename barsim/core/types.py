"""
Core data types for bars, positions, and trades.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


class TradeDirection(str, Enum):
    LONG = "long"
    SHORT = "short"


class ExitReason(str, Enum):
    """Why a position was closed. Stop breaches (fixed or trailing) report STOP_LOSS."""
    STOP_LOSS = "stop-loss"
    TRAILING_STOP_LOSS = "trailing-stop-loss"
    PROFIT_TARGET = "profit-target"
    EXIT_RULE = "exit-rule"
    FINALIZE = "finalize"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle."""
    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class TimestampedValue:
    """One point of a per-bar series (risk pct, stop price)."""
    time: datetime
    value: float


@dataclass
class Position:
    """Open position state. Owned by the engine, mutated once per bar."""
    direction: TradeDirection
    entry_time: datetime
    entry_price: float
    profit: float = 0.0
    profit_pct: float = 0.0
    growth: float = 1.0
    holding_period: int = 0
    initial_stop_price: Optional[float] = None
    cur_stop_price: Optional[float] = None
    initial_unit_risk: Optional[float] = None
    initial_risk_pct: Optional[float] = None
    cur_risk_pct: Optional[float] = None
    cur_r_multiple: Optional[float] = None
    profit_target: Optional[float] = None
    risk_series: Optional[List[TimestampedValue]] = None
    stop_price_series: Optional[List[TimestampedValue]] = None

    @property
    def has_stop(self) -> bool:
        return self.cur_stop_price is not None


@dataclass(frozen=True)
class Trade:
    """Closed trade for analytics."""
    direction: TradeDirection
    entry_time: datetime
    entry_price: float
    exit_time: datetime
    exit_price: float
    profit: float
    profit_pct: float
    growth: float
    holding_period: int
    exit_reason: ExitReason
    risk_pct: Optional[float] = None
    rmultiple: Optional[float] = None
    risk_series: Optional[Tuple[TimestampedValue, ...]] = None
    stop_price: Optional[float] = None
    stop_price_series: Optional[Tuple[TimestampedValue, ...]] = None
    profit_target: Optional[float] = None
