"""
Risk tracker: stop/target levels, percentage risk and R-multiples.
R-multiple = profit / initial unit risk (unit risk = |entry - initial stop|).
"""

from __future__ import annotations
from datetime import datetime
from typing import Optional

from barsim.core.types import Position, TimestampedValue, TradeDirection


def stop_level(direction: TradeDirection, reference_price: float, distance: float) -> float:
    """Stop price `distance` away from `reference_price`, on the losing side of the trade."""
    if direction == TradeDirection.LONG:
        return reference_price - distance
    return reference_price + distance


def target_level(direction: TradeDirection, entry_price: float, distance: float) -> float:
    """Profit target `distance` away from entry, on the winning side of the trade."""
    if direction == TradeDirection.LONG:
        return entry_price + distance
    return entry_price - distance


def tighter_stop(direction: TradeDirection, first: Optional[float], second: Optional[float]) -> Optional[float]:
    """The stop closer to price (most protective). Either may be None."""
    if first is None:
        return second
    if second is None:
        return first
    if direction == TradeDirection.LONG:
        return max(first, second)
    return min(first, second)


def ratchet_stop(direction: TradeDirection, current: Optional[float], candidate: float) -> float:
    """Move the stop to `candidate` only if that favours the trade. Never loosens."""
    if current is None:
        return candidate
    if direction == TradeDirection.LONG:
        return candidate if candidate > current else current
    return candidate if candidate < current else current


def stop_breached(direction: TradeDirection, stop_price: float, high: float, low: float) -> bool:
    """Intrabar stop check: long uses the bar low, short the bar high."""
    if direction == TradeDirection.LONG:
        return low <= stop_price
    return high >= stop_price


def target_breached(direction: TradeDirection, target: float, high: float, low: float) -> bool:
    """Intrabar profit target check: long uses the bar high, short the bar low."""
    if direction == TradeDirection.LONG:
        return high >= target
    return low <= target


def risk_pct(price: float, stop_price: float) -> Optional[float]:
    """|price - stop| as a percentage of price. None if price is zero."""
    if price == 0:
        return None
    return abs(price - stop_price) / price * 100.0


def r_multiple(profit: float, unit_risk: Optional[float]) -> Optional[float]:
    """Profit in units of risk. None when there is no risk to measure against."""
    if unit_risk is None or unit_risk == 0:
        return None
    return profit / unit_risk


def _freeze_initial_risk(position: Position) -> None:
    unit_risk = abs(position.entry_price - position.cur_stop_price)
    position.initial_stop_price = position.cur_stop_price
    position.initial_unit_risk = unit_risk
    position.initial_risk_pct = risk_pct(position.entry_price, position.cur_stop_price)
    position.cur_risk_pct = position.initial_risk_pct
    position.cur_r_multiple = 0.0 if unit_risk > 0 else None


def init_position_risk(position: Position, time: datetime, record_risk: bool = False) -> None:
    """
    Freeze the initial unit risk and risk pct from the position's stop and
    initialise the current risk fields. No-op when the position has no stop.
    """
    if not position.has_stop:
        return
    _freeze_initial_risk(position)
    if record_risk and position.cur_risk_pct is not None:
        position.risk_series = [TimestampedValue(time=time, value=position.cur_risk_pct)]


def init_late_stop_risk(position: Position, record_risk: bool = False) -> None:
    """
    Same as init_position_risk for a stop first placed after entry (a trailing
    rule that started returning a distance). The risk series starts empty and
    gets its first point at the next mark-to-market.
    """
    if not position.has_stop:
        return
    _freeze_initial_risk(position)
    if record_risk:
        position.risk_series = []


def update_position_risk(position: Position, close: float, time: datetime) -> None:
    """Recompute current risk pct and R-multiple from the latest close and current stop."""
    if not position.has_stop:
        return
    position.cur_risk_pct = risk_pct(close, position.cur_stop_price)
    position.cur_r_multiple = r_multiple(position.profit, abs(close - position.cur_stop_price))
    if position.risk_series is not None and position.cur_risk_pct is not None:
        position.risk_series.append(TimestampedValue(time=time, value=position.cur_risk_pct))
