"""Equity curve and drawdown series, one point per trade plus the starting point."""

from __future__ import annotations
from typing import List, Sequence

from barsim.core.types import Trade


def compute_equity_curve(starting_capital: float, trades: Sequence[Trade]) -> List[float]:
    """Capital before any trade, then after each trade (compounded by trade growth)."""
    equity_curve = [starting_capital]
    working_capital = starting_capital
    for trade in trades:
        working_capital *= trade.growth
        equity_curve.append(working_capital)
    return equity_curve


def compute_drawdown(starting_capital: float, trades: Sequence[Trade]) -> List[float]:
    """Cash drawdown from the running peak (0 or negative), reset to 0 at each new peak."""
    drawdown = [0.0]
    working_capital = starting_capital
    peak_capital = starting_capital
    for trade in trades:
        working_capital *= trade.growth
        if working_capital < peak_capital:
            drawdown.append(working_capital - peak_capital)
        else:
            peak_capital = working_capital
            drawdown.append(0.0)
    return drawdown
