"""
Trade-sequence statistics: capital growth, drawdown, profit factor, expectancy,
system quality. Capital compounds by each trade's growth. Ratios that would be
infinite or undefined are reported as None.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from barsim.core.types import Trade


@dataclass
class Analysis:
    """Aggregate performance of a trade sequence."""
    starting_capital: float
    final_capital: float
    profit: float
    profit_pct: float
    growth: float
    total_trades: int
    bar_count: int
    max_drawdown: float
    max_drawdown_pct: float
    max_risk_pct: Optional[float]
    expectancy: Optional[float]
    rmultiple_std_dev: Optional[float]
    system_quality: Optional[float]
    profit_factor: Optional[float]
    proportion_profitable: float
    percent_profitable: float
    return_on_account: Optional[float]
    average_profit_per_trade: Optional[float]
    num_winning_trades: int
    num_losing_trades: int
    average_winning_trade: float
    average_losing_trade: float
    expected_value: float


def profit_factor(profits: Sequence[float]) -> Optional[float]:
    """Gross profit / gross loss. None when there are no losses."""
    wins = sum(p for p in profits if p > 0)
    losses = sum(-p for p in profits if p <= 0)
    if losses <= 0:
        return None
    return wins / losses


def expectancy(rmultiples: Sequence[float]) -> Optional[float]:
    """Mean R-multiple. None without any R-multiples."""
    if len(rmultiples) == 0:
        return None
    return float(np.mean(rmultiples))


def rmultiple_std_dev(rmultiples: Sequence[float]) -> Optional[float]:
    """Population standard deviation of R-multiples."""
    if len(rmultiples) == 0:
        return None
    return float(np.std(rmultiples))


def system_quality(rmultiples: Sequence[float]) -> Optional[float]:
    """Expectancy divided by R-multiple std dev. None if the std dev is zero."""
    exp = expectancy(rmultiples)
    std = rmultiple_std_dev(rmultiples)
    if exp is None or std is None or std == 0:
        return None
    return exp / std


def analyze(starting_capital: float, trades: Sequence[Trade]) -> Analysis:
    """Analyze a sequence of trades, compounding `starting_capital` by each trade's growth."""
    working_capital = starting_capital
    peak_capital = starting_capital
    bar_count = 0
    max_drawdown = 0.0
    max_drawdown_pct = 0.0
    max_risk_pct: Optional[float] = None
    total_profits = 0.0
    total_losses = 0.0
    num_winning = 0
    num_losing = 0

    for trade in trades:
        if trade.risk_pct is not None:
            max_risk_pct = trade.risk_pct if max_risk_pct is None else max(max_risk_pct, trade.risk_pct)
        working_capital *= trade.growth
        bar_count += trade.holding_period

        if working_capital < peak_capital:
            drawdown = working_capital - peak_capital
        else:
            peak_capital = working_capital
            drawdown = 0.0

        if trade.profit > 0:
            total_profits += trade.profit
            num_winning += 1
        else:
            total_losses += trade.profit
            num_losing += 1

        max_drawdown = min(drawdown, max_drawdown)
        max_drawdown_pct = min(drawdown / peak_capital * 100.0, max_drawdown_pct)

    total_trades = len(trades)
    rmultiples: List[float] = [t.rmultiple for t in trades if t.rmultiple is not None]

    profit = working_capital - starting_capital
    profit_pct = profit / starting_capital * 100.0
    proportion_winning = num_winning / total_trades if total_trades > 0 else 0.0
    proportion_losing = num_losing / total_trades if total_trades > 0 else 0.0
    average_winning = total_profits / num_winning if num_winning > 0 else 0.0
    average_losing = total_losses / num_losing if num_losing > 0 else 0.0

    return Analysis(
        starting_capital=starting_capital,
        final_capital=working_capital,
        profit=profit,
        profit_pct=profit_pct,
        growth=working_capital / starting_capital,
        total_trades=total_trades,
        bar_count=bar_count,
        max_drawdown=max_drawdown,
        max_drawdown_pct=max_drawdown_pct,
        max_risk_pct=max_risk_pct,
        expectancy=expectancy(rmultiples),
        rmultiple_std_dev=rmultiple_std_dev(rmultiples),
        system_quality=system_quality(rmultiples),
        profit_factor=profit_factor([t.profit for t in trades]),
        proportion_profitable=proportion_winning,
        percent_profitable=proportion_winning * 100.0,
        return_on_account=profit_pct / abs(max_drawdown_pct) if max_drawdown_pct != 0 else None,
        average_profit_per_trade=profit / total_trades if total_trades > 0 else None,
        num_winning_trades=num_winning,
        num_losing_trades=num_losing,
        average_winning_trade=average_winning,
        average_losing_trade=average_losing,
        expected_value=proportion_winning * average_winning + proportion_losing * average_losing,
    )
