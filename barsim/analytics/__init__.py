"""Analytics: trade statistics, equity curve, drawdown, Monte Carlo resampling."""

from barsim.analytics.metrics import (
    Analysis,
    analyze,
    expectancy,
    profit_factor,
    rmultiple_std_dev,
    system_quality,
)
from barsim.analytics.equity import compute_drawdown, compute_equity_curve
from barsim.analytics.monte_carlo import monte_carlo, summarize_samples

__all__ = [
    "Analysis",
    "analyze",
    "expectancy",
    "profit_factor",
    "rmultiple_std_dev",
    "system_quality",
    "compute_drawdown",
    "compute_equity_curve",
    "monte_carlo",
    "summarize_samples",
]
