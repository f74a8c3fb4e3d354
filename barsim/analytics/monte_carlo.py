"""
Monte Carlo resampling: draw trade sequences with replacement to estimate the
distribution of outcomes (final capital, drawdown) a strategy could have had.
"""

from __future__ import annotations
from typing import List, Optional, Sequence

import pandas as pd

from barsim.analytics.metrics import analyze
from barsim.core.types import Trade
from barsim.utils.random import Random


def monte_carlo(
    trades: Sequence[Trade],
    num_iterations: int,
    num_samples: int,
    rng: Optional[Random] = None,
    seed: int = 0,
) -> List[List[Trade]]:
    """
    Produce `num_iterations` samples of `num_samples` trades drawn with replacement.
    Pass `rng` to share a generator across calls, else one is seeded from `seed`.
    Returns an empty list when there are no trades to draw from.
    """
    population = list(trades)
    if not population:
        return []
    rng = rng or Random(seed)
    last_index = len(population) - 1
    return [
        [population[rng.get_int(0, last_index)] for _ in range(num_samples)]
        for _ in range(num_iterations)
    ]


def summarize_samples(starting_capital: float, samples: Sequence[Sequence[Trade]]) -> pd.DataFrame:
    """One row per sample: final capital, profit pct and max drawdown of that trade sequence."""
    rows = []
    for sample in samples:
        analysis = analyze(starting_capital, sample)
        rows.append({
            "final_capital": analysis.final_capital,
            "profit_pct": analysis.profit_pct,
            "max_drawdown": analysis.max_drawdown,
            "max_drawdown_pct": analysis.max_drawdown_pct,
        })
    return pd.DataFrame(rows, columns=["final_capital", "profit_pct", "max_drawdown", "max_drawdown_pct"])
