"""
Walk-forward optimization: optimize on an in-sample window, trade the
following out-of-sample window with the winning parameters, roll forward by
the out-of-sample size and repeat. Only out-of-sample trades are reported.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from barsim.backtesting.engine import backtest
from barsim.backtesting.optimize import ObjectiveFn, OptimizationOptions, ParameterDef, optimize
from barsim.core.types import Trade
from barsim.data.loader import to_frame
from barsim.strategies.base import BaseStrategy

logger = logging.getLogger("barsim.backtest.walk_forward")


@dataclass
class WalkForwardWindow:
    """Single in-sample (train) / out-of-sample (test) split, as bar offsets [start, end)."""
    train_start: int
    train_end: int
    test_start: int
    test_end: int
    best_parameter_values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WalkForwardResult:
    trades: List[Trade] = field(default_factory=list)
    windows: List[WalkForwardWindow] = field(default_factory=list)


def split_windows(n_bars: int, in_sample_size: int, out_sample_size: int) -> List[WalkForwardWindow]:
    """
    Rolling windows: in-sample of `in_sample_size` bars followed by out-of-sample of
    `out_sample_size` bars, advancing by `out_sample_size`. A window whose
    out-of-sample part would be short is not produced.
    """
    if in_sample_size < 1 or out_sample_size < 1:
        raise ValueError("in_sample_size and out_sample_size must both be at least 1")
    windows = []
    start = 0
    while start + in_sample_size + out_sample_size <= n_bars:
        windows.append(WalkForwardWindow(
            train_start=start,
            train_end=start + in_sample_size,
            test_start=start + in_sample_size,
            test_end=start + in_sample_size + out_sample_size,
        ))
        start += out_sample_size
    return windows


def walk_forward_optimize(
    strategy: BaseStrategy,
    parameters: Sequence[ParameterDef],
    objective_fn: ObjectiveFn,
    input_series: pd.DataFrame,
    in_sample_size: int,
    out_sample_size: int,
    options: Optional[OptimizationOptions] = None,
) -> WalkForwardResult:
    """Run a rolling walk-forward optimization and collect the out-of-sample trades."""
    options = options or OptimizationOptions()
    frame = to_frame(input_series)
    result = WalkForwardResult()

    for window in split_windows(len(frame), in_sample_size, out_sample_size):
        in_sample = frame.iloc[window.train_start:window.train_end].reset_index(drop=True)
        out_sample = frame.iloc[window.test_start:window.test_end].reset_index(drop=True)

        optimized = optimize(strategy, parameters, objective_fn, in_sample, options)
        window.best_parameter_values = optimized.best_parameter_values

        out_trades = backtest(
            strategy.with_parameters(**optimized.best_parameter_values),
            out_sample,
            options.backtest_options,
        )
        logger.info(
            "Window in=[%d, %d) out=[%d, %d): params=%s, %d out-of-sample trades",
            window.train_start, window.train_end, window.test_start, window.test_end,
            optimized.best_parameter_values, len(out_trades),
        )
        result.trades.extend(out_trades)
        result.windows.append(window)

    return result
