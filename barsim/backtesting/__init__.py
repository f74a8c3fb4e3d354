"""Backtesting: bar-by-bar position simulation, optimization, walk-forward."""

from barsim.backtesting.engine import BacktestEngine, BacktestOptions, backtest
from barsim.backtesting.lookback import LookbackWindow
from barsim.backtesting.optimize import (
    OptimizationOptions,
    OptimizationResult,
    OptimizationType,
    OptimizeSearchDirection,
    ParameterDef,
    optimize,
    optimize_single_parameter,
)
from barsim.backtesting.walk_forward import WalkForwardResult, split_windows, walk_forward_optimize

__all__ = [
    "BacktestEngine",
    "BacktestOptions",
    "backtest",
    "LookbackWindow",
    "OptimizationOptions",
    "OptimizationResult",
    "OptimizationType",
    "OptimizeSearchDirection",
    "ParameterDef",
    "optimize",
    "optimize_single_parameter",
    "WalkForwardResult",
    "split_windows",
    "walk_forward_optimize",
]
