"""
Parameter optimization: re-run the backtest with parameter overrides and rank
runs by an objective function over their trades.

- GRID: every combination of parameter values.
- HILL_CLIMB: seeded random starting points, each climbing to the best
  neighbouring combination (one step on one parameter) until nothing improves.
- optimize_single_parameter: sweep one parameter and prefer values whose
  neighbourhood performs consistently (mean / std dev per bucket).
"""

from __future__ import annotations
import itertools
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from barsim.backtesting.engine import BacktestOptions, backtest
from barsim.core.types import Trade
from barsim.strategies.base import BaseStrategy
from barsim.utils.random import Random

logger = logging.getLogger("barsim.optimize")

ObjectiveFn = Callable[[List[Trade]], float]

DEFAULT_NUM_BUCKETS = 10


class OptimizeSearchDirection(str, Enum):
    HIGHEST = "highest"
    LOWEST = "lowest"


class OptimizationType(str, Enum):
    GRID = "grid"
    HILL_CLIMB = "hill-climb"


@dataclass(frozen=True)
class ParameterDef:
    """A parameter to sweep from starting_value to ending_value (inclusive) by step_size."""
    name: str
    starting_value: Union[int, float]
    ending_value: Union[int, float]
    step_size: Union[int, float]

    def values(self) -> List[Union[int, float]]:
        if self.step_size <= 0:
            raise ValueError(f"Parameter {self.name!r}: step_size must be positive, got {self.step_size}")
        if self.ending_value < self.starting_value:
            return []
        # Index-based stepping so float steps do not drift past ending_value
        num_steps = int(math.floor((self.ending_value - self.starting_value) / self.step_size + 1e-9))
        integral = isinstance(self.starting_value, int) and isinstance(self.step_size, int)
        values = []
        for i in range(num_steps + 1):
            value = self.starting_value + i * self.step_size
            values.append(value if integral else round(value, 10))
        return values


@dataclass
class OptimizationOptions:
    search_direction: OptimizeSearchDirection = OptimizeSearchDirection.HIGHEST
    optimization_type: OptimizationType = OptimizationType.GRID
    record_trades: bool = False
    record_all_results: bool = False
    random_seed: int = 0
    num_starting_points: int = 4
    num_buckets: int = DEFAULT_NUM_BUCKETS
    backtest_options: Optional[BacktestOptions] = None


@dataclass
class IterationResult:
    """Outcome of one backtest with a particular set of parameter values."""
    parameter_values: Dict[str, Any]
    result: float
    trades: Optional[List[Trade]] = None


@dataclass
class OptimizationResult:
    best_result: float
    best_parameter_values: Dict[str, Any]
    best_trades: Optional[List[Trade]] = None
    all_results: Optional[List[IterationResult]] = None


def is_better(candidate: float, incumbent: float, direction: OptimizeSearchDirection) -> bool:
    if direction == OptimizeSearchDirection.HIGHEST:
        return candidate > incumbent
    return candidate < incumbent


class _Evaluator:
    """Runs and caches backtests keyed by grid coordinates."""

    def __init__(
        self,
        strategy: BaseStrategy,
        parameters: Sequence[ParameterDef],
        objective_fn: ObjectiveFn,
        input_series: pd.DataFrame,
        options: OptimizationOptions,
    ):
        self.strategy = strategy
        self.parameters = list(parameters)
        self.value_lists = [p.values() for p in self.parameters]
        self.objective_fn = objective_fn
        self.input_series = input_series
        self.options = options
        self.cache: Dict[Tuple[int, ...], IterationResult] = {}
        self.history: List[IterationResult] = []
        for p, values in zip(self.parameters, self.value_lists):
            if not values:
                raise ValueError(f"Parameter {p.name!r} has no values between {p.starting_value} and {p.ending_value}")

    def evaluate(self, coords: Tuple[int, ...]) -> IterationResult:
        if coords in self.cache:
            return self.cache[coords]
        values = {p.name: vals[i] for p, vals, i in zip(self.parameters, self.value_lists, coords)}
        trades = backtest(self.strategy.with_parameters(**values), self.input_series, self.options.backtest_options)
        result = IterationResult(parameter_values=values, result=self.objective_fn(trades), trades=trades)
        logger.debug("Evaluated %s -> %s", values, result.result)
        self.cache[coords] = result
        self.history.append(result)
        return result


def _grid_search(evaluator: _Evaluator, direction: OptimizeSearchDirection) -> IterationResult:
    best: Optional[IterationResult] = None
    for coords in itertools.product(*(range(len(v)) for v in evaluator.value_lists)):
        result = evaluator.evaluate(coords)
        if best is None or is_better(result.result, best.result, direction):
            best = result
    return best


def _neighbours(coords: Tuple[int, ...], sizes: Sequence[int]) -> List[Tuple[int, ...]]:
    out = []
    for axis, size in enumerate(sizes):
        for delta in (-1, 1):
            index = coords[axis] + delta
            if 0 <= index < size:
                out.append(coords[:axis] + (index,) + coords[axis + 1:])
    return out


def _hill_climb(evaluator: _Evaluator, options: OptimizationOptions) -> IterationResult:
    direction = options.search_direction
    rng = Random(options.random_seed)
    sizes = [len(v) for v in evaluator.value_lists]
    best: Optional[IterationResult] = None

    for _ in range(max(1, options.num_starting_points)):
        coords = tuple(rng.get_int(0, size - 1) for size in sizes)
        if coords in evaluator.cache:
            continue
        current = evaluator.evaluate(coords)
        while True:
            best_neighbour: Optional[Tuple[Tuple[int, ...], IterationResult]] = None
            for neighbour in _neighbours(coords, sizes):
                if neighbour in evaluator.cache:
                    continue
                result = evaluator.evaluate(neighbour)
                if best_neighbour is None or is_better(result.result, best_neighbour[1].result, direction):
                    best_neighbour = (neighbour, result)
            if best_neighbour is None or not is_better(best_neighbour[1].result, current.result, direction):
                break
            coords, current = best_neighbour
        if best is None or is_better(current.result, best.result, direction):
            best = current
    return best


def optimize(
    strategy: BaseStrategy,
    parameters: Sequence[ParameterDef],
    objective_fn: ObjectiveFn,
    input_series: pd.DataFrame,
    options: Optional[OptimizationOptions] = None,
) -> OptimizationResult:
    """Find the parameter values that give the best objective value over `input_series`."""
    options = options or OptimizationOptions()
    if not parameters:
        raise ValueError("Expected at least one parameter to optimize")
    evaluator = _Evaluator(strategy, parameters, objective_fn, input_series, options)

    if options.optimization_type == OptimizationType.HILL_CLIMB:
        best = _hill_climb(evaluator, options)
    else:
        best = _grid_search(evaluator, options.search_direction)

    logger.info(
        "Optimization (%s, %s) best %s = %s after %d runs",
        options.optimization_type.value, options.search_direction.value,
        best.parameter_values, best.result, len(evaluator.history),
    )

    all_results = None
    if options.record_all_results:
        all_results = [
            IterationResult(r.parameter_values, r.result, r.trades if options.record_trades else None)
            for r in evaluator.history
        ]
    return OptimizationResult(
        best_result=best.result,
        best_parameter_values=dict(best.parameter_values),
        best_trades=best.trades if options.record_trades else None,
        all_results=all_results,
    )


@dataclass
class SingleParameterIteration:
    iteration_index: int
    parameter_value: Union[int, float]
    performance_metric: float
    trades: Optional[List[Trade]] = None


@dataclass
class SingleParameterResult:
    best_iteration_result: SingleParameterIteration
    iteration_results: List[SingleParameterIteration] = field(default_factory=list)


def _pick_stable_iteration(
    iterations: Sequence[SingleParameterIteration],
    num_buckets: int,
    direction: OptimizeSearchDirection,
) -> int:
    """
    Bucket iterations by parameter value, rank buckets by mean metric / std dev
    (mean negated when searching for the lowest value), and return the index of
    the best iteration inside the best bucket.
    """
    df = pd.DataFrame({
        "iteration_index": [it.iteration_index for it in iterations],
        "parameter_value": [it.parameter_value for it in iterations],
        "metric": [it.performance_metric for it in iterations],
    })
    value_min = df["parameter_value"].min()
    value_range = df["parameter_value"].max() - value_min
    if value_range > 0:
        df["bucket"] = np.floor((df["parameter_value"] - value_min) / value_range * (num_buckets - 1)).astype(int)
    else:
        df["bucket"] = 0

    stats = df.groupby("bucket", sort=True)["metric"].agg(mean="mean", std=lambda s: float(np.std(s)))
    signed_mean = stats["mean"] if direction == OptimizeSearchDirection.HIGHEST else -stats["mean"]
    safe_std = stats["std"].where(stats["std"] > 0, 1.0)
    stats["rank"] = np.where(stats["std"] > 0, signed_mean / safe_std, signed_mean)
    best_bucket = stats["rank"].idxmax()

    members = df[df["bucket"] == best_bucket]
    if direction == OptimizeSearchDirection.HIGHEST:
        row = members.loc[members["metric"].idxmax()]
    else:
        row = members.loc[members["metric"].idxmin()]
    return int(row["iteration_index"])


def optimize_single_parameter(
    strategy: BaseStrategy,
    parameter: ParameterDef,
    objective_fn: ObjectiveFn,
    input_series: pd.DataFrame,
    options: Optional[OptimizationOptions] = None,
) -> SingleParameterResult:
    """Sweep a single parameter and pick the best value from the most stable region."""
    options = options or OptimizationOptions()
    iterations: List[SingleParameterIteration] = []
    for index, value in enumerate(parameter.values()):
        trades = backtest(strategy.with_parameters(**{parameter.name: value}), input_series, options.backtest_options)
        iterations.append(SingleParameterIteration(
            iteration_index=index,
            parameter_value=value,
            performance_metric=objective_fn(trades),
            trades=trades if options.record_trades else None,
        ))
    if not iterations:
        raise ValueError(f"Parameter {parameter.name!r} has no values to sweep")

    best_index = _pick_stable_iteration(iterations, options.num_buckets, options.search_direction)
    logger.info("Single-parameter optimization of %s: best value %s", parameter.name, iterations[best_index].parameter_value)
    return SingleParameterResult(best_iteration_result=iterations[best_index], iteration_results=iterations)
