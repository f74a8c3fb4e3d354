"""Unit tests for backtesting.walk_forward."""

import pytest

from barsim.backtesting.optimize import ParameterDef
from barsim.backtesting.walk_forward import split_windows, walk_forward_optimize
from bar_helpers import RuleStrategy, day, enter_long, make_bars


def test_split_windows_rolls_by_out_sample_size():
    windows = split_windows(10, 4, 2)
    assert [(w.train_start, w.train_end, w.test_start, w.test_end) for w in windows] == [
        (0, 4, 4, 6),
        (2, 6, 6, 8),
        (4, 8, 8, 10),
    ]


def test_split_windows_drops_short_tail():
    assert len(split_windows(11, 4, 2)) == 3
    assert split_windows(5, 4, 2) == []


def test_split_windows_rejects_empty_sizes():
    with pytest.raises(ValueError):
        split_windows(10, 0, 2)
    with pytest.raises(ValueError):
        split_windows(10, 4, 0)


def exit_after_hold(exit_position, args):
    if args.position.holding_period >= args.parameters["hold"]:
        exit_position()


def test_walk_forward_reports_out_of_sample_trades_only():
    strategy = RuleStrategy(entry=enter_long, exit=exit_after_hold, parameters={"hold": 1})
    bars = make_bars([float(i + 1) for i in range(30)])
    result = walk_forward_optimize(
        strategy,
        [ParameterDef("hold", 1, 3, 1)],
        lambda trades: sum(t.profit for t in trades),
        bars,
        in_sample_size=10,
        out_sample_size=5,
    )
    assert len(result.windows) == 4
    assert [w.test_start for w in result.windows] == [10, 15, 20, 25]
    assert all("hold" in w.best_parameter_values for w in result.windows)
    assert len(result.trades) >= 4
    assert all(t.entry_time >= day(10) for t in result.trades)
    assert strategy.parameters == {"hold": 1}
