"""Backtest engine, short positions."""

import pytest

from barsim.backtesting.engine import BacktestOptions, backtest
from barsim.core.types import ExitReason, TradeDirection
from bar_helpers import RuleStrategy, always_exit, day, enter_short, make_bars, risk_values, stop_values


def test_short_profit_when_price_falls():
    trades = backtest(RuleStrategy(entry=enter_short), make_bars([10, 10, 5]))
    t = trades[0]
    assert t.direction == TradeDirection.SHORT
    assert t.entry_price == 10
    assert t.exit_price == 5
    assert t.profit == 5
    assert t.profit_pct == 50
    assert t.growth == 2
    assert t.exit_reason == ExitReason.FINALIZE


def test_short_loss_when_price_rises():
    t = backtest(RuleStrategy(entry=enter_short), make_bars([10, 10, 20]))[0]
    assert t.profit == -10
    assert t.profit_pct == -100
    assert t.growth == 0.5


def test_short_exit_rule_closes_at_next_open():
    trades = backtest(RuleStrategy(entry=enter_short, exit=always_exit), make_bars([10, 10, 8, 6]))
    t = trades[0]
    assert t.exit_reason == ExitReason.EXIT_RULE
    assert t.exit_time == day(3)
    assert t.exit_price == 6
    assert t.profit == 4


def test_short_stop_loss_uses_intrabar_high():
    strategy = RuleStrategy(entry=enter_short, stop=lambda args: args.entry_price * 0.2)
    bars = make_bars([100, 100, 110, 105, 105], highs=[100, 100, 110, 121, 105])
    trades = backtest(strategy, bars)
    t = trades[0]
    assert t.exit_reason == ExitReason.STOP_LOSS
    assert t.exit_time == day(3)
    assert t.exit_price == 120
    assert t.stop_price == 120
    assert t.rmultiple == pytest.approx(-1)


def test_short_profit_target_uses_intrabar_low():
    strategy = RuleStrategy(entry=enter_short, target=lambda args: args.entry_price * 0.1)
    bars = make_bars([100, 100, 100, 95, 95], lows=[100, 100, 100, 89, 95])
    trades = backtest(strategy, bars)
    t = trades[0]
    assert t.exit_reason == ExitReason.PROFIT_TARGET
    assert t.exit_time == day(3)
    assert t.exit_price == pytest.approx(90)
    assert t.profit == pytest.approx(10)


def test_short_conditional_entry_needs_low_to_reach_price():
    def entry(enter_position, args):
        enter_position(direction="short", entry_price=3)

    assert backtest(RuleStrategy(entry=entry), make_bars([5, 5, 5, 5])) == []

    bars = make_bars([5, 5, 5, 5], lows=[5, 5, 3, 5])
    trades = backtest(RuleStrategy(entry=entry), bars)
    assert trades[0].entry_time == day(2)
    assert trades[0].entry_price == 5


def test_short_trailing_stop_only_moves_down():
    strategy = RuleStrategy(entry=enter_short, trailing=lambda args: args.bar.close * 0.2)
    bars = make_bars([100, 100, 90, 80, 85, 95])
    trades = backtest(strategy, bars, BacktestOptions(record_stop_price=True))
    t = trades[0]
    series = stop_values(t)
    assert series == [120, 108, 96, 96, 96]
    assert all(b <= a for a, b in zip(series, series[1:]))
    assert t.exit_reason == ExitReason.FINALIZE


def test_short_trailing_stop_hit_reports_stop_loss():
    strategy = RuleStrategy(entry=enter_short, trailing=lambda args: args.bar.close * 0.2)
    bars = make_bars([100, 100, 90, 80, 85, 100])
    t = backtest(strategy, bars)[0]
    assert t.exit_reason == ExitReason.STOP_LOSS
    assert t.exit_time == day(5)
    assert t.exit_price == pytest.approx(96)
    assert t.profit == pytest.approx(4)


def test_short_tighter_stop_is_the_lower_one():
    strategy = RuleStrategy(
        entry=enter_short,
        stop=lambda args: args.entry_price * 0.5,
        trailing=lambda args: args.bar.close * 0.2,
    )
    t = backtest(strategy, make_bars([100, 100, 100]))[0]
    assert t.stop_price == pytest.approx(120)


def test_short_risk_series_with_fixed_stop():
    strategy = RuleStrategy(entry=enter_short, stop=lambda args: args.entry_price * 0.2)
    bars = make_bars([100, 100, 50, 110])
    t = backtest(strategy, bars, BacktestOptions(record_risk=True))[0]
    # |close - 120| / close
    assert risk_values(t) == [20, 140, 9.09]
    assert t.rmultiple == pytest.approx(-0.5)
