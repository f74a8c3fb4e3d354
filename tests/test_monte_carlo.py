"""Unit tests for analytics.monte_carlo and utils.random."""

import pytest

from barsim.analytics.monte_carlo import monte_carlo, summarize_samples
from barsim.utils.random import Random
from trade_helpers import make_trade


def test_no_trades_no_samples():
    assert monte_carlo([], 10, 5) == []


def test_sample_shape_and_membership():
    trades = [make_trade(110), make_trade(90), make_trade(105)]
    samples = monte_carlo(trades, num_iterations=20, num_samples=7, seed=3)
    assert len(samples) == 20
    assert all(len(s) == 7 for s in samples)
    assert all(t in trades for s in samples for t in s)


def test_same_seed_same_samples():
    trades = [make_trade(100 + i) for i in range(10)]
    assert monte_carlo(trades, 5, 5, seed=42) == monte_carlo(trades, 5, 5, seed=42)
    assert monte_carlo(trades, 5, 5, rng=Random(7)) == monte_carlo(trades, 5, 5, rng=Random(7))


def test_summarize_samples():
    samples = [[make_trade(110), make_trade(110)], [make_trade(90)]]
    stats = summarize_samples(1000, samples)
    assert list(stats.columns) == ["final_capital", "profit_pct", "max_drawdown", "max_drawdown_pct"]
    assert stats["final_capital"].tolist() == pytest.approx([1210, 900])
    assert stats["max_drawdown"].tolist() == pytest.approx([0, -100])


def test_random_ranges():
    rng = Random(1)
    ints = [rng.get_int(2, 4) for _ in range(200)]
    assert set(ints) == {2, 3, 4}
    reals = [rng.get_real(0.5, 1.5) for _ in range(50)]
    assert all(0.5 <= r < 1.5 for r in reals)
