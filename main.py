#!/usr/bin/env python3
"""
Backtesting CLI: backtest | optimize | walk-forward | monte-carlo
Usage:
  python main.py backtest [--config config.yaml] [--csv data.csv]
  python main.py optimize [--config config.yaml] [--csv data.csv]
  python main.py walk-forward [--config config.yaml] [--csv data.csv]
  python main.py monte-carlo [--config config.yaml] [--csv data.csv]
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from barsim.analytics import analyze, monte_carlo, summarize_samples
from barsim.backtesting import (
    BacktestOptions,
    OptimizationOptions,
    OptimizationType,
    OptimizeSearchDirection,
    ParameterDef,
    backtest,
    optimize,
    walk_forward_optimize,
)
from barsim.core.config import Config, load_config
from barsim.core.errors import BacktestError
from barsim.core.logger import setup_logging
from barsim.core.types import Trade
from barsim.data.loader import load_csv
from barsim.strategies.mean_reversion import MeanReversionStrategy
from barsim.utils.telegram import format_summary, send_telegram

logger = logging.getLogger("barsim")


def build_strategy(config: Config) -> MeanReversionStrategy:
    return MeanReversionStrategy(
        {
            "sma_period": config.sma_period,
            "direction": config.direction,
            "stop_loss_pct": config.stop_loss_pct,
            "trailing_stop_pct": config.trailing_stop_pct,
            "profit_target_pct": config.profit_target_pct,
            "entry_offset_pct": config.entry_offset_pct,
            "max_holding_period": config.max_holding_period,
        },
        lookback_period=config.lookback_period,
    )


def load_bars(config: Config) -> pd.DataFrame:
    """Bars from the configured CSV, else the most recent klines from Binance."""
    if config.csv_path is not None:
        return load_csv(config.csv_path, config.date_format)
    # Imported lazily so CSV-only runs do not need exchange access
    from barsim.data.binance import fetch_klines, make_client
    client = make_client(config.binance_api_key, config.binance_api_secret, testnet=config.use_testnet)
    return fetch_klines(client, config.symbol, config.timeframe, limit=config.kline_limit)


def _parameter_def(config: Config) -> ParameterDef:
    start, end, step = config.opt_start, config.opt_end, config.opt_step
    if all(float(v).is_integer() for v in (start, end, step)):
        start, end, step = int(start), int(end), int(step)
    return ParameterDef(config.opt_parameter, start, end, step)


def _optimization_options(config: Config, backtest_options: BacktestOptions) -> OptimizationOptions:
    return OptimizationOptions(
        search_direction=OptimizeSearchDirection(config.opt_search_direction),
        optimization_type=OptimizationType(config.opt_type),
        random_seed=config.opt_seed,
        num_starting_points=config.opt_starting_points,
        backtest_options=backtest_options,
    )


def _objective(trades: List[Trade]) -> float:
    # Objective: profit pct compounded from 1 unit of capital
    return analyze(1.0, trades).profit_pct


def _report(config: Config, title: str, trades: List[Trade]) -> None:
    summary = format_summary(title, analyze(config.starting_capital, trades))
    print(f"\n--- {title} ---")
    print(summary)
    send_telegram(summary, config.telegram_bot_token, config.telegram_chat_id)


def run(mode: str, config_path: Optional[Path], csv_path: Optional[Path]) -> int:
    """Run one CLI mode. Returns the process exit code."""
    config = load_config(config_path, ROOT)
    if csv_path is not None:
        config.csv_path = csv_path
    setup_logging(config.log_level, config.log_dir, config.log_file)

    strategy = build_strategy(config)
    backtest_options = BacktestOptions(
        record_stop_price=config.record_stop_price,
        record_risk=config.record_risk,
    )
    try:
        bars = load_bars(config)
        logger.info("Loaded %d bars (%s)", len(bars), config.csv_path or f"{config.symbol} {config.timeframe}")

        if mode == "backtest":
            _report(config, f"Backtest {config.symbol}", backtest(strategy, bars, backtest_options))

        elif mode == "optimize":
            result = optimize(
                strategy, [_parameter_def(config)], _objective, bars,
                _optimization_options(config, backtest_options),
            )
            print(f"\nBest {config.opt_parameter}: {result.best_parameter_values} -> {result.best_result:.2f}%")
            best = strategy.with_parameters(**result.best_parameter_values)
            _report(config, f"Optimized backtest {config.symbol}", backtest(best, bars, backtest_options))

        elif mode == "walk-forward":
            result = walk_forward_optimize(
                strategy, [_parameter_def(config)], _objective, bars,
                config.in_sample_size, config.out_sample_size,
                _optimization_options(config, backtest_options),
            )
            for window in result.windows:
                print(f"bars [{window.test_start}, {window.test_end}): {window.best_parameter_values}")
            _report(config, f"Walk-forward {config.symbol} ({len(result.windows)} windows)", result.trades)

        elif mode == "monte-carlo":
            trades = backtest(strategy, bars, backtest_options)
            samples = monte_carlo(trades, config.mc_iterations, config.mc_samples, seed=config.mc_seed)
            if not samples:
                logger.error("No trades to resample")
                return 1
            stats = summarize_samples(config.starting_capital, samples)
            print(f"\n--- Monte Carlo {config.symbol}: {len(samples)} x {config.mc_samples} trades ---")
            print(stats.describe(percentiles=[0.05, 0.5, 0.95]).to_string())
            _report(config, f"Backtest {config.symbol}", trades)

    except (BacktestError, ValueError, OSError) as e:
        logger.error("%s failed: %s", mode, e)
        return 1
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Bar-by-bar strategy backtesting CLI")
    parser.add_argument("mode", choices=["backtest", "optimize", "walk-forward", "monte-carlo"], help="What to run")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--csv", type=Path, default=None, help="OHLCV CSV file (overrides config)")
    args = parser.parse_args()
    return run(args.mode, args.config, args.csv)


if __name__ == "__main__":
    exit(main())
