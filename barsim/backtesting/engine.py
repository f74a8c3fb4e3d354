"""
Backtest engine: bar-by-bar position state machine, no lookahead, frictionless fills.

Per bar, once the lookback window is full, exactly one of these runs:
  NONE      entry rule
  ENTER     confirm (conditional) entry at the bar open, set stop/target
  POSITION  stop breach -> trailing ratchet -> target breach -> mark-to-market -> exit rule
  EXIT      close at the bar open
A position still open after the last bar is closed at its close ("finalize").
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from barsim.backtesting.lookback import LookbackWindow
from barsim.core.errors import PreconditionError
from barsim.core.types import Bar, ExitReason, Position, TimestampedValue, Trade, TradeDirection
from barsim.data.loader import to_frame, validate_field_names
from barsim.risk.tracker import (
    init_late_stop_risk,
    init_position_risk,
    r_multiple,
    ratchet_stop,
    stop_breached,
    stop_level,
    target_breached,
    target_level,
    tighter_stop,
    update_position_risk,
)
from barsim.strategies.base import BaseStrategy, EntryRuleArgs, PositionRuleArgs, parse_direction

logger = logging.getLogger("barsim.backtest")


@dataclass(frozen=True)
class BacktestOptions:
    """Optional per-bar recording on open positions."""
    record_stop_price: bool = False
    record_risk: bool = False


class PositionStatus(Enum):
    NONE = "none"
    ENTER = "enter"
    POSITION = "position"
    EXIT = "exit"


def _mark_to_market(position: Position, close: float) -> None:
    if position.direction == TradeDirection.LONG:
        position.profit = close - position.entry_price
        position.growth = close / position.entry_price
    else:
        position.profit = position.entry_price - close
        position.growth = position.entry_price / close
    position.profit_pct = position.profit / position.entry_price * 100.0
    position.holding_period += 1


def finalize_position(position: Position, exit_time: Any, exit_price: float, exit_reason: ExitReason) -> Trade:
    """Convert a closed position into an immutable Trade."""
    if position.direction == TradeDirection.LONG:
        profit = exit_price - position.entry_price
        growth = exit_price / position.entry_price
    else:
        profit = position.entry_price - exit_price
        growth = position.entry_price / exit_price
    return Trade(
        direction=position.direction,
        entry_time=position.entry_time,
        entry_price=position.entry_price,
        exit_time=exit_time,
        exit_price=exit_price,
        profit=profit,
        profit_pct=profit / position.entry_price * 100.0,
        growth=growth,
        holding_period=position.holding_period,
        exit_reason=exit_reason,
        risk_pct=position.initial_risk_pct,
        rmultiple=r_multiple(profit, position.initial_unit_risk),
        risk_series=tuple(position.risk_series) if position.risk_series is not None else None,
        stop_price=position.initial_stop_price,
        stop_price_series=tuple(position.stop_price_series) if position.stop_price_series is not None else None,
        profit_target=position.profit_target,
    )


class _Simulation:
    """State of a single run. Discarded when the run completes."""

    def __init__(self, strategy: BaseStrategy, parameters: Dict[str, Any], options: BacktestOptions):
        self.strategy = strategy
        self.parameters = parameters
        self.options = options
        self.lookback = LookbackWindow(strategy.lookback_period)
        self.status = PositionStatus.NONE
        self.direction = TradeDirection.LONG
        self.conditional_entry_price: Optional[float] = None
        self.position: Optional[Position] = None
        self.trades: List[Trade] = []

    # Callbacks handed to the strategy

    def enter_position(self, direction: Union[TradeDirection, str, None] = TradeDirection.LONG,
                       entry_price: Optional[float] = None) -> None:
        if self.status != PositionStatus.NONE:
            raise PreconditionError(
                f"enter_position called while in state {self.status.value}; can only enter when not in a position"
            )
        self.direction = parse_direction(direction)
        self.conditional_entry_price = entry_price
        self.status = PositionStatus.ENTER

    def exit_position(self) -> None:
        if self.status != PositionStatus.POSITION:
            raise PreconditionError(
                f"exit_position called while in state {self.status.value}; can only exit an open position"
            )
        self.status = PositionStatus.EXIT

    # Per-bar transitions

    def on_bar(self, bar: Any) -> None:
        self.lookback.push(bar)
        if not self.lookback.is_full:
            return
        if self.status == PositionStatus.NONE:
            self.strategy.entry_rule(self.enter_position, EntryRuleArgs(
                bar=bar,
                lookback=self.lookback.snapshot(),
                parameters=self.parameters,
            ))
        elif self.status == PositionStatus.ENTER:
            self._on_enter(bar)
        elif self.status == PositionStatus.POSITION:
            self._on_position(bar)
        elif self.status == PositionStatus.EXIT:
            self._close(bar, bar.open, ExitReason.EXIT_RULE)

    def _rule_args(self, bar: Any) -> PositionRuleArgs:
        return PositionRuleArgs(
            entry_price=self.position.entry_price,
            position=self.position,
            bar=bar,
            lookback=self.lookback.snapshot(),
            parameters=self.parameters,
        )

    def _on_enter(self, bar: Any) -> None:
        target = self.conditional_entry_price
        if target is not None:
            # Conditional entry must be breached intrabar
            if self.direction == TradeDirection.LONG and bar.high < target:
                return
            if self.direction == TradeDirection.SHORT and bar.low > target:
                return

        entry_price = bar.open
        position = Position(direction=self.direction, entry_time=bar.time, entry_price=entry_price)
        self.position = position

        fixed_stop = None
        stop_distance = self.strategy.stop_loss(self._rule_args(bar))
        if stop_distance is not None:
            fixed_stop = stop_level(position.direction, entry_price, stop_distance)

        trailing_stop = None
        trailing_distance = self.strategy.trailing_stop_loss(self._rule_args(bar))
        if trailing_distance is not None:
            trailing_stop = stop_level(position.direction, entry_price, trailing_distance)

        position.cur_stop_price = tighter_stop(position.direction, fixed_stop, trailing_stop)

        if position.has_stop and self.options.record_stop_price:
            position.stop_price_series = [TimestampedValue(time=bar.time, value=position.cur_stop_price)]

        init_position_risk(position, bar.time, self.options.record_risk)

        target_distance = self.strategy.profit_target(self._rule_args(bar))
        if target_distance is not None:
            position.profit_target = target_level(position.direction, entry_price, target_distance)

        self.status = PositionStatus.POSITION
        logger.debug(
            "Entered %s at %s price=%.6g stop=%s target=%s",
            position.direction.value, bar.time, entry_price,
            position.cur_stop_price, position.profit_target,
        )

    def _on_position(self, bar: Any) -> None:
        position = self.position

        if position.has_stop:
            if stop_breached(position.direction, position.cur_stop_price, bar.high, bar.low):
                self._close(bar, position.cur_stop_price, ExitReason.STOP_LOSS)
                return

        trailing_distance = self.strategy.trailing_stop_loss(self._rule_args(bar))
        if trailing_distance is not None:
            had_stop = position.has_stop
            candidate = stop_level(position.direction, bar.close, trailing_distance)
            position.cur_stop_price = ratchet_stop(position.direction, position.cur_stop_price, candidate)
            if not had_stop:
                init_late_stop_risk(position, self.options.record_risk)
            if self.options.record_stop_price:
                if position.stop_price_series is None:
                    position.stop_price_series = []
                position.stop_price_series.append(TimestampedValue(time=bar.time, value=position.cur_stop_price))

        if position.profit_target is not None:
            if target_breached(position.direction, position.profit_target, bar.high, bar.low):
                self._close(bar, position.profit_target, ExitReason.PROFIT_TARGET)
                return

        _mark_to_market(position, bar.close)
        update_position_risk(position, bar.close, bar.time)

        self.strategy.exit_rule(self.exit_position, self._rule_args(bar))

    def _close(self, bar: Any, exit_price: float, reason: ExitReason) -> None:
        trade = finalize_position(self.position, bar.time, exit_price, reason)
        self.trades.append(trade)
        logger.debug("Closed %s at %s price=%.6g reason=%s", trade.direction.value, bar.time, exit_price, reason.value)
        self.position = None
        self.status = PositionStatus.NONE

    def finish(self, last_bar: Any) -> None:
        if self.position is not None:
            self.trades.append(finalize_position(self.position, last_bar.time, last_bar.close, ExitReason.FINALIZE))
            self.position = None
        self.status = PositionStatus.NONE


class BacktestEngine:
    """
    Runs a strategy over a historical bar series and returns closed trades in
    the order they closed. Deterministic: same bars and rules, same trades.
    """

    def __init__(self, strategy: BaseStrategy, options: Optional[BacktestOptions] = None):
        self.strategy = strategy
        self.options = options or BacktestOptions()

    def run(self, input_series: Union[pd.DataFrame, Sequence[Bar]]) -> List[Trade]:
        """
        Run on an OHLCV frame (columns: time, open, high, low, close, volume) or a
        sequence of Bar. Raises PreconditionError on empty or too-short input.
        """
        frame = to_frame(input_series)
        lookback_period = self.strategy.lookback_period
        if len(frame) == 0:
            raise PreconditionError("Expected input series to contain at least 1 bar")
        if lookback_period < 1:
            raise PreconditionError(f"Lookback period must be at least 1, got {lookback_period}")
        if len(frame) < lookback_period:
            raise PreconditionError(
                f"Input series has {len(frame)} bars, fewer than the lookback period of {lookback_period}"
            )

        parameters = dict(self.strategy.parameters)
        indicators = validate_field_names(self.strategy.prep_indicators(frame, parameters))
        sim = _Simulation(self.strategy, parameters, self.options)

        last_bar = None
        for bar in indicators.itertuples(index=False, name="IndicatorBar"):
            sim.on_bar(bar)
            last_bar = bar
        if last_bar is not None:
            sim.finish(last_bar)

        logger.debug("Backtest complete: %d bars, %d trades", len(indicators), len(sim.trades))
        return sim.trades


def backtest(
    strategy: BaseStrategy,
    input_series: Union[pd.DataFrame, Sequence[Bar]],
    options: Optional[BacktestOptions] = None,
) -> List[Trade]:
    """Backtest `strategy` against `input_series` and return the completed trades."""
    return BacktestEngine(strategy, options).run(input_series)
