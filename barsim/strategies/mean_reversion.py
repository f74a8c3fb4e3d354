"""
SMA mean reversion: buy when the close dips below its moving average, sell
when it recovers above it. Optional percentage stop, trailing stop, profit
target, conditional entry offset and maximum holding period.
"""

from __future__ import annotations
from typing import Any, Dict, Optional

import pandas as pd

from barsim.core.types import TradeDirection
from barsim.strategies.base import (
    BaseStrategy,
    EnterPositionFn,
    EntryRuleArgs,
    ExitPositionFn,
    PositionRuleArgs,
    parse_direction,
)

DEFAULT_PARAMETERS: Dict[str, Any] = {
    "sma_period": 30,
    "direction": "long",
    "stop_loss_pct": None,
    "trailing_stop_pct": None,
    "profit_target_pct": None,
    "entry_offset_pct": None,
    "max_holding_period": 0,
}


class MeanReversionStrategy(BaseStrategy):
    """
    Long: enter when close < sma, exit when close > sma.
    Short: enter when close > sma, exit when close < sma.
    Percentages are of the entry price (stop, target) or of the latest close (trailing stop).
    """

    def __init__(self, parameters: Optional[Dict[str, Any]] = None, lookback_period: int = 1):
        super().__init__({**DEFAULT_PARAMETERS, **(parameters or {})}, lookback_period)

    def prep_indicators(self, input_series: pd.DataFrame, parameters: Dict[str, Any]) -> pd.DataFrame:
        period = int(parameters["sma_period"])
        df = input_series.copy()
        df["sma"] = df["close"].rolling(period).mean()
        # Bars before the average is defined carry no signal
        return df.dropna(subset=["sma"]).reset_index(drop=True)

    def entry_rule(self, enter_position: EnterPositionFn, args: EntryRuleArgs) -> None:
        direction = parse_direction(args.parameters["direction"])
        bar = args.bar
        if direction == TradeDirection.LONG:
            triggered = bar.close < bar.sma
        else:
            triggered = bar.close > bar.sma
        if not triggered:
            return
        offset_pct = args.parameters.get("entry_offset_pct")
        if offset_pct is None:
            enter_position(direction=direction)
        elif direction == TradeDirection.LONG:
            enter_position(direction=direction, entry_price=bar.close * (1 + offset_pct / 100.0))
        else:
            enter_position(direction=direction, entry_price=bar.close * (1 - offset_pct / 100.0))

    def exit_rule(self, exit_position: ExitPositionFn, args: PositionRuleArgs) -> None:
        max_holding = args.parameters.get("max_holding_period") or 0
        if max_holding > 0 and args.position.holding_period >= max_holding:
            exit_position()
            return
        bar = args.bar
        if args.position.direction == TradeDirection.LONG:
            recovered = bar.close > bar.sma
        else:
            recovered = bar.close < bar.sma
        if recovered:
            exit_position()

    def stop_loss(self, args: PositionRuleArgs) -> Optional[float]:
        pct = args.parameters.get("stop_loss_pct")
        return None if pct is None else args.entry_price * pct / 100.0

    def trailing_stop_loss(self, args: PositionRuleArgs) -> Optional[float]:
        pct = args.parameters.get("trailing_stop_pct")
        return None if pct is None else args.bar.close * pct / 100.0

    def profit_target(self, args: PositionRuleArgs) -> Optional[float]:
        pct = args.parameters.get("profit_target_pct")
        return None if pct is None else args.entry_price * pct / 100.0
