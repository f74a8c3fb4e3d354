"""Abstract strategy: indicator preparation plus entry/exit/stop/target rules."""

from __future__ import annotations
import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import pandas as pd

from barsim.core.types import Position, TradeDirection

EnterPositionFn = Callable[..., None]
ExitPositionFn = Callable[[], None]


@dataclass(frozen=True)
class EntryRuleArgs:
    """Arguments for the entry rule, valid for one call only."""
    bar: Any
    lookback: Tuple[Any, ...]
    parameters: Dict[str, Any]


@dataclass(frozen=True)
class PositionRuleArgs:
    """Arguments for rules evaluated on an open position (exit, stops, target)."""
    entry_price: float
    position: Position
    bar: Any
    lookback: Tuple[Any, ...]
    parameters: Dict[str, Any]


class BaseStrategy(ABC):
    """
    A strategy is a set of pure rule callbacks. The engine calls them once per
    bar; they must not keep references to `bar`, `lookback` or `position`.

    Stop, trailing stop and profit target rules return a distance in price
    units measured from the entry price (trailing stop: from the current
    close), or None when the strategy does not use that rule.
    """

    lookback_period: int = 1

    def __init__(self, parameters: Optional[Dict[str, Any]] = None, lookback_period: Optional[int] = None):
        self.parameters: Dict[str, Any] = dict(parameters or {})
        if lookback_period is not None:
            self.lookback_period = lookback_period

    def prep_indicators(self, input_series: pd.DataFrame, parameters: Dict[str, Any]) -> pd.DataFrame:
        """Add indicator columns to the OHLCV frame. Runs once per backtest."""
        return input_series

    @abstractmethod
    def entry_rule(self, enter_position: EnterPositionFn, args: EntryRuleArgs) -> None:
        """Call enter_position(direction=..., entry_price=...) to open a position next bar."""

    def exit_rule(self, exit_position: ExitPositionFn, args: PositionRuleArgs) -> None:
        """Call exit_position() to close at the next bar's open."""

    def stop_loss(self, args: PositionRuleArgs) -> Optional[float]:
        return None

    def trailing_stop_loss(self, args: PositionRuleArgs) -> Optional[float]:
        return None

    def profit_target(self, args: PositionRuleArgs) -> Optional[float]:
        return None

    def with_parameters(self, **overrides: Any) -> "BaseStrategy":
        """Shallow clone with `overrides` merged into the parameters. This strategy is left unchanged."""
        clone = copy.copy(self)
        clone.parameters = {**self.parameters, **overrides}
        return clone


def parse_direction(value: Any) -> TradeDirection:
    """Accept a TradeDirection or one of "long"/"short" (case insensitive). None means long."""
    if value is None:
        return TradeDirection.LONG
    if isinstance(value, TradeDirection):
        return value
    try:
        return TradeDirection(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unsupported trade direction: {value!r}") from None
