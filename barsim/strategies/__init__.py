"""Strategies: rule interface and implementations."""

from barsim.strategies.base import BaseStrategy, EntryRuleArgs, PositionRuleArgs
from barsim.strategies.mean_reversion import MeanReversionStrategy

__all__ = ["BaseStrategy", "EntryRuleArgs", "PositionRuleArgs", "MeanReversionStrategy"]
