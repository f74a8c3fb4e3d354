"""Utils: seedable random source, Telegram notifications."""

from barsim.utils.random import Random
from barsim.utils.telegram import format_summary, send_telegram

__all__ = ["Random", "format_summary", "send_telegram"]
