"""Telegram notifications for run summaries. Never log token or chat_id."""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Optional

import requests

if TYPE_CHECKING:
    from barsim.analytics.metrics import Analysis

logger = logging.getLogger("barsim.utils.telegram")


def _fmt(value: Optional[float], fmt: str = ".2f") -> str:
    return "n/a" if value is None else format(value, fmt)


def format_summary(title: str, analysis: "Analysis") -> str:
    """Short plain-text report of an analysis, one metric per line."""
    lines = [
        title,
        f"Trades: {analysis.total_trades} (wins: {analysis.num_winning_trades}, losses: {analysis.num_losing_trades})",
        f"Final capital: {analysis.final_capital:.2f} (start {analysis.starting_capital:.2f})",
        f"Profit: {analysis.profit_pct:.2f}%",
        f"Max drawdown: {analysis.max_drawdown_pct:.2f}%",
        f"Win rate: {analysis.percent_profitable:.1f}%",
        f"Profit factor: {_fmt(analysis.profit_factor)}",
        f"Expectancy: {_fmt(analysis.expectancy)} R",
        f"System quality: {_fmt(analysis.system_quality)}",
    ]
    return "\n".join(lines)


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success, False if not configured or the send failed."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
    try:
        r = requests.post(url, json={"chat_id": chat_id, "text": text}, timeout=10)
    except requests.RequestException as e:
        logger.warning("Telegram error: %s", type(e).__name__)
        return False
    if r.status_code != 200:
        logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
        return False
    return True
