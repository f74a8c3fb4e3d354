"""
Logging for backtest runs.

Every module logs under "barsim.<area>":
  barsim.backtest         entries and closes (DEBUG), run summary (DEBUG)
  barsim.optimize         each evaluated parameter set (DEBUG), best result (INFO)
  barsim.backtest.walk_forward  chosen parameters per window (INFO)
  barsim.data             bars loaded, klines fetched, rate-limit retries (INFO/WARNING)
  barsim.utils.telegram   skipped or failed notifications
setup_logging attaches the handlers once, on the "barsim" parent logger.
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Send "barsim" records to stdout, and to log_dir/log_file when both are given. Safe to call again."""
    logger = logging.getLogger("barsim")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list = [logging.StreamHandler(sys.stdout)]
    if log_dir and log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
