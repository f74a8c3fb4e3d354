"""
Historical futures klines from Binance, with retry on rate limits.
"""

from __future__ import annotations
import functools
import logging
import time

import pandas as pd

from binance.client import Client
from binance.exceptions import BinanceAPIException

from barsim.data.loader import OHLCV_COLUMNS, PRICE_COLUMNS

logger = logging.getLogger("barsim.data.binance")

KLINE_COLUMNS = [
    "open_time", "open", "high", "low", "close", "volume",
    "close_time", "quote_av", "num_trades", "tb_base_av", "tb_quote_av", "ignore",
]


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry on 429 or 418 (rate limit) with exponential backoff."""
    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except BinanceAPIException as e:
                    if e.status_code in (429, 418) and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
        return wrapped
    return decorator


def make_client(api_key: str, api_secret: str, testnet: bool = False) -> Client:
    client = Client(api_key, api_secret)
    if testnet:
        client.API_URL = "https://testnet.binancefuture.com/fapi"
        logger.info("Binance Futures: using TESTNET")
    return client


@retry_on_rate_limit(max_retries=3, base_delay=1.0)
def fetch_klines(client: Client, symbol: str, interval: str, limit: int = 500) -> pd.DataFrame:
    """Download the most recent `limit` klines as an OHLCV frame, oldest first."""
    raw = client.futures_klines(symbol=symbol, interval=interval, limit=limit)
    df = pd.DataFrame(raw, columns=KLINE_COLUMNS)
    df[PRICE_COLUMNS] = df[PRICE_COLUMNS].astype(float)
    df["time"] = pd.to_datetime(df["open_time"], unit="ms")
    logger.info("Fetched %d %s klines for %s", len(df), interval, symbol)
    return df[OHLCV_COLUMNS].reset_index(drop=True)
