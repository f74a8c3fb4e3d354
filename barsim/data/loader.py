"""
Bar series loading and normalisation. Every loader returns a DataFrame with
columns time, open, high, low, close, volume (plus any extra columns), in file order.
"""

from __future__ import annotations
import dataclasses
import keyword
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd

from barsim.core.errors import DataError
from barsim.core.types import Bar

logger = logging.getLogger("barsim.data")

OHLCV_COLUMNS = ["time", "open", "high", "low", "close", "volume"]
PRICE_COLUMNS = ["open", "high", "low", "close", "volume"]


def frame_from_bars(bars: Sequence[Bar]) -> pd.DataFrame:
    """Convert Bar records into an OHLCV frame."""
    return pd.DataFrame([dataclasses.asdict(b) for b in bars], columns=OHLCV_COLUMNS)


def validate_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Raise DataError if any OHLCV column is missing. Order is not checked or changed."""
    missing = [c for c in OHLCV_COLUMNS if c not in df.columns]
    if missing:
        raise DataError(f"Input series is missing columns: {', '.join(missing)}")
    return df


def validate_field_names(df: pd.DataFrame) -> pd.DataFrame:
    """
    Raise DataError for columns that cannot be bar attributes: not identifiers,
    keywords, leading underscore, or duplicates. itertuples would rename them.
    """
    seen = set()
    bad = []
    for column in df.columns:
        name = str(column)
        if (not isinstance(column, str) or not name.isidentifier() or keyword.iskeyword(name)
                or name.startswith("_") or name in seen):
            bad.append(repr(column))
        seen.add(name)
    if bad:
        raise DataError(f"Indicator columns cannot be used as bar fields: {', '.join(bad)}")
    return df


def to_frame(input_series: Union[pd.DataFrame, Sequence[Bar]]) -> pd.DataFrame:
    """Accept a DataFrame or a sequence of Bar and return a validated frame."""
    if isinstance(input_series, pd.DataFrame):
        return validate_frame(input_series)
    return frame_from_bars(list(input_series))


def load_csv(path: Union[str, Path], date_format: Optional[str] = None) -> pd.DataFrame:
    """
    Read an OHLCV CSV. The timestamp column may be called "time" or "date".
    Column names are matched case-insensitively.
    """
    path = Path(path)
    df = pd.read_csv(path)
    df = df.rename(columns={c: c.strip().lower() for c in df.columns})
    if "time" not in df.columns and "date" in df.columns:
        df = df.rename(columns={"date": "time"})
    if "volume" not in df.columns:
        df["volume"] = 0.0
    validate_frame(df)
    df["time"] = pd.to_datetime(df["time"], format=date_format)
    df[PRICE_COLUMNS] = df[PRICE_COLUMNS].astype(float)
    logger.info("Loaded %d bars from %s", len(df), path)
    extra = [c for c in df.columns if c not in OHLCV_COLUMNS]
    return df[OHLCV_COLUMNS + extra].reset_index(drop=True)
