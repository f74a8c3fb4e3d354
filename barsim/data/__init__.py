"""Data: OHLCV frames from CSV files or Binance klines."""

from barsim.data.loader import frame_from_bars, load_csv, to_frame, validate_field_names, validate_frame

__all__ = ["frame_from_bars", "load_csv", "to_frame", "validate_field_names", "validate_frame"]
