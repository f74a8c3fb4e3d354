"""
Load configuration from config.yaml and .env. API keys and tokens only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_opt_float(key: str, default: Optional[float]) -> Optional[float]:
        # Empty string or "none" switches a rule off
        raw = os.getenv(key)
        if raw is None:
            return None if default is None else float(default)
        raw = raw.strip().lower()
        if raw in ("", "none", "off"):
            return None
        try:
            return float(raw)
        except ValueError:
            return None if default is None else float(default)

    data_cfg = data.get("data", {})
    strategy = data.get("strategy", {})
    backtest = data.get("backtest", {})
    optimization = data.get("optimization", {})
    walk_forward = data.get("walk_forward", {})
    monte_carlo = data.get("monte_carlo", {})
    telegram = data.get("telegram", {})
    logging_cfg = data.get("logging", {})

    use_testnet = env_bool("USE_TESTNET", data_cfg.get("use_testnet", False))
    if use_testnet:
        binance_api_key = env("BINANCE_TESTNET_API_KEY") or env("BINANCE_API_KEY")
        binance_api_secret = env("BINANCE_TESTNET_API_SECRET") or env("BINANCE_API_SECRET")
    else:
        binance_api_key = env("BINANCE_MAINNET_API_KEY") or env("BINANCE_API_KEY")
        binance_api_secret = env("BINANCE_MAINNET_API_SECRET") or env("BINANCE_API_SECRET")

    csv_path = env("DATA_CSV", data_cfg.get("csv_path") or "")

    return Config(
        # Data
        csv_path=Path(csv_path) if csv_path else None,
        date_format=data_cfg.get("date_format"),
        symbol=env("SYMBOL", data_cfg.get("symbol", "BTCUSDT")).upper(),
        timeframe=env("TIMEFRAME", data_cfg.get("timeframe", "1d")),
        kline_limit=env_int("KLINE_LIMIT", data_cfg.get("kline_limit", 500)),
        binance_api_key=binance_api_key,
        binance_api_secret=binance_api_secret,
        use_testnet=use_testnet,
        # Strategy
        sma_period=env_int("SMA_PERIOD", strategy.get("sma_period", 30)),
        lookback_period=env_int("LOOKBACK_PERIOD", strategy.get("lookback_period", 1)),
        direction=env("DIRECTION", strategy.get("direction", "long")).lower(),
        stop_loss_pct=env_opt_float("STOP_LOSS_PCT", strategy.get("stop_loss_pct")),
        trailing_stop_pct=env_opt_float("TRAILING_STOP_PCT", strategy.get("trailing_stop_pct")),
        profit_target_pct=env_opt_float("PROFIT_TARGET_PCT", strategy.get("profit_target_pct")),
        max_holding_period=env_int("MAX_HOLDING_PERIOD", strategy.get("max_holding_period", 0)),
        entry_offset_pct=env_opt_float("ENTRY_OFFSET_PCT", strategy.get("entry_offset_pct")),
        # Backtest
        starting_capital=env_float("STARTING_CAPITAL", backtest.get("starting_capital", 10000.0)),
        record_risk=env_bool("RECORD_RISK", backtest.get("record_risk", False)),
        record_stop_price=env_bool("RECORD_STOP_PRICE", backtest.get("record_stop_price", False)),
        # Optimization
        opt_parameter=optimization.get("parameter", "sma_period"),
        opt_start=float(optimization.get("starting_value", 5)),
        opt_end=float(optimization.get("ending_value", 50)),
        opt_step=float(optimization.get("step_size", 5)),
        opt_search_direction=optimization.get("search_direction", "highest"),
        opt_type=optimization.get("type", "grid"),
        opt_seed=env_int("OPT_SEED", optimization.get("random_seed", 0)),
        opt_starting_points=int(optimization.get("num_starting_points", 4)),
        # Walk forward
        in_sample_size=int(walk_forward.get("in_sample_size", 90)),
        out_sample_size=int(walk_forward.get("out_sample_size", 30)),
        # Monte Carlo
        mc_iterations=int(monte_carlo.get("iterations", 1000)),
        mc_samples=int(monte_carlo.get("samples", 100)),
        mc_seed=env_int("MC_SEED", monte_carlo.get("seed", 0)),
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "barsim.log"),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "csv_path", "date_format", "symbol", "timeframe", "kline_limit",
        "binance_api_key", "binance_api_secret", "use_testnet",
        "sma_period", "lookback_period", "direction", "stop_loss_pct", "trailing_stop_pct",
        "profit_target_pct", "max_holding_period", "entry_offset_pct",
        "starting_capital", "record_risk", "record_stop_price",
        "opt_parameter", "opt_start", "opt_end", "opt_step", "opt_search_direction",
        "opt_type", "opt_seed", "opt_starting_points",
        "in_sample_size", "out_sample_size",
        "mc_iterations", "mc_samples", "mc_seed",
        "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        csv_path: Optional[Path] = None,
        date_format: Optional[str] = None,
        symbol: str = "BTCUSDT",
        timeframe: str = "1d",
        kline_limit: int = 500,
        binance_api_key: str = "",
        binance_api_secret: str = "",
        use_testnet: bool = False,
        sma_period: int = 30,
        lookback_period: int = 1,
        direction: str = "long",
        stop_loss_pct: Optional[float] = None,
        trailing_stop_pct: Optional[float] = None,
        profit_target_pct: Optional[float] = None,
        max_holding_period: int = 0,
        entry_offset_pct: Optional[float] = None,
        starting_capital: float = 10000.0,
        record_risk: bool = False,
        record_stop_price: bool = False,
        opt_parameter: str = "sma_period",
        opt_start: float = 5,
        opt_end: float = 50,
        opt_step: float = 5,
        opt_search_direction: str = "highest",
        opt_type: str = "grid",
        opt_seed: int = 0,
        opt_starting_points: int = 4,
        in_sample_size: int = 90,
        out_sample_size: int = 30,
        mc_iterations: int = 1000,
        mc_samples: int = 100,
        mc_seed: int = 0,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "barsim.log",
    ):
        self.csv_path = Path(csv_path) if csv_path else None
        self.date_format = date_format
        self.symbol = symbol
        self.timeframe = timeframe
        self.kline_limit = kline_limit
        self.binance_api_key = binance_api_key
        self.binance_api_secret = binance_api_secret
        self.use_testnet = use_testnet
        self.sma_period = sma_period
        self.lookback_period = lookback_period
        self.direction = direction
        self.stop_loss_pct = stop_loss_pct
        self.trailing_stop_pct = trailing_stop_pct
        self.profit_target_pct = profit_target_pct
        self.max_holding_period = max_holding_period
        self.entry_offset_pct = entry_offset_pct
        self.starting_capital = starting_capital
        self.record_risk = record_risk
        self.record_stop_price = record_stop_price
        self.opt_parameter = opt_parameter
        self.opt_start = opt_start
        self.opt_end = opt_end
        self.opt_step = opt_step
        self.opt_search_direction = opt_search_direction
        self.opt_type = opt_type
        self.opt_seed = opt_seed
        self.opt_starting_points = opt_starting_points
        self.in_sample_size = in_sample_size
        self.out_sample_size = out_sample_size
        self.mc_iterations = mc_iterations
        self.mc_samples = mc_samples
        self.mc_seed = mc_seed
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
