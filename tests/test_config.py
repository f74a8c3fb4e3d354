"""Unit tests for core.config."""

import os

import pytest

from barsim.core.config import load_config

ENV_KEYS = [
    "SMA_PERIOD", "DIRECTION", "STOP_LOSS_PCT", "TRAILING_STOP_PCT", "PROFIT_TARGET_PCT",
    "SYMBOL", "TIMEFRAME", "DATA_CSV", "STARTING_CAPITAL", "RECORD_RISK", "LOG_LEVEL",
    "USE_TESTNET", "TELEGRAM_CHAT_ID",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def write_yaml(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_files(tmp_path, clean_env):
    config = load_config(tmp_path / "missing.yaml", tmp_path)
    assert config.sma_period == 30
    assert config.direction == "long"
    assert config.stop_loss_pct is None
    assert config.csv_path is None
    assert config.starting_capital == 10000.0
    assert config.symbol == "BTCUSDT"


def test_yaml_values(tmp_path, clean_env):
    path = write_yaml(tmp_path, """
data:
  csv_path: prices.csv
  symbol: ethusdt
strategy:
  sma_period: 12
  direction: SHORT
  stop_loss_pct: 5
backtest:
  starting_capital: 500
  record_risk: true
optimization:
  parameter: stop_loss_pct
  starting_value: 1
  ending_value: 10
  step_size: 0.5
walk_forward:
  in_sample_size: 60
  out_sample_size: 20
""")
    config = load_config(path, tmp_path)
    assert config.sma_period == 12
    assert config.direction == "short"
    assert config.stop_loss_pct == 5.0
    assert config.symbol == "ETHUSDT"
    assert str(config.csv_path) == "prices.csv"
    assert config.starting_capital == 500
    assert config.record_risk is True
    assert config.opt_parameter == "stop_loss_pct"
    assert config.opt_step == 0.5
    assert config.in_sample_size == 60
    assert config.out_sample_size == 20


def test_env_overrides_yaml(tmp_path, clean_env, monkeypatch):
    path = write_yaml(tmp_path, "strategy:\n  sma_period: 12\n  stop_loss_pct: 5\n")
    monkeypatch.setenv("SMA_PERIOD", "40")
    monkeypatch.setenv("STOP_LOSS_PCT", "none")
    monkeypatch.setenv("PROFIT_TARGET_PCT", "7.5")
    config = load_config(path, tmp_path)
    assert config.sma_period == 40
    assert config.stop_loss_pct is None
    assert config.profit_target_pct == 7.5


def test_bad_env_number_falls_back(tmp_path, clean_env, monkeypatch):
    monkeypatch.setenv("SMA_PERIOD", "abc")
    config = load_config(tmp_path / "missing.yaml", tmp_path)
    assert config.sma_period == 30


def test_dotenv_is_loaded(tmp_path, clean_env):
    (tmp_path / ".env").write_text("TELEGRAM_CHAT_ID=12345\n", encoding="utf-8")
    try:
        config = load_config(tmp_path / "missing.yaml", tmp_path)
        assert config.telegram_chat_id == "12345"
    finally:
        os.environ.pop("TELEGRAM_CHAT_ID", None)
