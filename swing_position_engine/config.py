from __future__ import annotations

import os
from dataclasses import dataclass

def _env_float(key: str, default: float) -> float:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    try:
        return float(v)
    except ValueError:
        return default

def _env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default

def _env_str(key: str, default: str) -> str:
    v = os.getenv(key)
    return v if v not in (None, "") else default

@dataclass(frozen=True)
class EngineConfig:
    # Data
    db_path: str = _env_str("SWING_DB_PATH", "market_data.db")
    table: str = _env_str("SWING_DB_TABLE", "daily_price")
    candle_lookback_bars: int = _env_int("SWING_CANDLE_LOOKBACK_BARS", 250)

    # Indicators
    ema_fast: int = _env_int("SWING_EMA_FAST", 20)
    ema_slow: int = _env_int("SWING_EMA_SLOW", 50)
    rsi_period: int = _env_int("SWING_RSI_PERIOD", 14)
    atr_period: int = _env_int("SWING_ATR_PERIOD", 14)
    rel_volume_window: int = _env_int("SWING_REL_VOLUME_WINDOW", 20)
    # EMA50 is the longest lookback; fewer bars and the snapshot is undefined
    min_bars_for_indicators: int = _env_int("SWING_MIN_BARS_FOR_INDICATORS", 50)

    # Rule chain thresholds (evaluated in priority order)
    rsi_overbought: float = _env_float("SWING_RSI_OVERBOUGHT", 70.0)
    partial_exit_r: float = _env_float("SWING_PARTIAL_EXIT_R", 2.0)
    tighten_stop_r: float = _env_float("SWING_TIGHTEN_STOP_R", 1.5)
    tighten_ema_extension: float = _env_float("SWING_TIGHTEN_EMA_EXTENSION", 1.05)
    distribution_rel_volume: float = _env_float("SWING_DISTRIBUTION_REL_VOLUME", 2.0)
    distribution_pnl_pct: float = _env_float("SWING_DISTRIBUTION_PNL_PCT", -2.0)
    time_stop_days: int = _env_int("SWING_TIME_STOP_DAYS", 30)
    time_stop_max_abs_r: float = _env_float("SWING_TIME_STOP_MAX_ABS_R", 0.5)

    # Higher-low trailing: swing low = lower than `window` bars on each side
    swing_low_window: int = _env_int("SWING_LOW_WINDOW", 2)
    swing_low_min_separation: int = _env_int("SWING_LOW_MIN_SEPARATION", 3)
    swing_low_lookback_bars: int = _env_int("SWING_LOW_LOOKBACK_BARS", 30)

    # Entry planning helpers
    atr_stop_mult: float = _env_float("SWING_ATR_STOP_MULT", 2.0)
    reward_risk_ratio: float = _env_float("SWING_REWARD_RISK_RATIO", 2.0)
