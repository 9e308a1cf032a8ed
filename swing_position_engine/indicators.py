from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .config import EngineConfig
from .errors import InsufficientHistoryError
from .models import Candle, Regime

def _require(indicator: str, n: int, required: int) -> None:
    if n < required:
        raise InsufficientHistoryError(indicator, required, n)

def ema(values: Sequence[float], period: int) -> np.ndarray:
    """Exponential moving average aligned to each index (NaN until `period` bars).

    Seeded with the SMA of the first `period` values, then
    ema[i] = close[i] * k + ema[i-1] * (1 - k) with k = 2 / (period + 1).
    """
    arr = np.asarray(values, dtype=float)
    n = len(arr)
    if period <= 0:
        raise ValueError("period must be positive")
    _require(f"EMA{period}", n, period)

    out = np.full(n, np.nan)
    k = 2.0 / (period + 1.0)
    out[period - 1] = float(arr[:period].mean())
    for i in range(period, n):
        out[i] = arr[i] * k + out[i - 1] * (1.0 - k)
    return out

def rsi_wilder(values: Sequence[float], period: int = 14) -> np.ndarray:
    """RSI with Wilder smoothing of gains/losses.

    NaN for the first `period` bars. 100 when the window has no losses,
    50 when it has neither gains nor losses.
    """
    c = np.asarray(values, dtype=float)
    n = len(c)
    if period <= 0:
        raise ValueError("period must be positive")
    _require(f"RSI{period}", n, period + 1)

    d = np.diff(c)
    gains = np.clip(d, 0, None)
    losses = np.clip(-d, 0, None)

    out = np.full(n, np.nan)
    g_avg = float(gains[:period].mean())
    l_avg = float(losses[:period].mean())
    out[period] = _rsi_from_avgs(g_avg, l_avg)
    for i in range(period + 1, n):
        g_avg = (g_avg * (period - 1) + gains[i - 1]) / period
        l_avg = (l_avg * (period - 1) + losses[i - 1]) / period
        out[i] = _rsi_from_avgs(g_avg, l_avg)
    return out

def _rsi_from_avgs(g_avg: float, l_avg: float) -> float:
    if l_avg == 0.0 and g_avg == 0.0:
        return 50.0
    if l_avg == 0.0:
        return 100.0
    rs = g_avg / l_avg
    return 100.0 - (100.0 / (1.0 + rs))

def atr_wilder(highs: Sequence[float], lows: Sequence[float], closes: Sequence[float], period: int = 14) -> np.ndarray:
    """ATR with Wilder smoothing of True Range. NaN until index >= period.

    True Range:
      TR = max(high-low, abs(high-prev_close), abs(low-prev_close))

    Note:
      - TR is defined from index 1 (needs a previous close), so the first ATR
        value sits at index `period` and is the plain mean of TR[1..period].
    """
    h = np.asarray(highs, dtype=float)
    l = np.asarray(lows, dtype=float)
    c = np.asarray(closes, dtype=float)
    n = len(c)
    if period <= 0:
        raise ValueError("period must be positive")
    if not (len(h) == len(l) == n):
        raise ValueError("highs, lows and closes must have the same length")
    _require(f"ATR{period}", n, period + 1)

    prev_close = np.concatenate(([c[0]], c[:-1]))
    tr = np.maximum(h - l, np.maximum(np.abs(h - prev_close), np.abs(l - prev_close)))

    out = np.full(n, np.nan)
    out[period] = float(tr[1 : period + 1].mean())
    for i in range(period + 1, n):
        out[i] = (out[i - 1] * (period - 1) + tr[i]) / period
    return out

def relative_volume(volumes: Sequence[float], window: int = 20) -> float:
    """Last volume divided by the mean volume of the last `window` bars (inclusive)."""
    v = np.asarray(volumes, dtype=float)
    if window <= 0:
        raise ValueError("window must be positive")
    _require(f"relative volume ({window})", len(v), window)
    avg = float(v[-window:].mean())
    if avg <= 0:
        return 1.0
    return float(v[-1] / avg)

def slope(series: Sequence[float]) -> float:
    """Relative change between the last two finite values (0 if unavailable)."""
    arr = np.asarray(series, dtype=float)
    arr = arr[~np.isnan(arr)]
    if len(arr) < 2 or arr[-2] == 0:
        return 0.0
    return float((arr[-1] - arr[-2]) / arr[-2])

def classify_regime(ema20: float, ema50: float, close: Optional[float] = None) -> Regime:
    """Trend regime from the moving-average relationship.

    Without `close`: UPTREND if ema20 > ema50 else DOWNTREND.
    With `close` (screening variant): the trend also needs price on the same
    side of EMA20, anything mixed is CONSOLIDATION.
    """
    if close is None:
        return Regime.UPTREND if ema20 > ema50 else Regime.DOWNTREND
    if ema20 > ema50 and close > ema20:
        return Regime.UPTREND
    if ema20 < ema50 and close < ema20:
        return Regime.DOWNTREND
    return Regime.CONSOLIDATION

@dataclass(frozen=True)
class IndicatorSnapshot:
    date: str
    close: float
    ema20: float
    ema20_prev: float
    ema50: float
    ema50_prev: float
    rsi14: float
    atr14: float
    relative_volume: float
    regime: Regime
    ema20_slope: float
    ema50_slope: float

    def to_dict(self) -> dict:
        d = dict(self.__dict__)
        d["regime"] = self.regime.value
        return d

def compute_latest(candles: Sequence[Candle], cfg: Optional[EngineConfig] = None, *, three_way_regime: bool = False) -> IndicatorSnapshot:
    """Latest indicator values for an ascending candle sequence."""
    cfg = cfg or EngineConfig()
    n = len(candles)
    _require("indicator snapshot", n, max(cfg.min_bars_for_indicators, cfg.ema_slow, cfg.rel_volume_window))

    h = np.array([c.high for c in candles], dtype=float)
    l = np.array([c.low for c in candles], dtype=float)
    c = np.array([c.close for c in candles], dtype=float)
    v = np.array([c.volume for c in candles], dtype=float)

    ema_f = ema(c, cfg.ema_fast)
    ema_s = ema(c, cfg.ema_slow)
    rsi = rsi_wilder(c, cfg.rsi_period)
    atr = atr_wilder(h, l, c, cfg.atr_period)
    rel_vol = relative_volume(v, cfg.rel_volume_window)

    i = n - 1
    close = float(c[i])
    e20 = float(ema_f[i])
    e50 = float(ema_s[i])
    e20_prev = float(ema_f[i - 1]) if not math.isnan(float(ema_f[i - 1])) else e20
    e50_prev = float(ema_s[i - 1]) if not math.isnan(float(ema_s[i - 1])) else e50

    return IndicatorSnapshot(
        date=candles[-1].date,
        close=close,
        ema20=e20,
        ema20_prev=e20_prev,
        ema50=e50,
        ema50_prev=e50_prev,
        rsi14=float(rsi[i]),
        atr14=float(atr[i]),
        relative_volume=rel_vol,
        regime=classify_regime(e20, e50, close if three_way_regime else None),
        ema20_slope=slope(ema_f),
        ema50_slope=slope(ema_s),
    )
