from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np

from .indicators import IndicatorSnapshot
from .models import Candle, CurrentSnapshot, EntrySnapshot, PositionEvaluationInput, TrailingPolicy
from .risk import initial_r, parse_date

def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(str(value).replace(",", ""))
    except (TypeError, ValueError):
        return None

def _last(value: Any) -> Any:
    """Indicator payloads may carry whole series; only the latest value matters."""
    if isinstance(value, (list, tuple, np.ndarray)):
        return value[-1] if len(value) else None
    return value

def entry_from_record(rec: Mapping[str, Any]) -> EntrySnapshot:
    entry_price = _to_float(rec.get("entry_price"))
    stop = _to_float(rec.get("initial_stop"))
    r = _to_float(rec.get("initial_r"))
    if r is None and entry_price is not None and stop is not None:
        r = initial_r(entry_price, stop)
    entry_date = parse_date(rec.get("entry_date"))
    return EntrySnapshot(
        entry_price=entry_price,
        initial_stop=stop,
        initial_target=_to_float(rec.get("initial_target")),
        initial_r=r,
        entry_date=entry_date.date() if entry_date else None,
        entry_ema20=_to_float(rec.get("initial_ema20")),
        entry_ema50=_to_float(rec.get("initial_ema50")),
        entry_rsi14=_to_float(rec.get("initial_rsi14")),
        entry_setup=rec.get("entry_setup"),
    )

def build_position_input(
    entry_record: Mapping[str, Any],
    candles: Sequence[Candle],
    indicators: Union[IndicatorSnapshot, Mapping[str, Any]],
    *,
    lows_lookback: int = 30,
) -> PositionEvaluationInput:
    """Field mapping only; the evaluator decides."""
    if isinstance(indicators, IndicatorSnapshot):
        ind = {
            "ema20": indicators.ema20,
            "ema50": indicators.ema50,
            "rsi14": indicators.rsi14,
            "relative_volume": indicators.relative_volume,
        }
    else:
        ind = {k: _last(v) for k, v in indicators.items()}

    last = candles[-1] if candles else None
    rel_vol = _to_float(ind.get("relative_volume"))

    current = CurrentSnapshot(
        price=float(last.close) if last is not None else None,
        ema20=_to_float(ind.get("ema20")),
        ema50=_to_float(ind.get("ema50")),
        rsi14=_to_float(ind.get("rsi14")),
        relative_volume=rel_vol or 1.0,
    )
    lows = tuple(float(c.low) for c in candles[-lows_lookback:]) if lows_lookback > 0 else ()

    return PositionEvaluationInput(
        entry=entry_from_record(entry_record),
        current=current,
        trailing_policy=TrailingPolicy.parse(entry_record.get("trailing_type")),
        recent_lows=lows,
    )
