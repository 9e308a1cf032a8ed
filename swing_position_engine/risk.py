"""Risk metrics of an open position measured against its entry baseline.

Everything rounds to 2 decimals so a re-evaluation of unchanged inputs lands
on exactly the same numbers (and therefore the same rule branch).
"""
from __future__ import annotations

import math
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

DateLike = Union[date, datetime, str]

def _round2(value: float) -> float:
    """Ties go away from zero, judged on the exact binary value of `value`."""
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

def pnl_pct(entry_price: float, current_price: float) -> float:
    return _round2((current_price - entry_price) / entry_price * 100.0)

def r_multiple(entry_price: float, current_price: float, initial_r: Optional[float]) -> float:
    """Profit in units of the initial risk (+1.6 = 1.6x initial risk in profit)."""
    if not initial_r:
        return 0.0
    return _round2((current_price - entry_price) / initial_r)

def parse_date(value: Optional[DateLike]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            try:
                dt = datetime.strptime(text, "%Y%m%d")
            except ValueError:
                raise ValueError(f"unrecognised date: {value!r}") from None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt

def days_in_trade(entry_date: Optional[DateLike], now: Optional[DateLike] = None) -> int:
    """Whole calendar days since entry; 0 without an entry date (or for future dates)."""
    start = parse_date(entry_date)
    if start is None:
        return 0
    end = parse_date(now) if now is not None else datetime.now()
    days = math.floor((end - start).total_seconds() / 86400.0)
    return max(0, int(days))

def initial_r(entry_price: float, stop_price: float) -> float:
    """Risk per share fixed at entry; never recomputed afterwards."""
    return _round2(abs(entry_price - stop_price))

def suggest_initial_stop(entry_price: float, atr14: float, atr_multiplier: float = 2.0) -> float:
    return _round2(entry_price - atr14 * atr_multiplier)

def suggest_initial_target(entry_price: float, initial_r: float, rr_ratio: float = 2.0) -> float:
    return _round2(entry_price + initial_r * rr_ratio)

def reward_risk_ratio(entry_price: float, target_price: float, stop_price: float) -> float:
    risk = abs(entry_price - stop_price)
    if risk == 0:
        return 0.0
    return _round2(abs(target_price - entry_price) / risk)
