from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from .models import TrailingPolicy

def find_swing_lows(lows: Sequence[float], window: int = 2) -> List[int]:
    """Indices of local minima: strictly lower than `window` bars on each side.

    The last `window` bars can never qualify because their right side is not
    formed yet.
    """
    if window <= 0:
        raise ValueError("window must be positive")
    vals = [float(x) for x in lows]
    out: List[int] = []
    for i in range(window, len(vals) - window):
        left = vals[i - window : i]
        right = vals[i + 1 : i + window + 1]
        if all(vals[i] < x for x in left) and all(vals[i] < x for x in right):
            out.append(i)
    return out

def find_higher_low(lows: Sequence[float], window: int = 2, min_separation: int = 3) -> Optional[float]:
    """Latest swing low if it sits above the swing low before it.

    The two swings must be at least `min_separation` bars apart, otherwise
    the pattern is noise and no higher low is reported.
    """
    swings = find_swing_lows(lows, window)
    if len(swings) < 2:
        return None
    prev_i, last_i = swings[-2], swings[-1]
    if last_i - prev_i < min_separation:
        return None
    if float(lows[last_i]) > float(lows[prev_i]):
        return float(lows[last_i])
    return None

def resolve_stop(
    policy: Union[TrailingPolicy, str],
    current_price: float,
    ema20: float,
    ema50: Optional[float],
    initial_stop: float,
    recent_lows: Optional[Sequence[float]] = None,
    *,
    window: int = 2,
    min_separation: int = 3,
) -> float:
    """Currently applicable protective stop. Never below `initial_stop`.

    EMA20:       trail at EMA20 while price is above it.
    HIGHER_LOW:  trail at the latest confirmed higher low; without one (or
                 without lows at all) EMA20 stands in for it.
    other:       keep the initial stop.
    """
    policy = TrailingPolicy.parse(policy)

    if policy == TrailingPolicy.EMA20:
        if current_price > ema20:
            return max(ema20, initial_stop)
        return initial_stop

    if policy == TrailingPolicy.HIGHER_LOW:
        higher_low = find_higher_low(recent_lows, window, min_separation) if recent_lows else None
        if higher_low is not None:
            return max(higher_low, initial_stop)
        return max(ema20, initial_stop)

    logging.warning("unknown trailing policy %r; keeping initial stop %.2f", policy, initial_stop)
    return initial_stop
