"""Swing-trade position evaluation engine (LONG only, daily bars).

Core idea (re-evaluated once per session close):
- Derive EMA20/EMA50, RSI14, ATR14 and relative volume from daily candles
- Measure the open position against its fixed entry baseline:
    * P/L % and R-multiple (profit in units of the initial risk)
    * trailing stop that only ratchets upward
- Walk a fixed-priority rule chain and emit exactly one status:
    STOP_HIT > EXIT (momentum) > PARTIAL_EXIT / EXIT (RSI) > TIGHTEN_STOP
    > EXIT (distribution) > EXIT (time stop) > HOLD
"""

__all__ = [
    "config",
    "errors",
    "models",
    "indicators",
    "risk",
    "trailing",
    "evaluator",
    "input_builder",
    "rationale",
    "db",
    "notifier",
]
