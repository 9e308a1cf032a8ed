"""Position evaluation: one status per open position, first matching rule wins.

Rule priority (capital preservation > profit taking > hygiene):
  1. STOP_HIT      price <= current stop
  2. EXIT          price < EMA20 (momentum broken)
  3. RSI >= 70     PARTIAL_EXIT if >= 2R in profit, else EXIT
  4. TIGHTEN_STOP  >= 1.5R and price extended > 5% above EMA20
  5. EXIT          relative volume > 2x on a position down more than 2%
  6. EXIT          >= 30 days in trade while |R| < 0.5 (time stop)
  7. HOLD
"""
from __future__ import annotations

import logging
import math
from typing import Dict, Mapping, Optional, Tuple

from .config import EngineConfig
from .errors import EngineError, InvalidInputError
from .models import (
    PositionDecision,
    PositionEvaluationInput,
    PositionStatus,
    Rationale,
)
from .risk import DateLike, days_in_trade, parse_date, pnl_pct, r_multiple
from .trailing import resolve_stop

def _finite(x) -> bool:
    if x is None or isinstance(x, bool):
        return False
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False

def validate_input(inp: PositionEvaluationInput) -> None:
    entry, current = inp.entry, inp.current
    required = {
        "entry_price": entry.entry_price,
        "initial_stop": entry.initial_stop,
        "initial_r": entry.initial_r,
        "price": current.price,
        "ema20": current.ema20,
        "rsi14": current.rsi14,
    }
    missing = [k for k, v in required.items() if not _finite(v)]
    if missing:
        raise InvalidInputError("missing or non-numeric " + ", ".join(missing))
    if float(entry.entry_price) <= 0:
        raise InvalidInputError(f"entry_price must be > 0, got {entry.entry_price}")
    if float(entry.initial_r) <= 0:
        raise InvalidInputError(f"initial_r must be > 0, got {entry.initial_r}")
    if not _finite(current.relative_volume):
        raise InvalidInputError("relative_volume must be numeric")
    try:
        parse_date(entry.entry_date)
    except ValueError as exc:
        raise InvalidInputError(f"entry_date: {exc}") from None

def evaluate_position(
    inp: PositionEvaluationInput,
    cfg: Optional[EngineConfig] = None,
    *,
    now: Optional[DateLike] = None,
) -> PositionDecision:
    cfg = cfg or EngineConfig()
    validate_input(inp)

    entry, current = inp.entry, inp.current
    entry_price = float(entry.entry_price)
    initial_stop = float(entry.initial_stop)
    price = float(current.price)
    ema20 = float(current.ema20)
    rsi14 = float(current.rsi14)
    rel_vol = float(current.relative_volume)

    pnl = pnl_pct(entry_price, price)
    r_mult = r_multiple(entry_price, price, float(entry.initial_r))
    stop = resolve_stop(
        inp.trailing_policy,
        price,
        ema20,
        current.ema50,
        initial_stop,
        inp.recent_lows,
        window=cfg.swing_low_window,
        min_separation=cfg.swing_low_min_separation,
    )
    days = days_in_trade(entry.entry_date, now)

    def decide(status: PositionStatus, rationale: Optional[Rationale]) -> PositionDecision:
        return PositionDecision(
            status=status,
            rationale=rationale,
            current_stop=stop,
            pnl_pct=pnl,
            r_multiple=r_mult,
            days_in_trade=days,
        )

    if price <= stop:
        return decide(PositionStatus.STOP_HIT, Rationale("stop_hit", {"stop": stop}))

    if price < ema20:
        return decide(PositionStatus.EXIT, Rationale("momentum_break", {"price": price, "ema20": ema20}))

    if rsi14 >= cfg.rsi_overbought:
        if r_mult >= cfg.partial_exit_r:
            return decide(
                PositionStatus.PARTIAL_EXIT,
                Rationale("rsi_overbought_partial", {"rsi14": rsi14, "r_multiple": r_mult, "scale_out_pct": 50}),
            )
        return decide(PositionStatus.EXIT, Rationale("rsi_overbought_exit", {"rsi14": rsi14, "r_multiple": r_mult}))

    if r_mult >= cfg.tighten_stop_r and price > ema20 * cfg.tighten_ema_extension:
        return decide(
            PositionStatus.TIGHTEN_STOP,
            Rationale("tighten_stop", {"r_multiple": r_mult, "break_even": entry_price, "ema20": ema20}),
        )

    if rel_vol > cfg.distribution_rel_volume and pnl < cfg.distribution_pnl_pct:
        return decide(PositionStatus.EXIT, Rationale("distribution", {"relative_volume": rel_vol, "pnl_pct": pnl}))

    if days >= cfg.time_stop_days and abs(r_mult) < cfg.time_stop_max_abs_r:
        return decide(PositionStatus.EXIT, Rationale("time_stop", {"days_in_trade": days, "r_multiple": r_mult}))

    return decide(PositionStatus.HOLD, None)

def evaluate_batch(
    inputs: Mapping[str, PositionEvaluationInput],
    cfg: Optional[EngineConfig] = None,
    *,
    now: Optional[DateLike] = None,
) -> Tuple[Dict[str, PositionDecision], Dict[str, str]]:
    """Evaluate every position independently.

    Returns (decisions, errors) keyed by ticker. A rejected position never
    stops the rest of the batch.
    """
    cfg = cfg or EngineConfig()
    decisions: Dict[str, PositionDecision] = {}
    errors: Dict[str, str] = {}
    for ticker, inp in inputs.items():
        try:
            decisions[ticker] = evaluate_position(inp, cfg, now=now)
        except EngineError as exc:
            logging.warning("evaluation skipped for %s: %s", ticker, exc)
            errors[ticker] = str(exc)
    return decisions, errors
