from __future__ import annotations

from typing import Optional

from .models import PositionDecision, Rationale

def _money(value: float, currency: Optional[str]) -> str:
    return f"{value:.2f} {currency}" if currency else f"{value:.2f}"

def format_rationale(rationale: Optional[Rationale], currency: Optional[str] = None) -> Optional[str]:
    """Display text for a decision's rationale (None for HOLD)."""
    if rationale is None:
        return None
    p = rationale.params
    code = rationale.code

    if code == "stop_hit":
        return f"Stop hit at {_money(p['stop'], currency)}"
    if code == "momentum_break":
        return "Price below EMA20 - momentum broken"
    if code == "rsi_overbought_partial":
        return (
            f"RSI overbought ({p['rsi14']:.0f}) + {p['r_multiple']:.1f}R profit"
            f" - scale out {p.get('scale_out_pct', 50)}%"
        )
    if code == "rsi_overbought_exit":
        return f"RSI overbought ({p['rsi14']:.0f}) - sell before reversal"
    if code == "tighten_stop":
        return f"{p['r_multiple']:.1f}R profit - move stop to break-even or EMA20"
    if code == "distribution":
        return f"Distribution warning: high volume ({p['relative_volume']:.1f}x) on decline"
    if code == "time_stop":
        return f"{p['days_in_trade']} days without movement (<0.5R) - free up capital"
    return code

def describe(ticker: str, decision: PositionDecision, currency: Optional[str] = None) -> str:
    """One-line alert text."""
    text = format_rationale(decision.rationale, currency)
    line = (
        f"[position] {ticker} {decision.status.value} "
        f"stop={decision.current_stop:.2f} pnl={decision.pnl_pct:+.2f}% "
        f"R={decision.r_multiple:+.2f} days={decision.days_in_trade}"
    )
    return f"{line} | {text}" if text else line
