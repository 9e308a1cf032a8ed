from __future__ import annotations

import argparse
import json
import logging
import sqlite3
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import EngineConfig
from .db import fetch_candles, list_codes, load_candles_csv
from .errors import EngineError, InsufficientHistoryError
from .evaluator import evaluate_batch, evaluate_position
from .indicators import compute_latest
from .input_builder import build_position_input
from .models import Candle, PositionEvaluationInput
from .notifier import notify_decisions, settings_from_env
from .rationale import format_rationale
from .risk import initial_r, reward_risk_ratio, suggest_initial_stop, suggest_initial_target

def _p(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2, default=str))

def _config(args: argparse.Namespace) -> EngineConfig:
    cfg = EngineConfig()
    overrides: Dict[str, Any] = {}
    if args.db:
        overrides["db_path"] = args.db
    if args.table:
        overrides["table"] = args.table
    return replace(cfg, **overrides) if overrides else cfg

def _load_candles(cfg: EngineConfig, code: Optional[str], csv_path: Optional[str]) -> List[Candle]:
    if csv_path:
        return load_candles_csv(csv_path)
    if not code:
        raise SystemExit("either --code or --csv is required")
    return fetch_candles(cfg.db_path, code, table=cfg.table, limit=cfg.candle_lookback_bars)

_SOURCE_ERRORS = (ValueError, OSError, sqlite3.Error)

def _decision_out(ticker: str, decision, currency: Optional[str]) -> Dict[str, Any]:
    out = {"ok": True, "ticker": ticker, **decision.to_dict()}
    out["rationale_text"] = format_rationale(decision.rationale, currency)
    return out

def cmd_indicators(args: argparse.Namespace) -> None:
    cfg = _config(args)
    try:
        candles = _load_candles(cfg, args.code, args.csv)
        snap = compute_latest(candles, cfg, three_way_regime=args.three_way)
    except InsufficientHistoryError as exc:
        _p({"ok": False, "error": "not_enough_data", "min_required": exc.required, "n": exc.available})
        return
    except _SOURCE_ERRORS as exc:
        _p({"ok": False, "code": args.code or args.csv, "error": str(exc)})
        return
    _p({"ok": True, "code": args.code or args.csv, "indicators": snap.to_dict()})

def cmd_evaluate(args: argparse.Namespace) -> None:
    cfg = _config(args)
    ticker = args.code or args.csv
    record = {
        "entry_price": args.entry_price,
        "initial_stop": args.stop,
        "initial_target": args.target,
        "entry_date": args.entry_date,
        "trailing_type": args.trailing,
    }
    try:
        candles = _load_candles(cfg, args.code, args.csv)
        snap = compute_latest(candles, cfg)
        inp = build_position_input(record, candles, snap, lows_lookback=cfg.swing_low_lookback_bars)
        decision = evaluate_position(inp, cfg, now=args.now)
    except (EngineError, *_SOURCE_ERRORS) as exc:
        _p({"ok": False, "ticker": ticker, "error": str(exc)})
        return
    _p(_decision_out(ticker, decision, args.currency))

def cmd_portfolio(args: argparse.Namespace) -> None:
    cfg = _config(args)
    records = json.loads(Path(args.positions).read_text(encoding="utf-8"))
    if isinstance(records, dict):
        records = records.get("positions", [])

    inputs: Dict[str, PositionEvaluationInput] = {}
    errors: Dict[str, str] = {}
    for rec in records:
        ticker = str(rec.get("ticker") or rec.get("code") or "")
        if not ticker:
            logging.warning("position record without ticker skipped: %s", rec)
            continue
        try:
            candles = _load_candles(cfg, ticker, rec.get("csv"))
            snap = compute_latest(candles, cfg)
            inputs[ticker] = build_position_input(rec, candles, snap, lows_lookback=cfg.swing_low_lookback_bars)
        except (EngineError, *_SOURCE_ERRORS) as exc:
            logging.warning("input preparation failed for %s: %s", ticker, exc)
            errors[ticker] = str(exc)

    decisions, eval_errors = evaluate_batch(inputs, cfg, now=args.now)
    errors.update(eval_errors)

    sent = 0
    if args.notify:
        sent = notify_decisions(settings_from_env(), decisions, args.currency)

    _p({
        "ok": True,
        "n_positions": len(records),
        "decisions": [_decision_out(t, d, args.currency) for t, d in decisions.items()],
        "errors": [{"ticker": t, "error": e} for t, e in errors.items()],
        "notified": sent,
    })

def cmd_plan(args: argparse.Namespace) -> None:
    cfg = _config(args)
    try:
        candles = _load_candles(cfg, args.code, args.csv)
        snap = compute_latest(candles, cfg)
    except InsufficientHistoryError as exc:
        _p({"ok": False, "error": "not_enough_data", "min_required": exc.required, "n": exc.available})
        return
    except _SOURCE_ERRORS as exc:
        _p({"ok": False, "code": args.code or args.csv, "error": str(exc)})
        return

    entry = float(args.entry_price) if args.entry_price is not None else snap.close
    stop = suggest_initial_stop(entry, snap.atr14, cfg.atr_stop_mult)
    r = initial_r(entry, stop)
    target = suggest_initial_target(entry, r, cfg.reward_risk_ratio)
    _p({
        "ok": True,
        "code": args.code or args.csv,
        "date": snap.date,
        "entry_price": round(entry, 2),
        "initial_stop": stop,
        "initial_target": target,
        "initial_r": r,
        "reward_risk": reward_risk_ratio(entry, target, stop),
        "atr14": round(snap.atr14, 4),
        "regime": snap.regime.value,
        "entry_ema20": round(snap.ema20, 4),
        "entry_ema50": round(snap.ema50, 4),
        "entry_rsi14": round(snap.rsi14, 2),
    })

def cmd_codes(args: argparse.Namespace) -> None:
    cfg = _config(args)
    min_rows = args.min_rows if args.min_rows is not None else cfg.min_bars_for_indicators
    try:
        codes = list_codes(cfg.db_path, table=cfg.table, min_rows=min_rows)
    except (OSError, sqlite3.Error) as exc:
        _p({"ok": False, "error": str(exc)})
        return
    _p({
        "ok": True,
        "min_rows": min_rows,
        "n_codes": len(codes),
        "codes": [{"code": c, "n": n, "last_date": d} for c, n, d in codes],
    })

def _add_source(p: argparse.ArgumentParser) -> None:
    p.add_argument("--code", default=None, help="Ticker/code in the price table")
    p.add_argument("--csv", default=None, help="CSV with date,open,high,low,close,volume (instead of DB)")

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="swing_position_engine", description="Swing-trade position evaluation engine (daily bars).")
    p.add_argument("--db", default=None, help="SQLite DB path (default: config / SWING_DB_PATH)")
    p.add_argument("--table", default=None, help="Price table (default: config / SWING_DB_TABLE)")
    p.add_argument("--log-level", default="INFO")

    sub = p.add_subparsers(dest="cmd", required=True)

    p_ind = sub.add_parser("indicators", help="Latest EMA20/EMA50/RSI14/ATR14/relative volume snapshot")
    _add_source(p_ind)
    p_ind.add_argument("--three-way", action="store_true", help="Use the uptrend/downtrend/consolidation regime")
    p_ind.set_defaults(func=cmd_indicators)

    p_ev = sub.add_parser("evaluate", help="Evaluate one open position")
    _add_source(p_ev)
    p_ev.add_argument("--entry-price", type=float, required=True)
    p_ev.add_argument("--stop", type=float, required=True, help="Initial stop")
    p_ev.add_argument("--target", type=float, default=None)
    p_ev.add_argument("--entry-date", default=None, help="YYYY-MM-DD")
    p_ev.add_argument("--trailing", default="EMA20", help="EMA20 | HIGHER_LOW (HL)")
    p_ev.add_argument("--now", default=None, help="Pin evaluation date (YYYY-MM-DD)")
    p_ev.add_argument("--currency", default=None)
    p_ev.set_defaults(func=cmd_evaluate)

    p_pf = sub.add_parser("portfolio", help="Evaluate every position in a JSON file")
    p_pf.add_argument("--positions", required=True, help="JSON list of entry records (ticker, entry_price, initial_stop, ...)")
    p_pf.add_argument("--now", default=None)
    p_pf.add_argument("--currency", default=None)
    p_pf.add_argument("--notify", action="store_true", help="Send Discord/Telegram alerts for non-HOLD decisions")
    p_pf.set_defaults(func=cmd_portfolio)

    p_codes = sub.add_parser("codes", help="List codes in the price table with enough history to evaluate")
    p_codes.add_argument("--min-rows", type=int, default=None, help="Default: SWING_MIN_BARS_FOR_INDICATORS (50)")
    p_codes.set_defaults(func=cmd_codes)

    p_pl = sub.add_parser("plan", help="ATR-based initial stop/target for a new entry")
    _add_source(p_pl)
    p_pl.add_argument("--entry-price", type=float, default=None, help="Default: latest close")
    p_pl.set_defaults(func=cmd_plan)

    return p

def main(argv: Optional[List[str]] = None) -> None:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO), format="%(asctime)s [%(levelname)s] %(message)s")
    args.func(args)

if __name__ == "__main__":
    main()
