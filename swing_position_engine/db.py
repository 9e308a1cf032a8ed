from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List, Optional, Tuple, Union

import pandas as pd

from .models import Candle

def connect(db_path: str) -> sqlite3.Connection:
    # sqlite3.connect would silently create an empty file
    if db_path != ":memory:" and not Path(db_path).exists():
        raise FileNotFoundError(f"database not found: {db_path}")
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn

def list_codes(db_path: str, table: str = "daily_price", min_rows: int = 1) -> List[Tuple[str, int, str]]:
    """Codes with at least `min_rows` bars: [(code, n_bars, last_date), ...]"""
    conn = connect(db_path)
    try:
        cur = conn.execute(
            f"SELECT code, COUNT(*) AS n, MAX(date) AS last_date FROM {table} "
            "GROUP BY code HAVING n >= ? ORDER BY code",
            (int(min_rows),),
        )
        return [(str(r["code"]), int(r["n"]), str(r["last_date"])) for r in cur.fetchall()]
    finally:
        conn.close()

def fetch_candles(
    db_path: str,
    code: str,
    table: str = "daily_price",
    limit: Optional[int] = None,
) -> List[Candle]:
    """Latest `limit` daily candles for a code, oldest first.

    Note:
      - Rows are fetched DESC (so LIMIT keeps the most recent bars), then
        reversed to ASC for indicator alignment.
    """
    conn = connect(db_path)
    try:
        lim_sql = f" LIMIT {int(limit)}" if limit is not None else ""
        cur = conn.execute(
            f"SELECT date, open, high, low, close, volume FROM {table} WHERE code=? ORDER BY date DESC{lim_sql}",
            (code,),
        )
        rows = list(reversed(cur.fetchall()))
    finally:
        conn.close()

    return [
        Candle(
            date=str(r[0]),
            open=float(r[1]),
            high=float(r[2]),
            low=float(r[3]),
            close=float(r[4]),
            volume=float(r[5] or 0.0),
        )
        for r in rows
    ]

def candles_from_frame(df: pd.DataFrame) -> List[Candle]:
    """Candles from a frame with date/open/high/low/close/volume columns (any case)."""
    df = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
    missing = [c for c in ("date", "open", "high", "low", "close", "volume") if c not in df.columns]
    if missing:
        raise ValueError(f"candle frame missing columns: {', '.join(missing)}")

    df = df.copy()
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df = df.dropna(subset=["date", "open", "high", "low", "close"]).sort_values("date")
    df["volume"] = df["volume"].fillna(0.0)
    df["date"] = df["date"].dt.strftime("%Y-%m-%d")

    return [
        Candle(date=str(d), open=float(o), high=float(h), low=float(l), close=float(c), volume=float(v))
        for d, o, h, l, c, v in df[["date", "open", "high", "low", "close", "volume"]].itertuples(index=False)
    ]

def load_candles_csv(path: Union[str, Path]) -> List[Candle]:
    return candles_from_frame(pd.read_csv(path))
