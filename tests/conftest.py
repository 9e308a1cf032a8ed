from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, List, Optional, Sequence

import pytest

from swing_position_engine.models import Candle


def _make_candles(closes: Sequence[float], volumes: Optional[Sequence[float]] = None, start: date = date(2025, 1, 1)) -> List[Candle]:
    out: List[Candle] = []
    for i, c in enumerate(closes):
        v = volumes[i] if volumes is not None else 1000.0
        out.append(
            Candle(
                date=(start + timedelta(days=i)).isoformat(),
                open=float(c),
                high=float(c) + 1.0,
                low=float(c) - 1.0,
                close=float(c),
                volume=float(v),
            )
        )
    return out


@pytest.fixture
def make_candles() -> Callable[..., List[Candle]]:
    return _make_candles
