from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class PositionStatus(str, Enum):
    HOLD = "HOLD"
    TIGHTEN_STOP = "TIGHTEN_STOP"
    PARTIAL_EXIT = "PARTIAL_EXIT"
    EXIT = "EXIT"
    STOP_HIT = "STOP_HIT"


class TrailingPolicy(str, Enum):
    EMA20 = "EMA20"
    HIGHER_LOW = "HIGHER_LOW"

    @classmethod
    def parse(cls, value: Union["TrailingPolicy", str, None]) -> Union["TrailingPolicy", str]:
        """Map stored trailing types onto the enum.

        Unrecognised strings are returned unchanged so the resolver can apply
        its keep-the-initial-stop default instead of failing the evaluation.
        """
        if value is None or value == "":
            return cls.EMA20
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        if text in ("HL", "HIGHER_LOW", "HIGHERLOW"):
            return cls.HIGHER_LOW
        if text == "EMA20":
            return cls.EMA20
        return str(value)


class Regime(str, Enum):
    UPTREND = "UPTREND"
    DOWNTREND = "DOWNTREND"
    CONSOLIDATION = "CONSOLIDATION"


@dataclass(frozen=True)
class Candle:
    date: str
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class EntrySnapshot:
    entry_price: Optional[float]
    initial_stop: Optional[float]
    initial_target: Optional[float] = None
    initial_r: Optional[float] = None
    entry_date: Optional[date] = None
    entry_ema20: Optional[float] = None
    entry_ema50: Optional[float] = None
    entry_rsi14: Optional[float] = None
    entry_setup: Optional[str] = None


@dataclass(frozen=True)
class CurrentSnapshot:
    price: Optional[float]
    ema20: Optional[float]
    ema50: Optional[float]
    rsi14: Optional[float]
    relative_volume: float = 1.0


@dataclass(frozen=True)
class PositionEvaluationInput:
    entry: EntrySnapshot
    current: CurrentSnapshot
    trailing_policy: Union[TrailingPolicy, str] = TrailingPolicy.EMA20
    # oldest -> newest; only used by the HIGHER_LOW policy
    recent_lows: Tuple[float, ...] = ()


@dataclass(frozen=True)
class Rationale:
    code: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PositionDecision:
    status: PositionStatus
    rationale: Optional[Rationale]
    current_stop: float
    pnl_pct: float
    r_multiple: float
    days_in_trade: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "rationale": asdict(self.rationale) if self.rationale is not None else None,
            "current_stop": self.current_stop,
            "pnl_pct": self.pnl_pct,
            "r_multiple": self.r_multiple,
            "days_in_trade": self.days_in_trade,
        }
