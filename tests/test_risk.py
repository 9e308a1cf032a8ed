from datetime import date, datetime

import pytest

from swing_position_engine.risk import (
    days_in_trade,
    initial_r,
    pnl_pct,
    r_multiple,
    reward_risk_ratio,
    suggest_initial_stop,
    suggest_initial_target,
)


def test_pnl_pct_rounds_to_two_decimals() -> None:
    assert pnl_pct(100.0, 103.457) == 3.46
    assert pnl_pct(200.0, 190.0) == -5.0


def test_r_multiple_in_units_of_initial_risk() -> None:
    assert r_multiple(100.0, 108.0, 5.0) == 1.6
    assert r_multiple(100.0, 97.0, 5.0) == -0.6


@pytest.mark.parametrize("price", [0.5, 100.0, 12345.67])
def test_r_multiple_zero_risk_is_zero(price: float) -> None:
    assert r_multiple(price, price, 0) == 0
    assert r_multiple(price, price * 2, None) == 0


def test_days_in_trade_floors_calendar_days() -> None:
    assert days_in_trade("2025-01-01", now=datetime(2025, 1, 6, 23, 59)) == 5
    assert days_in_trade(date(2025, 1, 1), now=date(2025, 2, 5)) == 35


def test_days_in_trade_without_entry_date_is_zero() -> None:
    assert days_in_trade(None, now="2025-06-01") == 0
    assert days_in_trade("", now="2025-06-01") == 0


def test_days_in_trade_never_negative() -> None:
    assert days_in_trade("2025-03-10", now="2025-03-01") == 0


def test_days_in_trade_accepts_compact_dates() -> None:
    assert days_in_trade("20250101", now="20250111") == 10


def test_days_in_trade_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        days_in_trade("not-a-date", now="2025-01-01")


def test_entry_planning_helpers() -> None:
    stop = suggest_initial_stop(100.0, 2.5)
    assert stop == 95.0
    r = initial_r(100.0, stop)
    assert r == 5.0
    target = suggest_initial_target(100.0, r, rr_ratio=2.0)
    assert target == 110.0
    assert reward_risk_ratio(100.0, target, stop) == 2.0
    assert reward_risk_ratio(100.0, 110.0, 100.0) == 0.0


def test_exact_ties_round_away_from_zero() -> None:
    assert r_multiple(100.0, 101.625, 1.0) == 1.63
    assert r_multiple(100.0, 98.375, 1.0) == -1.63
    assert initial_r(100.0, 98.375) == 1.63
    assert suggest_initial_target(100.0, 0.3125, rr_ratio=2.0) == 100.63
