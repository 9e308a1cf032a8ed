import pytest

from swing_position_engine.models import TrailingPolicy
from swing_position_engine.trailing import (
    find_higher_low,
    find_swing_lows,
    resolve_stop,
)

HIGHER_LOWS = [10, 9, 8, 9, 10, 11, 10, 9.5, 10, 11, 12]
LOWER_LOWS = [10, 9, 8, 9, 10, 11, 10, 7.5, 10, 11, 12]


def test_ema20_policy_trails_above_ema() -> None:
    assert resolve_stop("EMA20", 110.0, 104.0, 100.0, 95.0) == 104.0


def test_ema20_policy_never_below_initial_stop() -> None:
    assert resolve_stop(TrailingPolicy.EMA20, 110.0, 90.0, 88.0, 95.0) == 95.0


def test_ema20_policy_below_ema_keeps_initial_stop() -> None:
    assert resolve_stop("EMA20", 103.0, 104.0, 100.0, 95.0) == 95.0


def test_ema20_ratchet_is_non_decreasing_with_rising_price() -> None:
    initial = 95.0
    stops = []
    for step in range(30):
        price = 96.0 + step
        ema20 = price - 3.0
        stops.append(resolve_stop("EMA20", price, ema20, ema20 - 2.0, initial))
    assert all(s >= initial for s in stops)
    assert all(b >= a for a, b in zip(stops, stops[1:]))


def test_unknown_policy_returns_initial_stop() -> None:
    assert resolve_stop("FIXED", 120.0, 110.0, 100.0, 95.0) == 95.0


def test_swing_low_detection() -> None:
    assert find_swing_lows(HIGHER_LOWS, window=2) == [2, 7]


def test_higher_low_found_when_latest_swing_is_higher() -> None:
    assert find_higher_low(HIGHER_LOWS, window=2, min_separation=3) == 9.5


def test_higher_low_absent_on_lower_low() -> None:
    assert find_higher_low(LOWER_LOWS, window=2, min_separation=3) is None


def test_higher_low_requires_separation() -> None:
    assert find_higher_low(HIGHER_LOWS, window=2, min_separation=6) is None


def test_higher_low_policy_trails_at_swing_low() -> None:
    assert resolve_stop("HL", 12.5, 11.0, 10.0, 9.0, HIGHER_LOWS) == 9.5


def test_higher_low_policy_falls_back_to_ema20() -> None:
    assert resolve_stop("HIGHER_LOW", 12.5, 11.0, 10.0, 9.0, LOWER_LOWS) == 11.0
    assert resolve_stop("HIGHER_LOW", 12.5, 11.0, 10.0, 9.0) == 11.0
    # fallback still respects the initial stop floor
    assert resolve_stop("HIGHER_LOW", 12.5, 8.0, 7.0, 9.0) == 9.0


def test_swing_low_window_must_be_positive() -> None:
    with pytest.raises(ValueError):
        find_swing_lows([1, 2, 3], window=0)
