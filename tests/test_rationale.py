from swing_position_engine.models import PositionDecision, PositionStatus, Rationale
from swing_position_engine.rationale import describe, format_rationale


def test_hold_has_no_text() -> None:
    assert format_rationale(None) is None


def test_stop_hit_text_with_currency() -> None:
    assert format_rationale(Rationale("stop_hit", {"stop": 95.0}), currency="SEK") == "Stop hit at 95.00 SEK"


def test_partial_exit_text() -> None:
    text = format_rationale(Rationale("rsi_overbought_partial", {"rsi14": 75.4, "r_multiple": 2.5, "scale_out_pct": 50}))
    assert text == "RSI overbought (75) + 2.5R profit - scale out 50%"


def test_describe_line() -> None:
    d = PositionDecision(
        status=PositionStatus.EXIT,
        rationale=Rationale("time_stop", {"days_in_trade": 35, "r_multiple": 0.2}),
        current_stop=100.0,
        pnl_pct=1.0,
        r_multiple=0.2,
        days_in_trade=35,
    )
    line = describe("VOLV-B.ST", d)
    assert line.startswith("[position] VOLV-B.ST EXIT stop=100.00 pnl=+1.00% R=+0.20 days=35")
    assert line.endswith("35 days without movement (<0.5R) - free up capital")
