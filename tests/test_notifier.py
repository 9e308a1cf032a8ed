import requests

from swing_position_engine import notifier
from swing_position_engine.models import PositionDecision, PositionStatus, Rationale


class _Resp:
    def __init__(self, status_code: int = 200, payload=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.text = "" if self.ok else "error"
        self._payload = payload or {}

    def json(self):
        return self._payload


def _decision(status: PositionStatus) -> PositionDecision:
    rationale = None if status == PositionStatus.HOLD else Rationale("momentum_break", {})
    return PositionDecision(status, rationale, 95.0, 1.0, 0.2, 3)


SETTINGS = {
    "discord": {"enabled": True, "webhook": "https://discord.example/hook"},
    "telegram": {"enabled": True, "token": "t", "chat_id": "c"},
}


def test_only_actionable_decisions_are_sent(monkeypatch) -> None:
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        return _Resp()

    monkeypatch.setattr(notifier.requests, "post", fake_post)
    sent = notifier.notify_decisions(
        SETTINGS,
        {"A": _decision(PositionStatus.HOLD), "B": _decision(PositionStatus.EXIT)},
    )
    assert sent == 1
    assert len(calls) == 1
    assert "B EXIT" in calls[0][1]["json"]["content"]


def test_falls_back_to_telegram_when_discord_fails(monkeypatch) -> None:
    urls = []

    def fake_post(url, **kwargs):
        urls.append(url)
        if "discord" in url:
            raise requests.ConnectionError("down")
        return _Resp()

    monkeypatch.setattr(notifier.requests, "post", fake_post)
    assert notifier.maybe_notify(SETTINGS, "hello") is True
    assert urls[0].startswith("https://discord.example")
    assert urls[1] == "https://api.telegram.org/bott/sendMessage"


def test_discord_rate_limit_retries_once(monkeypatch) -> None:
    responses = [_Resp(429, {"retry_after": 0}), _Resp(204)]
    monkeypatch.setattr(notifier.requests, "post", lambda url, **kw: responses.pop(0))
    monkeypatch.setattr(notifier.time, "sleep", lambda s: None)
    assert notifier.send_discord("https://discord.example/hook", "msg") is True
    assert responses == []


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("SWING_DISCORD_WEBHOOK", "https://discord.example/hook")
    monkeypatch.delenv("SWING_TELEGRAM_TOKEN", raising=False)
    monkeypatch.delenv("SWING_TELEGRAM_CHAT_ID", raising=False)
    s = notifier.settings_from_env()
    assert s["discord"]["enabled"] is True
    assert s["telegram"]["enabled"] is False


def test_nothing_configured_sends_nothing() -> None:
    assert notifier.maybe_notify({}, "hello") is False
