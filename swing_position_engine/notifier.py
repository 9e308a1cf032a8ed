from __future__ import annotations

import logging
import os
import time
from typing import Mapping, Optional

import requests

from .models import PositionDecision, PositionStatus
from .rationale import describe


def settings_from_env() -> dict:
    webhook = os.getenv("SWING_DISCORD_WEBHOOK", "")
    token = os.getenv("SWING_TELEGRAM_TOKEN", "")
    chat_id = os.getenv("SWING_TELEGRAM_CHAT_ID", "")
    return {
        "discord": {"enabled": bool(webhook), "webhook": webhook},
        "telegram": {"enabled": bool(token and chat_id), "token": token, "chat_id": chat_id},
    }


def send_telegram(bot_token: str, chat_id: str, text: str, parse_mode: str = "Markdown") -> bool:
    if not bot_token or not chat_id:
        return False
    url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
    try:
        resp = requests.post(url, data={"chat_id": chat_id, "text": text, "parse_mode": parse_mode}, timeout=5)
        if not resp.ok:
            logging.warning("telegram send failed: %s", resp.text)
            return False
        return True
    except requests.RequestException as e:
        logging.warning("telegram send error: %s", e)
        return False


def send_discord(webhook: str, message: str) -> bool:
    try:
        resp = requests.post(webhook, json={"content": message}, timeout=5)
        if resp.status_code == 429:
            # Rate limited - wait and retry once
            retry_after = resp.json().get("retry_after", 1)
            logging.warning("Discord rate limited. Retrying after %s seconds...", retry_after)
            time.sleep(float(retry_after) + 0.1)
            resp = requests.post(webhook, json={"content": message}, timeout=5)
        if resp.ok:
            return True
        logging.warning("discord send failed: %s", resp.text)
    except requests.RequestException:
        logging.exception("discord send failed")
    return False


def maybe_notify(settings: dict, message: str) -> bool:
    """Discord first, Telegram as fallback. Alerting is best-effort."""
    dc = settings.get("discord", {}) if isinstance(settings, dict) else {}
    if dc and dc.get("enabled") and dc.get("webhook"):
        if send_discord(dc["webhook"], message):
            return True
    tg = settings.get("telegram", {}) if isinstance(settings, dict) else {}
    if tg and tg.get("enabled"):
        return send_telegram(tg.get("token"), tg.get("chat_id"), message)
    return False


def notify_decisions(
    settings: dict,
    decisions: Mapping[str, PositionDecision],
    currency: Optional[str] = None,
) -> int:
    """Alert on every actionable (non-HOLD) decision. Returns the number delivered."""
    sent = 0
    for ticker, decision in decisions.items():
        if decision.status == PositionStatus.HOLD:
            continue
        if maybe_notify(settings, describe(ticker, decision, currency)):
            sent += 1
    return sent
