"""Telegram notifications. Never log token or chat_id."""

from __future__ import annotations
import logging

import requests

from kalman_trader.core.types import Event, EventKind

logger = logging.getLogger("kalman_trader.utils.telegram")


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success. Uses empty strings if not configured."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text}
        r = requests.post(url, json=payload, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except requests.RequestException as e:
        logger.warning("Telegram error: %s", type(e).__name__)
        return False


def format_event(event: Event) -> str:
    ts = event.timestamp.strftime("%Y-%m-%d %H:%M")
    if event.kind is EventKind.ENTRY:
        return f"ENTRY {event.side.value} @ {event.price:.2f} ({ts})"
    reason = event.reason.value if event.reason else "-"
    return (
        f"EXIT {event.side.value} @ {event.price:.2f} ({ts}) reason={reason} "
        f"peak={event.peak_profit:.2f} low={event.peak_loss:.2f}"
    )


class TelegramNotifier:
    """Event sink that forwards ENTRY/EXIT events to a Telegram chat."""

    def __init__(self, bot_token: str = "", chat_id: str = ""):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.sent = 0

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def accept(self, event: Event) -> None:
        if not self.enabled:
            return
        if send_telegram(format_event(event), self.bot_token, self.chat_id):
            self.sent += 1

    def close(self) -> None:
        logger.debug("Telegram notifier closed after %d messages", self.sent)
