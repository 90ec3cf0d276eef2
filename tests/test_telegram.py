"""Tests for utils.telegram."""

from datetime import datetime, timezone

import requests

from kalman_trader.core.types import Event, EventKind, ExitReason, Side
from kalman_trader.utils import telegram
from kalman_trader.utils.telegram import TelegramNotifier, format_event, send_telegram

T0 = datetime(2025, 1, 2, 4, 30, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code=200, text="ok"):
        self.status_code = status_code
        self.text = text


def test_not_configured_skips_request(monkeypatch):
    calls = []
    monkeypatch.setattr(telegram.requests, "post", lambda *a, **k: calls.append(a))
    assert send_telegram("hi") is False
    TelegramNotifier().accept(Event(Side.BUY, EventKind.ENTRY, 100.0, T0))
    assert calls == []


def test_send_and_failure_paths(monkeypatch):
    sent = []

    def fake_post(url, json, timeout):
        sent.append((url, json))
        return FakeResponse()

    monkeypatch.setattr(telegram.requests, "post", fake_post)
    assert send_telegram("hi", "TOKEN", "42") is True
    assert sent[0][1] == {"chat_id": "42", "text": "hi"}

    monkeypatch.setattr(telegram.requests, "post", lambda *a, **k: FakeResponse(500, "boom"))
    assert send_telegram("hi", "TOKEN", "42") is False

    def raising(*a, **k):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(telegram.requests, "post", raising)
    assert send_telegram("hi", "TOKEN", "42") is False


def test_notifier_counts_sent(monkeypatch):
    monkeypatch.setattr(telegram.requests, "post", lambda *a, **k: FakeResponse())
    notifier = TelegramNotifier("TOKEN", "42")
    notifier.accept(Event(Side.SELL, EventKind.ENTRY, 100.0, T0))
    notifier.accept(Event(Side.SELL, EventKind.EXIT, 95.0, T0, reason=ExitReason.SIGNAL))
    notifier.close()
    assert notifier.sent == 2


def test_format_event():
    text = format_event(Event(Side.BUY, EventKind.EXIT, 110.0, T0, reason=ExitReason.TRAILING_STOP, peak_profit=12))
    assert text.startswith("EXIT BUY @ 110.00")
    assert "reason=TRAILING_STOP" in text
