"""Tests for the main.py CLI entry points."""

import math

import pandas as pd

import main
from kalman_trader.utils import telegram


def _write_bars(path, make_bars, n=360):
    closes = [
        round(22000 + 60 * math.sin(i / 12.0) + 15 * math.sin(i / 2.5) + 0.3 * i, 2)
        for i in range(n)
    ]
    rows = [
        [b.timestamp.isoformat(), b.open, b.high, b.low, b.close, b.volume]
        for b in make_bars(closes)
    ]
    pd.DataFrame(rows, columns=["timestamp", "open", "high", "low", "close", "volume"]).to_csv(path, index=False)


def test_backtest_sends_nothing_to_telegram(tmp_path, monkeypatch, make_bars):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "TOKEN")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "42")
    posts = []
    monkeypatch.setattr(telegram.requests, "post", lambda *a, **k: posts.append(k.get("json")))

    data = tmp_path / "bars.csv"
    _write_bars(data, make_bars)
    config = tmp_path / "config.yaml"
    config.write_text('logging:\n  log_file: ""\n', encoding="utf-8")

    assert main.run_backtest(config, data) == 0
    assert posts == []
