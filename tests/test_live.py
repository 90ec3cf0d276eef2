"""Tests for live.session."""

from kalman_trader.live.session import LiveSession
from kalman_trader.strategies.base import BaseStrategy
from kalman_trader.strategies.kalman_swap import SignalEngine


class RecordingStrategy(BaseStrategy):
    def __init__(self):
        self.calls = []

    def compute_indicators(self, store):
        return store

    def run(self, store, emit, start=0):
        self.calls.append((start, len(store)))
        return len(store)


def test_history_is_not_evaluated(make_bars):
    strategy = RecordingStrategy()
    live = LiveSession(strategy)
    bars = make_bars([100, 101, 102, 103, 104, 105, 106])
    assert live.load_history(bars[:5]) == 5
    assert strategy.calls == []
    live.on_bar(bars[5])
    live.on_bar(bars[6])
    live.close()
    assert strategy.calls == [(5, 6), (6, 7)]
    assert live.next_row == 7


def test_empty_update_is_noop(make_bars):
    strategy = RecordingStrategy()
    live = LiveSession(strategy)
    live.on_bars([])
    live.close()
    assert strategy.calls == []


def test_live_matches_incremental_pipeline(make_bars, wave_closes):
    bars = make_bars(wave_closes)
    live = LiveSession(SignalEngine())
    live.load_history(bars[:60])
    for bar in bars[60:]:
        live.on_bar(bar)
    live.close()
    assert len(live) == len(bars)
    assert len(live.store) == len(bars)
    assert live.stats.total_trades == len(live.trades)
    history_end = bars[59].timestamp
    for t in live.trades:
        assert t.entry_time > history_end
    assert len(live.chart_records()) == len(bars)
