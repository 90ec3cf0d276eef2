"""Unit tests for the Kalman swap signal engine."""

import pytest

from kalman_trader.core.errors import ConfigError, PreconditionError
from kalman_trader.core.types import EventKind, ExitReason, Side
from kalman_trader.data.series_store import Col, SeriesStore
from kalman_trader.strategies.exit_policy import TrailingStopExit
from kalman_trader.strategies.kalman_swap import SignalEngine

CLOSES = [100, 101, 99, 98, 110, 90]
SLOW = [0, 0, 0, 1, 1, -1]

# 15:20 IST: rows 0-5 inside the session, 15:26 onwards outside
LATE_EPOCH = 1735811400


def _run(engine, store, start=0):
    events = []
    engine.run(store, events.append, start=start)
    return events


def test_buy_then_signal_exit(make_signal_store):
    events = _run(SignalEngine(), make_signal_store(CLOSES, SLOW))
    assert [(e.kind, e.side, e.price, e.row) for e in events] == [
        (EventKind.ENTRY, Side.BUY, 98.0, 3),
        (EventKind.EXIT, Side.BUY, 90.0, 5),
    ]
    exit_ = events[1]
    assert exit_.reason is ExitReason.SIGNAL
    assert exit_.peak_profit == 12.0
    assert exit_.peak_loss == -8.0


def test_no_same_bar_reentry_by_default(make_signal_store):
    engine = SignalEngine()
    _run(engine, make_signal_store(CLOSES, SLOW))
    assert not engine.position.is_open


def test_same_bar_reentry_when_enabled(make_signal_store):
    engine = SignalEngine(allow_same_bar_reentry=True)
    events = _run(engine, make_signal_store(CLOSES, SLOW))
    assert [(e.kind, e.side) for e in events] == [
        (EventKind.ENTRY, Side.BUY),
        (EventKind.EXIT, Side.BUY),
        (EventKind.ENTRY, Side.SELL),
    ]
    assert engine.position.side is Side.SELL


def test_deviation_outside_band_blocks_entry(make_signal_store):
    assert _run(SignalEngine(), make_signal_store(CLOSES, SLOW, deviation=20.0)) == []
    assert _run(SignalEngine(), make_signal_store(CLOSES, SLOW, deviation=5.0)) == []


def test_late_entry_on_fast_flip(make_signal_store):
    store = make_signal_store([100] * 4, [1, 1, 1, 1], fast_swap=[0, -1, 1, 1])
    events = _run(SignalEngine(), store)
    assert [(e.kind, e.side, e.row) for e in events] == [(EventKind.ENTRY, Side.BUY, 2)]


def test_forced_exit_at_session_end(make_signal_store):
    store = make_signal_store([100] * 8, [0, 1, 1, 1, 1, 1, 0, 0], start=LATE_EPOCH)
    events = _run(SignalEngine(), store)
    assert [(e.kind, e.row) for e in events] == [(EventKind.ENTRY, 1), (EventKind.EXIT, 6)]
    assert events[1].reason is ExitReason.SIGNAL


def test_events_alternate_and_pair_sides(make_signal_store):
    slow = [0, 1, 1, -1, -1, 1, 1, -1, 0, 1]
    closes = [100, 100, 105, 103, 101, 104, 108, 100, 100, 102]
    events = _run(SignalEngine(), make_signal_store(closes, slow))
    assert events
    for i, e in enumerate(events):
        assert e.kind is (EventKind.ENTRY if i % 2 == 0 else EventKind.EXIT)
        if e.kind is EventKind.EXIT:
            assert e.side is events[i - 1].side
            assert e.row >= events[i - 1].row
    rows = [e.row for e in events]
    assert rows == sorted(rows)


def test_start_row_skips_earlier_rows(make_signal_store):
    events = _run(SignalEngine(), make_signal_store(CLOSES, SLOW), start=4)
    assert [(e.kind, e.side, e.row) for e in events] == [(EventKind.ENTRY, Side.SELL, 5)]


def test_fixed_stop_loss(make_signal_store):
    engine = SignalEngine(enable_fixed_sl=True, fixed_sl=-5.0)
    closes = [100, 100, 100, 94]
    events = _run(engine, make_signal_store(closes, [0, 1, 1, 1]))
    assert events[-1].kind is EventKind.EXIT
    assert events[-1].reason is ExitReason.STOP_LOSS


def test_missing_column_is_fatal(make_bars):
    store = SeriesStore.from_bars(make_bars([100, 101]))
    with pytest.raises(PreconditionError):
        _run(SignalEngine(), store)


def test_trailing_policy_requires_atr(make_signal_store):
    engine = SignalEngine(exit_policy=TrailingStopExit())
    with pytest.raises(PreconditionError) as exc:
        _run(engine, make_signal_store(CLOSES, SLOW))
    assert exc.value.column == Col.ATR.value


def test_invalid_band():
    with pytest.raises(ConfigError):
        SignalEngine(deviation_min=10, deviation_max=5)
