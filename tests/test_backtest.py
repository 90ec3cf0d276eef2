"""End-to-end tests for backtesting.engine."""

import pytest

from kalman_trader.backtesting.engine import BacktestEngine
from kalman_trader.core.types import EventKind, ExitReason
from kalman_trader.data.series_store import Col
from kalman_trader.strategies.kalman_swap import SignalEngine


class Tap:
    def __init__(self):
        self.events = []
        self.closed = False

    def accept(self, event):
        self.events.append(event)

    def close(self):
        self.closed = True


def test_prepared_store_skips_pipeline(make_signal_store):
    store = make_signal_store([100, 101, 99, 98, 110, 90], [0, 0, 0, 1, 1, -1])
    tap = Tap()
    result = BacktestEngine(SignalEngine(), taps=[tap]).run(store)
    assert len(result.trades) == 1
    trade = result.trades[0]
    assert (trade.entry_price, trade.exit_price, trade.profit) == (98.0, 90.0, -8.0)
    assert trade.reason is ExitReason.SIGNAL
    assert result.stats.net_profit == -8.0
    assert result.stats.max_drawdown == 8.0
    assert result.stats.gross_loss == -8.0
    assert result.stats.winning_trades == 0
    assert result.events == 2
    assert [e.kind for e in tap.events] == [EventKind.ENTRY, EventKind.EXIT]
    assert tap.closed


def test_full_run_from_bars(make_bars, wave_closes):
    result = BacktestEngine(SignalEngine()).run(make_bars(wave_closes))
    assert len(result.store) == len(wave_closes)
    assert result.store.has(Col.SLOW_SWAP)
    assert result.stats.total_trades == len(result.trades)
    assert result.stats.net_profit == pytest.approx(sum(t.profit for t in result.trades))
    assert result.events >= 2 * len(result.trades)
    for t in result.trades:
        assert t.entry_time <= t.exit_time

    records = result.chart_records()
    assert len(records) == len(wave_closes)
    assert {"close", "swap", "swap_base", "fast_tempx_kalman", "slow_tempx_kalman"} <= set(records[0])
    assert len(result.trades_frame()) == len(result.trades)
    assert result.summary_lines()


def test_backtest_is_deterministic(make_bars, wave_closes):
    first = BacktestEngine(SignalEngine()).run(make_bars(wave_closes))
    second = BacktestEngine(SignalEngine()).run(make_bars(wave_closes))
    assert [t.to_dict() for t in first.trades] == [t.to_dict() for t in second.trades]
