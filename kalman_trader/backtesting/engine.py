"""
Backtest engine: one pass over historical bars. Indicators are computed once
over the whole series, then the signal engine walks the rows and streams
events through an EventChannel to the trade aggregator and any taps.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Union

import pandas as pd

from kalman_trader.analytics.aggregator import TRADE_COLUMNS, Stats, TradeAggregator
from kalman_trader.backtesting.channel import EventChannel, EventSink
from kalman_trader.core.types import Bar, TradeRecord
from kalman_trader.data.series_store import Col, SeriesStore
from kalman_trader.strategies.base import BaseStrategy

logger = logging.getLogger("kalman_trader.backtest")

CHART_COLUMNS = (
    Col.TIMESTAMP, Col.EPOCH, Col.OPEN, Col.HIGH, Col.LOW, Col.CLOSE,
    Col.FAST_KALMAN, Col.SLOW_KALMAN, Col.FAST_SWAP, Col.SLOW_SWAP, Col.TREND_SWAP,
)


@dataclass
class BacktestResult:
    """Backtest output: enriched series, closed trades and statistics."""
    store: SeriesStore
    trades: List[TradeRecord] = field(default_factory=list)
    stats: Stats = field(default_factory=Stats)
    events: int = 0

    def chart_records(self) -> List[dict]:
        """Per-row OHLC, Kalman estimates and swap columns for charting."""
        cols = [c for c in CHART_COLUMNS if self.store.has(c)]
        return self.store.to_records(cols)

    def trades_frame(self) -> pd.DataFrame:
        return pd.DataFrame([t.to_dict() for t in self.trades], columns=TRADE_COLUMNS)

    def summary_lines(self) -> List[str]:
        return self.stats.summary_lines()


class BacktestEngine:
    """Runs a strategy over a finite bar sequence."""

    def __init__(self, strategy: BaseStrategy, taps: Sequence[EventSink] = ()):
        self.strategy = strategy
        self.taps = list(taps)

    def run(self, bars: Union[Iterable[Bar], SeriesStore]) -> BacktestResult:
        store = bars if isinstance(bars, SeriesStore) else SeriesStore.from_bars(bars)
        started = time.perf_counter()
        if not store.has_derived():
            self.strategy.compute_indicators(store)
        logger.info("Indicators ready for %d bars in %.3fs", len(store), time.perf_counter() - started)

        aggregator = TradeAggregator()
        channel = EventChannel("backtest")
        channel.subscribe(aggregator)
        for tap in self.taps:
            channel.subscribe(tap)
        channel.start()
        try:
            self.strategy.run(store, channel.put)
        finally:
            channel.close()
            channel.join()
        logger.info("Backtest finished: %d events over %d bars", channel.delivered, len(store))
        return BacktestResult(
            store=store,
            trades=aggregator.trades,
            stats=aggregator.stats,
            events=channel.delivered,
        )
