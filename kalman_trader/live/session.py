"""
Live (forward-in-time) session. Bars arrive one at a time; the pipeline is
recomputed over the full history on each arrival because the smoother is a
whole-series transform, and only the newly appended rows are evaluated by a
persistent signal engine. Events stream through a channel that stays open
until close().
"""

from __future__ import annotations
import logging
import threading
from typing import Iterable, List, Optional, Sequence

from kalman_trader.analytics.aggregator import Stats, TradeAggregator
from kalman_trader.backtesting.channel import EventChannel, EventSink
from kalman_trader.core.types import Bar, TradeRecord
from kalman_trader.data.loader import CsvBarFeed
from kalman_trader.data.series_store import SeriesStore
from kalman_trader.strategies.base import BaseStrategy

logger = logging.getLogger("kalman_trader.live")


class LiveSession:
    def __init__(self, strategy: BaseStrategy, taps: Sequence[EventSink] = ()):
        self.strategy = strategy
        self.aggregator = TradeAggregator(title="LIVE SUMMARY")
        self.channel = EventChannel("live")
        self.channel.subscribe(self.aggregator)
        for tap in taps:
            self.channel.subscribe(tap)
        self.channel.start()
        self._raw = SeriesStore()
        self.store = self._raw
        self._next_row = 0

    def __len__(self) -> int:
        return len(self._raw)

    @property
    def next_row(self) -> int:
        return self._next_row

    def load_history(self, bars: Iterable[Bar]) -> int:
        """Seed bars that are only context: they are never evaluated for signals."""
        added = self._raw.append_bars(bars)
        self._next_row = len(self._raw)
        logger.info("Loaded %d history bars", added)
        return added

    def on_bar(self, bar: Bar) -> SeriesStore:
        return self.on_bars([bar])

    def on_bars(self, bars: Iterable[Bar]) -> SeriesStore:
        if self._raw.append_bars(bars) == 0:
            return self.store
        store = self._raw.raw_copy()
        self.strategy.compute_indicators(store)
        self._next_row = self.strategy.run(store, self.channel.put, start=self._next_row)
        self.store = store
        return store

    def follow(
        self,
        feed: CsvBarFeed,
        interval: float,
        stop: Optional[threading.Event] = None,
        max_polls: Optional[int] = None,
    ) -> None:
        """Poll `feed` every `interval` seconds until stopped."""
        polls = 0
        stop = stop or threading.Event()
        while not stop.is_set():
            bars = feed.poll()
            if bars:
                self.on_bars(bars)
                logger.debug("Processed %d new bars (total %d)", len(bars), len(self._raw))
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            stop.wait(interval)

    def close(self) -> None:
        self.channel.close()
        self.channel.join()

    @property
    def stats(self) -> Stats:
        return self.aggregator.stats

    @property
    def trades(self) -> List[TradeRecord]:
        return self.aggregator.trades

    def chart_records(self) -> List[dict]:
        return self.store.to_records()
