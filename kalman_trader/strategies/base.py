"""Abstract strategy: indicators + event generation."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable

from kalman_trader.core.types import Event
from kalman_trader.data.series_store import SeriesStore

Emit = Callable[[Event], None]


class BaseStrategy(ABC):
    """Strategy enriches a SeriesStore with indicators, then walks its rows emitting Events."""

    @abstractmethod
    def compute_indicators(self, store: SeriesStore) -> SeriesStore:
        """Add indicator columns to a store holding raw bars. No lookahead."""
        pass

    @abstractmethod
    def run(self, store: SeriesStore, emit: Emit, start: int = 0) -> int:
        """
        Evaluate rows [start, len(store)) in order, passing each Event to emit.
        Returns the next unprocessed row.
        """
        pass
