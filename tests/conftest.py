"""Shared fixtures: synthetic bars inside the default session (10:00 IST onwards)."""

import math

import numpy as np
import pytest

from kalman_trader.core.types import Bar
from kalman_trader.data.series_store import Col, SeriesStore

# 2025-01-02 04:30 UTC == 10:00 at +05:30
BASE_EPOCH = 1735792200


def _make_bars(closes, start=BASE_EPOCH, step=60, spread=1.0):
    bars = []
    for i, close in enumerate(closes):
        open_ = closes[i - 1] if i else close
        bars.append(Bar.from_epoch(
            start + i * step,
            open_,
            max(open_, close) + spread,
            min(open_, close) - spread,
            close,
            100.0,
        ))
    return bars


def _make_signal_store(closes, slow_swap, fast_swap=None, deviation=10.0, start=BASE_EPOCH):
    n = len(closes)
    store = SeriesStore.from_bars(_make_bars(closes, start=start))
    store.add(Col.FAST_KALMAN, np.full(n, 100.0))
    store.add(Col.SLOW_KALMAN, np.full(n, 100.0 + deviation))
    store.add(Col.FAST_SWAP, fast_swap if fast_swap is not None else [0] * n)
    store.add(Col.SLOW_SWAP, slow_swap)
    return store


@pytest.fixture
def make_bars():
    return _make_bars


@pytest.fixture
def make_signal_store():
    """Store with hand-set Kalman/swap columns, bypassing the pipeline."""
    return _make_signal_store


@pytest.fixture
def wave_closes():
    """150 closes: a slow swing plus a faster ripple around 22000."""
    return [
        round(22000 + 60 * math.sin(i / 12.0) + 15 * math.sin(i / 2.5) + 0.3 * i, 2)
        for i in range(150)
    ]
