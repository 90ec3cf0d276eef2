"""True range and average true range."""

from __future__ import annotations

import numpy as np
import pandas as pd

from kalman_trader.indicators.moving_averages import check_period


def true_range(high: np.ndarray, low: np.ndarray, close: np.ndarray) -> np.ndarray:
    """max(high-low, |high-prev_close|, |low-prev_close|); row 0 uses its own close."""
    high = np.asarray(high, dtype=np.float64)
    low = np.asarray(low, dtype=np.float64)
    close = np.asarray(close, dtype=np.float64)
    if len(close) == 0:
        return np.zeros(0, dtype=np.float64)
    prev = np.concatenate(([close[0]], close[:-1]))
    return np.maximum.reduce([high - low, np.abs(high - prev), np.abs(low - prev)])


def atr(high: np.ndarray, low: np.ndarray, close: np.ndarray, period: int) -> np.ndarray:
    """Simple average of true range over `period` rows (shorter at the start)."""
    check_period(period, "ATR")
    tr = pd.Series(true_range(high, low, close))
    return tr.rolling(period, min_periods=1).mean().to_numpy()
