"""
Moving averages over numpy arrays.

WMA and EMA are ceiling-rounded to whole price units; the deviation band
thresholds downstream were tuned against these exact values.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from kalman_trader.core.errors import ConfigError


def check_period(period: int, name: str) -> None:
    if not isinstance(period, (int, np.integer)) or period <= 0:
        raise ConfigError(f"{name} period must be a positive integer, got {period!r}")


def wma(source: np.ndarray, period: int) -> np.ndarray:
    """
    Linearly weighted moving average, newest row weighted `period`, oldest 1.
    Rows without a full window are 0.
    """
    check_period(period, "WMA")
    src = np.asarray(source, dtype=np.float64)
    out = np.zeros(len(src), dtype=np.float64)
    if len(src) < period:
        return out
    weights = np.arange(1, period + 1, dtype=np.float64)
    windows = sliding_window_view(src, period)
    out[period - 1:] = np.ceil(windows @ weights / weights.sum())
    return out


def ema(source: np.ndarray, period: int) -> np.ndarray:
    """EMA seeded with the first value (alpha = 2 / (period + 1)), ceiling-rounded."""
    check_period(period, "EMA")
    src = pd.Series(np.asarray(source, dtype=np.float64))
    return np.ceil(src.ewm(span=period, adjust=False).mean().to_numpy())


def sma(source: np.ndarray, period: int) -> np.ndarray:
    """Simple moving average; the first rows average what is available. Rounded to 2 dp."""
    check_period(period, "SMA")
    src = pd.Series(np.asarray(source, dtype=np.float64))
    return np.round(src.rolling(period, min_periods=1).mean().to_numpy(), 2)


def ohlc4(open_: np.ndarray, high: np.ndarray, low: np.ndarray, close: np.ndarray) -> np.ndarray:
    return np.round((np.asarray(open_) + high + low + close) / 4.0, 2)
