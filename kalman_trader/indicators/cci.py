"""
Commodity channel index on the four-price typical price (open included).
"""

from __future__ import annotations

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from kalman_trader.indicators.moving_averages import check_period


def cci(
    open_: np.ndarray,
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
    period: int,
) -> np.ndarray:
    """
    CCI = (tp - SMA(tp)) / (0.015 * mean absolute deviation), tp = (o+h+l+c)/4,
    rounded to 3 dp. A zero deviation or a zero result carries the previous
    row's value forward. Rows before the first full window are 0.
    """
    check_period(period, "CCI")
    tp = (np.asarray(open_, dtype=np.float64) + high + low + close) / 4.0
    n = len(tp)
    out = np.zeros(n, dtype=np.float64)
    if n < period:
        return out
    windows = sliding_window_view(tp, period)
    ma = windows.mean(axis=1)
    md = np.abs(windows - ma[:, None]).mean(axis=1)
    for k, i in enumerate(range(period - 1, n)):
        prev = out[i - 1] if i > 0 else 0.0
        if md[k] == 0:
            out[i] = prev
            continue
        value = round((tp[i] - ma[k]) / (0.015 * md[k]), 3)
        out[i] = prev if value == 0 else value
    return out
