"""
Direction ("swap") detectors: -1 / 0 / +1 per row, zeroed outside the
active session. Both carry the previous value forward unless an ATR
expansion confirms a new direction.
"""

from __future__ import annotations

import numpy as np

from kalman_trader.core.session import ActiveSession
from kalman_trader.indicators.moving_averages import sma
from kalman_trader.indicators.volatility import atr


def trend_swap(
    source: np.ndarray,
    reference: np.ndarray,
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
    epochs: np.ndarray,
    session: ActiveSession,
) -> np.ndarray:
    """
    Classic detector: source above/below its reference average, gated by
    ATR expansion (ATR(3) + |close - close[2 bars back]| > ATR(10)). A move of
    less than SMA(ATR(5), 10) against the value two bars back holds the
    previous direction.
    """
    src = np.asarray(source, dtype=np.float64)
    ref = np.asarray(reference, dtype=np.float64)
    n = len(src)
    swap = np.zeros(n, dtype=np.float64)
    if n == 0:
        return swap
    atr3 = atr(high, low, close, 3)
    atr10 = atr(high, low, close, 10)
    noise = sma(atr(high, low, close, 5), 10)
    active = session.mask(epochs)

    for i in range(1, n):
        swap[i] = swap[i - 1]
        if i >= 2:
            expansion = (atr3[i] + abs(close[i - 2] - close[i])) > atr10[i]
            if expansion:
                if src[i] > ref[i]:
                    swap[i] = 1
                elif src[i] < ref[i]:
                    swap[i] = -1
            if abs(round(src[i], 3) - round(src[i - 2], 3)) < noise[i]:
                swap[i] = swap[i - 1]
        else:
            if src[i] > ref[i]:
                swap[i] = 1
            elif src[i] < ref[i]:
                swap[i] = -1
        if not active[i]:
            swap[i] = 0
    return swap


def kalman_swap(
    source: np.ndarray,
    short_atr: np.ndarray,
    factor: float,
    epochs: np.ndarray,
    session: ActiveSession,
) -> np.ndarray:
    """
    Detector for Kalman-smoothed series: a bar-to-bar move larger than
    `factor * short_atr` sets the direction of the move.
    """
    src = np.asarray(source, dtype=np.float64)
    n = len(src)
    swap = np.zeros(n, dtype=np.float64)
    active = session.mask(epochs)
    for i in range(2, n):
        swap[i] = swap[i - 1]
        step = src[i] - src[i - 1]
        if abs(step) > factor * short_atr[i]:
            if step > 0:
                swap[i] = 1
            elif step < 0:
                swap[i] = -1
        if not active[i]:
            swap[i] = 0
    return swap
