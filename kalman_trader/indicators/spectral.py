"""
Spectral + Kalman smoother.

Stage 1: for every row, an ideal low-pass FFT filter over the trailing
window (zero-padded to a power of two); the row's value is the filtered
sample at the window's last position.
Stage 2: a scalar Kalman filter run once over the stage 1 series, with the
measurement noise R taken from the residual variance of source minus
stage 1 output and the process noise Q = 1% of R (both floored at 1e-6).
Output is ceiling-rounded.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from kalman_trader.core.errors import ConfigError, PreconditionError

logger = logging.getLogger("kalman_trader.indicators.spectral")

VARIANCE_FLOOR = 1e-6
PROCESS_NOISE_RATIO = 0.01
# Rows per batched FFT; bounds memory for long histories.
_CHUNK_ROWS = 4096


def next_pow2(n: int) -> int:
    p = 1
    while p < n:
        p <<= 1
    return p


def cutoff_bin(n: int, cutoff_divisor: int) -> int:
    """First zeroed bin: n // divisor clamped to [1, n // 2]."""
    return min(max(n // cutoff_divisor, 1), n // 2)


def lowpass_last(window: np.ndarray, cutoff_divisor: int) -> float:
    """Low-pass `window` and return the filtered value at its last sample."""
    w = np.asarray(window, dtype=np.float64)
    if len(w) == 0:
        return 0.0
    n = next_pow2(len(w))
    if n < 2:
        return float(w[-1])
    spectrum = np.fft.fft(w, n)
    cutoff = cutoff_bin(n, cutoff_divisor)
    spectrum[cutoff:n - cutoff] = 0
    return float(np.fft.ifft(spectrum)[len(w) - 1].real)


def lowpass_series(source: np.ndarray, window: int, cutoff_divisor: int) -> np.ndarray:
    """Sliding-window low-pass estimate for every row of `source`."""
    src = np.asarray(source, dtype=np.float64)
    rows = len(src)
    out = np.zeros(rows, dtype=np.float64)

    # Leading rows see a partial window.
    for i in range(min(window - 1, rows)):
        out[i] = lowpass_last(src[: i + 1], cutoff_divisor)
    if rows < window:
        return out

    n = next_pow2(window)
    if n < 2:
        out[window - 1:] = src[window - 1:]
        return out
    cutoff = cutoff_bin(n, cutoff_divisor)
    windows = sliding_window_view(src, window)
    for start in range(0, len(windows), _CHUNK_ROWS):
        block = windows[start:start + _CHUNK_ROWS]
        spectrum = np.fft.fft(block, n=n, axis=1)
        spectrum[:, cutoff:n - cutoff] = 0
        filtered = np.fft.ifft(spectrum, axis=1)[:, window - 1].real
        first = window - 1 + start
        out[first:first + len(block)] = filtered
    return out


def residual_variance(source: np.ndarray, smoothed: np.ndarray) -> float:
    """Population variance of (source - smoothed); 0 for empty or mismatched input."""
    source = np.asarray(source, dtype=np.float64)
    smoothed = np.asarray(smoothed, dtype=np.float64)
    if len(source) == 0 or len(source) != len(smoothed):
        return 0.0
    return float(np.var(source - smoothed))


def scalar_kalman(measurements: np.ndarray, r: float, q: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Random-walk Kalman filter. State starts at the first measurement with
    variance r; each later row predicts (p += q) then updates.
    Returns (estimates, gains) where gains[i - 1] is the gain used at row i.
    """
    z = np.asarray(measurements, dtype=np.float64)
    n = len(z)
    estimates = np.zeros(n, dtype=np.float64)
    gains = np.zeros(max(n - 1, 0), dtype=np.float64)
    if n == 0:
        return estimates, gains
    x = z[0]
    p = r
    estimates[0] = x
    for i in range(1, n):
        p += q
        k = p / (p + r)
        x += k * (z[i] - x)
        p = (1 - k) * p
        estimates[i] = x
        gains[i - 1] = k
    return estimates, gains


@dataclass(frozen=True)
class SmootherResult:
    fft_smoothed: np.ndarray
    estimates: np.ndarray
    gains: np.ndarray
    r: float
    q: float

    @property
    def output(self) -> np.ndarray:
        return np.ceil(self.estimates)


@dataclass(frozen=True)
class SpectralKalmanSmoother:
    window: int = 64
    cutoff_divisor: int = 128

    def __post_init__(self) -> None:
        if self.window <= 0:
            raise ConfigError(f"spectral window must be positive, got {self.window}")
        if self.cutoff_divisor <= 0:
            raise ConfigError(f"cutoff divisor must be positive, got {self.cutoff_divisor}")

    def filter(self, source: np.ndarray) -> SmootherResult:
        src = np.asarray(source, dtype=np.float64)
        if len(src) == 0:
            raise PreconditionError("empty input", transform="spectral_kalman")
        fft_smoothed = lowpass_series(src, self.window, self.cutoff_divisor)
        r = max(residual_variance(src, fft_smoothed), VARIANCE_FLOOR)
        q = max(r * PROCESS_NOISE_RATIO, VARIANCE_FLOOR)
        estimates, gains = scalar_kalman(fft_smoothed, r, q)
        logger.debug("window=%d divisor=%d R=%.6g Q=%.6g", self.window, self.cutoff_divisor, r, q)
        return SmootherResult(fft_smoothed, estimates, gains, r, q)

    def smooth(self, source: np.ndarray) -> np.ndarray:
        return self.filter(source).output
