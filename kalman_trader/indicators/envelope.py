"""
Adaptive trend envelope ("X"): a ratchet line that follows the lower band
while the oscillator is non-negative and the upper band while it is
non-positive, snapping across on oscillator sign changes.
"""

from __future__ import annotations

import numpy as np


def trend_envelope(source: np.ndarray, oscillator: np.ndarray, scale: np.ndarray, factor: float) -> np.ndarray:
    src = np.asarray(source, dtype=np.float64)
    osc = np.asarray(oscillator, dtype=np.float64)
    n = len(src)
    out = np.zeros(n, dtype=np.float64)
    if n == 0:
        return out
    dn = src + factor * np.asarray(scale, dtype=np.float64)
    up = src - factor * np.asarray(scale, dtype=np.float64)
    out[0] = round(src[0], 3)

    for i in range(1, n):
        if osc[i] >= 0 and osc[i - 1] < 0:
            up[i] = dn[i - 1]
        if osc[i] <= 0 and osc[i - 1] > 0:
            dn[i] = up[i - 1]

        # up never falls while the oscillator holds >= 0, dn never rises while <= 0
        if osc[i] >= 0 and up[i] < up[i - 1]:
            up[i] = up[i - 1]
        if osc[i] <= 0 and dn[i] > dn[i - 1]:
            dn[i] = dn[i - 1]

        if osc[i] >= 0:
            out[i] = round(up[i], 3)
        elif osc[i] <= 0:
            out[i] = round(dn[i], 3)
        else:
            # NaN oscillator
            out[i] = out[i - 1]
    return out
