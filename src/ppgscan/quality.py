"""Signal quality score for filtered PPG.

Smoothing knocks out sample-to-sample noise. If most of the filtered energy
survives a short moving average, the signal is dominated by a slow, clean
oscillation rather than noise.
"""

from __future__ import annotations

import numpy as np


def moving_average(x: np.ndarray, window: int = 3) -> np.ndarray:
    """Centered moving average with windows shortened at the edges.

    Each output is the mean of ``x[i - window//2 : i + window//2 + 1]``
    clipped to the array bounds (no padding).
    """
    x = np.asarray(x, dtype=np.float64)
    n = x.size
    if n == 0:
        return x.copy()
    half = max(int(window), 1) // 2
    csum = np.concatenate(([0.0], np.cumsum(x)))
    idx = np.arange(n)
    lo = np.maximum(0, idx - half)
    hi = np.minimum(n, idx + half + 1)
    return (csum[hi] - csum[lo]) / (hi - lo)


def smoothing_quality(filtered: np.ndarray, window: int = 3) -> float:
    """Return min(1, energy(smoothed) / energy(filtered)), or 0 for zero energy."""
    x = np.asarray(filtered, dtype=np.float64)
    total = float(np.sum(x * x))
    if not np.isfinite(total) or total <= 0.0:
        return 0.0
    sm = moving_average(x, window)
    band = float(np.sum(sm * sm))
    return float(min(1.0, band / total))
