"""Autocorrelation-based BPM estimation.

The autocorrelation of the band-passed signal peaks at the pulse period. The
search is limited to lags that map into the physiological band.
"""

from __future__ import annotations

import math

import numpy as np


def autocorrelate(x: np.ndarray) -> np.ndarray:
    """Autocorrelation for lags 0..N-1, each sum divided by N (not N - lag)."""
    x = np.asarray(x, dtype=np.float64)
    n = x.size
    if n == 0:
        return np.zeros(0, dtype=np.float64)
    full = np.correlate(x, x, mode="full")
    return full[n - 1 :] / float(n)


def lag_bounds(fs: float, n: int, fmin: float = 0.7, fmax: float = 4.0) -> tuple[int, int]:
    """Inclusive lag search range ``(lag_min, lag_max)``; may be empty."""
    lag_min = max(1, int(math.floor(fs / fmax)))
    lag_max = min(n - 1, int(math.ceil(fs / fmin)))
    return lag_min, lag_max


def find_best_lag(
    acf: np.ndarray,
    fs: float,
    fmin: float = 0.7,
    fmax: float = 4.0,
) -> int:
    """Lag with the largest raw ACF value inside the band, or -1.

    Ties resolve to the smallest lag. Non-finite ACF values are skipped.
    """
    acf = np.asarray(acf, dtype=np.float64)
    if fs <= 0 or acf.size < 2:
        return -1
    lag_min, lag_max = lag_bounds(fs, acf.size, fmin, fmax)
    if lag_max < lag_min:
        return -1
    roi = acf[lag_min : lag_max + 1]
    finite = np.isfinite(roi)
    if not np.any(finite):
        return -1
    # argmax returns the first occurrence of the maximum
    k = int(np.argmax(np.where(finite, roi, -np.inf)))
    return k + lag_min


def lag_to_bpm(lag: int, fs: float) -> float:
    """60 / (lag / fs), or -1.0 for an undetermined lag."""
    if lag <= 0 or fs <= 0:
        return -1.0
    return 60.0 / (lag / fs)
