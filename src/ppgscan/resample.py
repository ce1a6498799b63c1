"""Uniform resampling of irregularly timed luminance samples.

Frame delivery jitters, so the raw series is not evenly spaced. The sampling
rate is inferred from the median frame interval and the series is linearly
interpolated onto that grid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .buffer import Sample


@dataclass
class UniformSignal:
    values: np.ndarray  # float64, length N
    fs: float  # Hz
    t0: float  # seconds, time of values[0]

    def __len__(self) -> int:
        return int(self.values.size)


def infer_rate(t_sec: np.ndarray, fallback_fs: float = 30.0) -> float:
    """Sampling rate as 1 / median(dt), or ``fallback_fs`` if that is not positive.

    The median is the upper middle element of the sorted intervals for even
    counts, not the average of the two middle ones.
    """
    dt = np.diff(np.asarray(t_sec, dtype=np.float64))
    if dt.size == 0:
        return float(fallback_fs)
    med = float(np.sort(dt)[dt.size // 2])
    if med <= 0.0:
        return float(fallback_fs)
    return 1.0 / med


def resample_uniform(
    samples: Sequence[Sample],
    fallback_fs: float = 30.0,
    min_length: int = 32,
) -> UniformSignal:
    """Linearly interpolate ``samples`` onto a uniform grid.

    Args:
        samples: time-ordered samples (at least two).
        fallback_fs: rate used when timestamps are degenerate.
        min_length: lower bound on the output length.

    Returns:
        UniformSignal of length ``max(min_length, round(duration * fs))``.
        Grid points past the last sample hold the last value.
    """
    if len(samples) < 2:
        raise ValueError("need at least two samples to resample")
    t = np.array([s.timestamp_ms for s in samples], dtype=np.float64) / 1000.0
    v = np.array([s.luminance for s in samples], dtype=np.float64)
    fs = infer_rate(t, fallback_fs)
    duration = float(t[-1] - t[0])
    n = max(int(min_length), int(round(duration * fs)))
    t0 = float(t[0])

    out = np.empty(n, dtype=np.float64)
    last = t.size - 1
    j = 0
    for k in range(n):
        tt = t0 + k / fs
        # Grid times increase, so the bracket only moves forward
        while j < last and t[j + 1] <= tt:
            j += 1
        j_b = min(j + 1, last)
        t_a, t_b = t[j], t[j_b]
        if t_b > t_a:
            out[k] = v[j] + (v[j_b] - v[j]) * (tt - t_a) / (t_b - t_a)
        else:
            out[k] = v[j]
    return UniformSignal(values=out, fs=fs, t0=t0)
