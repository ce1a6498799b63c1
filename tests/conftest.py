from __future__ import annotations

from typing import Callable

import numpy as np
import pytest

from ppgscan.buffer import Sample


def _make_ppg_samples(
    f_hz: float = 1.2,
    fs: float = 30.0,
    duration: float = 30.0,
    noise: float = 0.05,
    jitter_ms: float = 0.0,
    seed: int = 0,
) -> list[Sample]:
    """Finger-PPG-like luminance: baseline + small pulse + noise, ms timestamps."""
    rng = np.random.RandomState(seed)
    t = np.arange(0, duration, 1 / fs)
    if jitter_ms > 0:
        t = t + rng.uniform(-jitter_ms, jitter_ms, t.size) / 1000.0
        t = np.maximum.accumulate(t)
    x = 150.0 + 2.0 * np.sin(2 * np.pi * f_hz * t) + noise * rng.randn(t.size)
    ts_ms = np.round(t * 1000.0).astype(int)
    return [Sample(int(ts), float(v)) for ts, v in zip(ts_ms, x)]


@pytest.fixture
def make_ppg_samples() -> Callable[..., list[Sample]]:
    return _make_ppg_samples
