"""Signal preprocessing for finger PPG."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy.signal import lfilter


def detrend_mean(x: np.ndarray) -> np.ndarray:
    """Remove the DC offset (arithmetic mean)."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    return x - float(np.mean(x))


@dataclass(frozen=True)
class BiquadCoeffs:
    """Biquad coefficients normalized by a0."""

    b0: float
    b1: float
    b2: float
    a1: float
    a2: float

    @property
    def b(self) -> np.ndarray:
        return np.array([self.b0, self.b1, self.b2], dtype=np.float64)

    @property
    def a(self) -> np.ndarray:
        return np.array([1.0, self.a1, self.a2], dtype=np.float64)


def design_bandpass_biquad(fc: float, q: float, fs: float) -> BiquadCoeffs:
    """Constant-skirt-gain band-pass biquad (RBJ cookbook form).

    Args:
        fc: center frequency [Hz].
        q: quality factor.
        fs: sampling rate [Hz].
    """
    if fs <= 0 or q <= 0:
        raise ValueError("fs and q must be positive")
    w0 = 2.0 * math.pi * fc / fs
    alpha = math.sin(w0) / (2.0 * q)
    a0 = 1.0 + alpha
    return BiquadCoeffs(
        b0=alpha / a0,
        b1=0.0,
        b2=-alpha / a0,
        a1=-2.0 * math.cos(w0) / a0,
        a2=(1.0 - alpha) / a0,
    )


def apply_biquad(x: np.ndarray, coeffs: BiquadCoeffs) -> np.ndarray:
    """Run one forward pass of the biquad from zero initial state."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    return lfilter(coeffs.b, coeffs.a, x)


def bandpass(
    x: np.ndarray,
    fs: float,
    fmin: float = 0.7,
    fmax: float = 4.0,
) -> np.ndarray:
    """Band-pass by running one biquad twice, both passes forward.

    The second pass filters the output of the first with the same
    coefficients. This is not zero-phase; the phase shift of both passes
    accumulates.

    Args:
        x: 1D array.
        fs: sampling rate [Hz].
        fmin: low edge [Hz].
        fmax: high edge [Hz].
    """
    if not (0 < fmin < fmax):
        raise ValueError("band edges must satisfy 0 < fmin < fmax")
    fc = math.sqrt(fmin * fmax)
    q = fc / (fmax - fmin)
    coeffs = design_bandpass_biquad(fc, q, fs)
    once = apply_biquad(x, coeffs)
    return apply_biquad(once, coeffs)
