"""End-to-end analysis of one acquisition window.

Stages run strictly in order on buffers owned by the call:
resample -> detrend -> band-pass -> quality -> autocorrelation -> BPM.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .acf_bpm import autocorrelate, find_best_lag, lag_to_bpm
from .buffer import Sample
from .errors import ErrorCode
from .preprocess import bandpass, detrend_mean
from .quality import smoothing_quality
from .resample import resample_uniform


@dataclass
class AnalysisConfig:
    f_low: float = 0.7  # Hz (42 BPM)
    f_high: float = 4.0  # Hz (240 BPM)
    fallback_fs: float = 30.0
    min_samples: int = 10
    min_length: int = 32
    smooth_window: int = 3
    quality_threshold: float = 0.5


@dataclass(frozen=True)
class AnalysisResult:
    bpm: float  # -1.0 when undetermined
    quality: float  # 0..1

    @property
    def determined(self) -> bool:
        return self.bpm > 0


UNDETERMINED = AnalysisResult(bpm=-1.0, quality=0.0)


@dataclass(frozen=True)
class ScanOutcome:
    """Accepted result or rejection code for one window.

    ``error`` is ``None`` when accepted. ``result`` is ``None`` when no
    numeric stage ran (too few samples, or acquisition never completed).
    """

    result: Optional[AnalysisResult]
    error: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.error is None

    def bpm_text(self) -> str:
        if self.result is None:
            return ""
        return "%.1f" % self.result.bpm


def analyze_samples(
    samples: Sequence[Sample],
    cfg: AnalysisConfig | None = None,
) -> AnalysisResult:
    """Compute ``(bpm, quality)`` for a sample snapshot.

    Returns ``UNDETERMINED`` for fewer than ``cfg.min_samples`` samples.
    """
    cfg = cfg or AnalysisConfig()
    if len(samples) < max(2, cfg.min_samples):
        return UNDETERMINED
    sig = resample_uniform(samples, fallback_fs=cfg.fallback_fs, min_length=cfg.min_length)
    x = detrend_mean(sig.values)
    filtered = bandpass(x, sig.fs, cfg.f_low, cfg.f_high)
    quality = smoothing_quality(filtered, cfg.smooth_window)
    acf = autocorrelate(filtered)
    lag = find_best_lag(acf, sig.fs, cfg.f_low, cfg.f_high)
    return AnalysisResult(bpm=lag_to_bpm(lag, sig.fs), quality=quality)


def evaluate_samples(
    samples: Sequence[Sample],
    cfg: AnalysisConfig | None = None,
) -> ScanOutcome:
    """Apply the sample gate, analyze, then apply the accept threshold."""
    cfg = cfg or AnalysisConfig()
    if len(samples) < cfg.min_samples:
        return ScanOutcome(result=None, error=ErrorCode.LOW_SAMPLES.value)
    res = analyze_samples(samples, cfg)
    if res.bpm <= 0 or res.quality < cfg.quality_threshold:
        return ScanOutcome(result=res, error=ErrorCode.LOW_SIGNAL.value)
    return ScanOutcome(result=res)
