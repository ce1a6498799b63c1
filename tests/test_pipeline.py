from __future__ import annotations

import pytest

import ppgscan.pipeline as pipeline
from ppgscan.buffer import Sample
from ppgscan.errors import ErrorCode
from ppgscan.pipeline import AnalysisConfig, AnalysisResult, analyze_samples, evaluate_samples


def test_detects_72_bpm_from_30s_finger_signal(make_ppg_samples) -> None:
    res = analyze_samples(make_ppg_samples(f_hz=1.2, fs=30.0, duration=30.0, noise=0.05))
    assert abs(res.bpm - 72.0) <= 3.0
    assert res.quality >= 0.5


@pytest.mark.parametrize("f_hz", [0.9, 1.5, 2.2])
def test_detects_other_rates_with_frame_jitter(make_ppg_samples, f_hz: float) -> None:
    samples = make_ppg_samples(f_hz=f_hz, duration=30.0, noise=0.05, jitter_ms=4.0, seed=2)
    outcome = evaluate_samples(samples)
    assert outcome.accepted
    assert abs(outcome.result.bpm - 60.0 * f_hz) <= 0.05 * 60.0 * f_hz
    assert outcome.bpm_text() == "%.1f" % outcome.result.bpm


def test_nine_samples_rejected_before_numeric_stages(monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise AssertionError("numeric stage invoked")

    monkeypatch.setattr(pipeline, "resample_uniform", boom)
    monkeypatch.setattr(pipeline, "analyze_samples", boom)
    for n in (0, 1, 9):
        outcome = evaluate_samples([Sample(i * 33, 100.0) for i in range(n)])
        assert outcome.error == ErrorCode.LOW_SAMPLES.value
        assert outcome.result is None
        assert not outcome.accepted


def test_analyze_below_minimum_is_undetermined() -> None:
    res = analyze_samples([Sample(i * 33, 100.0) for i in range(5)])
    assert res == AnalysisResult(bpm=-1.0, quality=0.0)
    assert not res.determined


@pytest.mark.parametrize(
    "computed, accepted",
    [
        (AnalysisResult(-1.0, 0.9), False),
        (AnalysisResult(0.0, 0.9), False),
        (AnalysisResult(72.0, 0.49), False),
        (AnalysisResult(72.0, 0.5), True),
    ],
)
def test_rejection_gate(monkeypatch, computed: AnalysisResult, accepted: bool) -> None:
    monkeypatch.setattr(pipeline, "analyze_samples", lambda samples, cfg=None: computed)
    outcome = evaluate_samples([Sample(i * 33, 100.0) for i in range(20)])
    assert outcome.accepted is accepted
    assert outcome.result == computed
    if not accepted:
        assert outcome.error == ErrorCode.LOW_SIGNAL.value


def test_flat_signal_is_low_signal() -> None:
    outcome = evaluate_samples([Sample(i * 33, 120.0) for i in range(300)])
    assert outcome.error == ErrorCode.LOW_SIGNAL.value
    assert outcome.result is not None
    assert outcome.result.quality == 0.0


def test_custom_threshold_from_config(make_ppg_samples) -> None:
    cfg = AnalysisConfig(quality_threshold=1.01)
    outcome = evaluate_samples(make_ppg_samples(), cfg)
    assert outcome.error == ErrorCode.LOW_SIGNAL.value
    assert outcome.result.bpm > 0
