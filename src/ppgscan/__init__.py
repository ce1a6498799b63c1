"""Finger PPG heart-rate scan package.

Converts an irregular stream of (timestamp_ms, luminance) samples into a
BPM estimate with a quality score.
"""

__all__ = [
    "app",
    "buffer",
    "capture",
    "resample",
    "preprocess",
    "quality",
    "acf_bpm",
    "pipeline",
    "errors",
    "session",
    "service",
]

__version__ = "0.1.0"
