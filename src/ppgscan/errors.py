"""Error codes and exceptions surfaced by a scan."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    PERMISSION_MISSING = "PERMISSION_MISSING"
    ACQUISITION_FAILED = "ACQUISITION_FAILED"
    LOW_SAMPLES = "LOW_SAMPLES"
    LOW_SIGNAL = "LOW_SIGNAL"


class AcquisitionError(RuntimeError):
    """Device could not be opened, bound or read."""
