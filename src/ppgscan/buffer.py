"""Thread-safe sample buffer for one acquisition window."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class Sample:
    timestamp_ms: int
    luminance: float


class SampleBuffer:
    """Append-only sample list guarded by a lock.

    The producer (camera thread) calls :meth:`add_sample`; the analysis side
    takes the whole window with :meth:`snapshot_and_clear`. Both hold the same
    lock, so a snapshot never splits an append and nothing is dropped at the
    boundary. Timestamp order is trusted, not checked.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._samples: list[Sample] = []

    def add_sample(self, timestamp_ms: int, luminance: float) -> int:
        """Append a sample and return the buffer length after the append."""
        s = Sample(int(timestamp_ms), float(luminance))
        with self._lock:
            self._samples.append(s)
            return len(self._samples)

    def snapshot_and_clear(self) -> tuple[Sample, ...]:
        with self._lock:
            snap = tuple(self._samples)
            self._samples = []
        return snap

    def first_timestamp(self) -> int | None:
        with self._lock:
            return self._samples[0].timestamp_ms if self._samples else None

    def clear(self) -> None:
        with self._lock:
            self._samples = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
