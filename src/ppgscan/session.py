"""Acquisition window lifecycle.

A scan has two phases that never overlap. During acquisition a luminance
source pushes samples from its own thread. When the timer fires or a stop
is requested, the window closes and the snapshot is analyzed exactly once.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .buffer import SampleBuffer
from .errors import AcquisitionError, ErrorCode
from .pipeline import AnalysisConfig, ScanOutcome, evaluate_samples

logger = logging.getLogger(__name__)

SampleCallback = Callable[[int, float], None]


class LuminanceSource(Protocol):
    """Device side of a scan (camera, sensor, replay file)."""

    def check_permission(self) -> bool: ...

    def start(self, on_sample: SampleCallback) -> None: ...

    def stop(self) -> None: ...


@dataclass(frozen=True)
class ScanEvent:
    kind: str  # started | progress | result | error
    value: str


def progress_percent(elapsed_seconds: float, duration_seconds: float) -> int:
    if duration_seconds <= 0:
        return 100
    pct = int(round(100.0 * elapsed_seconds / duration_seconds))
    return max(0, min(100, pct))


class ScanSession:
    """Run one acquisition window at a time and report its outcome.

    Args:
        source: device that produces samples; ``None`` when samples are
            pushed directly through :meth:`add_sample` (e.g. over HTTP).
        config: analysis parameters.
        listener: called with every :class:`ScanEvent`, possibly from the
            source or timer thread.
    """

    PROGRESS_EVERY = 10

    def __init__(
        self,
        source: Optional[LuminanceSource] = None,
        config: Optional[AnalysisConfig] = None,
        listener: Optional[Callable[[ScanEvent], None]] = None,
    ) -> None:
        self.source = source
        self.config = config or AnalysisConfig()
        self.listener = listener
        self._buffer = SampleBuffer()
        self._lock = threading.Lock()
        self._running = False
        self._finished = True
        self._duration = 0.0
        self._timer: Optional[threading.Timer] = None
        self._done = threading.Event()
        self._outcome: Optional[ScanOutcome] = None
        self._events: list[ScanEvent] = []

    @property
    def running(self) -> bool:
        return self._running

    @property
    def outcome(self) -> Optional[ScanOutcome]:
        return self._outcome

    @property
    def events(self) -> list[ScanEvent]:
        with self._lock:
            return list(self._events)

    def start(self, duration_seconds: int = 30) -> bool:
        """Open a new window. Returns False if a precondition failed."""
        with self._lock:
            if self._running:
                raise RuntimeError("Scan already running")
            self._running = True
            self._finished = False
            self._buffer.clear()
            self._events = []
            self._outcome = None
            self._done = threading.Event()
            self._duration = float(duration_seconds)
            self._timer = threading.Timer(self._duration, self._on_timer)
            self._timer.daemon = True

        try:
            granted = self._permission_granted()
        except Exception as e:
            logger.exception("Device check failed")
            self.fail(str(e))
            return False
        if not granted:
            logger.warning("Scan refused: permission missing")
            with self._lock:
                self._running = False
                self._finished = True
                self._timer = None
            self._reject(ErrorCode.PERMISSION_MISSING.value)
            return False

        if self.source is not None:
            try:
                self.source.start(self.add_sample)
            except AcquisitionError as e:
                logger.error("Acquisition failed to start: %s", e)
                self.fail(str(e))
                return False
            except Exception as e:
                logger.exception("Luminance source raised on start")
                self.fail(str(e) or type(e).__name__)
                return False

        with self._lock:
            timer = self._timer
        if timer is None:
            # Source failed from its own thread before we got here
            return False
        logger.info("Scan started (%.0f s)", self._duration)
        self._emit(ScanEvent("started", "true"))
        timer.start()
        return True

    def add_sample(self, timestamp_ms: int, luminance: float) -> None:
        """Append one frame's luminance. Ignored outside an open window."""
        # Checked under the session lock so no frame lands after _finish snapshots
        with self._lock:
            if not self._running:
                return
            n = self._buffer.add_sample(timestamp_ms, luminance)
        if n % self.PROGRESS_EVERY == 0:
            first = self._buffer.first_timestamp()
            if first is None:
                return
            elapsed = (int(timestamp_ms) - first) / 1000.0
            self._emit(ScanEvent("progress", str(progress_percent(elapsed, self._duration))))

    def request_stop(self) -> Optional[ScanOutcome]:
        """End the window early and analyze what was collected."""
        return self._finish()

    def fail(self, message: str) -> Optional[ScanOutcome]:
        """Abort the window after an acquisition-layer error; no analysis."""
        return self._finish(error_message=message)

    def wait(self, timeout: Optional[float] = None) -> Optional[ScanOutcome]:
        """Block until the current window has an outcome."""
        self._done.wait(timeout)
        return self._outcome

    def _permission_granted(self) -> bool:
        if self.source is None:
            return True
        try:
            return bool(self.source.check_permission())
        except PermissionError as e:
            logger.warning("Permission check raised: %s", e)
            return False

    def _on_timer(self) -> None:
        logger.info("Scan duration elapsed")
        self._finish()

    def _finish(self, error_message: Optional[str] = None) -> Optional[ScanOutcome]:
        with self._lock:
            if self._finished:
                return self._outcome
            self._finished = True
            self._running = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

        try:
            self._release_source()
            snap = self._buffer.snapshot_and_clear()
            if error_message is not None:
                outcome = ScanOutcome(result=None, error=ErrorCode.ACQUISITION_FAILED.value)
                self._outcome = outcome
                self._emit(ScanEvent("error", f"{ErrorCode.ACQUISITION_FAILED.value}: {error_message}"))
                return outcome

            outcome = evaluate_samples(snap, self.config)
            self._outcome = outcome
            if outcome.accepted:
                logger.info(
                    "Scan result: %.1f BPM (quality %.2f, %d samples)",
                    outcome.result.bpm, outcome.result.quality, len(snap),
                )
                self._emit(ScanEvent("result", outcome.bpm_text()))
            else:
                if outcome.result is not None:
                    logger.info(
                        "Scan rejected: %s (bpm=%.1f quality=%.2f)",
                        outcome.error, outcome.result.bpm, outcome.result.quality,
                    )
                else:
                    logger.info("Scan rejected: %s (%d samples)", outcome.error, len(snap))
                self._emit(ScanEvent("error", str(outcome.error)))
            return outcome
        finally:
            self._buffer.clear()
            self._done.set()

    def _release_source(self) -> None:
        if self.source is None:
            return
        try:
            self.source.stop()
        except Exception:
            logger.exception("Failed to release luminance source")

    def _reject(self, code: str) -> None:
        self._outcome = ScanOutcome(result=None, error=code)
        self._emit(ScanEvent("error", code))
        self._done.set()

    def _emit(self, event: ScanEvent) -> None:
        with self._lock:
            self._events.append(event)
        if self.listener is None:
            return
        try:
            self.listener(event)
        except Exception:
            logger.exception("Scan listener raised on %s", event.kind)
