"""Camera luminance source (OpenCV-based).

Reads frames on a background thread, reduces each frame to the mean red
intensity of a centered box, and hands ``(timestamp_ms, luminance)`` to the
scan session.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .errors import AcquisitionError

logger = logging.getLogger(__name__)

_CHANNELS = {"blue": 0, "green": 1, "red": 2}


@dataclass
class CaptureConfig:
    device_index: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    roi_fraction: float = 1.0 / 3.0  # box side relative to the shorter frame side
    channel: str = "red"


def center_luminance(
    frame_bgr: np.ndarray,
    roi_fraction: float = 1.0 / 3.0,
    channel: str = "red",
) -> float:
    """Mean intensity of one color channel over a centered square.

    Args:
        frame_bgr: HxWx3 array in BGR order, or HxW grayscale.
        roi_fraction: side of the square relative to min(H, W).
        channel: "red", "green" or "blue"; ignored for grayscale frames.
    """
    if frame_bgr.ndim not in (2, 3):
        raise ValueError("frame must be HxW or HxWx3 array")
    h, w = frame_bgr.shape[:2]
    if h == 0 or w == 0:
        return 0.0
    side = max(1, int(min(h, w) * roi_fraction))
    y0 = h // 2 - side // 2
    x0 = w // 2 - side // 2
    box = frame_bgr[y0 : y0 + side, x0 : x0 + side]
    if box.ndim == 3:
        if box.shape[2] != 3:
            raise ValueError("frame must have 3 channels")
        box = box[:, :, _CHANNELS[channel]]
    return float(np.mean(box, dtype=np.float64))


class CameraLuminanceSource:
    """Luminance source backed by OpenCV VideoCapture.

    Imports cv2 lazily to avoid import-time side effects in non-camera contexts.
    """

    def __init__(
        self,
        cfg: Optional[CaptureConfig] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.cfg = cfg or CaptureConfig()
        self.on_error = on_error
        self._cap = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def check_permission(self) -> bool:
        """True if the device can be opened (desktop OSes deny access this way)."""
        import cv2  # local import

        cap = cv2.VideoCapture(self.cfg.device_index)
        try:
            return bool(cap.isOpened())
        finally:
            cap.release()

    def start(self, on_sample: Callable[[int, float], None]) -> None:
        import cv2  # local import

        if self._thread is not None:
            raise AcquisitionError("Camera already streaming")
        self._cap = cv2.VideoCapture(self.cfg.device_index)
        if not self._cap.isOpened():  # type: ignore[union-attr]
            self._cap = None
            raise AcquisitionError("Failed to open camera")
        # Set properties (best-effort)
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.cfg.width)  # type: ignore[union-attr]
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg.height)  # type: ignore[union-attr]
        self._cap.set(cv2.CAP_PROP_FPS, self.cfg.fps)  # type: ignore[union-attr]
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, args=(on_sample,), daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        th = self._thread
        if th is not None and th is not threading.current_thread():
            th.join(timeout=1.0)
        self._thread = None
        if self._cap is not None:
            self._cap.release()  # type: ignore[union-attr]
            self._cap = None

    def _loop(self, on_sample: Callable[[int, float], None]) -> None:
        cap = self._cap
        while not self._stop.is_set() and cap is not None:
            ok, frame = cap.read()  # type: ignore[union-attr]
            if not ok:
                if self._stop.is_set():
                    break
                logger.error("Camera read failed")
                if self.on_error is not None:
                    self.on_error("Camera read failed")
                break
            ts_ms = int(time.time() * 1000)
            on_sample(ts_ms, center_luminance(frame, self.cfg.roi_fraction, self.cfg.channel))
