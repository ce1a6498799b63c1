from __future__ import annotations

import numpy as np
import pytest

from ppgscan.capture import center_luminance


def test_center_luminance_uses_red_channel_of_center_box() -> None:
    frame = np.zeros((90, 120, 3), dtype=np.uint8)
    # center box side = 30 -> rows 30..59, cols 45..74
    frame[30:60, 45:75, 2] = 200
    frame[30:60, 45:75, 1] = 50
    frame[0:10, 0:10, 2] = 255  # outside the box
    assert center_luminance(frame) == pytest.approx(200.0)
    assert center_luminance(frame, channel="green") == pytest.approx(50.0)


def test_center_luminance_grayscale_and_bad_shape() -> None:
    gray = np.full((40, 40), 77, dtype=np.uint8)
    assert center_luminance(gray) == pytest.approx(77.0)
    with pytest.raises(ValueError):
        center_luminance(np.zeros((4, 4, 4), dtype=np.uint8))
