"""
Projection of normalized boxes into target pixel space.
"""

from __future__ import annotations

import math
from typing import Sequence

from models.detection import PixelBox
from .errors import MalformedInput


def project_box(raw_box: Sequence[float], frame_width: float, frame_height: float) -> PixelBox:
    """
    Convert a normalized (y_min, x_min, y_max, x_max) box to pixel (x, y, w, h).

    Nothing is clamped: boxes may reach or cross the frame edges. An inverted
    or non-finite box raises MalformedInput.
    """
    y_min, x_min, y_max, x_max = (float(v) for v in raw_box)
    if not all(math.isfinite(v) for v in (y_min, x_min, y_max, x_max)):
        raise MalformedInput(f"Box has non-finite coordinates: {tuple(raw_box)}")
    if x_max < x_min or y_max < y_min:
        raise MalformedInput(f"Box has inverted coordinates: {tuple(raw_box)}")

    x = x_min * frame_width
    y = y_min * frame_height
    return PixelBox(
        x=x,
        y=y,
        width=x_max * frame_width - x,
        height=y_max * frame_height - y,
    )
