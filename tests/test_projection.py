"""
Tests for normalized-to-pixel box projection.
"""

import math

import numpy as np
import pytest

from detection.errors import MalformedInput
from detection.projection import project_box


class TestProjectBox:
    def test_full_frame(self):
        bbox = project_box((0, 0, 1, 1), 350, 450)
        assert bbox.as_tuple() == (0, 0, 350, 450)

    def test_axis_order(self):
        # (y_min, x_min, y_max, x_max)
        bbox = project_box((0.1, 0.2, 0.5, 0.6), 100, 200)

        assert bbox.x == pytest.approx(20)
        assert bbox.y == pytest.approx(20)
        assert bbox.width == pytest.approx(40)
        assert bbox.height == pytest.approx(80)

    def test_round_trip(self):
        rng = np.random.default_rng(11)
        width, height = 640, 480
        for _ in range(50):
            y1, x1 = rng.random(2) * 0.5
            y2, x2 = y1 + rng.random() * 0.5, x1 + rng.random() * 0.5
            bbox = project_box((y1, x1, y2, x2), width, height)

            recovered = (
                bbox.y / height,
                bbox.x / width,
                (bbox.y + bbox.height) / height,
                (bbox.x + bbox.width) / width,
            )
            assert recovered == pytest.approx((y1, x1, y2, x2))

    def test_not_clamped(self):
        bbox = project_box((-0.1, 0.9, 0.5, 1.2), 100, 100)

        assert bbox.y == pytest.approx(-10)
        assert bbox.x2 == pytest.approx(120)

    def test_degenerate_box_has_zero_size(self):
        bbox = project_box((0.5, 0.5, 0.5, 0.5), 100, 100)
        assert bbox.width == 0
        assert bbox.height == 0

    def test_inverted_box_is_malformed(self):
        with pytest.raises(MalformedInput):
            project_box((0.1, 0.6, 0.5, 0.2), 100, 100)
        with pytest.raises(MalformedInput):
            project_box((0.6, 0.1, 0.2, 0.5), 100, 100)

    def test_non_finite_box_is_malformed(self):
        with pytest.raises(MalformedInput):
            project_box((0.1, math.nan, 0.5, 0.6), 100, 100)
