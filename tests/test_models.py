"""
Smoke tests for typed models.
"""

import time

import numpy as np
import pytest

from models.detection import DetectedObject, PixelBox, RawDetectionOutput, ScoredBoxes
from models.frame import FrameData


class TestPixelBox:
    def test_properties(self):
        bbox = PixelBox(x=10, y=20, width=30, height=40)
        assert bbox.x2 == 40
        assert bbox.y2 == 60
        assert bbox.area == 1200

    def test_as_tuple(self):
        bbox = PixelBox(1.5, 2.5, 3.5, 4.5)
        assert bbox.as_tuple() == (1.5, 2.5, 3.5, 4.5)
        assert bbox.as_int_tuple() == (1, 2, 3, 4)

    def test_frozen(self):
        bbox = PixelBox(0, 0, 1, 1)
        with pytest.raises(AttributeError):
            bbox.x = 5


class TestDetectedObject:
    def test_class_index(self):
        obj = DetectedObject(bbox=PixelBox(0, 0, 10, 10), class_label="18", score=0.7)
        assert obj.class_index == 17

    def test_to_dict(self):
        obj = DetectedObject(bbox=PixelBox(0, 0, 175, 225), class_label="1", score=0.9)
        assert obj.to_dict() == {"bbox": [0, 0, 175, 225], "class": "1", "score": 0.9}


class TestRawDetectionOutput:
    def test_from_tensors_reads_shape(self):
        raw = RawDetectionOutput.from_tensors(np.zeros((1, 100, 91)), np.zeros((1, 100, 1, 4)))
        assert raw.num_boxes == 100
        assert raw.num_classes == 91

    def test_from_tensors_rejects_flat_scores(self):
        with pytest.raises(ValueError):
            RawDetectionOutput.from_tensors(np.zeros(10), np.zeros(40))

    def test_release_runs_dispose(self):
        calls = []
        raw = RawDetectionOutput.from_tensors(
            np.ones((1, 2, 2)), np.ones((1, 2, 4)), dispose=lambda: calls.append(1)
        )

        raw.release()

        assert calls == [1]
        assert raw.scores.size == 0
        assert raw.boxes.size == 0

    def test_scored_boxes_unpacks(self):
        best_scores, best_classes = ScoredBoxes(np.array([0.5]), np.array([2]))
        assert best_classes[0] == 2


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((450, 350, 3), dtype=np.uint8)
        now = time.time()
        fd = FrameData.from_numpy(frame, timestamp=now, frame_index=5, source="test")

        assert fd.width == 350
        assert fd.height == 450
        assert fd.size == (350, 450)
        assert fd.frame_index == 5
        assert fd.source == "test"
