"""
Tests for the detection post-processing pipeline.
"""

import numpy as np
import pytest

from detection.buffers import BufferLedger
from detection.errors import MalformedInput
from detection.pipeline import DetectionPipeline
from models.config import PostprocessConfig
from models.detection import DetectedObject, RawDetectionOutput


def make_raw(scores, boxes, dispose=None):
    return RawDetectionOutput.from_tensors(np.asarray(scores), np.asarray(boxes), dispose=dispose)


class TestScenarios:
    def test_overlapping_boxes_collapse_to_one(self, overlapping_output):
        pipeline = DetectionPipeline(PostprocessConfig(iou_threshold=0.5, score_threshold=0.5))

        objects = pipeline.process(make_raw(*overlapping_output), 350, 450)

        assert len(objects) == 1
        obj = objects[0]
        assert obj.class_label == "1"
        assert obj.score == pytest.approx(0.9)
        assert obj.bbox.as_tuple() == pytest.approx((0, 0, 175, 225))

    def test_separated_boxes_both_survive(self, separated_output):
        pipeline = DetectionPipeline(PostprocessConfig(iou_threshold=0.5, score_threshold=0.5))

        objects = pipeline.process(make_raw(*separated_output), 350, 450)

        assert len(objects) == 2
        assert [o.class_label for o in objects] == ["1", "1"]
        assert objects[0].score == pytest.approx(0.9)
        assert objects[1].score == pytest.approx(0.8)
        assert objects[1].bbox.as_tuple() == pytest.approx((210, 270, 105, 135))

    def test_all_scores_below_threshold(self, separated_output):
        scores, boxes = separated_output
        pipeline = DetectionPipeline(PostprocessConfig(score_threshold=0.95))

        assert pipeline.process(make_raw(scores, boxes), 350, 450) == []

    def test_class_label_is_offset_by_one(self):
        scores = [[[0.1, 0.2, 0.9]]]
        boxes = [[[0.1, 0.1, 0.2, 0.2]]]

        objects = DetectionPipeline().process(make_raw(scores, boxes), 100, 100)

        assert objects[0].class_label == "3"
        assert objects[0].class_index == 2

    def test_returns_detected_objects(self, separated_output):
        objects = DetectionPipeline().process(make_raw(*separated_output), 350, 450)
        assert all(isinstance(o, DetectedObject) for o in objects)

    def test_max_outputs_from_config(self, separated_output):
        pipeline = DetectionPipeline(PostprocessConfig(max_outputs=1))
        objects = pipeline.process(make_raw(*separated_output), 350, 450)
        assert len(objects) == 1

    def test_no_boxes(self):
        raw = make_raw(np.zeros((1, 0, 90)), np.zeros((1, 0, 1, 4)))
        assert DetectionPipeline().process(raw, 350, 450) == []


class TestMalformedInput:
    def test_box_buffer_too_short(self):
        raw = make_raw([[[0.9, 0.1], [0.8, 0.2]]], [[[0.0, 0.0, 0.5, 0.5]]])
        with pytest.raises(MalformedInput):
            DetectionPipeline().process(raw, 350, 450)

    def test_declared_shape_mismatch(self):
        raw = RawDetectionOutput(
            scores=np.zeros(6), boxes=np.zeros(8), num_boxes=2, num_classes=2
        )
        with pytest.raises(MalformedInput):
            DetectionPipeline().process(raw, 350, 450)

    def test_inverted_surviving_box(self):
        raw = make_raw([[[0.9, 0.1]]], [[[0.5, 0.5, 0.1, 0.1]]])
        with pytest.raises(MalformedInput):
            DetectionPipeline().process(raw, 350, 450)


class TestResourceAccounting:
    def test_balanced_after_success(self, separated_output):
        ledger = BufferLedger()

        DetectionPipeline().process(make_raw(*separated_output), 350, 450, ledger=ledger)

        assert ledger.allocated > 0
        assert ledger.allocated == ledger.released
        assert ledger.live == []

    def test_balanced_after_empty_result(self, separated_output):
        ledger = BufferLedger()
        scores, boxes = separated_output

        DetectionPipeline(PostprocessConfig(score_threshold=0.99)).process(
            make_raw(scores, boxes), 350, 450, ledger=ledger
        )

        assert ledger.allocated == ledger.released

    def test_balanced_after_malformed_sizes(self):
        ledger = BufferLedger()
        raw = make_raw([[[0.9, 0.1], [0.8, 0.2]]], [[[0.0, 0.0, 0.5, 0.5]]])

        with pytest.raises(MalformedInput):
            DetectionPipeline().process(raw, 350, 450, ledger=ledger)

        assert ledger.allocated == ledger.released
        assert ledger.allocated >= 1

    def test_balanced_after_malformed_box(self):
        ledger = BufferLedger()
        raw = make_raw([[[0.9, 0.1]]], [[[0.5, 0.5, 0.1, 0.1]]])

        with pytest.raises(MalformedInput):
            DetectionPipeline().process(raw, 350, 450, ledger=ledger)

        assert ledger.allocated == ledger.released
        assert ledger.allocated == 4

    def test_raw_output_disposed_exactly_once(self, overlapping_output):
        disposed = []
        raw = make_raw(*overlapping_output, dispose=lambda: disposed.append(True))

        DetectionPipeline().process(raw, 350, 450)

        assert disposed == [True]
        assert raw.scores.size == 0
        assert raw.boxes.size == 0

    def test_raw_output_disposed_on_malformed(self):
        disposed = []
        raw = make_raw(
            [[[0.9, 0.1], [0.8, 0.2]]], [[[0.0, 0.0, 0.5, 0.5]]], dispose=lambda: disposed.append(True)
        )

        with pytest.raises(MalformedInput):
            DetectionPipeline().process(raw, 350, 450)

        assert disposed == [True]
