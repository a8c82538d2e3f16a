"""
Detection post-processing pipeline.

Turns one inference call's raw score and box tensors into a short list of
labeled pixel-space detections:

    reduce_scores -> non_max_suppression -> project_box

This is the one entry point that needs no camera, model or renderer, so batch
tools and tests call it directly.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from models.config import PostprocessConfig
from models.detection import DetectedObject, RawDetectionOutput
from .buffers import BufferLedger
from .errors import MalformedInput
from .projection import project_box
from .scores import reduce_scores
from .suppression import non_max_suppression


class DetectionPipeline:
    """
    Stateless post-processor for raw detection output.

    Example:
        pipeline = DetectionPipeline(PostprocessConfig(score_threshold=0.5))
        objects = pipeline.process(raw, target_width=350, target_height=450)
    """

    def __init__(self, config: Optional[PostprocessConfig] = None):
        self.config = config or PostprocessConfig()

    def process(
        self,
        raw: RawDetectionOutput,
        target_width: float,
        target_height: float,
        ledger: Optional[BufferLedger] = None,
    ) -> List[DetectedObject]:
        """
        Post-process one frame's raw output.

        The raw output is released as soon as plain arrays have been copied
        out of it. Every intermediate is held in the ledger and released
        before returning, including when MalformedInput is raised.

        Args:
            raw: Raw model output for one frame.
            target_width: Width in pixels to project boxes onto.
            target_height: Height in pixels to project boxes onto.
            ledger: Ledger owning this frame's buffers. A private one is used
                (and checked) when omitted.

        Returns:
            Detections in suppression order; empty when nothing survives.
        """
        owns_ledger = ledger is None
        if ledger is None:
            ledger = BufferLedger("pipeline")

        try:
            return self._process(raw, target_width, target_height, ledger)
        finally:
            if owns_ledger:
                ledger.assert_balanced()

    def _process(
        self,
        raw: RawDetectionOutput,
        target_width: float,
        target_height: float,
        ledger: BufferLedger,
    ) -> List[DetectedObject]:
        cfg = self.config

        with ledger.scoped(raw, "raw_output", on_release=raw.release) as raw_buf:
            output = raw_buf.data
            num_boxes, num_classes = output.num_boxes, output.num_classes
            scores = np.array(output.scores, dtype=np.float64).reshape(-1)
            boxes = np.array(output.boxes, dtype=np.float64).reshape(-1)

        if scores.size != num_boxes * num_classes or boxes.size != num_boxes * 4:
            raise MalformedInput(
                f"Raw output sizes scores={scores.size}, boxes={boxes.size} do not match "
                f"{num_boxes} boxes x {num_classes} classes"
            )
        boxes = boxes.reshape(num_boxes, 4)

        best_scores, best_classes = reduce_scores(scores, num_boxes, num_classes)
        with ledger.scoped(best_scores, "best_scores") as scores_buf, \
                ledger.scoped(best_classes, "best_classes") as classes_buf:
            indices = non_max_suppression(
                boxes,
                scores_buf.data,
                max_outputs=cfg.max_outputs,
                iou_threshold=cfg.iou_threshold,
                score_threshold=cfg.score_threshold,
            )
            with ledger.scoped(indices, "nms_indices") as index_buf:
                objects = [
                    DetectedObject(
                        bbox=project_box(boxes[idx], target_width, target_height),
                        class_label=str(int(classes_buf.data[idx]) + 1),
                        score=float(scores_buf.data[idx]),
                    )
                    for idx in index_buf.data
                ]

        logging.debug(
            f"Post-processed {num_boxes} candidates -> {len(objects)} detections"
        )
        return objects
