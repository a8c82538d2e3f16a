"""
Greedy non-max suppression over normalized boxes.

Boxes are (y_min, x_min, y_max, x_max) in normalized image coordinates; IoU is
computed on them directly.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import MalformedInput


def box_iou(box_a: Sequence[float], box_b: Sequence[float]) -> float:
    """Intersection over union of two (y_min, x_min, y_max, x_max) boxes."""
    ious = _iou_one_to_many(np.asarray(box_a, dtype=np.float64), np.asarray([box_b], dtype=np.float64))
    return float(ious[0])


def _iou_one_to_many(box: np.ndarray, others: np.ndarray) -> np.ndarray:
    y1 = np.maximum(min(box[0], box[2]), np.minimum(others[:, 0], others[:, 2]))
    x1 = np.maximum(min(box[1], box[3]), np.minimum(others[:, 1], others[:, 3]))
    y2 = np.minimum(max(box[0], box[2]), np.maximum(others[:, 0], others[:, 2]))
    x2 = np.minimum(max(box[1], box[3]), np.maximum(others[:, 1], others[:, 3]))

    inter = np.clip(y2 - y1, 0.0, None) * np.clip(x2 - x1, 0.0, None)
    area = abs(box[2] - box[0]) * abs(box[3] - box[1])
    other_areas = np.abs(others[:, 2] - others[:, 0]) * np.abs(others[:, 3] - others[:, 1])
    union = area + other_areas - inter

    ious = np.zeros(len(others), dtype=np.float64)
    np.divide(inter, union, out=ious, where=union > 0)
    return ious


def non_max_suppression(
    boxes: np.ndarray,
    scores: np.ndarray,
    max_outputs: int,
    iou_threshold: float,
    score_threshold: float,
) -> np.ndarray:
    """
    Select at most max_outputs boxes whose mutual IoU does not exceed iou_threshold.

    Candidates scoring below score_threshold are dropped. The rest are visited
    in descending score order (original order on ties); each kept box removes
    every remaining candidate overlapping it by more than iou_threshold.

    Args:
        boxes: N x 4 (or N * 4 flat) normalized boxes.
        scores: N scores, one per box.
        max_outputs: Maximum number of indices returned.
        iou_threshold: Overlap above which a lower-scored box is suppressed.
        score_threshold: Minimum score for a box to be considered.

    Returns:
        Indices of kept boxes, in selection order.
    """
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1)
    if boxes.size != scores.size * 4:
        raise MalformedInput(f"boxes has {boxes.size} values, expected {scores.size} x 4")
    boxes = boxes.reshape(-1, 4)

    if max_outputs <= 0:
        return np.empty(0, dtype=np.int64)

    candidates = np.flatnonzero(scores >= score_threshold)
    order = candidates[np.argsort(-scores[candidates], kind="stable")]

    keep = []
    while order.size > 0 and len(keep) < max_outputs:
        best = order[0]
        keep.append(best)
        rest = order[1:]
        if rest.size == 0:
            break
        ious = _iou_one_to_many(boxes[best], boxes[rest])
        order = rest[ious <= iou_threshold]

    return np.asarray(keep, dtype=np.int64)
