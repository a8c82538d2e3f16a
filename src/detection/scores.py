"""
Per-box class score reduction.
"""

from __future__ import annotations

import numpy as np

from models.detection import ScoredBoxes
from .errors import MalformedInput


def reduce_scores(scores: np.ndarray, num_boxes: int, num_classes: int) -> ScoredBoxes:
    """
    Reduce each box's class score row to its best class and score.

    Ties go to the lowest class index. With zero classes every box gets
    score -inf and class -1.

    Args:
        scores: num_boxes * num_classes values, row-major per box.
        num_boxes: Number of boxes.
        num_classes: Number of classes per box.

    Returns:
        ScoredBoxes(best_scores, best_classes), one entry per box.
    """
    flat = np.asarray(scores, dtype=np.float64).reshape(-1)
    if num_boxes < 0 or num_classes < 0 or flat.size != num_boxes * num_classes:
        raise MalformedInput(
            f"scores has {flat.size} values, expected {num_boxes} boxes x {num_classes} classes"
        )

    if num_classes == 0:
        return ScoredBoxes(
            best_scores=np.full(num_boxes, -np.inf),
            best_classes=np.full(num_boxes, -1, dtype=np.int64),
        )

    rows = flat.reshape(num_boxes, num_classes)
    # argmax returns the first occurrence of the maximum
    best_classes = np.argmax(rows, axis=1).astype(np.int64)
    best_scores = rows[np.arange(num_boxes), best_classes]
    return ScoredBoxes(best_scores=best_scores, best_classes=best_classes)
