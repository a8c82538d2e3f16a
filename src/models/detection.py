"""
Detection models: raw model output, reduced scores, and final detections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

import numpy as np


@dataclass
class RawDetectionOutput:
    """
    Raw tensors produced by one inference call.

    Attributes:
        scores: num_boxes * num_classes score values, row-major per box.
        boxes: num_boxes * 4 normalized coordinates (y_min, x_min, y_max, x_max).
        num_boxes: Number of candidate boxes.
        num_classes: Number of classes scored per box.
        dispose: Optional callback freeing backend-owned (device) memory.
    """
    scores: np.ndarray
    boxes: np.ndarray
    num_boxes: int
    num_classes: int
    dispose: Optional[Callable[[], None]] = None

    @classmethod
    def from_tensors(
        cls,
        scores: np.ndarray,
        boxes: np.ndarray,
        dispose: Optional[Callable[[], None]] = None,
    ) -> "RawDetectionOutput":
        """
        Build from model tensors shaped [1, N, C] and [1, N, 1, 4] (or [1, N, 4]).

        The box count comes from the scores tensor; length consistency is
        checked later by the pipeline.
        """
        scores = np.asarray(scores)
        boxes = np.asarray(boxes)
        if scores.ndim < 2:
            raise ValueError(f"scores tensor must be at least 2-D, got shape {scores.shape}")
        num_boxes, num_classes = int(scores.shape[-2]), int(scores.shape[-1])
        return cls(
            scores=scores,
            boxes=boxes,
            num_boxes=num_boxes,
            num_classes=num_classes,
            dispose=dispose,
        )

    def release(self) -> None:
        """Drop the buffers and run the backend dispose hook, if any."""
        if self.dispose is not None:
            self.dispose()
        self.scores = np.empty(0, dtype=np.float32)
        self.boxes = np.empty(0, dtype=np.float32)


class ScoredBoxes(NamedTuple):
    """Per-box best score and best class index (-1 when there are no classes)."""
    best_scores: np.ndarray
    best_classes: np.ndarray


@dataclass(frozen=True)
class PixelBox:
    """
    A bounding box in target pixel space.

    Attributes:
        x: Left edge.
        y: Top edge.
        width: Box width (>= 0).
        height: Box height (>= 0).
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        return (int(self.x), int(self.y), int(self.width), int(self.height))


@dataclass(frozen=True)
class DetectedObject:
    """
    One labeled detection for one frame.

    class_label is the model class index plus one, as a string. No label-name
    lookup happens here; display names are a renderer concern.
    """
    bbox: PixelBox
    class_label: str
    score: float

    @property
    def class_index(self) -> int:
        """Model class index recovered from the label."""
        return int(self.class_label) - 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bbox": list(self.bbox.as_tuple()),
            "class": self.class_label,
            "score": self.score,
        }
