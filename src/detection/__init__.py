"""
Detection post-processing.

Turns raw model score/box tensors into deduplicated, labeled pixel-space
detections, with scoped ownership of every intermediate buffer.
"""

from .buffers import BufferLedger, TrackedBuffer
from .errors import (
    DetectionError,
    DetectorUnavailable,
    MalformedInput,
    NoFrameAvailable,
    ResourceLeakError,
)
from .pipeline import DetectionPipeline
from .projection import project_box
from .scores import reduce_scores
from .suppression import box_iou, non_max_suppression

__all__ = [
    "BufferLedger",
    "TrackedBuffer",
    "DetectionError",
    "DetectorUnavailable",
    "MalformedInput",
    "NoFrameAvailable",
    "ResourceLeakError",
    "DetectionPipeline",
    "project_box",
    "reduce_scores",
    "box_iou",
    "non_max_suppression",
]
