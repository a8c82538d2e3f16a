"""
Typed models for the live detection application.

Raw model output, reduced scores, final detections, frames and configuration.
"""

from .frame import FrameData
from .detection import DetectedObject, PixelBox, RawDetectionOutput, ScoredBoxes
from .config import (
    Config,
    CameraConfig,
    ModelConfig,
    PostprocessConfig,
    RenderConfig,
    LoopConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "DetectedObject",
    "PixelBox",
    "RawDetectionOutput",
    "ScoredBoxes",
    # Config
    "Config",
    "CameraConfig",
    "ModelConfig",
    "PostprocessConfig",
    "RenderConfig",
    "LoopConfig",
]
