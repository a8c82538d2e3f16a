"""
Renderer interface.

A renderer is the sink of the inference loop: each iteration ends with either
draw_detections (boxes found) or draw_frame_only (nothing confident, or the
frame's detection failed).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from models.detection import DetectedObject
from models.frame import FrameData


class Renderer(ABC):
    """Abstract base class for detection renderers."""

    @abstractmethod
    def draw_detections(self, frame: FrameData, objects: Sequence[DetectedObject]) -> None:
        """Show the frame with the given detections drawn on it."""
        pass

    @abstractmethod
    def draw_frame_only(self, frame: FrameData) -> None:
        """Show the frame without boxes."""
        pass

    @property
    def quit_requested(self) -> bool:
        """Whether the viewer asked to stop (e.g. pressed 'q')."""
        return False

    def close(self) -> None:
        """Release windows/writers. Safe to call multiple times."""
        pass
