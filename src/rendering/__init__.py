"""
Renderers consuming per-frame detections.
"""

from .base import Renderer
from .opencv_renderer import OpenCVRenderer

__all__ = ["Renderer", "OpenCVRenderer"]
