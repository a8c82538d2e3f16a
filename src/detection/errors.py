"""
Error taxonomy for detection and the inference loop.

Per-frame conditions (MalformedInput, DetectorUnavailable, NoFrameAvailable)
are absorbed by the loop, which falls back to showing the frame without boxes.
ResourceLeakError marks a buffer lifecycle bug and is never absorbed.
"""

from __future__ import annotations


class DetectionError(Exception):
    """Base class for detection errors."""


class MalformedInput(DetectionError, ValueError):
    """Raw buffers are inconsistent with their declared shape, or a box is inverted."""


class DetectorUnavailable(DetectionError, RuntimeError):
    """The model is not loaded or the inference call failed."""


class NoFrameAvailable(DetectionError):
    """The frame source has no frame right now."""


class ResourceLeakError(DetectionError, AssertionError):
    """A buffer was released twice, or an iteration ended with live buffers."""
