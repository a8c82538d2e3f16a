"""
Pipeline module for the live detection system.

The inference loop orchestrates the full per-frame flow:
- Frame acquisition from observation sources
- Model inference and detection post-processing
- Rendering, with every per-frame buffer released before the next tick
"""

from .context import FrameContext
from .engine import InferenceLoop, LoopState, LoopStats, create_loop_from_config
from .pacing import CancellationToken, FramePacer

__all__ = [
    "InferenceLoop",
    "LoopState",
    "LoopStats",
    "create_loop_from_config",
    "FrameContext",
    "CancellationToken",
    "FramePacer",
]
