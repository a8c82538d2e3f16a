"""
Inference backends producing raw detection tensors.
"""

from models.config import ModelConfig

from .backend import Detector, ModelHandle, frame_to_batch, zero_batch
from .opencv_backend import OpenCVDnnConfig, OpenCVDnnDetector
from .replay_backend import ReplayConfig, ReplayDetector


def create_detector_from_config(model_cfg: ModelConfig) -> Detector:
    """Factory: build the configured detector backend (not yet loaded)."""
    input_size = (int(model_cfg.input_size[0]), int(model_cfg.input_size[1]))
    if model_cfg.backend == "replay":
        return ReplayDetector(ReplayConfig(path=model_cfg.replay_path or "", input_size=input_size))
    if model_cfg.backend == "opencv":
        return OpenCVDnnDetector(OpenCVDnnConfig.from_model_config(model_cfg))
    raise ValueError(f"Unknown model backend: {model_cfg.backend}")


__all__ = [
    "Detector",
    "ModelHandle",
    "frame_to_batch",
    "zero_batch",
    "OpenCVDnnConfig",
    "OpenCVDnnDetector",
    "ReplayConfig",
    "ReplayDetector",
    "create_detector_from_config",
]
