"""
Inference backend interface.

Backends return raw model tensors (per-box class scores and normalized boxes);
turning those into detections is the job of detection.DetectionPipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import cv2
import numpy as np

from detection.buffers import BufferLedger
from models.detection import RawDetectionOutput


@dataclass
class ModelHandle:
    """
    A loaded model, read-only after loading.

    Attributes:
        model: Backend-specific model object.
        input_size: Model input as (width, height).
        output_names: Names of the score and box outputs, in that order.
        metadata: Extra backend information.
    """
    model: Any
    input_size: Tuple[int, int]
    output_names: Sequence[str] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)


class Detector(ABC):
    """
    Abstract base class for detection model backends.

    swap_rb tells the loop whether the model expects RGB input.

    Lifecycle:
        1. load_once() loads the model; further calls return the same handle
        2. infer(handle, batch) runs the model, any number of times
    """

    def __init__(self, swap_rb: bool = True) -> None:
        self.swap_rb = swap_rb
        self._handle: Optional[ModelHandle] = None

    @property
    def handle(self) -> Optional[ModelHandle]:
        """The loaded model, or None before load_once()."""
        return self._handle

    @property
    def input_size(self) -> Optional[Tuple[int, int]]:
        """Model input as (width, height), once loaded."""
        return self._handle.input_size if self._handle is not None else None

    def load_once(self) -> ModelHandle:
        """Load the model if needed and return its handle."""
        if self._handle is None:
            self._handle = self._load()
        return self._handle

    @abstractmethod
    def _load(self) -> ModelHandle:
        """Load the model. Raises DetectorUnavailable on failure."""
        pass

    @abstractmethod
    def infer(self, handle: Optional[ModelHandle], batch: np.ndarray) -> RawDetectionOutput:
        """
        Run the model on a [1, H, W, 3] float32 RGB batch.

        Raises:
            DetectorUnavailable: If handle is None or inference fails.
        """
        pass

    def warm_up(self, handle: ModelHandle, ledger: BufferLedger) -> None:
        """
        Run one throwaway inference on a zero batch of the model input size.

        Input and output are held in ledger and released before returning.
        Backends whose infer() has side effects override this.
        """
        with ledger.scoped(zero_batch(handle.input_size), "warmup_input") as batch:
            raw = self.infer(handle, batch.data)
        with ledger.scoped(raw, "warmup_output", on_release=raw.release):
            pass


def frame_to_batch(frame: np.ndarray, swap_rb: bool = True) -> np.ndarray:
    """
    Convert an OpenCV BGR frame to a float32 [1, H, W, 3] model batch.

    Args:
        frame: H x W x 3 uint8 image (BGR), or H x W grayscale.
        swap_rb: Convert BGR to RGB.
    """
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    if swap_rb:
        frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    return np.expand_dims(frame.astype(np.float32), axis=0)


def zero_batch(input_size: Tuple[int, int]) -> np.ndarray:
    """All-zero [1, H, W, 3] batch used to warm up a model; input_size is (width, height)."""
    width, height = input_size
    return np.zeros((1, height, width, 3), dtype=np.float32)
