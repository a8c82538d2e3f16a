"""
OpenCV DNN inference backend.

Loads an SSD-style detection graph (e.g. a frozen TensorFlow graph) with
cv2.dnn and returns its two raw outputs: per-box class scores shaped
[1, N, C] and normalized boxes shaped [1, N, 1, 4].
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

from detection.errors import DetectorUnavailable, MalformedInput
from models.config import ModelConfig
from models.detection import RawDetectionOutput
from .backend import Detector, ModelHandle


@dataclass(frozen=True)
class OpenCVDnnConfig:
    """
    Attributes:
        model_path: Model weights (e.g. frozen .pb, .onnx).
        config_path: Optional text graph / config file.
        input_size: Model input as (width, height).
        scores_output: Name of the scores output layer. Defaults to the first
            unconnected output.
        boxes_output: Name of the boxes output layer. Defaults to the second
            unconnected output.
        swap_rb: Feed the model RGB instead of BGR.
    """
    model_path: str
    config_path: Optional[str] = None
    input_size: Tuple[int, int] = (300, 300)
    scores_output: Optional[str] = None
    boxes_output: Optional[str] = None
    swap_rb: bool = True

    @classmethod
    def from_model_config(cls, cfg: ModelConfig) -> "OpenCVDnnConfig":
        """Adapter: Create from the model section of the app config."""
        return cls(
            model_path=cfg.path,
            config_path=cfg.config_path,
            input_size=(int(cfg.input_size[0]), int(cfg.input_size[1])),
            scores_output=cfg.scores_output,
            boxes_output=cfg.boxes_output,
            swap_rb=cfg.swap_rb,
        )


class OpenCVDnnDetector(Detector):
    """Detector backed by cv2.dnn."""

    def __init__(self, cfg: OpenCVDnnConfig):
        super().__init__(swap_rb=cfg.swap_rb)
        self.cfg = cfg

    def _load(self) -> ModelHandle:
        if not os.path.exists(self.cfg.model_path):
            raise DetectorUnavailable(f"Model file not found: {self.cfg.model_path}")

        try:
            net = cv2.dnn.readNet(self.cfg.model_path, self.cfg.config_path or "")
        except cv2.error as e:
            raise DetectorUnavailable(f"Failed to load model {self.cfg.model_path}: {e}") from e

        output_names = self._resolve_output_names(net)
        logging.info(
            f"Model loaded: path={self.cfg.model_path}, input_size={self.cfg.input_size}, "
            f"outputs={output_names}"
        )
        return ModelHandle(model=net, input_size=self.cfg.input_size, output_names=output_names)

    def _resolve_output_names(self, net) -> List[str]:
        if self.cfg.scores_output and self.cfg.boxes_output:
            return [self.cfg.scores_output, self.cfg.boxes_output]

        names = list(net.getUnconnectedOutLayersNames())
        if len(names) < 2:
            raise DetectorUnavailable(
                f"Model exposes {len(names)} outputs; configure scores_output and boxes_output"
            )
        return names[:2]

    def infer(self, handle: Optional[ModelHandle], batch: np.ndarray) -> RawDetectionOutput:
        if handle is None:
            raise DetectorUnavailable("Model is not loaded")

        width, height = handle.input_size
        image = batch[0]
        if image.shape[1] != width or image.shape[0] != height:
            image = cv2.resize(image, (width, height))
        blob = np.ascontiguousarray(image.transpose(2, 0, 1)[np.newaxis, ...], dtype=np.float32)

        net = handle.model
        try:
            net.setInput(blob)
            scores, boxes = net.forward(list(handle.output_names))[:2]
        except cv2.error as e:
            raise DetectorUnavailable(f"Inference failed: {e}") from e

        try:
            return RawDetectionOutput.from_tensors(scores, boxes)
        except ValueError as e:
            raise MalformedInput(str(e)) from e
