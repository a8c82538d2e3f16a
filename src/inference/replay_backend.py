"""
Replay inference backend.

Serves raw model outputs recorded to a .npz archive, one per infer() call, so
the loop and post-processing can run offline without a model. The archive
holds "scores" and "boxes" arrays with a leading frame axis:
scores [F, N, C] and boxes [F, N, 4] (or [F, N, 1, 4]).
"""

from __future__ import annotations

import logging
import os
import zipfile
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from detection.buffers import BufferLedger
from detection.errors import DetectorUnavailable, MalformedInput
from models.detection import RawDetectionOutput
from .backend import Detector, ModelHandle


@dataclass(frozen=True)
class ReplayConfig:
    path: str
    input_size: Tuple[int, int] = (300, 300)
    loop: bool = True


class ReplayDetector(Detector):
    """Detector that replays recorded raw outputs in order."""

    def __init__(self, cfg: ReplayConfig):
        super().__init__()
        self.cfg = cfg
        self._position = 0

    def _load(self) -> ModelHandle:
        if not os.path.exists(self.cfg.path):
            raise DetectorUnavailable(f"Replay archive not found: {self.cfg.path}")

        try:
            archive = np.load(self.cfg.path)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise DetectorUnavailable(f"Failed to read replay archive {self.cfg.path}: {e}") from e
        if not hasattr(archive, "files"):
            raise DetectorUnavailable(f"Replay archive is not an .npz archive: {self.cfg.path}")

        with archive:
            try:
                scores = np.asarray(archive["scores"], dtype=np.float32)
                boxes = np.asarray(archive["boxes"], dtype=np.float32)
            except (KeyError, OSError, ValueError, zipfile.BadZipFile) as e:
                raise DetectorUnavailable(f"Replay archive {self.cfg.path} is unusable: {e}") from e

        if scores.ndim == 0 or boxes.ndim == 0 or len(scores) != len(boxes):
            raise DetectorUnavailable(
                f"Replay archive has score frames {scores.shape} but box frames {boxes.shape}"
            )
        logging.info(f"Replay archive loaded: {self.cfg.path} ({len(scores)} frames)")
        return ModelHandle(
            model=(scores, boxes),
            input_size=self.cfg.input_size,
            metadata={"frames": len(scores)},
        )

    def infer(self, handle: Optional[ModelHandle], batch: np.ndarray) -> RawDetectionOutput:
        if handle is None:
            raise DetectorUnavailable("Replay archive is not loaded")

        scores, boxes = handle.model
        if len(scores) == 0:
            raise DetectorUnavailable("Replay archive is empty")
        if self._position >= len(scores):
            if not self.cfg.loop:
                raise DetectorUnavailable("Replay archive exhausted")
            self._position = 0

        idx = self._position
        self._position += 1
        try:
            return RawDetectionOutput.from_tensors(scores[idx][np.newaxis, ...], boxes[idx][np.newaxis, ...])
        except ValueError as e:
            raise MalformedInput(f"Replay frame {idx}: {e}") from e

    def warm_up(self, handle: ModelHandle, ledger: BufferLedger) -> None:
        # Every infer() call consumes one recorded frame
        logging.debug("Replay detector needs no warm-up")
