"""
OpenCV renderer: draws detections onto frames, shows them in a window and/or
records them to a video file.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Optional, Sequence

import cv2
import numpy as np

from models.config import RenderConfig
from models.detection import DetectedObject
from models.frame import FrameData
from .base import Renderer


class OpenCVRenderer(Renderer):
    """
    Draws each detection as a rectangle with a filled label tag, then hands
    the annotated frame to a display window and/or a video writer.

    Example:
        renderer = OpenCVRenderer(RenderConfig(display=True))
        renderer.draw_detections(frame_data, objects)
    """

    def __init__(self, config: Optional[RenderConfig] = None, fps: float = 30.0):
        self.config = config or RenderConfig()
        self.fps = fps
        self.last_frame: Optional[np.ndarray] = None
        self._quit = False
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._output_path: Optional[str] = None

    @property
    def quit_requested(self) -> bool:
        return self._quit

    @property
    def output_path(self) -> Optional[str]:
        return self._output_path

    def label_for(self, obj: DetectedObject) -> str:
        """Display text for a detection; falls back to the numeric label."""
        names = self.config.label_names or {}
        return names.get(obj.class_label, obj.class_label)

    def annotate(self, frame: np.ndarray, objects: Sequence[DetectedObject]) -> np.ndarray:
        """Return a copy of frame with boxes and labels drawn."""
        cfg = self.config
        canvas = frame.copy()
        box_color = tuple(int(c) for c in cfg.box_color)
        text_color = tuple(int(c) for c in cfg.text_color)
        font = cv2.FONT_HERSHEY_SIMPLEX

        # Labels go in a second pass, above every box
        for obj in objects:
            x, y, w, h = obj.bbox.as_int_tuple()
            cv2.rectangle(canvas, (x, y), (x + w, y + h), box_color, cfg.line_width)
            (tw, th), _ = cv2.getTextSize(self.label_for(obj), font, cfg.font_scale, 1)
            cv2.rectangle(canvas, (x, y), (x + tw + 4, y + th + 4), box_color, -1)

        for obj in objects:
            x, y, _, _ = obj.bbox.as_int_tuple()
            (_, th), _ = cv2.getTextSize(self.label_for(obj), font, cfg.font_scale, 1)
            cv2.putText(canvas, self.label_for(obj), (x + 2, y + th + 2), font, cfg.font_scale, text_color, 1)

        return canvas

    def draw_detections(self, frame: FrameData, objects: Sequence[DetectedObject]) -> None:
        self._present(self.annotate(frame.frame, objects))

    def draw_frame_only(self, frame: FrameData) -> None:
        self._present(frame.frame)

    def _present(self, image: np.ndarray) -> None:
        self.last_frame = image

        if self.config.record:
            if self._video_writer is None:
                self._setup_recording(image)
            self._video_writer.write(image)

        if self.config.display:
            cv2.imshow(self.config.window_name, image)
            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                logging.info("Quit requested from display window")
                self._quit = True

    def _setup_recording(self, image: np.ndarray) -> None:
        output_dir = self.config.output_dir
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._output_path = os.path.join(output_dir, f"detections_{timestamp}.avi")
        height, width = image.shape[:2]
        fourcc = cv2.VideoWriter_fourcc(*"XVID")
        self._video_writer = cv2.VideoWriter(self._output_path, fourcc, self.fps, (width, height), True)
        logging.info(f"Video recording started: {self._output_path}")

    def close(self) -> None:
        if self._video_writer is not None:
            self._video_writer.release()
            self._video_writer = None
            logging.info(f"Video saved: {self._output_path}")
        if self.config.display:
            cv2.destroyAllWindows()
