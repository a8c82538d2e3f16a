"""
Inference loop for continuous live detection.

Pulls the current frame from an ObservationSource, runs the Detector on it,
post-processes the raw output with DetectionPipeline and hands the result to
a Renderer, once per paced tick, until stopped.

Iterations never overlap: the next tick is scheduled only after the previous
frame has been rendered and its buffers released, so at most one frame's
intermediates are alive at any time.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional

from detection.errors import DetectorUnavailable, MalformedInput, NoFrameAvailable
from detection.pipeline import DetectionPipeline
from inference import create_detector_from_config
from inference.backend import Detector, ModelHandle, frame_to_batch
from models.config import Config, LoopConfig
from models.detection import DetectedObject
from models.frame import FrameData
from observation import create_source_from_config
from observation.base import ObservationSource
from rendering import OpenCVRenderer
from rendering.base import Renderer
from .context import FrameContext
from .pacing import CancellationToken, FramePacer


class LoopState(Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class LoopStats:
    """Runtime statistics for the inference loop."""
    frame_count: int = 0
    detection_count: int = 0
    empty_frames: int = 0
    malformed_frames: int = 0
    detector_failures: int = 0
    missing_frames: int = 0
    consecutive_failures: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


FrameCallback = Callable[[FrameData, List[DetectedObject]], None]


class InferenceLoop:
    """
    State machine driving detection over a live stream.

    States: IDLE (nothing scheduled) and RUNNING. run() and start() move to
    RUNNING, load the model, warm it up and iterate; stop() cancels the next
    tick and the loop returns to IDLE once the current iteration finishes.

    Example:
        loop = InferenceLoop(source, detector, renderer, DetectionPipeline(), LoopConfig())
        loop.start()
        ...
        loop.stop()
    """

    def __init__(
        self,
        source: ObservationSource,
        detector: Detector,
        renderer: Renderer,
        pipeline: Optional[DetectionPipeline] = None,
        config: Optional[LoopConfig] = None,
        pacer: Optional[FramePacer] = None,
    ):
        self.source = source
        self.detector = detector
        self.renderer = renderer
        self.pipeline = pipeline or DetectionPipeline()
        self.config = config or LoopConfig()
        self.pacer = pacer or FramePacer(self.config.target_fps)
        self.stats = LoopStats()
        self.last_error: Optional[BaseException] = None
        self._token = CancellationToken()
        self._state = LoopState.IDLE
        self._state_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._loop_thread: Optional[threading.Thread] = None
        self._finished = threading.Event()
        self._finished.set()
        self._handle: Optional[ModelHandle] = None
        self._callbacks: List[FrameCallback] = []

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LoopState.RUNNING

    def add_callback(self, callback: FrameCallback) -> None:
        """
        Add a callback to be called after each frame is rendered.

        Args:
            callback: Function taking (frame_data, detections) as arguments.
        """
        self._callbacks.append(callback)

    def run(self, max_iterations: Optional[int] = None) -> None:
        """
        Run the loop in the calling thread until stopped.

        Args:
            max_iterations: Stop after this many iterations (None = no limit).
        """
        self._enter_running()
        self._run(max_iterations)

    def start(self) -> None:
        """Run the loop on a background thread and return immediately."""
        self._enter_running()
        self._thread = threading.Thread(target=self._thread_main, name="inference-loop", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Cancel the next tick and wait up to timeout for the loop to return to IDLE.

        Works for both start() and a run() blocking another thread. Called
        from the loop's own thread (e.g. a callback) it only cancels. An
        iteration already past its cancellation check finishes normally; no
        further Detector.infer call is made.
        """
        self._token.cancel()
        if self._loop_thread is threading.current_thread():
            return

        self._finished.wait(timeout)
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            if not thread.is_alive():
                self._thread = None

    def run_once(self) -> Optional[List[DetectedObject]]:
        """
        Run a single iteration.

        Returns:
            The frame's detections, or None if cancelled or no frame was available.
        """
        if self._token.cancelled:
            return None

        try:
            frame_data = self.source.current_frame()
        except NoFrameAvailable as e:
            self.stats.missing_frames += 1
            self.stats.consecutive_failures += 1
            logging.debug(f"Skipping tick: {e}")
            return None

        self.stats.consecutive_failures = 0
        self.stats.frame_count += 1

        objects = self._detect(frame_data)
        self._render(frame_data, objects)

        for callback in self._callbacks:
            try:
                callback(frame_data, objects)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        return objects

    def _enter_running(self) -> None:
        with self._state_lock:
            if self._state is not LoopState.IDLE:
                raise RuntimeError("Inference loop is already running")
            self._state = LoopState.RUNNING
        self._token.reset()
        self._finished.clear()
        self.pacer.reset()
        self.stats = LoopStats()
        self.last_error = None

    def _thread_main(self) -> None:
        try:
            self._run(None)
        except Exception as e:
            self.last_error = e
            logging.exception(f"Inference loop failed: {e}")

    def _run(self, max_iterations: Optional[int]) -> None:
        self._loop_thread = threading.current_thread()
        try:
            self.source.open()
            logging.info(f"Inference loop started: source={self.source.source_id}")

            self._ensure_model()
            if self.config.warmup:
                self._warm_up()

            iterations = 0
            while not self._token.cancelled:
                self.pacer.mark()
                self.run_once()
                iterations += 1

                if max_iterations is not None and iterations >= max_iterations:
                    break
                if self._should_stop():
                    break

                self._handle_periodic_tasks()

                if not self.pacer.wait(self._token):
                    break
        except KeyboardInterrupt:
            logging.info("Inference loop interrupted by user")
        finally:
            self._cleanup()

    def _ensure_model(self) -> Optional[ModelHandle]:
        """Load the model if it is not loaded yet; None while it is unavailable."""
        if self._handle is None:
            try:
                self._handle = self.detector.load_once()
            except DetectorUnavailable as e:
                logging.warning(f"Detector unavailable: {e}")
        return self._handle

    def _warm_up(self) -> None:
        """Run one throwaway inference so the first real frame is not slow."""
        handle = self._handle
        if handle is None:
            return

        width, height = handle.input_size
        with FrameContext(width, height) as ctx:
            try:
                self.detector.warm_up(handle, ctx.ledger)
            except (DetectorUnavailable, MalformedInput) as e:
                logging.warning(f"Model warm-up failed: {e}")
                return
        logging.info("Model warm-up complete")

    def _detect(self, frame_data: FrameData) -> List[DetectedObject]:
        """Infer and post-process one frame; absorbed failures yield no detections."""
        with FrameContext(frame_data.width, frame_data.height, frame_data.frame_index) as ctx:
            try:
                handle = self._ensure_model()
                if handle is None:
                    raise DetectorUnavailable("Model is not loaded")

                with ctx.ledger.scoped(
                    frame_to_batch(frame_data.frame, swap_rb=self.detector.swap_rb), "input_batch"
                ) as batch:
                    raw = self.detector.infer(handle, batch.data)

                return self.pipeline.process(raw, ctx.target_width, ctx.target_height, ledger=ctx.ledger)
            except DetectorUnavailable as e:
                self.stats.detector_failures += 1
                logging.warning(f"Frame {frame_data.frame_index}: detector unavailable: {e}")
            except MalformedInput as e:
                self.stats.malformed_frames += 1
                logging.warning(f"Frame {frame_data.frame_index}: dropping malformed output: {e}")
        return []

    def _render(self, frame_data: FrameData, objects: List[DetectedObject]) -> None:
        try:
            if objects:
                self.stats.detection_count += len(objects)
                self.renderer.draw_detections(frame_data, objects)
            else:
                self.stats.empty_frames += 1
                self.renderer.draw_frame_only(frame_data)
        except Exception as e:
            logging.warning(f"Renderer error: {e}")

    def _should_stop(self) -> bool:
        if self.renderer.quit_requested:
            logging.info("Renderer requested quit")
            return True

        limit = self.config.max_consecutive_failures
        if limit is not None and self.stats.consecutive_failures >= limit:
            logging.error(f"Too many consecutive missing frames ({self.stats.consecutive_failures}), stopping")
            return True
        return False

    def _handle_periodic_tasks(self) -> None:
        """Log statistics periodically."""
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            elapsed = max(now - self.stats.start_time, 1e-6)
            logging.info(
                f"Loop stats: frames={self.stats.frame_count}, "
                f"fps={self.stats.frame_count / elapsed:.1f}, "
                f"detections={self.stats.detection_count}, "
                f"empty={self.stats.empty_frames}, "
                f"malformed={self.stats.malformed_frames}, "
                f"detector_failures={self.stats.detector_failures}, "
                f"missing={self.stats.missing_frames}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        try:
            self.renderer.close()
        except Exception as e:
            logging.warning(f"Error closing renderer: {e}")

        with self._state_lock:
            self._state = LoopState.IDLE
        self._finished.set()
        logging.info(
            f"Inference loop stopped: frames={self.stats.frame_count}, "
            f"detections={self.stats.detection_count}"
        )


def create_loop_from_config(
    config: Config,
    display: bool = False,
    record: bool = False,
) -> InferenceLoop:
    """
    Factory function to create an InferenceLoop from the typed app config.

    Args:
        config: Full application config.
        display: Force the display window on.
        record: Force video recording on.
    """
    source = create_source_from_config(config.camera, source_id="main-camera")
    detector = create_detector_from_config(config.model)

    render_cfg = replace(
        config.render,
        display=config.render.display or display,
        record=config.render.record or record,
    )
    renderer = OpenCVRenderer(render_cfg, fps=config.camera.fps)
    pipeline = DetectionPipeline(config.postprocess)

    return InferenceLoop(source, detector, renderer, pipeline, config.loop)
