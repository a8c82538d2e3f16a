"""
ObservationSource interface for pluggable video sources.

This is the frame source the inference loop pulls from. Any input works
(webcam, stream URL, video file, test fixture) as long as read() returns a
FrameData or None without blocking for long.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from detection.errors import NoFrameAvailable
from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Base configuration for observation sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "webcam").
        resolution: Requested capture resolution as (width, height). None = source default.
        fps: Requested capture frames per second. None = source default.
        output_size: Size (width, height) frames are resized to before use.
            Detections are projected onto this size. None = keep capture size.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    output_size: Optional[tuple[int, int]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to initialize the source
        3. Call read() or current_frame() repeatedly to get frames
        4. Call close() to release resources

    Can also be used as a context manager:
        with OpenCVSource(config) as source:
            frame_data = source.current_frame()
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        """Whether the source is currently open and ready to read."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames read since open."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Open/initialize the source.

        Raises:
            RuntimeError: If the source cannot be opened.
        """
        pass

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """
        Read the current frame.

        Returns:
            FrameData, or None if no frame is available right now.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call multiple times."""
        pass

    def current_frame(self) -> FrameData:
        """
        Return the current frame.

        Raises:
            NoFrameAvailable: If the source is closed or has no frame right now.
        """
        if not self._is_open:
            raise NoFrameAvailable(f"Source {self.source_id} is not open")
        frame_data = self.read()
        if frame_data is None:
            raise NoFrameAvailable(f"No frame available from {self.source_id}")
        return frame_data

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        """Yield frames until the source has none left."""
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            frame_data = self.read()
            if frame_data is None:
                break
            yield frame_data
