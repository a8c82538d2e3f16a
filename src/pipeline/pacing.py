"""
Frame pacing and cooperative cancellation for the inference loop.
"""

from __future__ import annotations

import threading
import time
from typing import Optional


class CancellationToken:
    """Thread-safe stop flag that paced waits can block on."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    def wait(self, timeout: float) -> bool:
        """Sleep up to timeout seconds; returns True if cancelled meanwhile."""
        return self._event.wait(timeout)


class FramePacer:
    """
    Schedules loop iterations at most target_fps times per second.

    The next tick is due one frame interval after the previous tick started.
    Callers mark() the start of each tick; a wait() with no tick marked
    returns immediately. An iteration that overran its interval runs the next
    one immediately. target_fps of None disables pacing.
    """

    def __init__(self, target_fps: Optional[float] = 60.0):
        if target_fps is not None and target_fps <= 0:
            raise ValueError("target_fps must be positive or None")
        self.target_fps = target_fps
        self._last_tick: Optional[float] = None

    @property
    def interval(self) -> float:
        return 1.0 / self.target_fps if self.target_fps else 0.0

    def reset(self) -> None:
        self._last_tick = None

    def mark(self) -> None:
        """Record that a tick started now; the next wait() is measured from here."""
        self._last_tick = time.monotonic()

    def wait(self, token: CancellationToken) -> bool:
        """
        Block until the next tick is due or the token is cancelled.

        Returns:
            False if the token was cancelled, True otherwise.
        """
        now = time.monotonic()
        if self._last_tick is not None and self.interval > 0:
            remaining = self._last_tick + self.interval - now
            if remaining > 0 and token.wait(remaining):
                return False
        self._last_tick = time.monotonic()
        return not token.cancelled
