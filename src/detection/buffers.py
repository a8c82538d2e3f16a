"""
Scoped ownership of per-frame intermediate buffers.

Every array produced while processing a frame (model input batch, raw model
output, reduced scores, suppressed indices) is acquired from a BufferLedger
and released exactly once. Backends that hold device memory attach a release
hook, so the ledger is where that memory is actually freed.

Example:
    ledger = BufferLedger()
    with ledger.scoped(np.zeros(4), "scratch") as buf:
        use(buf.data)
    ledger.assert_balanced()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import ResourceLeakError


class TrackedBuffer:
    """A buffer owned by a ledger until released."""

    def __init__(
        self,
        ledger: "BufferLedger",
        data: Any,
        name: str,
        on_release: Optional[Callable[[], None]] = None,
    ):
        self._ledger = ledger
        self._data = data
        self._on_release = on_release
        self.name = name
        self.released = False

    @property
    def data(self) -> Any:
        if self.released:
            raise ResourceLeakError(f"Buffer '{self.name}' used after release")
        return self._data

    def release(self) -> None:
        """Release the buffer. Releasing twice raises ResourceLeakError."""
        if self.released:
            raise ResourceLeakError(f"Buffer '{self.name}' released twice")
        self.released = True
        try:
            if self._on_release is not None:
                self._on_release()
        finally:
            self._data = None
            self._ledger._record_release(self)


class BufferLedger:
    """Counts buffer allocations and releases for one owner (usually one frame)."""

    def __init__(self, name: str = "frame"):
        self.name = name
        self.allocated = 0
        self.released = 0
        self._live: Dict[int, TrackedBuffer] = {}

    @property
    def live(self) -> List[str]:
        """Names of buffers not yet released."""
        return [buf.name for buf in self._live.values()]

    @property
    def balanced(self) -> bool:
        return self.allocated == self.released and not self._live

    def acquire(
        self,
        data: Any,
        name: str,
        on_release: Optional[Callable[[], None]] = None,
    ) -> TrackedBuffer:
        """Take ownership of data; the caller must release the returned buffer."""
        buf = TrackedBuffer(self, data, name, on_release)
        self._live[id(buf)] = buf
        self.allocated += 1
        return buf

    @contextmanager
    def scoped(
        self,
        data: Any,
        name: str,
        on_release: Optional[Callable[[], None]] = None,
    ) -> Iterator[TrackedBuffer]:
        """Acquire data for the duration of a with-block, releasing on every exit path."""
        buf = self.acquire(data, name, on_release)
        try:
            yield buf
        finally:
            if not buf.released:
                buf.release()

    def release_all(self) -> int:
        """
        Release every live buffer.

        Returns:
            Number of buffers that were still live.
        """
        leftovers = list(self._live.values())
        for buf in leftovers:
            logging.debug(f"Ledger '{self.name}' releasing leftover buffer '{buf.name}'")
            buf.release()
        return len(leftovers)

    def assert_balanced(self) -> None:
        """Raise ResourceLeakError unless every acquired buffer was released."""
        if not self.balanced:
            raise ResourceLeakError(
                f"Ledger '{self.name}' unbalanced: allocated={self.allocated}, "
                f"released={self.released}, live={self.live}"
            )

    def _record_release(self, buf: TrackedBuffer) -> None:
        if self._live.pop(id(buf), None) is None:
            raise ResourceLeakError(f"Buffer '{buf.name}' does not belong to ledger '{self.name}'")
        self.released += 1
