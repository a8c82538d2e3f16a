from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from detection.buffers import BufferLedger


@dataclass
class FrameContext:
    """
    State owned by exactly one loop iteration; avoids carrying buffers across frames.

    Entering the context yields it; leaving releases whatever is still live in
    the ledger and then checks the ledger balances.
    """

    target_width: int
    target_height: int
    frame_index: int = 0
    ledger: BufferLedger = field(default_factory=lambda: BufferLedger("frame"))
    leftovers: Optional[int] = None

    def __enter__(self) -> "FrameContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.leftovers = self.ledger.release_all()
        if self.leftovers:
            logging.debug(
                f"Frame {self.frame_index}: released {self.leftovers} buffer(s) at iteration end"
            )
        self.ledger.assert_balanced()
