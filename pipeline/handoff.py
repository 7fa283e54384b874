"""
pipeline/handoff.py

Single-slot, drop-when-busy frame handoff between the acquisition callback and
the processing worker.

    EMPTY --offer--> OCCUPIED_UNCLAIMED --wait_and_claim--> CLAIMED --mark_ready--> EMPTY

- offer() never waits for the worker. While the worker holds a CLAIMED frame,
  every new frame is dropped. An OCCUPIED_UNCLAIMED frame that the worker has
  not picked up yet is replaced by the newer one.
- wait_and_claim() blocks for at most `timeout` seconds so the worker can poll
  its stop flag.
"""

from enum import Enum
from typing import NamedTuple, Optional
import logging
import threading

from speckle.frame import Frame

logger = logging.getLogger(__name__)


class SlotState(Enum):
    EMPTY = "empty"
    OCCUPIED_UNCLAIMED = "occupied_unclaimed"
    CLAIMED = "claimed"


class HandoffStats(NamedTuple):
    offered: int
    accepted: int
    dropped: int
    replaced: int


class FrameHandoff:
    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._state = SlotState.EMPTY
        self._frame: Optional[Frame] = None
        self._closed = False
        self._offered = 0
        self._accepted = 0
        self._dropped = 0
        self._replaced = 0

    # --- producer side ---
    def offer(self, frame: Frame) -> bool:
        """
        Hand a frame to the worker. Returns False when it was dropped.
        The slot keeps its own clone; the caller may reuse its buffer right away.
        """
        with self._cond:
            self._offered += 1
            if self._closed or self._state is SlotState.CLAIMED:
                self._dropped += 1
                logger.debug("Frame %s dropped (worker busy or handoff closed).", frame.sequence)
                return False
            if self._state is SlotState.OCCUPIED_UNCLAIMED:
                self._replaced += 1
            self._frame = frame.clone()
            self._state = SlotState.OCCUPIED_UNCLAIMED
            self._accepted += 1
            self._cond.notify()
            return True

    # --- consumer side ---
    def wait_and_claim(self, timeout: Optional[float]) -> Optional[Frame]:
        """
        Wait up to `timeout` seconds for a frame. Returns the claimed frame, or None
        on timeout / close so the caller can re-check whether it should keep running.
        """
        with self._cond:
            if self._state is not SlotState.OCCUPIED_UNCLAIMED and not self._closed:
                self._cond.wait(timeout)
            if self._state is not SlotState.OCCUPIED_UNCLAIMED:
                return None
            frame = self._frame
            self._frame = None
            self._state = SlotState.CLAIMED
            return frame

    def mark_ready(self) -> None:
        """Worker finished with its claimed frame; the next offer may be accepted."""
        with self._cond:
            if self._state is SlotState.CLAIMED:
                self._state = SlotState.EMPTY

    def close(self) -> None:
        """Refuse all further offers and wake a waiting worker."""
        with self._cond:
            self._closed = True
            self._frame = None
            if self._state is SlotState.OCCUPIED_UNCLAIMED:
                self._state = SlotState.EMPTY
            self._cond.notify_all()

    # --- inspection ---
    @property
    def state(self) -> SlotState:
        return self._state

    @property
    def ready(self) -> bool:
        """True when the worker is not holding a claimed frame."""
        return self._state is not SlotState.CLAIMED

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> HandoffStats:
        with self._cond:
            return HandoffStats(self._offered, self._accepted, self._dropped, self._replaced)
