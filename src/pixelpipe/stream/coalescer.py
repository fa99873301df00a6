"""
Frame Coalescer
===============

Single-slot mailbox between the viewer's parser thread (producer) and
its render loop (consumer).

Design Rules:
    - push() overwrites the slot and never blocks
    - At most one frame is ever pending
    - drain_latest() empties the slot and returns the newest frame
    - A superseded frame is never delivered
    - After close(), pushes are inert and report False so the producer
      may stop on its own
"""

import logging
import threading
from typing import Optional

from pixelpipe.models.frame import Frame


logger = logging.getLogger(__name__)


class FrameCoalescer:
    """
    Thread-safe single-producer/single-consumer overwrite cell.

    Attributes:
        superseded_count: Frames overwritten before any drain saw them
        total_pushed: Total frames ever pushed while open
        closed: Whether the consumer side has gone away

    Example:
        coalescer = FrameCoalescer()

        # Producer thread
        coalescer.push(frame)

        # Render loop
        frame = coalescer.drain_latest()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slot: Optional[Frame] = None
        self._closed: bool = False
        self._superseded_count: int = 0
        self._total_pushed: int = 0

    @property
    def closed(self) -> bool:
        """Whether the consumer has closed the mailbox."""
        with self._lock:
            return self._closed

    @property
    def superseded_count(self) -> int:
        """Number of frames dropped because a newer one replaced them."""
        with self._lock:
            return self._superseded_count

    @property
    def total_pushed(self) -> int:
        """Total frames accepted by push()."""
        with self._lock:
            return self._total_pushed

    def push(self, frame: Frame) -> bool:
        """
        Replace the pending frame.

        Args:
            frame: Newest frame from the producer

        Returns:
            True if the frame was stored, False if the consumer is gone.
        """
        with self._lock:
            if self._closed:
                return False
            if self._slot is not None:
                self._superseded_count += 1
            self._slot = frame
            self._total_pushed += 1
            return True

    def drain_latest(self) -> Optional[Frame]:
        """
        Take the most recent frame pushed since the last drain.

        Returns:
            The newest frame, or None if nothing arrived.
        """
        with self._lock:
            frame, self._slot = self._slot, None
            return frame

    def close(self) -> None:
        """Mark the consumer side as gone and discard any pending frame."""
        with self._lock:
            self._closed = True
            self._slot = None
        logger.debug("Coalescer closed")

    def metrics(self) -> dict:
        """
        Get coalescer metrics for observability.

        Returns:
            Dict with total_pushed, superseded_count, closed
        """
        with self._lock:
            return {
                "total_pushed": self._total_pushed,
                "superseded_count": self._superseded_count,
                "closed": self._closed,
            }
