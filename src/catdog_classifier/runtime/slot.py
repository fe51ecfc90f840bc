"""
Latest Frame Slot
=================

Thread-safe single-frame hand-off between the camera callback and the
inference worker.

Keep-latest policy: the slot holds at most one pending frame.  A frame
put while another is still pending replaces it and the replaced frame is
counted as dropped.  Together with a single consumer this bounds the
pipeline to one frame in flight plus one waiting.
"""

from __future__ import annotations

import threading

from loguru import logger

from catdog_classifier.frames.frame import RawFrame


class LatestFrameSlot:
    """Single-slot, drop-on-overwrite frame buffer.

    Example:
        slot = LatestFrameSlot()

        # Camera thread
        slot.put(frame)

        # Worker thread
        frame = slot.take()
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._frame: RawFrame | None = None
        self._closed = False
        self._dropped_count = 0
        self._total_put = 0

    @property
    def dropped_count(self) -> int:
        """Number of frames replaced before a worker took them."""
        return self._dropped_count

    @property
    def total_put(self) -> int:
        """Total frames ever put into the slot."""
        return self._total_put

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, frame: RawFrame) -> bool:
        """
        Offer a frame, replacing any pending one.

        Returns:
            True if the slot was empty, False if a pending frame was dropped.
            Frames put after :meth:`close` are ignored and return False.
        """
        with self._cond:
            if self._closed:
                logger.debug(f"Slot closed, ignoring {frame!r}")
                return False
            self._total_put += 1
            replaced = self._frame
            self._frame = frame
            if replaced is not None:
                self._dropped_count += 1
            self._cond.notify()

        if replaced is not None:
            logger.debug(
                f"Dropped {replaced!r} in favour of frame {frame.frame_id}. "
                f"Total dropped: {self._dropped_count}"
            )
            return False
        return True

    def take(self, timeout: float | None = None) -> RawFrame | None:
        """
        Wait for and remove the pending frame.

        Args:
            timeout: Maximum seconds to wait. None = wait until a frame
                arrives or the slot is closed.

        Returns:
            The pending frame, or None on timeout or once the slot is
            closed and empty.
        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._frame is not None or self._closed, timeout=timeout
            )
            frame, self._frame = self._frame, None
            return frame

    def close(self) -> None:
        """Stop accepting frames and wake any waiting consumer."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def metrics(self) -> dict[str, int]:
        """
        Get slot metrics for observability.

        Returns:
            Dict with pending, dropped_count, total_put
        """
        with self._cond:
            return {
                "pending": int(self._frame is not None),
                "dropped_count": self._dropped_count,
                "total_put": self._total_put,
            }
