"""
Inference Worker
================

One dedicated thread that turns camera frames into display strings:
LatestFrameSlot -> FrameAdapter -> classifier -> format -> ResultChannel.

A frame whose processing raises is logged and skipped; frames are
independent, so the next one is processed normally.
"""

from __future__ import annotations

import threading
import time

from loguru import logger

from catdog_classifier.adapter import FrameAdapter
from catdog_classifier.frames.frame import RawFrame
from catdog_classifier.inference.base import BaseClassificationInferencer
from catdog_classifier.runtime.channel import ResultChannel
from catdog_classifier.runtime.slot import LatestFrameSlot
from catdog_classifier.schemas.result import format_for_display


class InferenceWorker:
    """Run frame adaptation and inference off the display thread.

    Args:
        adapter: Frame-to-tensor converter.
        inferencer: An initialized classifier.
        channel: Receives one display string per processed frame.
        slot: Keep-latest frame buffer; a new one is created if omitted.
    """

    def __init__(
        self,
        adapter: FrameAdapter,
        inferencer: BaseClassificationInferencer,
        channel: ResultChannel,
        slot: LatestFrameSlot | None = None,
    ) -> None:
        self.adapter = adapter
        self.inferencer = inferencer
        self.channel = channel
        self.slot = slot or LatestFrameSlot()
        self._thread: threading.Thread | None = None
        self._processed_count = 0
        self._failed_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def processed_count(self) -> int:
        return self._processed_count

    @property
    def failed_count(self) -> int:
        return self._failed_count

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("InferenceWorker already started")
        if not self.inferencer.is_initialized:
            raise RuntimeError("InferenceWorker needs an initialized inferencer")
        self._thread = threading.Thread(
            target=self._run, name="inference-worker", daemon=True
        )
        self._thread.start()
        logger.info("Inference worker started")

    def submit(self, frame: RawFrame) -> bool:
        """Hand a frame to the worker. Returns False if a pending frame was dropped."""
        return self.slot.put(frame)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Close the slot, let a pending frame finish, and join the thread."""
        self.slot.close()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"Inference worker did not stop within {timeout}s")
        logger.info(
            f"Inference worker stopped: processed={self._processed_count} "
            f"failed={self._failed_count} {self.slot.metrics()}"
        )

    def process(self, frame: RawFrame) -> str:
        """Adapt, classify and format a single frame on the calling thread."""
        tensor = self.adapter.adapt(frame, frame.rotation)
        result = self.inferencer.classify(tensor)
        return format_for_display(result)

    def _run(self) -> None:
        while True:
            frame = self.slot.take()
            if frame is None:
                if self.slot.closed:
                    break
                continue

            t0 = time.perf_counter()
            try:
                text = self.process(frame)
                self._processed_count += 1
                logger.debug(
                    f"Classified {frame!r} in "
                    f"{(time.perf_counter() - t0) * 1000:.1f} ms"
                )
                self.channel.post(text)
            except Exception:
                self._failed_count += 1
                logger.exception(f"Failed to classify {frame!r}")
