"""Tests for the keep-latest slot, result channel and inference worker."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

import numpy as np
import pytest

from catdog_classifier.adapter import FrameAdapter
from catdog_classifier.frames import RawFrame
from catdog_classifier.inference.base import BaseClassificationInferencer
from catdog_classifier.runtime import InferenceWorker, LatestFrameSlot, ResultChannel

_TIMEOUT = 10.0


def _wait_until(predicate: Callable[[], bool], timeout: float = _TIMEOUT) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class GatedInferencer(BaseClassificationInferencer):
    """Blocks inside ``forward`` until released, recording which frames ran."""

    def __init__(self) -> None:
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    @property
    def is_initialized(self) -> bool:
        return True

    def initialize(self, model_bytes: bytes) -> None:
        pass

    def forward(self, tensor: np.ndarray) -> np.ndarray:
        self.calls += 1
        self.started.set()
        assert self.release.wait(_TIMEOUT)
        return np.array([0.99, 0.01], dtype=np.float32)


class TestLatestFrameSlot:
    def test_take_returns_put_frame(self, make_frame: Callable[..., RawFrame]) -> None:
        slot = LatestFrameSlot()
        frame = make_frame(frame_id=1)
        assert slot.put(frame) is True
        assert slot.take(timeout=0) is frame

    def test_newer_frame_replaces_pending(
        self, make_frame: Callable[..., RawFrame]
    ) -> None:
        slot = LatestFrameSlot()
        frames = [make_frame(frame_id=i) for i in range(3)]
        results = [slot.put(f) for f in frames]

        assert results == [True, False, False]
        assert slot.take(timeout=0) is frames[-1]
        assert slot.metrics() == {"pending": 0, "dropped_count": 2, "total_put": 3}

    def test_take_times_out_when_empty(self) -> None:
        assert LatestFrameSlot().take(timeout=0.01) is None

    def test_close_wakes_waiting_consumer(self) -> None:
        slot = LatestFrameSlot()
        taken: list[RawFrame | None] = []
        consumer = threading.Thread(target=lambda: taken.append(slot.take()))
        consumer.start()
        slot.close()
        consumer.join(_TIMEOUT)
        assert not consumer.is_alive()
        assert taken == [None]

    def test_put_after_close_is_ignored(
        self, make_frame: Callable[..., RawFrame]
    ) -> None:
        slot = LatestFrameSlot()
        slot.close()
        assert slot.put(make_frame()) is False
        assert slot.total_put == 0

    def test_pending_frame_survives_close(
        self, make_frame: Callable[..., RawFrame]
    ) -> None:
        slot = LatestFrameSlot()
        frame = make_frame()
        slot.put(frame)
        slot.close()
        assert slot.take() is frame
        assert slot.take() is None


class TestResultChannel:
    def test_latest_defaults_to_empty(self) -> None:
        assert ResultChannel().latest() == ""

    def test_post_updates_latest(self) -> None:
        channel = ResultChannel()
        channel.post("a")
        channel.post("b")
        assert channel.latest() == "b"
        assert channel.version == 2

    def test_on_update_without_dispatch(self) -> None:
        seen: list[str] = []
        channel = ResultChannel(on_update=seen.append)
        channel.post("Prediction Result: Cat")
        assert seen == ["Prediction Result: Cat"]

    def test_dispatch_marshals_delivery(self) -> None:
        pending: list[Callable[[], None]] = []
        seen: list[str] = []
        channel = ResultChannel(on_update=seen.append, dispatch=pending.append)

        channel.post("first")
        assert seen == []
        pending.pop()()
        assert seen == ["first"]

    def test_delayed_delivery_shows_latest_value(self) -> None:
        pending: list[Callable[[], None]] = []
        seen: list[str] = []
        channel = ResultChannel(on_update=seen.append, dispatch=pending.append)

        channel.post("stale")
        channel.post("fresh")
        for deliver in pending:
            deliver()
        assert seen == ["fresh", "fresh"]

    def test_polling_channel_never_dispatches(self) -> None:
        pending: list[Callable[[], None]] = []
        channel = ResultChannel(dispatch=pending.append)

        channel.post("Prediction Result: Dog")
        channel._deliver()
        assert pending == []
        assert channel.latest() == "Prediction Result: Dog"


class TestInferenceWorker:
    def test_processes_submitted_frame(
        self,
        make_frame: Callable[..., RawFrame],
        cat_inferencer: BaseClassificationInferencer,
    ) -> None:
        delivered = threading.Event()
        channel = ResultChannel(on_update=lambda _text: delivered.set())
        worker = InferenceWorker(FrameAdapter(input_size=16), cat_inferencer, channel)
        worker.start()
        try:
            worker.submit(make_frame())
            assert delivered.wait(_TIMEOUT)
        finally:
            worker.stop()

        assert channel.latest() == "Prediction Result: Cat\nConfidence: 97.00%"
        assert worker.processed_count == 1
        assert not worker.is_running

    def test_low_confidence_posts_empty_string(
        self,
        make_frame: Callable[..., RawFrame],
        make_inferencer: Callable[..., BaseClassificationInferencer],
    ) -> None:
        delivered = threading.Event()
        texts: list[str] = []

        def on_update(text: str) -> None:
            texts.append(text)
            delivered.set()

        worker = InferenceWorker(
            FrameAdapter(input_size=16),
            make_inferencer([0.6, 0.4]),
            ResultChannel(on_update=on_update),
        )
        worker.start()
        try:
            worker.submit(make_frame())
            assert delivered.wait(_TIMEOUT)
        finally:
            worker.stop()
        assert texts == [""]

    def test_keep_latest_while_busy(self, make_frame: Callable[..., RawFrame]) -> None:
        inferencer = GatedInferencer()
        channel = ResultChannel()
        worker = InferenceWorker(FrameAdapter(input_size=16), inferencer, channel)
        worker.start()
        try:
            worker.submit(make_frame(frame_id=1))
            assert inferencer.started.wait(_TIMEOUT)

            # frame 1 is in flight: 2 and 3 compete for the single slot
            assert worker.submit(make_frame(frame_id=2)) is True
            assert worker.submit(make_frame(frame_id=3)) is False
            inferencer.release.set()
        finally:
            worker.stop()

        assert inferencer.calls == 2
        assert worker.processed_count == 2
        assert worker.slot.dropped_count == 1
        assert channel.version == 2

    def test_failed_frame_does_not_stop_worker(
        self,
        make_frame: Callable[..., RawFrame],
        cat_inferencer: BaseClassificationInferencer,
    ) -> None:
        class FlakyAdapter(FrameAdapter):
            def adapt(
                self, frame: RawFrame, rotation_degrees: int | None = None
            ) -> np.ndarray:
                if frame.frame_id == 1:
                    raise ValueError("corrupt frame")
                return super().adapt(frame, rotation_degrees)

        delivered = threading.Event()
        channel = ResultChannel(on_update=lambda _text: delivered.set())
        worker = InferenceWorker(FlakyAdapter(input_size=16), cat_inferencer, channel)
        worker.start()
        try:
            worker.submit(make_frame(frame_id=1))
            assert _wait_until(lambda: worker.failed_count == 1)
            assert not delivered.is_set()

            worker.submit(make_frame(frame_id=2))
            assert delivered.wait(_TIMEOUT)
        finally:
            worker.stop()
        assert worker.failed_count == 1
        assert worker.processed_count == 1
        assert channel.latest() == "Prediction Result: Cat\nConfidence: 97.00%"

    def test_process_runs_inline(
        self,
        make_frame: Callable[..., RawFrame],
        cat_inferencer: BaseClassificationInferencer,
    ) -> None:
        worker = InferenceWorker(FrameAdapter(input_size=16), cat_inferencer, ResultChannel())
        assert worker.process(make_frame()).startswith("Prediction Result: Cat")

    def test_requires_initialized_inferencer(
        self, make_inferencer: Callable[..., BaseClassificationInferencer]
    ) -> None:
        inferencer = make_inferencer([0.5, 0.5])
        inferencer.model_bytes = None  # type: ignore[attr-defined]
        worker = InferenceWorker(FrameAdapter(input_size=16), inferencer, ResultChannel())
        with pytest.raises(RuntimeError, match="initialized"):
            worker.start()

    def test_cannot_start_twice(
        self, cat_inferencer: BaseClassificationInferencer
    ) -> None:
        worker = InferenceWorker(FrameAdapter(input_size=16), cat_inferencer, ResultChannel())
        worker.start()
        try:
            with pytest.raises(RuntimeError, match="already started"):
                worker.start()
        finally:
            worker.stop()
