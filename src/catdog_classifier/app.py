"""Application shell: model loading, worker lifecycle and the camera analyzer hook.

Usage:
    cfg = load_config(overrides=["runtime.model_path=/opt/models/catsdogs.onnx"])
    channel = ResultChannel(on_update=label.set_text, dispatch=loop.call_soon_threadsafe)
    with CatDogApp(cfg, channel=channel) as app:
        camera.on_frame(app.analyze)
"""

from __future__ import annotations

from types import TracebackType

from loguru import logger

from catdog_classifier.adapter import FrameAdapter
from catdog_classifier.config import AppConfig
from catdog_classifier.frames.frame import RawFrame
from catdog_classifier.inference.base import BaseClassificationInferencer, ModelLoadError
from catdog_classifier.inference.onnx_inferencer import (
    ONNXClassificationInferencer,
    load_model_bytes,
)
from catdog_classifier.runtime.channel import ResultChannel
from catdog_classifier.runtime.worker import InferenceWorker
from catdog_classifier.utils.log import setup_logging


class CatDogApp:
    """Compose adapter, inferencer, worker and result channel.

    Args:
        config: Validated application configuration.
        inferencer: Classifier to use; an ONNX inferencer built from
            ``config`` if omitted.
        channel: Display channel; a polling-only channel if omitted.
        configure_logging: Replace loguru sinks with a stderr sink at
            ``config.log_level`` on start.  Leave unset when embedding in a
            host that configures its own sinks.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        inferencer: BaseClassificationInferencer | None = None,
        channel: ResultChannel | None = None,
        configure_logging: bool = False,
    ) -> None:
        self.config = config or AppConfig()
        self.configure_logging = configure_logging
        self.adapter = FrameAdapter.from_config(self.config.adapter)
        self.inferencer = inferencer or ONNXClassificationInferencer.from_config(
            self.config.runtime, self.config.classifier
        )
        self.channel = channel or ResultChannel()
        self.worker = InferenceWorker(self.adapter, self.inferencer, self.channel)

    def start(self, model_bytes: bytes | None = None) -> None:
        """Load the model and start the worker.

        ``model_bytes`` defaults to the file at ``config.runtime.model_path``.
        A :class:`ModelLoadError` is logged and re-raised; the application
        cannot run without its model.  Starting twice raises
        :class:`RuntimeError` and leaves the running model in place.
        """
        if self.inferencer.is_initialized or self.worker.is_running:
            raise RuntimeError("CatDogApp is already started")
        if self.configure_logging:
            setup_logging(self.config.log_level)
        try:
            if model_bytes is None:
                model_bytes = load_model_bytes(self.config.runtime.model_path)
            self.inferencer.initialize(model_bytes)
        except ModelLoadError as e:
            logger.critical(f"Cannot start without a model: {e}")
            raise
        self.worker.start()

    def analyze(self, frame: RawFrame) -> bool:
        """Camera analyzer callback: queue ``frame`` under the keep-latest policy."""
        return self.worker.submit(frame)

    def stop(self) -> None:
        self.worker.stop()

    def __enter__(self) -> CatDogApp:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
