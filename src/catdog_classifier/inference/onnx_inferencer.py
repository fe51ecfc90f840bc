"""ONNX-based classification inferencer."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
import onnxruntime as ort
from loguru import logger

from catdog_classifier.config import (
    DEFAULT_ACCELERATED_PROVIDERS,
    DEFAULT_LABELS,
    DEFAULT_NUM_THREADS,
    DEFAULT_THRESHOLD,
    ClassifierConfig,
    RuntimeConfig,
)
from catdog_classifier.inference.base import BaseClassificationInferencer, ModelLoadError
from catdog_classifier.inference.postprocess import _softmax
from catdog_classifier.schemas.result import UNKNOWN_LABEL

CPU_PROVIDER = "CPUExecutionProvider"


def load_model_bytes(model_path: str | Path) -> bytes:
    """Read the bundled model artifact."""
    model_path = Path(model_path)
    if not model_path.is_file():
        raise ModelLoadError(f"Model artifact not found: {model_path}")
    return model_path.read_bytes()


class ONNXClassificationInferencer(BaseClassificationInferencer):
    """Run classification inference with an ONNX model.

    The session uses the first available accelerated execution provider
    (falling back to CPU for unsupported ops).  When none is available it
    runs on the CPU provider with a fixed intra-op thread pool.  The
    session is built once by :meth:`initialize` and never changed
    afterwards, so ``classify`` may be called from a worker thread.

    Args:
        labels: Class label per output index.
        threshold: Minimum (exclusive) probability to report a label.
        unknown_label: Label of the below-threshold result.
        accelerated_providers: Execution providers to prefer, in order.
        num_threads: CPU intra-op threads when no accelerator is available.
        apply_softmax: Treat model outputs as logits.
    """

    def __init__(
        self,
        labels: Sequence[str] = DEFAULT_LABELS,
        threshold: float = DEFAULT_THRESHOLD,
        unknown_label: str = UNKNOWN_LABEL,
        accelerated_providers: Sequence[str] = DEFAULT_ACCELERATED_PROVIDERS,
        num_threads: int = DEFAULT_NUM_THREADS,
        apply_softmax: bool = False,
    ) -> None:
        super().__init__(
            labels=labels, threshold=threshold, unknown_label=unknown_label
        )
        self.accelerated_providers = tuple(accelerated_providers)
        self.num_threads = num_threads
        self.apply_softmax = apply_softmax
        self.session: ort.InferenceSession | None = None
        self.input_name: str | None = None

    @classmethod
    def from_config(
        cls, runtime: RuntimeConfig, classifier: ClassifierConfig
    ) -> ONNXClassificationInferencer:
        return cls(
            labels=classifier.labels,
            threshold=classifier.threshold,
            unknown_label=classifier.unknown_label,
            accelerated_providers=runtime.accelerated_providers,
            num_threads=runtime.num_threads,
            apply_softmax=runtime.apply_softmax,
        )

    @property
    def is_initialized(self) -> bool:
        return self.session is not None

    def select_execution(self) -> tuple[list[str], ort.SessionOptions]:
        """Choose execution providers and session options for this machine."""
        options = ort.SessionOptions()
        available = set(ort.get_available_providers())
        for provider in self.accelerated_providers:
            if provider in available:
                logger.info(f"Using accelerated execution provider {provider}")
                return [provider, CPU_PROVIDER], options

        logger.info(
            f"No accelerated execution provider available, "
            f"running on CPU with {self.num_threads} threads"
        )
        options.intra_op_num_threads = self.num_threads
        return [CPU_PROVIDER], options

    def initialize(self, model_bytes: bytes) -> None:
        """Build the inference session from the serialized model.

        Raises:
            RuntimeError: If a session has already been built.
            ModelLoadError: If the artifact is empty, unreadable, or its
                output does not match the configured labels.
        """
        if self.session is not None:
            raise RuntimeError("ONNXClassificationInferencer is already initialized")
        if not model_bytes:
            raise ModelLoadError("Model artifact is empty")

        providers, options = self.select_execution()
        try:
            session = ort.InferenceSession(
                model_bytes, sess_options=options, providers=providers
            )
        except Exception as e:
            raise ModelLoadError(f"Failed to load model artifact: {e}") from e

        output_shape = session.get_outputs()[0].shape
        if not output_shape:
            raise ModelLoadError(
                "Model output is a scalar, expected one probability per label"
            )
        output_width = output_shape[-1]
        if isinstance(output_width, int) and output_width != len(self.labels):
            raise ModelLoadError(
                f"Model outputs {output_width} classes but {len(self.labels)} "
                f"labels are configured: {list(self.labels)}"
            )

        self.session = session
        self.input_name = session.get_inputs()[0].name
        logger.info(
            f"Loaded model ({len(model_bytes)} bytes), input '{self.input_name}', "
            f"labels {list(self.labels)}"
        )

    def forward(self, tensor: np.ndarray) -> np.ndarray:  # type: ignore[type-arg]
        """Single forward pass on a batch of one."""
        if self.session is None:
            raise RuntimeError("ONNXClassificationInferencer is not initialized")
        outputs = self.session.run(None, {self.input_name: tensor})[0]
        probs = np.asarray(outputs, dtype=np.float32).reshape(1, -1)
        if self.apply_softmax:
            probs = _softmax(probs)
        return probs[0]
