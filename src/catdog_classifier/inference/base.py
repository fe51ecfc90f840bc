"""Abstract base class for classification inferencers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

import numpy as np

from catdog_classifier.config import DEFAULT_LABELS, DEFAULT_THRESHOLD
from catdog_classifier.inference.postprocess import interpret_probabilities
from catdog_classifier.schemas.result import UNKNOWN_LABEL, ClassificationResult


class ModelLoadError(RuntimeError):
    """The model artifact is missing, empty or cannot be loaded by the runtime."""


class BaseClassificationInferencer(ABC):
    """Base class for classification inferencers.

    Subclasses implement ``initialize`` (load the model once) and
    ``forward`` (one pass, one probability per label).  ``classify``
    turns the probabilities into a :class:`ClassificationResult`.

    Args:
        labels: Class label per output index.
        threshold: A prediction is reported only when its probability is
            strictly greater than this.
        unknown_label: Label of the result returned below the threshold.
    """

    def __init__(
        self,
        labels: Sequence[str] = DEFAULT_LABELS,
        threshold: float = DEFAULT_THRESHOLD,
        unknown_label: str = UNKNOWN_LABEL,
    ) -> None:
        self.labels = tuple(labels)
        self.threshold = threshold
        self.unknown_label = unknown_label

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        """Whether ``initialize`` has completed."""

    @abstractmethod
    def initialize(self, model_bytes: bytes) -> None:
        """Load the serialized model.

        Raises :class:`ModelLoadError` if the artifact cannot be loaded.
        """

    @abstractmethod
    def forward(self, tensor: np.ndarray) -> np.ndarray:  # type: ignore[type-arg]
        """Run a single forward pass.

        Returns a 1-D probability vector with one entry per label.
        """

    def classify(self, tensor: np.ndarray) -> ClassificationResult:  # type: ignore[type-arg]
        """Classify one adapted frame."""
        if not self.is_initialized:
            raise RuntimeError(
                f"{type(self).__name__}.classify called before initialize"
            )
        return interpret_probabilities(
            self.forward(tensor),
            self.labels,
            self.threshold,
            unknown_label=self.unknown_label,
        )
