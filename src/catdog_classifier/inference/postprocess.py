"""Probability vector -> classification result."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from loguru import logger

from catdog_classifier.schemas.result import UNKNOWN_LABEL, ClassificationResult


def _softmax(logits: np.ndarray) -> np.ndarray:  # type: ignore[type-arg]
    """Row-wise softmax for 2-D array."""
    exp = np.exp(logits - logits.max(axis=-1, keepdims=True))
    return exp / exp.sum(axis=-1, keepdims=True)


def interpret_probabilities(
    probabilities: Sequence[float] | np.ndarray,  # type: ignore[type-arg]
    labels: Sequence[str],
    threshold: float,
    unknown_label: str = UNKNOWN_LABEL,
) -> ClassificationResult:
    """Pick the most probable label if it clears ``threshold``.

    Ties go to the lowest index.  The comparison is strict: a top
    probability equal to ``threshold`` yields the unknown result.
    """
    probs = np.asarray(probabilities, dtype=np.float64).reshape(-1)
    if probs.size != len(labels):
        raise ValueError(
            f"model produced {probs.size} probabilities for {len(labels)} labels"
        )

    # np.argmax returns the first occurrence of the maximum.
    idx = int(np.argmax(probs))
    confidence = float(probs[idx])
    if confidence > threshold:
        return ClassificationResult(
            label=labels[idx], confidence=confidence, class_id=idx
        )

    logger.debug(
        f"Suppressed low-confidence {labels[idx]!r} ({confidence:.3f} <= {threshold})"
    )
    return ClassificationResult.unknown(unknown_label)
