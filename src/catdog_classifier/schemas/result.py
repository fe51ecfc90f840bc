"""Classification result schema and its display rendering."""

from __future__ import annotations

from pydantic import BaseModel

UNKNOWN_LABEL = "unknown"


class ClassificationResult(BaseModel, frozen=True):
    """Outcome of one forward pass.

    ``class_id`` is ``None`` for the unknown result, which is what
    ``classify`` returns when the top probability does not clear the
    confidence threshold.
    """

    label: str
    confidence: float
    class_id: int | None = None

    @classmethod
    def unknown(cls, label: str = UNKNOWN_LABEL) -> ClassificationResult:
        return cls(label=label, confidence=0.0, class_id=None)

    @property
    def is_confident(self) -> bool:
        return self.class_id is not None


def format_for_display(result: ClassificationResult) -> str:
    """Two-line prediction text, or an empty string for the unknown result."""
    if not result.is_confident:
        return ""
    return (
        f"Prediction Result: {result.label}\n"
        f"Confidence: {result.confidence * 100:.2f}%"
    )
