"""Classification result schemas."""

from catdog_classifier.schemas.result import (
    ClassificationResult,
    format_for_display,
)

__all__ = [
    "ClassificationResult",
    "format_for_display",
]
