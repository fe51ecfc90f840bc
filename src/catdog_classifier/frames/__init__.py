"""Camera frame models."""

from catdog_classifier.frames.frame import (
    Plane,
    RawFrame,
    frame_from_image,
)

__all__ = [
    "Plane",
    "RawFrame",
    "frame_from_image",
]
