"""Frame-to-tensor transforms.

``v2.Transform`` subclasses operating on camera frames and PIL images,
composed by :class:`~catdog_classifier.adapter.FrameAdapter`.
"""

from catdog_classifier.transforms.conversion import ToGrayscaleTensor, YUV420ToRGB
from catdog_classifier.transforms.degradation import JPEGRoundTrip
from catdog_classifier.transforms.geometry import rotate_clockwise

__all__ = [
    "JPEGRoundTrip",
    "ToGrayscaleTensor",
    "YUV420ToRGB",
    "rotate_clockwise",
]
