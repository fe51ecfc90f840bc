"""Orientation correction for camera images."""

from __future__ import annotations

from PIL import Image

from catdog_classifier.frames.frame import VALID_ROTATIONS

# PIL's ROTATE_* transposes turn counter-clockwise.
_CLOCKWISE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


def rotate_clockwise(img: Image.Image, degrees: int) -> Image.Image:
    """Rotate ``img`` clockwise by a right angle.

    A rotation of 0 returns ``img`` itself.
    """
    degrees %= 360
    if degrees not in VALID_ROTATIONS:
        raise ValueError(f"rotation must be a multiple of 90 degrees, got {degrees}")
    if degrees == 0:
        return img
    return img.transpose(_CLOCKWISE[degrees])
