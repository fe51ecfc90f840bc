"""Lossy re-encoding transform.

Some camera pipelines merge colour planes by compressing the frame to JPEG
and decoding it again.  :class:`JPEGRoundTrip` reproduces that step for
pixel-level parity with them; it is not part of the default pipeline.
"""

from __future__ import annotations

import io
from typing import Any

from PIL import Image
from torchvision.transforms import v2


class JPEGRoundTrip(v2.Transform):
    """Pass an image through a PIL JPEG encode/decode round-trip.

    Args:
        quality: JPEG quality used for encoding.
    """

    def __init__(self, quality: int = 100) -> None:
        super().__init__()
        if not 1 <= quality <= 100:
            raise ValueError(f"quality must satisfy 1 <= quality <= 100, got {quality}")
        self.quality = quality

    def forward(self, *inputs: Any) -> Any:
        img = inputs[0]
        rest = inputs[1:]

        if not isinstance(img, Image.Image):
            raise TypeError(f"JPEGRoundTrip expects a PIL Image, got {type(img)}")

        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=self.quality)
        buf.seek(0)
        decoded = Image.open(buf).convert(img.mode)

        return (decoded, *rest) if rest else decoded
