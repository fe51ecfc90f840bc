"""Frame adapter: camera frame -> normalized model input tensor.

Pipeline: YUV420ToRGB -> (JPEGRoundTrip) -> rotate_clockwise -> Resize
(bilinear, aspect ratio discarded) -> ToGrayscaleTensor -> layout.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from loguru import logger
from PIL import Image
from torchvision.transforms import InterpolationMode, v2

from catdog_classifier.config import AdapterConfig
from catdog_classifier.frames.frame import RawFrame
from catdog_classifier.transforms import (
    JPEGRoundTrip,
    ToGrayscaleTensor,
    YUV420ToRGB,
    rotate_clockwise,
)


class FrameAdapter:
    """Convert raw camera frames into the tensor the model expects.

    The output is a float32 array in native byte order with a leading
    batch dimension of one, holding exactly
    ``input_size * input_size * input_channels`` values in ``[0, 1]``.

    Args:
        input_size: Side of the square model input.
        input_channels: 1, or 3 to repeat the grayscale value per channel.
        layout: ``"NHWC"`` or ``"NCHW"``.
        jpeg_roundtrip: Re-encode merged frames through JPEG before
            rotation, for parity with JPEG-based plane merging.
        jpeg_quality: Quality used by the round-trip.
    """

    def __init__(
        self,
        input_size: int = 224,
        input_channels: int = 1,
        layout: Literal["NHWC", "NCHW"] = "NHWC",
        jpeg_roundtrip: bool = False,
        jpeg_quality: int = 100,
    ) -> None:
        if layout not in ("NHWC", "NCHW"):
            raise ValueError(f"layout must be 'NHWC' or 'NCHW', got {layout!r}")
        self.input_size = input_size
        self.input_channels = input_channels
        self.layout = layout

        decode: list[v2.Transform] = [YUV420ToRGB()]
        if jpeg_roundtrip:
            decode.append(JPEGRoundTrip(quality=jpeg_quality))
        self.decode = v2.Compose(decode)

        self.pack = v2.Compose(
            [
                v2.Resize(
                    (input_size, input_size),
                    interpolation=InterpolationMode.BILINEAR,
                    antialias=True,
                ),
                ToGrayscaleTensor(channels=input_channels),
            ]
        )

    @classmethod
    def from_config(cls, cfg: AdapterConfig) -> FrameAdapter:
        return cls(
            input_size=cfg.input_size,
            input_channels=cfg.input_channels,
            layout=cfg.layout,
            jpeg_roundtrip=cfg.jpeg_roundtrip,
            jpeg_quality=cfg.jpeg_quality,
        )

    @property
    def input_shape(self) -> tuple[int, int, int, int]:
        size, channels = self.input_size, self.input_channels
        if self.layout == "NHWC":
            return (1, size, size, channels)
        return (1, channels, size, size)

    def adapt(
        self, frame: RawFrame, rotation_degrees: int | None = None
    ) -> np.ndarray:  # type: ignore[type-arg]
        """Convert a camera frame; rotation defaults to the frame's own hint."""
        if rotation_degrees is None:
            rotation_degrees = frame.rotation
        rgb = self.decode(frame)
        logger.debug(f"Decoded {frame!r}, rotating {rotation_degrees} degrees")
        return self.adapt_image(rgb, rotation_degrees)

    def adapt_image(
        self, image: Image.Image, rotation_degrees: int = 0
    ) -> np.ndarray:  # type: ignore[type-arg]
        """Convert an already-decoded still image."""
        upright = rotate_clockwise(image.convert("RGB"), rotation_degrees)
        tensor = self.pack(upright)
        if self.layout == "NHWC":
            tensor = tensor.permute(1, 2, 0)
        array = np.ascontiguousarray(tensor.unsqueeze(0).numpy(), dtype=np.float32)

        expected = self.input_size * self.input_size * self.input_channels
        if array.size != expected:
            raise ValueError(
                f"packed tensor has {array.size} values, expected {expected}"
            )
        return array
