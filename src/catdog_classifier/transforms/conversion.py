"""Colour-space and tensor conversion transforms for camera frames."""

from __future__ import annotations

from typing import Any

import numpy as np
import torch
from PIL import Image
from torchvision.transforms import v2

from catdog_classifier.frames.frame import RawFrame


class YUV420ToRGB(v2.Transform):
    """Merge the three planes of a :class:`RawFrame` into an RGB PIL image.

    Chroma is upsampled by replicating each sample over its 2x2 block and
    the planes are converted with Pillow's full-range (JFIF) YCbCr matrix.
    """

    def forward(self, *inputs: Any) -> Any:
        frame = inputs[0]
        rest = inputs[1:]

        if not isinstance(frame, RawFrame):
            raise TypeError(f"YUV420ToRGB expects a RawFrame, got {type(frame)}")

        channels = []
        for index, plane in enumerate(frame.planes):
            width, height = frame.plane_size(index)
            samples = plane.to_array(width, height)
            if index > 0:
                samples = np.repeat(np.repeat(samples, 2, axis=0), 2, axis=1)
                samples = np.ascontiguousarray(samples[: frame.height, : frame.width])
            channels.append(Image.fromarray(samples))

        rgb = Image.merge("YCbCr", channels).convert("RGB")
        return (rgb, *rest) if rest else rgb


class ToGrayscaleTensor(v2.Transform):
    """Convert an RGB PIL image to a float32 ``(C, H, W)`` grayscale tensor.

    Each pixel becomes the unweighted mean of its R, G and B values scaled
    to ``[0.0, 1.0]``; this is not luma.  With ``channels=3`` the grayscale
    value is repeated in every channel.

    Args:
        channels: Number of output channels, 1 or 3.
    """

    def __init__(self, channels: int = 1) -> None:
        super().__init__()
        if channels not in (1, 3):
            raise ValueError(f"channels must be 1 or 3, got {channels}")
        self.channels = channels
        self._to_image = v2.ToImage()
        self._to_dtype = v2.ToDtype(torch.float32, scale=True)

    def forward(self, *inputs: Any) -> Any:
        img = inputs[0]
        rest = inputs[1:]

        if not isinstance(img, Image.Image):
            raise TypeError(f"ToGrayscaleTensor expects a PIL Image, got {type(img)}")

        rgb = self._to_dtype(self._to_image(img.convert("RGB")))
        gray = rgb.mean(dim=0, keepdim=True)
        if self.channels == 3:
            gray = gray.expand(3, -1, -1)
        tensor = gray.contiguous()
        return (tensor, *rest) if rest else tensor
