"""Shared pytest fixtures for catdog_classifier tests."""

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from catdog_classifier.frames import RawFrame, frame_from_image
from catdog_classifier.inference.base import BaseClassificationInferencer


class FixedProbabilityInferencer(BaseClassificationInferencer):
    """Inferencer stub returning a fixed probability vector."""

    def __init__(self, probabilities: list[float], **kwargs: object) -> None:
        super().__init__(**kwargs)  # type: ignore[arg-type]
        self.probabilities = np.asarray(probabilities, dtype=np.float32)
        self.model_bytes: bytes | None = None
        self.seen_shapes: list[tuple[int, ...]] = []

    @property
    def is_initialized(self) -> bool:
        return self.model_bytes is not None

    def initialize(self, model_bytes: bytes) -> None:
        if self.model_bytes is not None:
            raise RuntimeError("FixedProbabilityInferencer is already initialized")
        self.model_bytes = model_bytes

    def forward(self, tensor: np.ndarray) -> np.ndarray:
        self.seen_shapes.append(tensor.shape)
        return self.probabilities.copy()


@pytest.fixture()
def rgb_image() -> Image.Image:
    """64x48 RGB test image with non-uniform content."""
    img = Image.new("RGB", (64, 48), color=(128, 64, 200))
    for x in range(0, 64, 8):
        for y in range(0, 48, 8):
            img.putpixel((x, y), (255, 0, 0))
    return img


@pytest.fixture()
def make_frame() -> Callable[..., RawFrame]:
    """Factory for solid-colour frames."""

    def _make(
        color: tuple[int, int, int] = (90, 160, 40),
        size: tuple[int, int] = (32, 24),
        rotation: int = 0,
        pixel_stride: int = 1,
        frame_id: int = 0,
    ) -> RawFrame:
        img = Image.new("RGB", size, color=color)
        return frame_from_image(
            img, rotation=rotation, pixel_stride=pixel_stride, frame_id=frame_id
        )

    return _make


@pytest.fixture()
def cat_inferencer() -> FixedProbabilityInferencer:
    """Initialized stub that always answers Cat at 0.97."""
    inferencer = FixedProbabilityInferencer([0.97, 0.03])
    inferencer.initialize(b"stub-model")
    return inferencer


@pytest.fixture()
def model_file(tmp_path: Path) -> Path:
    path = tmp_path / "catsdogs.onnx"
    path.write_bytes(b"\x08\x07onnx-model-bytes")
    return path


@pytest.fixture()
def make_inferencer() -> Callable[..., FixedProbabilityInferencer]:
    """Factory for stubs with a given probability vector."""

    def _make(
        probabilities: list[float], initialized: bool = True, **kwargs: object
    ) -> FixedProbabilityInferencer:
        inferencer = FixedProbabilityInferencer(probabilities, **kwargs)
        if initialized:
            inferencer.initialize(b"stub-model")
        return inferencer

    return _make
