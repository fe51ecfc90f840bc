"""Raw camera frame model.

A frame is three YUV 4:2:0 planes (Y, U/Cb, V/Cr) as delivered by a camera
API, plus the clockwise rotation the sensor image needs to appear upright.
Chroma planes are subsampled 2x2; a plane's samples may be spread apart by
``pixel_stride`` (semi-planar layouts interleave U and V) and rows may be
padded to ``row_stride`` bytes.

Frames are validated at construction: they come from trusted platform code,
so anything inconsistent is a caller bug and fails fast.
"""

from __future__ import annotations

import numpy as np
from PIL import Image
from pydantic import BaseModel, Field, field_validator, model_validator

VALID_ROTATIONS = (0, 90, 180, 270)
PLANE_COUNT = 3


class Plane(BaseModel, frozen=True):
    """One colour plane of a frame."""

    buffer: bytes = Field(repr=False)
    row_stride: int = Field(gt=0)
    pixel_stride: int = Field(default=1, gt=0)

    def to_array(self, width: int, height: int) -> np.ndarray:  # type: ignore[type-arg]
        """Gather the plane's samples into a dense ``(height, width)`` uint8 array."""
        data = np.frombuffer(self.buffer, dtype=np.uint8)
        needed = height * self.row_stride
        # The last row is usually not padded out to row_stride.
        if data.size < needed:
            data = np.pad(data, (0, needed - data.size))
        rows = data[:needed].reshape(height, self.row_stride)
        return np.ascontiguousarray(
            rows[:, : width * self.pixel_stride : self.pixel_stride]
        )


class RawFrame(BaseModel, frozen=True):
    """A YUV 4:2:0 camera frame with its rotation hint."""

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    planes: tuple[Plane, ...]
    rotation: int = 0
    frame_id: int = 0

    @field_validator("rotation")
    @classmethod
    def _rotation_is_right_angle(cls, value: int) -> int:
        if value not in VALID_ROTATIONS:
            raise ValueError(f"rotation must be one of {VALID_ROTATIONS}, got {value}")
        return value

    @model_validator(mode="after")
    def _planes_cover_geometry(self) -> RawFrame:
        if len(self.planes) != PLANE_COUNT:
            raise ValueError(
                f"expected {PLANE_COUNT} planes (Y, U, V), got {len(self.planes)}"
            )
        for index, plane in enumerate(self.planes):
            width, height = self.plane_size(index)
            min_row = (width - 1) * plane.pixel_stride + 1
            if plane.row_stride < min_row:
                raise ValueError(
                    f"plane {index}: row_stride {plane.row_stride} is shorter "
                    f"than a row of {width} samples at pixel_stride "
                    f"{plane.pixel_stride}"
                )
            min_size = (height - 1) * plane.row_stride + min_row
            if len(plane.buffer) < min_size:
                raise ValueError(
                    f"plane {index}: buffer holds {len(plane.buffer)} bytes, "
                    f"needs at least {min_size}"
                )
        return self

    def plane_size(self, index: int) -> tuple[int, int]:
        """(width, height) of plane ``index``; chroma planes are half size, rounded up."""
        if index == 0:
            return self.width, self.height
        return (self.width + 1) // 2, (self.height + 1) // 2

    def __repr__(self) -> str:
        return (
            f"RawFrame(frame_id={self.frame_id}, "
            f"size={self.width}x{self.height}, rotation={self.rotation})"
        )


def _pack_plane(samples: np.ndarray, pixel_stride: int) -> Plane:  # type: ignore[type-arg]
    """Lay out a dense plane with the given sample spacing, dropping trailing padding."""
    height, width = samples.shape
    row_stride = width * pixel_stride
    rows = np.zeros((height, row_stride), dtype=np.uint8)
    rows[:, ::pixel_stride] = samples
    data = rows.tobytes()
    trailing = pixel_stride - 1
    if trailing:
        data = data[:-trailing]
    return Plane(buffer=data, row_stride=row_stride, pixel_stride=pixel_stride)


def frame_from_image(
    image: Image.Image,
    rotation: int = 0,
    pixel_stride: int = 1,
    frame_id: int = 0,
) -> RawFrame:
    """Build a :class:`RawFrame` from a still image.

    The image is converted to full-range YCbCr and its chroma subsampled by
    taking the top-left sample of every 2x2 block.  ``pixel_stride=2``
    produces the semi-planar chroma layout most Android devices deliver.

    Args:
        image: Any PIL image; converted to RGB first.
        rotation: Rotation hint carried by the frame.
        pixel_stride: Sample spacing of the chroma planes (1 or 2).
        frame_id: Identifier carried by the frame.
    """
    if pixel_stride not in (1, 2):
        raise ValueError(f"pixel_stride must be 1 or 2, got {pixel_stride}")
    ycbcr = np.asarray(image.convert("RGB").convert("YCbCr"))
    luma = _pack_plane(ycbcr[:, :, 0], pixel_stride=1)
    cb = _pack_plane(ycbcr[::2, ::2, 1], pixel_stride=pixel_stride)
    cr = _pack_plane(ycbcr[::2, ::2, 2], pixel_stride=pixel_stride)
    return RawFrame(
        width=image.width,
        height=image.height,
        planes=(luma, cb, cr),
        rotation=rotation,
        frame_id=frame_id,
    )
