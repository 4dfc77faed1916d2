"""Bitmap value type shared by every stage of the editing core."""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Union

import numpy as np
from PIL import Image

LOGGER = logging.getLogger("pixelcraft")

CHANNELS = 4

BufferLike = Union[bytes, bytearray, memoryview, np.ndarray]


def as_pixel_array(buffer: BufferLike, width: int, height: int) -> np.ndarray:
    """Return *buffer* viewed as a ``(height, width, 4)`` ``uint8`` array.

    Args:
        buffer: Flat RGBA bytes or an array holding ``width * height * 4`` values.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Array view (or a converted copy for non-``uint8`` arrays) of the buffer.

    Raises:
        ValueError: If the dimensions are negative or the buffer length does not
            match ``width * height * 4``.
    """
    if width < 0 or height < 0:
        raise ValueError(f"Bitmap dimensions must be non-negative, got {width}x{height}")
    if isinstance(buffer, np.ndarray):
        flat = buffer.reshape(-1)
        if flat.dtype != np.uint8:
            flat = np.clip(flat, 0, 255).astype(np.uint8)
    else:
        flat = np.frombuffer(buffer, dtype=np.uint8)
    expected = width * height * CHANNELS
    if flat.size != expected:
        raise ValueError(
            f"Pixel buffer holds {flat.size} bytes but {width}x{height} RGBA needs {expected}"
        )
    return flat.reshape((height, width, CHANNELS))


@dataclasses.dataclass(eq=False)
class Bitmap:
    """RGBA raster with row-major, unpadded storage.

    Attributes:
        width: Width in pixels.
        height: Height in pixels.
        pixels: ``uint8`` array of shape ``(height, width, 4)`` in R, G, B, A order.
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        expected = (self.height, self.width, CHANNELS)
        if self.pixels.shape != expected:
            raise ValueError(f"Pixel array shape {self.pixels.shape} does not match {expected}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Pixel array must be uint8, got {self.pixels.dtype}")

    @classmethod
    def from_buffer(cls, width: int, height: int, buffer: BufferLike) -> "Bitmap":
        """Build a bitmap that owns a copy of a flat RGBA buffer."""

        return cls(width, height, as_pixel_array(buffer, width, height).copy())

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Bitmap":
        """Wrap an ``(H, W, 4)`` array; RGB arrays gain an opaque alpha channel."""

        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[2] not in (3, CHANNELS):
            raise ValueError(f"Expected an (H, W, 3) or (H, W, 4) array, got {arr.shape}")
        if arr.dtype != np.uint8:
            arr = np.clip(np.rint(arr), 0, 255).astype(np.uint8)
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=2)
        height, width = arr.shape[:2]
        return cls(width, height, np.ascontiguousarray(arr))

    @classmethod
    def blank(cls, width: int, height: int, fill: Any = (0, 0, 0, 0)) -> "Bitmap":
        pixels = np.empty((height, width, CHANNELS), dtype=np.uint8)
        pixels[...] = np.asarray(fill, dtype=np.uint8)
        return cls(width, height, pixels)

    @classmethod
    def from_image(cls, image: Image.Image) -> "Bitmap":
        """Convert a Pillow image of any mode to an RGBA bitmap."""

        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        return cls.from_array(np.asarray(rgba, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        # (H, W, 4) uint8 arrays map to RGBA without the deprecated ``mode`` argument
        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "Bitmap":
        return Bitmap(self.width, self.height, self.pixels.copy())

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def __repr__(self) -> str:
        return f"Bitmap(width={self.width}, height={self.height})"


__all__ = ["Bitmap", "BufferLike", "CHANNELS", "as_pixel_array"]
