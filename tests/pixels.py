"""Small pixel-array builders shared by the tests."""

from __future__ import annotations

import numpy as np


def solid(width: int, height: int, rgba) -> np.ndarray:
    """Return an ``(height, width, 4)`` array filled with *rgba*."""
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = np.asarray(rgba, dtype=np.uint8)
    return pixels


def single(rgb, alpha: int = 255) -> np.ndarray:
    """Return a 1x1 RGBA array."""
    return np.array([[[*rgb, alpha]]], dtype=np.uint8)
