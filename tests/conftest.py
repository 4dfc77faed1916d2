"""Shared fixtures for the pixelcraft test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

np = pytest.importorskip("numpy")

from pixelcraft.bitmap import Bitmap  # noqa: E402  # pylint: disable=wrong-import-position


@pytest.fixture
def gradient_bitmap() -> Bitmap:
    """A 6x4 bitmap with distinct colors and a non-trivial alpha channel."""
    height, width = 4, 6
    ys, xs = np.mgrid[0:height, 0:width]
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = (xs * 40 + 10).astype(np.uint8)
    pixels[..., 1] = (ys * 60 + 20).astype(np.uint8)
    pixels[..., 2] = ((xs + ys) * 25 + 5).astype(np.uint8)
    pixels[..., 3] = (255 - xs * 10).astype(np.uint8)
    return Bitmap(width, height, pixels)
