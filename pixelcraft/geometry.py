"""Geometry operations producing new bitmaps: resize, crop, rotate and flip."""
from __future__ import annotations

import logging
import math
from typing import Mapping, Optional, Tuple, Union

import numpy as np
from PIL import Image

from .bitmap import Bitmap
from .settings import CropMargins, FlipAxis

LOGGER = logging.getLogger("pixelcraft")

DEFAULT_RESIZE_STEPS = 2


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going up (``2.5 -> 3``, ``-2.5 -> -2``)."""

    return int(math.floor(value + 0.5))


def _resample(bitmap: Bitmap, width: int, height: int) -> Bitmap:
    if bitmap.width == 0 or bitmap.height == 0:
        return Bitmap.blank(width, height)
    # Pillow filters RGBA in premultiplied form
    return Bitmap.from_image(bitmap.to_image().resize((width, height), Image.Resampling.LANCZOS))


def resize(bitmap: Bitmap, width: int, height: int, steps: int = DEFAULT_RESIZE_STEPS) -> Bitmap:
    """Resize *bitmap* to ``width`` x ``height``.

    Large downscales go through an intermediate bitmap at half the source
    size (recursing with ``steps - 1``) before the final Lanczos resample.
    Upscales and mild downscales resample once.

    Args:
        bitmap: Source bitmap; never modified.
        width: Target width in pixels.
        height: Target height in pixels.
        steps: Maximum number of resampling passes.

    Returns:
        A new bitmap of the requested size, or *bitmap* itself when the target
        has a non-positive dimension.
    """
    if width <= 0 or height <= 0:
        LOGGER.warning(
            "Ignoring resize of %sx%s bitmap to non-positive size %sx%s", bitmap.width, bitmap.height, width, height
        )
        return bitmap
    if steps > 1 and width < bitmap.width * 0.5 and height < bitmap.height * 0.5:
        mid_width = round_half_up(bitmap.width * 0.5)
        mid_height = round_half_up(bitmap.height * 0.5)
        LOGGER.debug(
            "Multi-step resize %sx%s -> %sx%s -> %sx%s",
            bitmap.width, bitmap.height, mid_width, mid_height, width, height,
        )
        mid = resize(bitmap, mid_width, mid_height, steps - 1)
        return resize(mid, width, height, 1)
    if (width, height) == bitmap.size:
        return bitmap.copy()
    LOGGER.debug("Resizing from %sx%s to %s", bitmap.width, bitmap.height, (width, height))
    return _resample(bitmap, width, height)


def calc_aspect_ratio(
    orig_width: int,
    orig_height: int,
    new_width: Optional[int] = None,
    new_height: Optional[int] = None,
) -> Tuple[int, int]:
    """Work out target dimensions, deriving a missing side from the aspect ratio.

    Zero and ``None`` both count as "not given". An empty original has no
    aspect ratio, so a lone side leaves the original size in place.

    Examples:
        >>> calc_aspect_ratio(1000, 500, 200, None)
        (200, 100)
        >>> calc_aspect_ratio(1000, 500, None, 250)
        (500, 250)
        >>> calc_aspect_ratio(1000, 500)
        (1000, 500)
        >>> calc_aspect_ratio(0, 4, 10, None)
        (0, 4)
    """
    if new_width and new_height:
        return new_width, new_height
    if new_width and orig_width:
        return new_width, round_half_up(orig_height * (new_width / orig_width))
    if new_height and orig_height:
        return round_half_up(orig_width * (new_height / orig_height)), new_height
    return orig_width, orig_height


def crop_rectangle(width: int, height: int, margins: CropMargins) -> Tuple[int, int, int, int]:
    """Return ``(sx, sy, sw, sh)`` for percentage *margins* on a ``width`` x ``height`` image.

    A non-empty rectangle always lies inside the image; rounding overruns
    move its origin back by the excess.
    """

    sx = round_half_up(width * margins.left / 100.0)
    sy = round_half_up(height * margins.top / 100.0)
    sw = round_half_up(width * (1.0 - margins.left / 100.0 - margins.right / 100.0))
    sh = round_half_up(height * (1.0 - margins.top / 100.0 - margins.bottom / 100.0))
    if sw > 0:
        sw = min(sw, width)
        sx = min(max(sx, 0), width - sw)
    if sh > 0:
        sh = min(sh, height)
        sy = min(max(sy, 0), height - sh)
    return sx, sy, sw, sh


def crop(bitmap: Bitmap, margins: Union[CropMargins, Mapping[str, float]]) -> Bitmap:
    """Trim percentages from each edge.

    Args:
        bitmap: Source bitmap; never modified.
        margins: :class:`CropMargins` or a mapping with ``top``, ``bottom``,
            ``left`` and ``right`` percentages (missing keys count as 0).

    Returns:
        The cropped bitmap, or *bitmap* itself when the crop would leave a
        non-positive width or height.
    """
    if not isinstance(margins, CropMargins):
        margins = CropMargins(**dict(margins))
    sx, sy, sw, sh = crop_rectangle(bitmap.width, bitmap.height, margins)
    if sw <= 0 or sh <= 0:
        LOGGER.warning("Crop %s leaves no pixels of a %sx%s bitmap; skipping", margins, bitmap.width, bitmap.height)
        return bitmap

    LOGGER.debug("Cropped %sx%s to %sx%s at (%s, %s)", bitmap.width, bitmap.height, sw, sh, sx, sy)
    return Bitmap(sw, sh, bitmap.pixels[sy:sy + sh, sx:sx + sw].copy())


# Clockwise quarter turns expressed as numpy.rot90 ``k`` values.
_ROT90_TURNS = {0: 0, 90: -1, 180: 2, 270: 1}


def rotate(bitmap: Bitmap, degrees: int) -> Bitmap:
    """Rotate clockwise by a multiple of 90 degrees about the image centre.

    Quarter turns swap width and height.

    Raises:
        ValueError: If *degrees* is not a multiple of 90.
    """
    normalised = degrees % 360
    if normalised not in _ROT90_TURNS:
        raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees}")
    rotated = np.rot90(bitmap.pixels, k=_ROT90_TURNS[normalised]).copy()
    height, width = rotated.shape[:2]
    return Bitmap(width, height, rotated)


def flip(bitmap: Bitmap, axis: Union[FlipAxis, str]) -> Bitmap:
    """Mirror *bitmap* left-right (horizontal) or top-bottom (vertical)."""

    if FlipAxis.parse(axis) is FlipAxis.HORIZONTAL:
        mirrored = bitmap.pixels[:, ::-1]
    else:
        mirrored = bitmap.pixels[::-1, :]
    return Bitmap(bitmap.width, bitmap.height, mirrored.copy())


__all__ = [
    "DEFAULT_RESIZE_STEPS",
    "calc_aspect_ratio",
    "crop",
    "crop_rectangle",
    "flip",
    "resize",
    "rotate",
    "round_half_up",
]
