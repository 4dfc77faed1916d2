"""RGB <-> HSL conversion primitives used by hue rotation."""
from __future__ import annotations

import numpy as np


def rgb_to_hsl(arr: np.ndarray) -> np.ndarray:
    """Convert RGB values to HSL.

    Args:
        arr: Array of shape ``(..., 3)`` with channels in ``[0, 255]``.

    Returns:
        Float64 array of the same shape holding hue in ``[0, 360)`` and
        saturation/lightness in ``[0, 100]``.
    """
    rgb = np.asarray(arr, dtype=np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    maxc = np.max(rgb, axis=-1)
    minc = np.min(rgb, axis=-1)
    diff = maxc - minc
    total = maxc + minc
    lightness = total / 2.0

    chromatic = diff != 0
    saturation = np.zeros_like(maxc)
    # Only divide where the pixel has chroma; grey pixels keep 0 and never
    # evaluate the zero denominators.
    bright = chromatic & (lightness > 0.5)
    dark = chromatic & ~(lightness > 0.5)
    np.divide(diff, 2.0 - total, out=saturation, where=bright)
    np.divide(diff, total, out=saturation, where=dark)

    safe_diff = np.where(chromatic, diff, 1.0)
    red_hue = (g - b) / safe_diff + np.where(g < b, 6.0, 0.0)
    green_hue = (b - r) / safe_diff + 2.0
    blue_hue = (r - g) / safe_diff + 4.0
    hue = np.select([maxc == r, maxc == g], [red_hue, green_hue], default=blue_hue)
    hue = np.where(chromatic, hue / 6.0, 0.0)

    return np.stack([hue * 360.0, saturation * 100.0, lightness * 100.0], axis=-1)


def _hue_to_channel(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = np.where(t < 0.0, t + 1.0, t)
    t = np.where(t > 1.0, t - 1.0, t)
    return np.select(
        [t < 1.0 / 6.0, t < 0.5, t < 2.0 / 3.0],
        [p + (q - p) * 6.0 * t, q, p + (q - p) * (2.0 / 3.0 - t) * 6.0],
        default=p,
    )


def hsl_to_rgb(arr: np.ndarray) -> np.ndarray:
    """Convert HSL values back to 8-bit RGB.

    Args:
        arr: Array of shape ``(..., 3)`` with hue in degrees and saturation and
            lightness as percentages.

    Returns:
        ``uint8`` array of the same shape; channels are rounded half up.
    """
    hsl = np.asarray(arr, dtype=np.float64)
    h = hsl[..., 0] / 360.0
    s = hsl[..., 1] / 100.0
    lightness = hsl[..., 2] / 100.0

    q = np.where(lightness < 0.5, lightness * (1.0 + s), lightness + s - lightness * s)
    p = 2.0 * lightness - q
    red = _hue_to_channel(p, q, h + 1.0 / 3.0)
    green = _hue_to_channel(p, q, h)
    blue = _hue_to_channel(p, q, h - 1.0 / 3.0)
    rgb = np.stack([red, green, blue], axis=-1)

    grey = (s == 0)[..., None]
    rgb = np.where(grey, lightness[..., None], rgb)
    return np.clip(np.floor(rgb * 255.0 + 0.5), 0, 255).astype(np.uint8)


__all__ = ["hsl_to_rgb", "rgb_to_hsl"]
