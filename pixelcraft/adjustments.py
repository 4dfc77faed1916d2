"""Per-pixel tone and color operators.

Every operator receives the ``(H, W, 4)`` ``uint8`` pixel array of a
:class:`~pixelcraft.bitmap.Bitmap`, rewrites the R, G and B channels in place
and leaves alpha alone. Results are stored the way a clamped byte buffer
stores them: clipped to ``[0, 255]`` and rounded half to even.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .color_space import hsl_to_rgb, rgb_to_hsl

LOGGER = logging.getLogger("pixelcraft")

SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ],
    dtype=np.float64,
)

DEFAULT_BLACK_WHITE_THRESHOLD = 128

# Contrast factor 259*(a+255) / (255*(259-a)) has a pole at a == 259.
_CONTRAST_POLE = 259.0
_CONTRAST_LIMIT = 258.0

# (red, green, blue) shift per unit of temperature; cool keeps less green.
WARM_SHIFT = np.array([30.0, 10.0, -30.0])
COOL_SHIFT = np.array([30.0, 5.0, -30.0])

NOISE_SCALE = 80.0


def _rgb(pixels: np.ndarray) -> np.ndarray:
    return pixels[..., :3].astype(np.float64)


def _store(pixels: np.ndarray, rgb: np.ndarray) -> None:
    pixels[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def luminance(arr: np.ndarray) -> np.ndarray:
    """Calculate perceptual luminance from RGB values.

    Uses Rec. 709 luma coefficients for accurate perceptual brightness.

    Args:
        arr: Input array whose last axis holds at least R, G and B.

    Returns:
        Float64 luminance array with the leading shape of the input.
    """
    arr = np.asarray(arr, dtype=np.float64)
    return arr[..., 0] * 0.2126 + arr[..., 1] * 0.7152 + arr[..., 2] * 0.0722


def apply_brightness(pixels: np.ndarray, amount: float) -> None:
    """Shift every channel by ``amount`` percent of full scale.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        amount: Brightness delta (-100 to +100).
    """
    if amount == 0:
        return
    offset = amount / 100.0 * 255.0
    LOGGER.debug("Applying brightness: %s (offset %.2f)", amount, offset)
    _store(pixels, _rgb(pixels) + offset)


def contrast_factor(amount: float) -> float:
    """Return the contrast multiplier for *amount*, kept clear of the pole at 259."""

    if amount > _CONTRAST_LIMIT:
        LOGGER.warning(
            "Contrast %s is too close to the %.0f pole; using %.0f", amount, _CONTRAST_POLE, _CONTRAST_LIMIT
        )
        amount = _CONTRAST_LIMIT
    return (259.0 * (amount + 255.0)) / (255.0 * (_CONTRAST_POLE - amount))


def apply_contrast(pixels: np.ndarray, amount: float) -> None:
    """Stretch or compress channels around mid-grey.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        amount: Contrast adjustment (-100 to +100).
    """
    if amount == 0:
        return
    factor = contrast_factor(amount)
    LOGGER.debug("Applying contrast: %s (factor %.3f)", amount, factor)
    _store(pixels, factor * (_rgb(pixels) - 128.0) + 128.0)


def apply_saturation(pixels: np.ndarray, amount: float) -> None:
    """Push channels away from (or towards) the pixel's luma.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        amount: Saturation delta (-100 to +100); -100 yields grey.
    """
    if amount == 0:
        return
    sat = 1.0 + amount / 100.0
    rgb = _rgb(pixels)
    gray = luminance(rgb)[..., None]
    LOGGER.debug("Applying saturation: %s (multiplier %.2f)", amount, sat)
    _store(pixels, gray + sat * (rgb - gray))


def apply_exposure(pixels: np.ndarray, amount: float) -> None:
    """Scale channels by ``2 ** (amount / 50)``.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        amount: Exposure adjustment (-100 to +100, i.e. -2 to +2 stops).
    """
    if amount == 0:
        return
    factor = float(2.0 ** (amount / 50.0))
    LOGGER.debug("Applying exposure: %s (factor %.3f)", amount, factor)
    _store(pixels, _rgb(pixels) * factor)


def apply_hue_rotation(pixels: np.ndarray, degrees: float) -> None:
    """Rotate every pixel's hue around the HSL color wheel.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        degrees: Rotation in degrees (-180 to +180); wraps modulo 360.
    """
    if degrees == 0:
        return
    hsl = rgb_to_hsl(pixels[..., :3])
    hsl[..., 0] = (hsl[..., 0] + degrees) % 360.0
    LOGGER.debug("Applying hue rotation: %s degrees", degrees)
    pixels[..., :3] = hsl_to_rgb(hsl)


def apply_grayscale(pixels: np.ndarray) -> None:
    """Replace R, G and B by the pixel's rounded luma."""

    luma = np.floor(luminance(pixels) + 0.5)
    _store(pixels, np.repeat(luma[..., None], 3, axis=-1))


def apply_black_white(pixels: np.ndarray, threshold: float = DEFAULT_BLACK_WHITE_THRESHOLD) -> None:
    """Threshold the luma into pure black or white.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        threshold: Luma at or above which a pixel turns white.
    """
    level = np.where(luminance(pixels) >= threshold, 255, 0).astype(np.uint8)
    pixels[..., :3] = level[..., None]


def apply_sepia(pixels: np.ndarray) -> None:
    _store(pixels, _rgb(pixels) @ SEPIA_MATRIX.T)


def apply_invert(pixels: np.ndarray) -> None:
    pixels[..., :3] = 255 - pixels[..., :3]


def apply_temperature(pixels: np.ndarray, amount: float) -> None:
    """Warm (positive) or cool (negative) the image.

    Warm shifts add red and green and remove blue; cool shifts mirror red and
    blue but move green by half as much.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        amount: Temperature shift (-100 cool to +100 warm).
    """
    if amount == 0:
        return
    factor = amount / 100.0
    shift = (WARM_SHIFT if factor > 0 else COOL_SHIFT) * factor
    LOGGER.debug("Applying temperature: %s shift=%s", amount, shift)
    _store(pixels, _rgb(pixels) + shift)


def apply_noise(pixels: np.ndarray, amount: float, rng: Optional[np.random.Generator] = None) -> None:
    """Add uniform luminance grain.

    Each pixel receives one offset drawn from ``[-noise/2, noise/2)`` with
    ``noise = amount / 100 * 80``; the same offset is added to R, G and B.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        amount: Grain strength (0 to 100).
        rng: Random generator; an unseeded one is created when omitted.
    """
    if amount == 0:
        return
    if rng is None:
        rng = np.random.default_rng()
    noise = amount / 100.0 * NOISE_SCALE
    offsets = (rng.random(pixels.shape[:2]) - 0.5) * noise
    LOGGER.debug("Applying noise: %s (spread %.2f)", amount, noise)
    _store(pixels, _rgb(pixels) + offsets[..., None])


__all__ = [
    "COOL_SHIFT",
    "DEFAULT_BLACK_WHITE_THRESHOLD",
    "NOISE_SCALE",
    "SEPIA_MATRIX",
    "WARM_SHIFT",
    "apply_black_white",
    "apply_brightness",
    "apply_contrast",
    "apply_exposure",
    "apply_grayscale",
    "apply_hue_rotation",
    "apply_invert",
    "apply_noise",
    "apply_saturation",
    "apply_sepia",
    "apply_temperature",
    "contrast_factor",
    "luminance",
]
