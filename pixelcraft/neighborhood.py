"""Operators that read neighbouring pixels: box blur, sharpening and vignette."""
from __future__ import annotations

import logging
import math

import numpy as np

LOGGER = logging.getLogger("pixelcraft")

SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.int64,
)
SHARPEN_BLEND = 0.3
VIGNETTE_EXPONENT = 1.5


def _store(pixels: np.ndarray, rgb: np.ndarray) -> None:
    pixels[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def box_mean(arr: np.ndarray, radius: int, axis: int) -> np.ndarray:
    """Mean over a ``2 * radius + 1`` window along *axis* with edge clamping.

    Samples that fall outside the array repeat the nearest edge value instead
    of wrapping or mirroring.

    Args:
        arr: Integer array to filter; it is only read.
        radius: Half-width of the window in samples.
        axis: Axis along which the window slides.

    Returns:
        Float64 array with the shape of *arr*.
    """
    size = arr.shape[axis]
    pad_width = [(0, 0)] * arr.ndim
    pad_width[axis] = (radius, radius)
    padded = np.pad(arr.astype(np.int64), pad_width, mode="edge")

    zero_shape = list(padded.shape)
    zero_shape[axis] = 1
    totals = np.concatenate(
        [np.zeros(zero_shape, dtype=np.int64), np.cumsum(padded, axis=axis)], axis=axis
    )
    window = 2 * radius + 1
    upper = np.take(totals, np.arange(window, window + size), axis=axis)
    lower = np.take(totals, np.arange(0, size), axis=axis)
    return (upper - lower) / window


def apply_blur(pixels: np.ndarray, radius: float) -> None:
    """Two-pass separable box blur.

    The horizontal pass reads an untouched snapshot of the RGB channels and
    its rounded result is the snapshot the vertical pass reads, so no pass
    ever observes its own writes.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        radius: Blur radius in pixels (0 to 20); rounded half up.
    """
    if radius <= 0 or pixels.size == 0:
        return
    r = int(math.floor(radius + 0.5))
    LOGGER.debug("Box blur radius=%s (window %s)", radius, 2 * r + 1)

    snapshot = pixels[..., :3].copy()
    _store(pixels, box_mean(snapshot, r, axis=1))

    snapshot = pixels[..., :3].copy()
    _store(pixels, box_mean(snapshot, r, axis=0))


def apply_sharpness(pixels: np.ndarray, strength: float) -> None:
    """Unsharp masking with a 3x3 Laplacian-based kernel.

    Only interior pixels change; the one-pixel border keeps its values.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        strength: Sharpening strength (0 to 10); blended at ``strength * 0.3``.
    """
    if strength <= 0:
        return
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return
    amount = strength * SHARPEN_BLEND
    original = pixels[..., :3].astype(np.int64)

    convolved = np.zeros((height - 2, width - 2, 3), dtype=np.int64)
    for ky in range(3):
        for kx in range(3):
            weight = SHARPEN_KERNEL[ky, kx]
            if weight:
                convolved += weight * original[ky:ky + height - 2, kx:kx + width - 2]

    center = original[1:-1, 1:-1]
    LOGGER.debug("Sharpness strength=%s blend=%.2f", strength, amount)
    blended = center + (convolved - center) * amount
    pixels[1:-1, 1:-1, :3] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)


def vignette_mask(width: int, height: int, amount: float) -> np.ndarray:
    """Return the ``(height, width)`` darkening factors for a vignette.

    Distances are measured from ``(width / 2, height / 2)`` to each pixel's
    integer coordinate and normalised by the centre-to-corner distance.
    """
    cx = width / 2.0
    cy = height / 2.0
    max_dist = math.sqrt(cx * cx + cy * cy)
    strength = amount / 100.0
    ys = np.arange(height, dtype=np.float64)[:, None] - cy
    xs = np.arange(width, dtype=np.float64)[None, :] - cx
    dist = np.sqrt(xs * xs + ys * ys) / max_dist if max_dist else np.zeros((height, width))
    return np.clip(1.0 - strength * np.power(dist, VIGNETTE_EXPONENT), 0.0, 1.0)


def apply_vignette(pixels: np.ndarray, amount: float) -> None:
    """Darken pixels progressively towards the corners.

    Args:
        pixels: RGBA ``uint8`` array, modified in place.
        amount: Vignette strength (0 to 100).
    """
    if amount <= 0 or pixels.size == 0:
        return
    height, width = pixels.shape[:2]
    factor = vignette_mask(width, height, amount)
    LOGGER.debug("Vignette amount=%s", amount)
    _store(pixels, pixels[..., :3].astype(np.float64) * factor[..., None])


__all__ = [
    "SHARPEN_KERNEL",
    "apply_blur",
    "apply_sharpness",
    "apply_vignette",
    "box_mean",
    "vignette_mask",
]
