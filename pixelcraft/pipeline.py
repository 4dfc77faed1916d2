"""Processing orchestration: the ordered filter stages and the full render.

Stage order is fixed and significant:

1. blur, so sharpening never amplifies blur artefacts
2-4. exposure, brightness, contrast (tone before color)
5-7. temperature, saturation, hue (color on tonally corrected values)
8. sharpness
9. color mode (black/white, grayscale or sepia) after hue/saturation
10. invert, so a reduced look can still be inverted
11-12. noise and vignette overlays last

:data:`FILTER_STAGES` lists them explicitly; :func:`process_image` walks the
list and skips inactive stages, which makes default settings an exact no-op.
"""
from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from tqdm import tqdm

from .adjustments import (
    apply_black_white,
    apply_brightness,
    apply_contrast,
    apply_exposure,
    apply_grayscale,
    apply_hue_rotation,
    apply_invert,
    apply_noise,
    apply_saturation,
    apply_sepia,
    apply_temperature,
)
from .bitmap import Bitmap, BufferLike, as_pixel_array
from .config import settings_from_mapping
from .geometry import calc_aspect_ratio, crop, flip, resize, rotate
from .neighborhood import apply_blur, apply_sharpness, apply_vignette
from .settings import ColorMode, EditState, FilterSettings, FlipAxis

LOGGER = logging.getLogger("pixelcraft")
WORKER_LOGGER = LOGGER.getChild("worker")

SettingsLike = Union[FilterSettings, Mapping[str, Any], None]
StageOperator = Callable[[np.ndarray, FilterSettings, Optional[np.random.Generator]], None]


@dataclasses.dataclass(frozen=True)
class FilterStage:
    """One step of the filter pipeline.

    Attributes:
        name: Identifier used in logs and tests.
        is_active: Predicate deciding whether the stage runs for given settings.
        operator: Mutates the RGBA array in place.
    """

    name: str
    is_active: Callable[[FilterSettings], bool]
    operator: StageOperator

    def __call__(
        self, pixels: np.ndarray, settings: FilterSettings, rng: Optional[np.random.Generator] = None
    ) -> bool:
        """Run the stage if active; return whether it ran."""
        if not self.is_active(settings):
            return False
        self.operator(pixels, settings, rng)
        return True


_COLOR_MODE_OPERATORS = {
    ColorMode.BLACK_WHITE: apply_black_white,
    ColorMode.GRAYSCALE: apply_grayscale,
    ColorMode.SEPIA: apply_sepia,
}


def _apply_color_mode(pixels: np.ndarray, settings: FilterSettings, _rng: Optional[np.random.Generator]) -> None:
    _COLOR_MODE_OPERATORS[settings.color_mode](pixels)


FILTER_STAGES: Tuple[FilterStage, ...] = (
    FilterStage("blur", lambda s: s.blur > 0, lambda p, s, _: apply_blur(p, s.blur)),
    FilterStage("exposure", lambda s: s.exposure != 0, lambda p, s, _: apply_exposure(p, s.exposure)),
    FilterStage("brightness", lambda s: s.brightness != 0, lambda p, s, _: apply_brightness(p, s.brightness)),
    FilterStage("contrast", lambda s: s.contrast != 0, lambda p, s, _: apply_contrast(p, s.contrast)),
    FilterStage("temperature", lambda s: s.temperature != 0, lambda p, s, _: apply_temperature(p, s.temperature)),
    FilterStage("saturation", lambda s: s.saturation != 0, lambda p, s, _: apply_saturation(p, s.saturation)),
    FilterStage("hue", lambda s: s.hue != 0, lambda p, s, _: apply_hue_rotation(p, s.hue)),
    FilterStage("sharpness", lambda s: s.sharpness > 0, lambda p, s, _: apply_sharpness(p, s.sharpness)),
    FilterStage("color_mode", lambda s: s.color_mode is not ColorMode.NONE, _apply_color_mode),
    FilterStage("invert", lambda s: s.invert, lambda p, s, _: apply_invert(p)),
    FilterStage("noise", lambda s: s.noise > 0, lambda p, s, rng: apply_noise(p, s.noise, rng)),
    FilterStage("vignette", lambda s: s.vignette > 0, lambda p, s, _: apply_vignette(p, s.vignette)),
)


def resolve_settings(settings: SettingsLike) -> FilterSettings:
    """Merge caller settings over the defaults (caller fields win).

    Mappings are coerced but not range-checked; the pipeline trusts callers
    to keep values inside their documented domains.
    """
    if settings is None:
        return FilterSettings()
    if isinstance(settings, FilterSettings):
        return settings
    return settings_from_mapping(settings, strict=False)


def _pixel_copy(
    source: Union[Bitmap, np.ndarray, BufferLike], width: Optional[int], height: Optional[int]
) -> np.ndarray:
    if isinstance(source, Bitmap):
        return source.pixels.copy()
    if isinstance(source, np.ndarray) and source.ndim == 3:
        if width is None:
            width = source.shape[1]
        if height is None:
            height = source.shape[0]
    if width is None or height is None:
        raise ValueError("width and height are required for flat pixel buffers")
    return as_pixel_array(source, width, height).copy()


def process_image(
    pixels: Union[Bitmap, np.ndarray, BufferLike],
    settings: SettingsLike = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
    *,
    rng: Optional[np.random.Generator] = None,
    stages: Sequence[FilterStage] = FILTER_STAGES,
) -> np.ndarray:
    """Run the filter stages over a copy of *pixels*.

    Args:
        pixels: A :class:`Bitmap`, an ``(H, W, 4)`` array or a flat RGBA buffer.
        settings: :class:`FilterSettings` or a partial mapping; ``None`` means defaults.
        width: Image width, required for flat buffers.
        height: Image height, required for flat buffers.
        rng: Random generator for the noise stage.
        stages: Stage list to run; defaults to :data:`FILTER_STAGES`.

    Returns:
        A new ``(H, W, 4)`` ``uint8`` array; the input is never modified.
    """
    effective = resolve_settings(settings)
    result = _pixel_copy(pixels, width, height)
    applied: List[str] = [stage.name for stage in stages if stage(result, effective, rng)]
    LOGGER.debug("Processed %sx%s image with stages: %s", result.shape[1], result.shape[0], applied or "none")
    return result


def process_bitmap(
    bitmap: Bitmap, settings: SettingsLike = None, *, rng: Optional[np.random.Generator] = None
) -> Bitmap:
    """Return a new bitmap with the filter stages applied."""

    return Bitmap(bitmap.width, bitmap.height, process_image(bitmap, settings, rng=rng))


def apply_geometry(source: Bitmap, state: EditState) -> Bitmap:
    """Flip, rotate, resize and crop *source* as described by *state*.

    Flips come first (horizontal, then vertical), then rotation, then the
    aspect-ratio aware resize and finally the percentage crop.
    """
    geometry = state.geometry
    export = state.export
    canvas = source
    if geometry.flip_horizontal:
        canvas = flip(canvas, FlipAxis.HORIZONTAL)
    if geometry.flip_vertical:
        canvas = flip(canvas, FlipAxis.VERTICAL)
    if geometry.rotation:
        canvas = rotate(canvas, geometry.rotation)

    target = calc_aspect_ratio(canvas.width, canvas.height, export.width or None, export.height or None)
    if target != canvas.size:
        canvas = resize(canvas, *target)

    if export.crop.active:
        canvas = crop(canvas, export.crop)
    return canvas


def render(
    source: Bitmap, state: EditState | None = None, *, rng: Optional[np.random.Generator] = None
) -> Bitmap:
    """Produce the full-resolution output for *source* under *state*."""

    state = state or EditState()
    canvas = apply_geometry(source, state)
    LOGGER.debug(
        "Rendering %sx%s source as %sx%s (preset %s)",
        source.width, source.height, canvas.width, canvas.height, state.settings.preset,
    )
    return process_bitmap(canvas, state.settings, rng=rng)


def _tqdm_progress(
    iterable: Iterable[object], *, total: Optional[int], description: Optional[str]
) -> Iterable[object]:
    return tqdm(iterable, total=total, desc=description, unit="image")


def wrap_with_progress(
    iterable: Iterable[Any],
    *,
    total: Optional[int],
    description: str,
    enabled: bool,
) -> Iterable[Any]:
    """Return *iterable* wrapped in a tqdm progress bar when *enabled*.

    Shared by the batch renderer and the batch exporter.
    """

    if not enabled:
        return iterable
    return _tqdm_progress(iterable, total=total, description=description)


def _render_worker(index: int, source: Bitmap, state: EditState) -> Tuple[int, Bitmap]:
    """Render one bitmap; isolated so it can run in a process pool."""

    WORKER_LOGGER.info("Rendering image %s (%sx%s)", index, source.width, source.height)
    return index, render(source, state)


def render_batch(
    sources: Sequence[Bitmap],
    state: EditState | None = None,
    *,
    workers: int = 1,
    progress: bool = True,
) -> List[Bitmap]:
    """Render every bitmap in *sources* with the same edit state.

    Args:
        sources: Bitmaps to render.
        state: Shared edit state; defaults to no edits.
        workers: Worker processes; ``1`` renders in the calling process.
        progress: Show a progress bar.

    Returns:
        Rendered bitmaps in the order of *sources*.
    """
    if workers < 1:
        raise ValueError("workers must be a positive integer")
    state = state or EditState()
    if not sources:
        LOGGER.warning("No images to render")
        return []

    LOGGER.info("Rendering %s image(s) with %s worker(s)", len(sources), workers)
    results: List[Optional[Bitmap]] = [None] * len(sources)

    if workers == 1:
        indexed = wrap_with_progress(
            enumerate(sources), total=len(sources), description="Rendering images", enabled=progress
        )
        for index, source in indexed:
            results[index] = _render_worker(index, source, state)[1]
    else:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(_render_worker, index, source, state) for index, source in enumerate(sources)
            ]
            completed = wrap_with_progress(
                as_completed(futures), total=len(futures), description="Rendering images", enabled=progress
            )
            for future in completed:
                index, bitmap = future.result()
                results[index] = bitmap

    LOGGER.info("Finished rendering %s image(s)", len(sources))
    return [bitmap for bitmap in results if bitmap is not None]


__all__ = [
    "FILTER_STAGES",
    "FilterStage",
    "apply_geometry",
    "process_bitmap",
    "process_image",
    "render",
    "render_batch",
    "resolve_settings",
    "wrap_with_progress",
]
