"""PixelCraft imaging core: filters, geometry and encoders for in-memory bitmaps.

The package turns an RGBA bitmap plus a settings record into a new bitmap and,
optionally, an encoded file. It performs no file or network I/O; callers hand
in pixels and receive pixels or bytes.

Module Organization
-------------------

bitmap
    The :class:`Bitmap` value type and buffer validation.

color_space
    RGB <-> HSL conversions used by hue rotation.

adjustments
    Per-pixel operators: brightness, contrast, saturation, exposure, hue,
    grayscale, black/white, sepia, invert, temperature and noise.

neighborhood
    Operators that read neighbouring pixels: box blur, sharpening, vignette.

settings / presets / config
    Frozen settings records, the preset registry and mapping/JSON/YAML coercion.

pipeline
    The ordered filter stages, the full render and batch rendering.

geometry
    Resize, crop, rotate, flip and aspect-ratio helpers.

bmp / export / format_utils
    The manual BMP writer, Pillow-backed encoders and display helpers.

Example Usage
-------------

    from pixelcraft import Bitmap, EditState, apply_preset, encode_image, render

    state = EditState(settings=apply_preset("noir")).rotated(90)
    output = render(Bitmap.from_image(pil_image), state)
    encoded = encode_image(output, "image/bmp")
"""
from __future__ import annotations

import logging

from .bitmap import Bitmap, as_pixel_array
from .bmp import encode_bmp, row_stride
from .color_space import hsl_to_rgb, rgb_to_hsl
from .config import load_config_text, settings_from_mapping, state_from_mapping
from .export import (
    BatchExportResult,
    EncodedImage,
    EncodingFailure,
    encode_image,
    estimate_file_size,
    export_batch,
    export_filename,
    export_image,
)
from .format_utils import ExportFormat, UnsupportedFormatError, format_bytes, sanitize_filename
from .geometry import calc_aspect_ratio, crop, flip, resize, rotate
from .pipeline import FILTER_STAGES, FilterStage, process_bitmap, process_image, render, render_batch
from .presets import PRESETS, Preset, apply_preset
from .settings import (
    ColorMode,
    CropMargins,
    EditState,
    ExportParameters,
    FilterSettings,
    FlipAxis,
    GeometryState,
)

LOGGER = logging.getLogger("pixelcraft")

__all__ = [
    "BatchExportResult",
    "Bitmap",
    "ColorMode",
    "CropMargins",
    "EditState",
    "EncodedImage",
    "EncodingFailure",
    "ExportFormat",
    "ExportParameters",
    "FILTER_STAGES",
    "FilterSettings",
    "FilterStage",
    "FlipAxis",
    "GeometryState",
    "PRESETS",
    "Preset",
    "UnsupportedFormatError",
    "apply_preset",
    "as_pixel_array",
    "calc_aspect_ratio",
    "crop",
    "encode_bmp",
    "encode_image",
    "estimate_file_size",
    "export_batch",
    "export_filename",
    "export_image",
    "flip",
    "format_bytes",
    "hsl_to_rgb",
    "load_config_text",
    "process_bitmap",
    "process_image",
    "render",
    "render_batch",
    "resize",
    "rgb_to_hsl",
    "rotate",
    "row_stride",
    "sanitize_filename",
    "settings_from_mapping",
    "state_from_mapping",
]
