"""Encoding rendered bitmaps into downloadable files.

BMP output comes from the manual serializer in :mod:`pixelcraft.bmp`; JPEG,
PNG and WebP use Pillow's native encoders. GIF requests produce PNG data
under a ``.gif`` name because animated GIF output is not supported.

Key Components
--------------

EncodedImage
    Encoded bytes with the MIME type and extension to present them under.

EncodingFailure
    Raised when an encoder fails or yields no data.

Functions
---------

encode_image
    Encode a bitmap in the requested format.

estimate_file_size
    Byte size of the encoded output, for display.

export_image / export_batch
    Render plus encode, for one image or a whole gallery.
"""
from __future__ import annotations

import dataclasses
import io
import logging
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np

from .bitmap import Bitmap
from .bmp import encode_bmp
from .format_utils import ExportFormat, sanitize_filename
from .pipeline import render, wrap_with_progress
from .settings import DEFAULT_QUALITY, EditState, ExportParameters

LOGGER = logging.getLogger("pixelcraft")

BATCH_SUFFIX = "_edited"


class EncodingFailure(RuntimeError):
    """Raised when an encoder produced no usable output."""


@dataclasses.dataclass(frozen=True)
class EncodedImage:
    """Encoded file contents.

    Attributes:
        data: File bytes.
        mime_type: MIME type of *data* (PNG for GIF requests).
        extension: Extension for the download name, without a dot.
        filename: Full download name when known.
    """

    data: bytes
    mime_type: str
    extension: str
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


def _pillow_quality(quality: float) -> int:
    return int(np.clip(round(quality * 100), 0, 100))


def _encode_with_pillow(bitmap: Bitmap, pillow_format: str, **options: object) -> bytes:
    image = bitmap.to_image()
    if pillow_format == "JPEG":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    try:
        image.save(buffer, format=pillow_format, **options)
    except (OSError, ValueError, KeyError, SystemError) as exc:
        raise EncodingFailure(f"{pillow_format} encoder failed for {bitmap}: {exc}") from exc
    return buffer.getvalue()


def encode_image(
    bitmap: Bitmap,
    export_format: Union[ExportFormat, str] = ExportFormat.JPEG,
    quality: float = DEFAULT_QUALITY,
) -> EncodedImage:
    """Encode *bitmap* as *export_format*.

    Args:
        bitmap: Pixels to encode.
        export_format: Target format (enum, MIME type or extension).
        quality: Quality fraction in ``[0, 1]``; used by JPEG and WebP only.

    Returns:
        The encoded image.

    Raises:
        EncodingFailure: If the encoder raised or returned no bytes.
        UnsupportedFormatError: If *export_format* is unknown.
    """
    export_format = ExportFormat.from_identifier(export_format)
    mime_type = export_format.mime_type

    if export_format is ExportFormat.BMP:
        data = encode_bmp(bitmap)
    elif export_format is ExportFormat.JPEG:
        data = _encode_with_pillow(bitmap, "JPEG", quality=_pillow_quality(quality))
    elif export_format is ExportFormat.WEBP:
        data = _encode_with_pillow(bitmap, "WEBP", quality=_pillow_quality(quality))
    else:
        # PNG, and GIF which falls back to PNG data
        data = _encode_with_pillow(bitmap, "PNG")
        mime_type = ExportFormat.PNG.mime_type

    if not data:
        raise EncodingFailure(f"{export_format.name} encoder returned no data for {bitmap}")
    LOGGER.debug("Encoded %s as %s: %s bytes", bitmap, export_format.name, len(data))
    return EncodedImage(data=data, mime_type=mime_type, extension=export_format.extension)


def estimate_file_size(
    bitmap: Bitmap,
    export_format: Union[ExportFormat, str] = ExportFormat.JPEG,
    quality: float = DEFAULT_QUALITY,
) -> int:
    """Encode *bitmap* and report the resulting byte count."""

    return encode_image(bitmap, export_format, quality).size


def export_filename(params: ExportParameters, source_name: str = "", suffix: str = "") -> str:
    """Build the download name: explicit filename, else the sanitized source name."""

    base = params.filename or sanitize_filename(source_name) or "image"
    return f"{base}{suffix}.{params.format.extension}"


def export_image(
    source: Bitmap,
    state: EditState | None = None,
    *,
    source_name: str = "",
    suffix: str = "",
    rng: Optional[np.random.Generator] = None,
) -> EncodedImage:
    """Render *source* under *state* and encode it with the state's export options."""

    state = state or EditState()
    rendered = render(source, state, rng=rng)
    encoded = encode_image(rendered, state.export.format, state.export.quality)
    return dataclasses.replace(encoded, filename=export_filename(state.export, source_name, suffix))


@dataclasses.dataclass
class BatchExportResult:
    """Outcome of :func:`export_batch`."""

    exported: List[EncodedImage] = dataclasses.field(default_factory=list)
    failed: List[Tuple[str, str]] = dataclasses.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def export_batch(
    sources: Iterable[Tuple[str, Bitmap]],
    state: EditState | None = None,
    *,
    suffix: str = BATCH_SUFFIX,
    progress: bool = True,
) -> BatchExportResult:
    """Export several named bitmaps with one edit state.

    A failing image is logged and recorded in :attr:`BatchExportResult.failed`;
    the remaining images are still exported. Explicit ``filename`` settings are
    ignored so every output keeps its own source name.
    """
    state = state or EditState()
    if state.export.filename:
        state = state.with_export(filename="")
    items = list(sources)
    result = BatchExportResult()
    iterable = wrap_with_progress(items, total=len(items), description="Exporting images", enabled=progress)
    for name, bitmap in iterable:
        try:
            result.exported.append(export_image(bitmap, state, source_name=name, suffix=suffix))
        except (EncodingFailure, ValueError) as exc:
            LOGGER.warning("Failed to export %s: %s", name, exc)
            result.failed.append((name, str(exc)))
    LOGGER.info("Exported %s of %s image(s)", len(result.exported), len(items))
    return result


__all__ = [
    "BATCH_SUFFIX",
    "BatchExportResult",
    "EncodedImage",
    "EncodingFailure",
    "encode_image",
    "estimate_file_size",
    "export_batch",
    "export_filename",
    "export_image",
]
