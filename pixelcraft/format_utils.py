"""Export format catalogue and small formatting utilities.

This module knows which output formats the editor can produce and provides
the helpers used when presenting or naming exported files.

Functions:
    normalize_extension: Lower-case extension with a leading dot
    is_supported_export_format: Check if a path or identifier maps to an export format
    get_format_info: Describe an export format for display
    sanitize_filename: Turn an arbitrary upload name into a safe base name
    format_bytes: Human-readable byte counts (B, KB, MB)
"""

from __future__ import annotations

import enum
import re
from pathlib import Path
from typing import Dict, List, Union


class UnsupportedFormatError(ValueError):
    """Raised when an identifier does not name a supported export format."""
    pass


class ExportFormat(str, enum.Enum):
    """Supported export encoders, keyed by MIME type."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    BMP = "image/bmp"
    GIF = "image/gif"
    WEBP = "image/webp"

    @property
    def mime_type(self) -> str:
        return self.value

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def lossy(self) -> bool:
        """Whether the quality fraction means anything for this format."""
        return self in (ExportFormat.JPEG, ExportFormat.WEBP)

    @property
    def supports_alpha(self) -> bool:
        return self is not ExportFormat.JPEG and self is not ExportFormat.BMP

    @classmethod
    def from_identifier(cls, identifier: Union[str, "ExportFormat"]) -> "ExportFormat":
        """Resolve a MIME type, extension or format name.

        Examples:
            >>> ExportFormat.from_identifier('image/png')
            <ExportFormat.PNG: 'image/png'>
            >>> ExportFormat.from_identifier('.JPG')
            <ExportFormat.JPEG: 'image/jpeg'>
            >>> ExportFormat.from_identifier('webp')
            <ExportFormat.WEBP: 'image/webp'>
        """
        if isinstance(identifier, cls):
            return identifier
        key = str(identifier).strip().lower()
        for member in cls:
            if key == member.value:
                return member
        key = key.lstrip(".")
        if key in _ALIASES:
            return _ALIASES[key]
        raise UnsupportedFormatError(
            f"Unsupported export format '{identifier}'. "
            f"Supported formats: {', '.join(sorted(_ALIASES))}"
        )

    @classmethod
    def extension_for(cls, identifier: Union[str, "ExportFormat", None]) -> str:
        """Return the extension for *identifier*, falling back to ``jpg``."""
        try:
            return cls.from_identifier(identifier or "").extension
        except UnsupportedFormatError:
            return _EXTENSIONS[cls.JPEG]


_EXTENSIONS = {
    ExportFormat.JPEG: "jpg",
    ExportFormat.PNG: "png",
    ExportFormat.BMP: "bmp",
    ExportFormat.GIF: "gif",
    ExportFormat.WEBP: "webp",
}

_ALIASES = {
    "jpg": ExportFormat.JPEG,
    "jpeg": ExportFormat.JPEG,
    "png": ExportFormat.PNG,
    "bmp": ExportFormat.BMP,
    "gif": ExportFormat.GIF,
    "webp": ExportFormat.WEBP,
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9_-]", re.IGNORECASE)
_TRAILING_EXTENSION = re.compile(r"\.[^/.]+$")


def normalize_extension(path: Union[str, Path]) -> str:
    """Normalize file extension to lowercase with leading dot.

    Args:
        path: File path or extension string

    Returns:
        Normalized extension (e.g., '.png', '.bmp')

    Examples:
        >>> normalize_extension('image.PNG')
        '.png'
        >>> normalize_extension('.WEBP')
        '.webp'
        >>> normalize_extension('photo.JPG')
        '.jpg'
    """
    if isinstance(path, str):
        path = Path(path)

    ext = path.suffix.lower()
    if not ext:
        # If no suffix, treat entire string as extension
        ext = str(path).lower()
        if not ext.startswith('.'):
            ext = '.' + ext

    return ext


def is_supported_export_format(path: Union[str, Path]) -> bool:
    """Check if a file name or identifier maps to an export format.

    Examples:
        >>> is_supported_export_format('render.jpg')
        True
        >>> is_supported_export_format('image/webp')
        True
        >>> is_supported_export_format('scan.tiff')
        False
    """
    text = str(path)
    if "/" in text and text.lower().startswith("image/"):
        candidate = text
    else:
        candidate = normalize_extension(path)
    try:
        ExportFormat.from_identifier(candidate)
    except UnsupportedFormatError:
        return False
    return True


def get_format_info(identifier: Union[str, ExportFormat]) -> Dict[str, Union[str, bool, List[str]]]:
    """Get display information about an export format.

    Args:
        identifier: MIME type, extension or :class:`ExportFormat`

    Returns:
        Dictionary with format information:
        - mime_type: MIME type of the encoded file
        - extension: Extension used for downloads
        - lossy: Whether a quality setting applies
        - supports_alpha: Whether transparency survives the export
        - notes: Caveats worth showing next to the format choice

    Raises:
        UnsupportedFormatError: If the identifier is unknown
    """
    export_format = ExportFormat.from_identifier(identifier)
    notes: List[str] = []

    if export_format is ExportFormat.JPEG:
        notes.append("JPG does not support transparency.")
    elif export_format is ExportFormat.GIF:
        notes.extend([
            "GIF supports only 256 colors.",
            "Encoded as PNG data because animated GIF output is not supported.",
        ])
    elif export_format is ExportFormat.BMP:
        notes.append("Uncompressed 24-bit bitmap; transparency is discarded.")

    return {
        'mime_type': export_format.mime_type,
        'extension': export_format.extension,
        'lossy': export_format.lossy,
        'supports_alpha': export_format.supports_alpha,
        'notes': notes,
    }


def sanitize_filename(name: str) -> str:
    """Strip the extension and replace unsafe characters with underscores.

    Examples:
        >>> sanitize_filename('My Holiday Photo.JPG')
        'my_holiday_photo'
        >>> sanitize_filename('scan-01.final.png')
        'scan-01_final'
    """
    stem = _TRAILING_EXTENSION.sub('', name)
    return _UNSAFE_FILENAME_CHARS.sub('_', stem).lower()


def format_bytes(size: int) -> str:
    """Format a byte count for display.

    Examples:
        >>> format_bytes(512)
        '512 B'
        >>> format_bytes(2048)
        '2.0 KB'
        >>> format_bytes(3 * 1024 * 1024)
        '3.00 MB'
    """
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


__all__ = [
    "ExportFormat",
    "UnsupportedFormatError",
    "format_bytes",
    "get_format_info",
    "is_supported_export_format",
    "normalize_extension",
    "sanitize_filename",
]
