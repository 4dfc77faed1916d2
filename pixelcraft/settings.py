"""Settings records describing one edit: filters, geometry and export options.

The records are frozen dataclasses; edits produce new values through
:func:`dataclasses.replace` or the helper methods below, so a settings object
handed to the pipeline can never change underneath it.

Example Usage
-------------

    from pixelcraft.settings import ColorMode, EditState, FilterSettings

    settings = FilterSettings(contrast=20, color_mode=ColorMode.SEPIA)
    state = EditState(settings=settings).rotated(90)
"""
from __future__ import annotations

import dataclasses
import enum
from typing import Any, Dict, Optional, Tuple

from .format_utils import ExportFormat

# Documented domains for the numeric filter fields.
FILTER_RANGES: Dict[str, Tuple[float, float]] = {
    "brightness": (-100.0, 100.0),
    "contrast": (-100.0, 100.0),
    "saturation": (-100.0, 100.0),
    "exposure": (-100.0, 100.0),
    "hue": (-180.0, 180.0),
    "sharpness": (0.0, 10.0),
    "noise": (0.0, 100.0),
    "blur": (0.0, 20.0),
    "vignette": (0.0, 100.0),
    "temperature": (-100.0, 100.0),
}

DEFAULT_PRESET = "none"
DEFAULT_QUALITY = 0.92


class ColorMode(str, enum.Enum):
    """Mutually exclusive color reduction applied after hue and saturation."""

    NONE = "none"
    BLACK_WHITE = "blackwhite"
    GRAYSCALE = "grayscale"
    SEPIA = "sepia"

    @classmethod
    def from_flags(cls, *, grayscale: bool = False, blackwhite: bool = False, sepia: bool = False) -> "ColorMode":
        """Fold the three legacy flags into one mode (black/white > grayscale > sepia)."""

        if blackwhite:
            return cls.BLACK_WHITE
        if grayscale:
            return cls.GRAYSCALE
        if sepia:
            return cls.SEPIA
        return cls.NONE


COLOR_MODE_FLAGS = ("grayscale", "blackwhite", "sepia")


class FlipAxis(str, enum.Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @classmethod
    def parse(cls, value: "FlipAxis | str") -> "FlipAxis":
        if isinstance(value, cls):
            return value
        lowered = str(value).strip().lower()
        aliases = {"h": cls.HORIZONTAL, "v": cls.VERTICAL}
        if lowered in aliases:
            return aliases[lowered]
        try:
            return cls(lowered)
        except ValueError:
            raise ValueError(f"Unknown flip axis {value!r}; use 'horizontal' or 'vertical'") from None


@dataclasses.dataclass(frozen=True)
class FilterSettings:
    """Holds the filter parameters for one pipeline run.

    Numeric fields use the domains in :data:`FILTER_RANGES`. The pipeline trusts
    callers to stay inside them; use :meth:`validate` or :meth:`clamped` at the
    boundary where values enter.
    """

    brightness: float = 0.0
    contrast: float = 0.0
    saturation: float = 0.0
    exposure: float = 0.0
    hue: float = 0.0
    sharpness: float = 0.0
    noise: float = 0.0
    blur: float = 0.0
    color_mode: ColorMode = ColorMode.NONE
    invert: bool = False
    vignette: float = 0.0
    temperature: float = 0.0
    preset: str = DEFAULT_PRESET

    @property
    def grayscale(self) -> bool:
        return self.color_mode is ColorMode.GRAYSCALE

    @property
    def blackwhite(self) -> bool:
        return self.color_mode is ColorMode.BLACK_WHITE

    @property
    def sepia(self) -> bool:
        return self.color_mode is ColorMode.SEPIA

    def validate(self) -> None:
        """Raise :class:`ValueError` when a numeric field leaves its domain."""

        for name, (minimum, maximum) in FILTER_RANGES.items():
            value = getattr(self, name)
            if not (minimum <= value <= maximum):
                raise ValueError(f"{name} must be between {minimum:g} and {maximum:g}, got {value}")

    def clamped(self) -> "FilterSettings":
        """Return a copy with every numeric field clamped to its domain."""

        changes = {
            name: min(max(getattr(self, name), minimum), maximum)
            for name, (minimum, maximum) in FILTER_RANGES.items()
        }
        return dataclasses.replace(self, **changes)

    def is_identity(self) -> bool:
        """``True`` when no filter stage would change a pixel."""

        return dataclasses.replace(self, preset=DEFAULT_PRESET) == FilterSettings()

    def to_dict(self) -> Dict[str, Any]:
        """Flat mapping using the legacy boolean color-mode flags."""

        data: Dict[str, Any] = {name: getattr(self, name) for name in FILTER_RANGES}
        data["grayscale"] = self.grayscale
        data["blackwhite"] = self.blackwhite
        data["sepia"] = self.sepia
        data["invert"] = self.invert
        data["preset"] = self.preset
        return data


@dataclasses.dataclass(frozen=True)
class CropMargins:
    """Percentage trimmed from each edge, each in ``[0, 100)``."""

    top: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    right: float = 0.0

    @property
    def active(self) -> bool:
        return any(value > 0 for value in (self.top, self.bottom, self.left, self.right))

    def to_dict(self) -> Dict[str, float]:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class ExportParameters:
    """Output options: encoder, quality, target size, crop and filename.

    Attributes:
        format: Target encoder.
        quality: Lossy quality fraction in ``[0, 1]``; ignored by lossless formats.
        width: Target width, or ``None`` to derive it from the aspect ratio.
        height: Target height, or ``None`` to derive it from the aspect ratio.
        crop: Edge percentages removed after resizing.
        filename: Base name for the exported file (without extension).
    """

    format: ExportFormat = ExportFormat.JPEG
    quality: float = DEFAULT_QUALITY
    width: Optional[int] = None
    height: Optional[int] = None
    crop: CropMargins = CropMargins()
    filename: str = ""

    def __post_init__(self) -> None:
        if not (0.0 <= self.quality <= 1.0):
            raise ValueError(f"quality must be between 0 and 1, got {self.quality}")
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be positive or None, got {value}")
        for name, value in self.crop.to_dict().items():
            if not (0.0 <= value < 100.0):
                raise ValueError(f"crop {name} must be in [0, 100), got {value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format.value,
            "quality": self.quality,
            "width": self.width,
            "height": self.height,
            "crop": self.crop.to_dict(),
            "filename": self.filename,
        }


@dataclasses.dataclass(frozen=True)
class GeometryState:
    """Accumulated rotation (0, 90, 180 or 270) and flip toggles."""

    rotation: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    def __post_init__(self) -> None:
        if self.rotation % 90 != 0:
            raise ValueError(f"rotation must be a multiple of 90 degrees, got {self.rotation}")
        object.__setattr__(self, "rotation", self.rotation % 360)

    def rotated(self, degrees: int) -> "GeometryState":
        return dataclasses.replace(self, rotation=(self.rotation + degrees + 360) % 360)

    def flipped(self, axis: FlipAxis | str) -> "GeometryState":
        if FlipAxis.parse(axis) is FlipAxis.HORIZONTAL:
            return dataclasses.replace(self, flip_horizontal=not self.flip_horizontal)
        return dataclasses.replace(self, flip_vertical=not self.flip_vertical)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class EditState:
    """Everything needed to re-render an image from its original pixels."""

    settings: FilterSettings = FilterSettings()
    geometry: GeometryState = GeometryState()
    export: ExportParameters = ExportParameters()

    def rotated(self, degrees: int) -> "EditState":
        return dataclasses.replace(self, geometry=self.geometry.rotated(degrees))

    def flipped(self, axis: FlipAxis | str) -> "EditState":
        return dataclasses.replace(self, geometry=self.geometry.flipped(axis))

    def with_settings(self, settings: FilterSettings) -> "EditState":
        return dataclasses.replace(self, settings=settings)

    def with_export(self, **changes: Any) -> "EditState":
        return dataclasses.replace(self, export=dataclasses.replace(self.export, **changes))

    def reset(self) -> "EditState":
        """Drop filters, geometry, target size and crop; keep format, quality and filename."""

        export = dataclasses.replace(self.export, width=None, height=None, crop=CropMargins())
        return EditState(export=export)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": self.settings.to_dict(),
            "geometry": self.geometry.to_dict(),
            "export": self.export.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditState":
        from .config import state_from_mapping  # local import: config builds on this module

        return state_from_mapping(data)


__all__ = [
    "COLOR_MODE_FLAGS",
    "ColorMode",
    "CropMargins",
    "DEFAULT_PRESET",
    "DEFAULT_QUALITY",
    "EditState",
    "ExportParameters",
    "FILTER_RANGES",
    "FilterSettings",
    "FlipAxis",
    "GeometryState",
]
