"""Named filter presets.

Presets are one-click looks. Applying one resets every filter field to its
default, overlays the preset's overrides and records the preset key so a UI
can highlight it. Geometry and export options live outside
:class:`~pixelcraft.settings.FilterSettings` and are therefore untouched.

Example Usage
-------------

    from pixelcraft.presets import PRESETS, apply_preset

    noir = apply_preset("noir")
    PRESETS["noir"].name  # "Noir"
"""
from __future__ import annotations

import dataclasses
import logging
from types import MappingProxyType
from typing import Any, Mapping

from .settings import COLOR_MODE_FLAGS, ColorMode, FilterSettings

LOGGER = logging.getLogger("pixelcraft")


@dataclasses.dataclass(frozen=True)
class Preset:
    """A named, read-only bundle of filter overrides.

    Attributes:
        key: Registry key (also stored on settings produced by the preset).
        name: Display name.
        overrides: Partial filter settings; color modes use the legacy flags.
    """

    key: str
    name: str
    overrides: Mapping[str, Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "overrides", MappingProxyType(dict(self.overrides)))

    def settings(self) -> FilterSettings:
        """Build default settings with this preset's overrides applied."""

        overrides = dict(self.overrides)
        flags = {flag: bool(overrides.pop(flag, False)) for flag in COLOR_MODE_FLAGS}
        return FilterSettings(color_mode=ColorMode.from_flags(**flags), preset=self.key, **overrides)


def _build_registry(*presets: Preset) -> Mapping[str, Preset]:
    return MappingProxyType({preset.key: preset for preset in presets})


DEFAULT_PRESET_NAME = "none"

PRESETS: Mapping[str, Preset] = _build_registry(
    Preset("none", "Original", {}),
    Preset("vivid", "Vivid", {"saturation": 50, "contrast": 20, "brightness": 10}),
    Preset("cool", "Cool", {"temperature": -60, "saturation": 10, "brightness": 5}),
    Preset("warm", "Warm", {"temperature": 60, "saturation": 20, "brightness": 5}),
    Preset("vintage", "Vintage", {"sepia": True, "contrast": -10, "brightness": 5, "saturation": -20}),
    Preset("dramatic", "Dramatic", {"contrast": 60, "saturation": -20, "brightness": -10, "vignette": 40}),
    Preset("noir", "Noir", {"grayscale": True, "contrast": 50, "brightness": -10, "vignette": 50}),
    Preset("fade", "Faded", {"contrast": -30, "saturation": -30, "brightness": 20}),
    Preset("bloom", "Bloom", {"brightness": 25, "saturation": 20, "contrast": -15, "temperature": 20}),
    Preset("sunset", "Sunset", {"temperature": 80, "saturation": 40, "contrast": 20, "hue": 10}),
    Preset("forest", "Forest", {"hue": -20, "saturation": 40, "contrast": 10, "brightness": -5}),
    Preset("neon", "Neon", {"saturation": 80, "contrast": 30, "brightness": 5, "hue": 20}),
)


def apply_preset(key: str) -> FilterSettings:
    """Return the settings produced by applying preset *key*.

    Every filter field starts from its default, so the result depends only on
    *key*, never on the settings it replaces.

    Raises:
        KeyError: If *key* is not a registered preset.
    """
    try:
        preset = PRESETS[key]
    except KeyError:
        raise KeyError(f"Unknown preset '{key}'; choose from {sorted(PRESETS)}") from None
    LOGGER.debug("Applying preset %s", key)
    return preset.settings()


__all__ = [
    "DEFAULT_PRESET_NAME",
    "PRESETS",
    "Preset",
    "apply_preset",
]
