"""Build settings records from plain mappings, JSON or YAML text.

Callers (a UI layer, a saved edit, a test fixture) usually hold settings as
loosely typed dictionaries. The helpers here normalise keys, coerce string
values and fold the legacy colour-mode booleans into
:class:`~pixelcraft.settings.ColorMode` before anything reaches the pipeline.
"""
from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Mapping, Optional

try:  # pragma: no cover - optional dependency
    import yaml
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None

from .format_utils import ExportFormat
from .settings import (
    COLOR_MODE_FLAGS,
    ColorMode,
    CropMargins,
    EditState,
    ExportParameters,
    FILTER_RANGES,
    FilterSettings,
    GeometryState,
)

LOGGER = logging.getLogger("pixelcraft")

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}

_CROP_ALIASES = {
    "crop_top": "top",
    "crop_bottom": "bottom",
    "crop_left": "left",
    "crop_right": "right",
}


def normalise_config_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Convert configuration keys to underscore format.

    Args:
        raw: Raw configuration dictionary with potentially hyphenated keys.

    Returns:
        Dictionary with keys normalized to underscore format.

    Raises:
        ValueError: If any key is not a string.
    """
    normalised: dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            raise ValueError("Configuration keys must be strings")
        normalised[key.replace("-", "_")] = value
    return normalised


def coerce_bool(value: Any, *, key: str) -> bool:
    """Accept booleans and the usual textual spellings of true/false."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid boolean for '{key}': expected true/false value, got {value!r}")


def coerce_number(value: Any, *, key: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Invalid number for '{key}': got boolean {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid number for '{key}': {value!r}") from exc


def _optional_dimension(value: Any, *, key: str) -> Optional[int]:
    if value is None or value == "" or value == 0:
        return None
    number = coerce_number(value, key=key)
    if number < 0 or number != int(number):
        raise ValueError(f"Invalid value for '{key}': expected a positive whole number, got {value!r}")
    return int(number)


def settings_from_mapping(
    raw: Mapping[str, Any],
    *,
    base: FilterSettings | None = None,
    strict: bool = True,
) -> FilterSettings:
    """Overlay *raw* on *base* (default settings when omitted).

    Args:
        raw: Partial settings. Accepts the numeric fields, ``invert``,
            ``preset``, ``color_mode`` and the ``grayscale``/``blackwhite``/
            ``sepia`` flags (folded with black/white > grayscale > sepia).
        base: Settings the mapping is merged onto.
        strict: Validate numeric ranges after merging.

    Returns:
        The merged :class:`FilterSettings`.

    Raises:
        ValueError: On unknown keys, uncoercible values, or (when strict)
            out-of-range numbers.
    """
    base = base or FilterSettings()
    data = normalise_config_keys(raw)
    changes: dict[str, Any] = {}

    flags = {flag: getattr(base, flag) for flag in COLOR_MODE_FLAGS}
    flags_given = False
    for key, value in data.items():
        if key in FILTER_RANGES:
            changes[key] = coerce_number(value, key=key)
        elif key in COLOR_MODE_FLAGS:
            flags[key] = coerce_bool(value, key=key)
            flags_given = True
        elif key == "color_mode":
            try:
                changes["color_mode"] = ColorMode(str(getattr(value, "value", value)).strip().lower())
            except ValueError:
                raise ValueError(
                    f"Invalid value for 'color_mode': {value!r} (choose from {[mode.value for mode in ColorMode]})"
                ) from None
        elif key == "invert":
            changes["invert"] = coerce_bool(value, key=key)
        elif key == "preset":
            changes["preset"] = str(value)
        else:
            raise ValueError(f"Unknown filter option '{key}'")

    if flags_given:
        if "color_mode" in changes:
            raise ValueError("Use either 'color_mode' or the grayscale/blackwhite/sepia flags, not both")
        changes["color_mode"] = ColorMode.from_flags(**flags)

    settings = dataclasses.replace(base, **changes)
    if strict:
        settings.validate()
    return settings


def export_from_mapping(raw: Mapping[str, Any], *, base: ExportParameters | None = None) -> ExportParameters:
    """Overlay *raw* export options on *base*.

    Crop margins may be given as a nested ``crop`` mapping or as flat
    ``crop_top``/``crop_bottom``/``crop_left``/``crop_right`` keys.
    """
    base = base or ExportParameters()
    data = normalise_config_keys(raw)
    changes: dict[str, Any] = {}
    crop = base.crop.to_dict()

    for key, value in data.items():
        if key == "format":
            changes["format"] = ExportFormat.from_identifier(value)
        elif key == "quality":
            changes["quality"] = coerce_number(value, key=key)
        elif key in {"width", "height"}:
            changes[key] = _optional_dimension(value, key=key)
        elif key == "filename":
            changes["filename"] = "" if value is None else str(value)
        elif key == "crop":
            if not isinstance(value, Mapping):
                raise ValueError("'crop' must be a mapping of edge names to percentages")
            for edge, amount in normalise_config_keys(value).items():
                if edge not in crop:
                    raise ValueError(f"Unknown crop edge '{edge}'")
                crop[edge] = coerce_number(amount, key=f"crop.{edge}")
        elif key in _CROP_ALIASES:
            crop[_CROP_ALIASES[key]] = coerce_number(value, key=key)
        else:
            raise ValueError(f"Unknown export option '{key}'")

    changes["crop"] = CropMargins(**crop)
    return dataclasses.replace(base, **changes)


def geometry_from_mapping(raw: Mapping[str, Any]) -> GeometryState:
    data = normalise_config_keys(raw)
    aliases = {"flip_h": "flip_horizontal", "flip_v": "flip_vertical"}
    values: dict[str, Any] = {}
    for key, value in data.items():
        key = aliases.get(key, key)
        if key == "rotation":
            number = coerce_number(value, key=key)
            if number != int(number):
                raise ValueError(f"Invalid value for 'rotation': {value!r}")
            values["rotation"] = int(number)
        elif key in {"flip_horizontal", "flip_vertical"}:
            values[key] = coerce_bool(value, key=key)
        else:
            raise ValueError(f"Unknown geometry option '{key}'")
    return GeometryState(**values)


def state_from_mapping(raw: Mapping[str, Any], *, strict: bool = True) -> EditState:
    """Build an :class:`EditState` from ``settings``/``geometry``/``export`` sections.

    Flat ``rotation``/``flip_h``/``flip_v`` keys next to the sections are
    accepted as well, matching the shape older saved edits use.
    """
    data = normalise_config_keys(raw)
    geometry_raw: dict[str, Any] = dict(data.pop("geometry", None) or {})
    for key in ("rotation", "flip_h", "flip_v", "flip_horizontal", "flip_vertical"):
        if key in data:
            geometry_raw[key] = data.pop(key)

    settings_raw = data.pop("settings", None) or {}
    export_raw = data.pop("export", None) or data.pop("export_settings", None) or {}
    if data:
        raise ValueError(f"Unknown configuration section(s): {', '.join(sorted(data))}")

    state = EditState(
        settings=settings_from_mapping(settings_raw, strict=strict),
        geometry=geometry_from_mapping(geometry_raw),
        export=export_from_mapping(export_raw),
    )
    LOGGER.debug("Loaded edit state: %s", state)
    return state


def load_config_text(text: str, *, syntax: str = "json", strict: bool = True) -> EditState:
    """Parse an edit state from JSON or YAML text.

    Args:
        text: Serialized configuration.
        syntax: ``"json"`` or ``"yaml"``.
        strict: Validate filter ranges.

    Raises:
        RuntimeError: If YAML is requested but PyYAML is not installed.
        ValueError: If the text cannot be parsed or is not a mapping.
    """
    syntax = syntax.lower()
    if syntax in {"yaml", "yml"}:
        if yaml is None:
            raise RuntimeError("YAML configuration requires the optional 'pyyaml' dependency")
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Unable to parse YAML configuration: {exc}") from exc
    elif syntax == "json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Unable to parse JSON configuration: {exc}") from exc
    else:
        raise ValueError(f"Unsupported configuration syntax '{syntax}'; use 'json' or 'yaml'")

    if data is None:
        return EditState()
    if not isinstance(data, Mapping):
        raise ValueError("Configuration must contain a mapping of option names to values")
    return state_from_mapping(data, strict=strict)


def dump_config_text(state: EditState, *, syntax: str = "json") -> str:
    """Serialize *state* so :func:`load_config_text` can read it back."""

    data = state.to_dict()
    if syntax.lower() in {"yaml", "yml"}:
        if yaml is None:
            raise RuntimeError("YAML configuration requires the optional 'pyyaml' dependency")
        return yaml.safe_dump(data, sort_keys=True)
    return json.dumps(data, indent=2, sort_keys=True)


__all__ = [
    "coerce_bool",
    "coerce_number",
    "dump_config_text",
    "export_from_mapping",
    "geometry_from_mapping",
    "load_config_text",
    "normalise_config_keys",
    "settings_from_mapping",
    "state_from_mapping",
]
