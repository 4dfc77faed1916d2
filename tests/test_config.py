from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

try:
    from .documentation import documents
except ImportError:  # pragma: no cover - fallback for direct execution
    from tests.documentation import documents

from pixelcraft import config  # noqa: E402  # pylint: disable=wrong-import-position
from pixelcraft.format_utils import ExportFormat, UnsupportedFormatError  # noqa: E402  # pylint: disable=wrong-import-position
from pixelcraft.presets import apply_preset  # noqa: E402  # pylint: disable=wrong-import-position
from pixelcraft.settings import (  # noqa: E402  # pylint: disable=wrong-import-position
    ColorMode,
    CropMargins,
    EditState,
    ExportParameters,
    FilterSettings,
)


def _sample_state() -> EditState:
    return EditState(
        settings=apply_preset("vintage"),
        export=ExportParameters(
            format=ExportFormat.WEBP,
            quality=0.8,
            width=640,
            crop=CropMargins(top=5, left=10),
            filename="poster",
        ),
    ).rotated(-90).flipped("h")


def test_normalise_config_keys():
    assert config.normalise_config_keys({"flip-h": True, "crop_top": 2}) == {"flip_h": True, "crop_top": 2}
    with pytest.raises(ValueError, match="must be strings"):
        config.normalise_config_keys({1: "a"})


@pytest.mark.parametrize("value, expected", [(True, True), ("yes", True), ("Off", False), (0, False), ("1", True)])
def test_coerce_bool(value, expected):
    assert config.coerce_bool(value, key="invert") is expected


@pytest.mark.parametrize("value", ["maybe", 2, None])
def test_coerce_bool_rejects_other_values(value):
    with pytest.raises(ValueError, match="invert"):
        config.coerce_bool(value, key="invert")


def test_coerce_number():
    assert config.coerce_number("12.5", key="blur") == 12.5
    with pytest.raises(ValueError, match="blur"):
        config.coerce_number("soft", key="blur")
    with pytest.raises(ValueError, match="boolean"):
        config.coerce_number(True, key="blur")


def test_settings_from_mapping_overlays_base():
    base = FilterSettings(contrast=30, vignette=10)
    settings = config.settings_from_mapping({"brightness": "15", "sepia": "true"}, base=base)
    assert settings == FilterSettings(brightness=15, contrast=30, vignette=10, color_mode=ColorMode.SEPIA)


@documents("Legacy color flags fold into a single color mode")
def test_settings_from_mapping_folds_flags():
    settings = config.settings_from_mapping({"sepia": True, "blackwhite": True})
    assert settings.color_mode is ColorMode.BLACK_WHITE

    cleared = config.settings_from_mapping({"grayscale": False}, base=FilterSettings(color_mode=ColorMode.GRAYSCALE))
    assert cleared.color_mode is ColorMode.NONE


def test_settings_from_mapping_color_mode_key():
    assert config.settings_from_mapping({"color-mode": "Sepia"}).color_mode is ColorMode.SEPIA
    with pytest.raises(ValueError, match="color_mode"):
        config.settings_from_mapping({"color_mode": "duotone"})
    with pytest.raises(ValueError, match="not both"):
        config.settings_from_mapping({"color_mode": "sepia", "grayscale": True})


def test_settings_from_mapping_range_checks():
    with pytest.raises(ValueError, match="blur must be between 0 and 20"):
        config.settings_from_mapping({"blur": 25})
    assert config.settings_from_mapping({"blur": 25}, strict=False).blur == 25


def test_settings_from_mapping_unknown_key():
    with pytest.raises(ValueError, match="Unknown filter option 'glow'"):
        config.settings_from_mapping({"glow": 1})


def test_export_from_mapping_crop_forms():
    nested = config.export_from_mapping({"crop": {"top": 10, "right": "5"}})
    flat = config.export_from_mapping({"crop-top": 10, "crop_right": 5})
    assert nested.crop == flat.crop == CropMargins(top=10, right=5)

    with pytest.raises(ValueError, match="Unknown crop edge"):
        config.export_from_mapping({"crop": {"middle": 3}})
    with pytest.raises(ValueError, match="crop left"):
        config.export_from_mapping({"crop_left": 100})


def test_export_from_mapping_fields():
    params = config.export_from_mapping({"format": "png", "quality": "0.5", "width": 0, "height": "300", "filename": None})
    assert params == ExportParameters(format=ExportFormat.PNG, quality=0.5, width=None, height=300, filename="")

    with pytest.raises(UnsupportedFormatError):
        config.export_from_mapping({"format": "tiff"})
    with pytest.raises(ValueError, match="positive whole number"):
        config.export_from_mapping({"width": 12.5})


def test_state_from_mapping_accepts_flat_geometry_keys():
    state = config.state_from_mapping(
        {"rotation": 270, "flip_h": "yes", "settings": {"noise": 10}, "export_settings": {"format": "bmp"}}
    )
    assert state.geometry.rotation == 270
    assert state.geometry.flip_horizontal is True
    assert state.settings.noise == 10
    assert state.export.format is ExportFormat.BMP


def test_state_from_mapping_rejects_unknown_sections():
    with pytest.raises(ValueError, match="layers"):
        config.state_from_mapping({"layers": []})
    with pytest.raises(ValueError, match="multiple of 90"):
        config.state_from_mapping({"geometry": {"rotation": 45}})


@documents("Saved edits reload to the same state")
def test_json_round_trip():
    state = _sample_state()
    text = config.dump_config_text(state)
    assert json.loads(text)["geometry"] == {"rotation": 270, "flip_horizontal": True, "flip_vertical": False}
    assert config.load_config_text(text) == state
    assert EditState.from_dict(json.loads(text)) == state


def test_yaml_round_trip():
    pytest.importorskip("yaml")
    state = _sample_state()
    text = config.dump_config_text(state, syntax="yaml")
    assert "rotation: 270" in text
    assert config.load_config_text(text, syntax="yml") == state


def test_yaml_without_pyyaml(monkeypatch):
    monkeypatch.setattr(config, "yaml", None)
    with pytest.raises(RuntimeError, match="pyyaml"):
        config.load_config_text("settings: {}", syntax="yaml")


def test_load_config_text_errors():
    with pytest.raises(ValueError, match="Unable to parse JSON"):
        config.load_config_text("{not json")
    with pytest.raises(ValueError, match="mapping"):
        config.load_config_text("[1, 2]")
    with pytest.raises(ValueError, match="Unsupported configuration syntax"):
        config.load_config_text("{}", syntax="toml")
    assert config.load_config_text("null") == EditState()
