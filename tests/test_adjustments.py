from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

try:
    from .documentation import documents
    from .pixels import single, solid
except ImportError:  # pragma: no cover - fallback for direct execution
    from tests.documentation import documents
    from tests.pixels import single, solid

np = pytest.importorskip("numpy")
from hypothesis import given, settings as hypothesis_settings, strategies as st  # noqa: E402  # pylint: disable=wrong-import-position
from hypothesis.extra.numpy import arrays  # noqa: E402  # pylint: disable=wrong-import-position

from pixelcraft import adjustments  # noqa: E402  # pylint: disable=wrong-import-position

rgba_arrays = arrays(
    dtype=np.uint8,
    shape=st.tuples(st.integers(1, 5), st.integers(1, 5), st.just(4)),
)


@pytest.mark.parametrize(
    "operator, argument",
    [
        (adjustments.apply_brightness, 0),
        (adjustments.apply_contrast, 0),
        (adjustments.apply_saturation, 0),
        (adjustments.apply_exposure, 0),
        (adjustments.apply_hue_rotation, 0),
        (adjustments.apply_temperature, 0),
        (adjustments.apply_noise, 0),
    ],
)
def test_zero_amount_is_a_no_op(gradient_bitmap, operator, argument):
    pixels = gradient_bitmap.pixels.copy()
    operator(pixels, argument)
    np.testing.assert_array_equal(pixels, gradient_bitmap.pixels)


@documents("Operators rewrite color channels only; alpha passes through")
@pytest.mark.parametrize(
    "operator, args",
    [
        (adjustments.apply_brightness, (40,)),
        (adjustments.apply_contrast, (60,)),
        (adjustments.apply_saturation, (-70,)),
        (adjustments.apply_exposure, (30,)),
        (adjustments.apply_hue_rotation, (90,)),
        (adjustments.apply_grayscale, ()),
        (adjustments.apply_black_white, ()),
        (adjustments.apply_sepia, ()),
        (adjustments.apply_invert, ()),
        (adjustments.apply_temperature, (-45,)),
        (adjustments.apply_noise, (80, np.random.default_rng(3))),
    ],
)
def test_alpha_channel_is_untouched(gradient_bitmap, operator, args):
    pixels = gradient_bitmap.pixels.copy()
    operator(pixels, *args)
    np.testing.assert_array_equal(pixels[..., 3], gradient_bitmap.pixels[..., 3])


def test_brightness_offsets_and_clamps():
    pixels = np.array([[[100, 200, 0, 255]]], dtype=np.uint8)
    adjustments.apply_brightness(pixels, 10)
    # 100 + 25.5 rounds half to even
    assert pixels[0, 0].tolist() == [126, 226, 26, 255]

    adjustments.apply_brightness(pixels, 100)
    assert pixels[0, 0, :3].tolist() == [255, 255, 255]


def test_contrast_pivots_on_mid_grey():
    pixels = np.array([[[128, 138, 118, 255]]], dtype=np.uint8)
    adjustments.apply_contrast(pixels, 100)
    assert pixels[0, 0, :3].tolist() == [128, 151, 105]


def test_contrast_factor_guards_pole(caplog):
    with caplog.at_level("WARNING", logger="pixelcraft"):
        factor = adjustments.contrast_factor(259)
    assert np.isfinite(factor)
    assert factor == adjustments.contrast_factor(258)
    assert "pole" in caplog.text


def test_full_desaturation_collapses_to_luma():
    pixels = single((255, 0, 0))
    adjustments.apply_saturation(pixels, -100)
    assert pixels[0, 0, :3].tolist() == [54, 54, 54]


def test_exposure_doubles_per_fifty():
    pixels = np.array([[[100, 200, 10, 255]]], dtype=np.uint8)
    adjustments.apply_exposure(pixels, 50)
    assert pixels[0, 0, :3].tolist() == [200, 255, 20]


def test_hue_rotation_moves_red_to_green():
    pixels = single((255, 0, 0))
    adjustments.apply_hue_rotation(pixels, 120)
    assert pixels[0, 0, :3].tolist() == [0, 255, 0]


@given(st.integers(0, 255), st.floats(-180, 180, allow_nan=False))
def test_hue_rotation_leaves_greys_alone(level, degrees):
    pixels = single((level, level, level))
    adjustments.apply_hue_rotation(pixels, degrees)
    assert pixels[0, 0, :3].tolist() == [level, level, level]


@hypothesis_settings(max_examples=50)
@given(rgba_arrays)
def test_grayscale_is_idempotent(pixels):
    once = pixels.copy()
    adjustments.apply_grayscale(once)
    twice = once.copy()
    adjustments.apply_grayscale(twice)
    np.testing.assert_array_equal(once, twice)
    assert np.all(once[..., 0] == once[..., 1])
    assert np.all(once[..., 1] == once[..., 2])


def test_black_white_thresholds_luma():
    pixels = np.array([[[200, 200, 200, 255], [50, 50, 50, 255], [255, 0, 0, 255]]], dtype=np.uint8)
    adjustments.apply_black_white(pixels)
    assert pixels[0, :, 0].tolist() == [255, 0, 0]
    assert np.all(pixels[..., 0] == pixels[..., 2])


def test_sepia_matrix_on_grey_and_white():
    pixels = np.array([[[100, 100, 100, 255], [255, 255, 255, 255]]], dtype=np.uint8)
    adjustments.apply_sepia(pixels)
    assert pixels[0, 0, :3].tolist() == [135, 120, 94]
    assert pixels[0, 1, :3].tolist() == [255, 255, 239]


@hypothesis_settings(max_examples=50)
@given(rgba_arrays)
def test_invert_is_an_involution(pixels):
    result = pixels.copy()
    adjustments.apply_invert(result)
    adjustments.apply_invert(result)
    np.testing.assert_array_equal(result, pixels)


@documents("Cool shifts move green by half as much as warm shifts")
def test_temperature_is_asymmetric():
    warm = solid(1, 1, (100, 100, 100, 255))
    cool = warm.copy()
    adjustments.apply_temperature(warm, 100)
    adjustments.apply_temperature(cool, -100)
    assert warm[0, 0, :3].tolist() == [130, 110, 70]
    assert cool[0, 0, :3].tolist() == [70, 95, 130]


def test_noise_is_reproducible_with_seeded_generator(gradient_bitmap):
    first = gradient_bitmap.pixels.copy()
    second = gradient_bitmap.pixels.copy()
    adjustments.apply_noise(first, 60, np.random.default_rng(42))
    adjustments.apply_noise(second, 60, np.random.default_rng(42))
    np.testing.assert_array_equal(first, second)


def test_noise_offsets_are_shared_across_channels_and_bounded():
    pixels = solid(16, 16, (128, 128, 128, 255))
    adjustments.apply_noise(pixels, 50, np.random.default_rng(7))
    assert np.all(pixels[..., 0] == pixels[..., 1])
    assert np.all(pixels[..., 1] == pixels[..., 2])
    deviation = np.abs(pixels[..., 0].astype(int) - 128)
    # spread is 50% of 80 levels: offsets lie in [-20, 20)
    assert deviation.max() <= 20
    assert deviation.max() > 0


def test_luminance_uses_rec709_weights():
    assert adjustments.luminance(np.array([255, 0, 0])) == pytest.approx(255 * 0.2126)
    assert adjustments.luminance(np.array([0, 255, 0])) == pytest.approx(255 * 0.7152)
    assert adjustments.luminance(np.array([0, 0, 255])) == pytest.approx(255 * 0.0722)


def test_hue_rotations_add_up_within_rounding(gradient_bitmap):
    stepwise = gradient_bitmap.pixels.copy()
    adjustments.apply_hue_rotation(stepwise, 30)
    adjustments.apply_hue_rotation(stepwise, 60)
    direct = gradient_bitmap.pixels.copy()
    adjustments.apply_hue_rotation(direct, 90)
    assert np.max(np.abs(stepwise.astype(int) - direct.astype(int))) <= 3
