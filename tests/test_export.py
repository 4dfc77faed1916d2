from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

try:
    from .documentation import documents
    from .pixels import solid
except ImportError:  # pragma: no cover - fallback for direct execution
    from tests.documentation import documents
    from tests.pixels import solid

np = pytest.importorskip("numpy")
pytest.importorskip("PIL.Image")
from PIL import Image, features  # noqa: E402  # pylint: disable=wrong-import-position

from pixelcraft import export, pipeline  # noqa: E402  # pylint: disable=wrong-import-position
from pixelcraft.bitmap import Bitmap  # noqa: E402  # pylint: disable=wrong-import-position
from pixelcraft.format_utils import ExportFormat, UnsupportedFormatError  # noqa: E402  # pylint: disable=wrong-import-position
from pixelcraft.settings import EditState, ExportParameters, FilterSettings  # noqa: E402  # pylint: disable=wrong-import-position

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _open(encoded: export.EncodedImage) -> Image.Image:
    image = Image.open(io.BytesIO(encoded.data))
    image.load()
    return image


def test_png_keeps_alpha(gradient_bitmap):
    encoded = export.encode_image(gradient_bitmap, ExportFormat.PNG)
    assert encoded.mime_type == "image/png"
    assert encoded.extension == "png"
    assert encoded.data.startswith(PNG_SIGNATURE)
    decoded = np.asarray(_open(encoded).convert("RGBA"))
    np.testing.assert_array_equal(decoded, gradient_bitmap.pixels)


def test_jpeg_drops_alpha_and_honours_quality():
    rng = np.random.default_rng(5)
    pixels = rng.integers(0, 256, size=(32, 32, 4), dtype=np.uint8)
    bitmap = Bitmap(32, 32, pixels)

    low = export.encode_image(bitmap, "image/jpeg", 0.1)
    high = export.encode_image(bitmap, "jpg", 0.95)

    assert low.data[:2] == b"\xff\xd8"
    assert low.extension == "jpg"
    assert _open(high).mode == "RGB"
    assert low.size < high.size


@documents("GIF requests produce PNG data under a .gif name")
def test_gif_falls_back_to_png_data(gradient_bitmap):
    encoded = export.encode_image(gradient_bitmap, "image/gif")
    assert encoded.data.startswith(PNG_SIGNATURE)
    assert encoded.mime_type == "image/png"
    assert encoded.extension == "gif"


def test_bmp_uses_manual_writer(gradient_bitmap):
    encoded = export.encode_image(gradient_bitmap, ExportFormat.BMP)
    assert encoded.data[:2] == b"BM"
    assert encoded.mime_type == "image/bmp"
    assert export.estimate_file_size(gradient_bitmap, "bmp") == 54 + 20 * 4


@pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WebP support")
def test_webp_encoding(gradient_bitmap):
    encoded = export.encode_image(gradient_bitmap, "webp", 0.8)
    assert encoded.data[:4] == b"RIFF"
    assert encoded.data[8:12] == b"WEBP"
    assert encoded.extension == "webp"


def test_unknown_format_is_rejected(gradient_bitmap):
    with pytest.raises(UnsupportedFormatError):
        export.encode_image(gradient_bitmap, "image/tiff")


def test_empty_encoder_output_raises(monkeypatch, gradient_bitmap):
    monkeypatch.setattr(export, "encode_bmp", lambda bitmap: b"")
    with pytest.raises(export.EncodingFailure, match="no data"):
        export.encode_image(gradient_bitmap, "bmp")


def test_pillow_errors_become_encoding_failures(monkeypatch, gradient_bitmap):
    def broken_save(self, fp, format=None, **params):  # pylint: disable=redefined-builtin
        raise OSError("encoder not available")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    with pytest.raises(export.EncodingFailure, match="encoder not available"):
        export.encode_image(gradient_bitmap, "png")


@pytest.mark.parametrize(
    "params, source, suffix, expected",
    [
        (ExportParameters(filename="cover"), "IMG 001.JPG", "", "cover.jpg"),
        (ExportParameters(format=ExportFormat.PNG), "Beach Day.jpeg", "", "beach_day.png"),
        (ExportParameters(format=ExportFormat.GIF), "", "_edited", "image_edited.gif"),
    ],
)
def test_export_filename(params, source, suffix, expected):
    assert export.export_filename(params, source, suffix) == expected


def test_export_image_renders_then_encodes(gradient_bitmap):
    state = EditState(
        settings=FilterSettings(invert=True),
        export=ExportParameters(format=ExportFormat.PNG, width=3),
    ).rotated(90)

    encoded = export.export_image(gradient_bitmap, state, source_name="Holiday.png")

    assert encoded.filename == "holiday.png"
    image = _open(encoded)
    # 6x4 rotated to 4x6, then width 3 keeps the 2:3 ratio
    assert image.size == (3, 5)


@documents("A failing image does not stop the rest of a batch")
def test_export_batch_records_failures(monkeypatch, caplog):
    good = Bitmap(2, 2, solid(2, 2, (10, 10, 10, 255)))
    bad = Bitmap(3, 3, solid(3, 3, (0, 0, 0, 255)))
    real_encode = export.encode_image

    def flaky(bitmap, export_format=ExportFormat.JPEG, quality=0.92):
        if bitmap.width == 3:
            raise export.EncodingFailure("simulated failure")
        return real_encode(bitmap, export_format, quality)

    monkeypatch.setattr(export, "encode_image", flaky)
    state = EditState(export=ExportParameters(filename="ignored"))

    with caplog.at_level("WARNING", logger="pixelcraft"):
        result = export.export_batch(
            [("first.png", good), ("second.png", bad), ("Third Shot.png", good)],
            state,
            progress=False,
        )

    assert [item.filename for item in result.exported] == ["first_edited.jpg", "third_shot_edited.jpg"]
    assert result.failed == [("second.png", "simulated failure")]
    assert not result.ok
    assert "second.png" in caplog.text


def test_export_batch_reports_progress_through_pipeline_helper(monkeypatch):
    seen = []

    def recording(iterable, *, total, description):
        seen.append((total, description))
        return iterable

    monkeypatch.setattr(pipeline, "_tqdm_progress", recording)
    good = Bitmap(2, 2, solid(2, 2, (10, 10, 10, 255)))
    result = export.export_batch([("a.png", good), ("b.png", good)], progress=True)

    assert result.ok
    assert seen == [(2, "Exporting images")]
