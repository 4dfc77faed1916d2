"""Uncompressed 24-bit BMP serializer.

Layout written by :func:`encode_bmp` (all integers little-endian):

* 14-byte file header: ``BM``, file size, reserved zero, pixel data offset 54.
* 40-byte BITMAPINFOHEADER: header size, width, *negative* height (rows are
  stored top-down), one plane, 24 bits per pixel, ``BI_RGB``, pixel data
  size, 2835 pixels per metre in both axes (72 DPI), no palette.
* Pixel rows in B, G, R order, each zero-padded to a multiple of 4 bytes.

Alpha is discarded. Nothing downstream validates the output, so every field
is written explicitly.
"""
from __future__ import annotations

import logging
import struct

import numpy as np

from .bitmap import Bitmap

LOGGER = logging.getLogger("pixelcraft")

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
PIXEL_DATA_OFFSET = FILE_HEADER_SIZE + INFO_HEADER_SIZE
BITS_PER_PIXEL = 24
BI_RGB = 0
PIXELS_PER_METRE = 2835
BMP_MIME_TYPE = "image/bmp"

_FILE_HEADER = struct.Struct("<2sIII")
_INFO_HEADER = struct.Struct("<IiiHHIIiiII")


def row_stride(width: int) -> int:
    """Bytes per stored row: three per pixel, rounded up to a multiple of 4."""

    return (width * 3 + 3) // 4 * 4


def encode_bmp(bitmap: Bitmap) -> bytes:
    """Serialize *bitmap* as a top-down 24-bit BMP file.

    Args:
        bitmap: Source pixels; only R, G and B are written.

    Returns:
        The complete file contents, ``54 + row_stride(width) * height`` bytes long.
    """
    width, height = bitmap.width, bitmap.height
    stride = row_stride(width)
    pixel_size = stride * height
    file_size = PIXEL_DATA_OFFSET + pixel_size

    rows = np.zeros((height, stride), dtype=np.uint8)
    # RGBA -> BGR, written into the leading width*3 bytes of each padded row
    rows[:, : width * 3] = bitmap.pixels[:, :, 2::-1].reshape(height, width * 3)

    file_header = _FILE_HEADER.pack(b"BM", file_size, 0, PIXEL_DATA_OFFSET)
    info_header = _INFO_HEADER.pack(
        INFO_HEADER_SIZE,
        width,
        -height,
        1,
        BITS_PER_PIXEL,
        BI_RGB,
        pixel_size,
        PIXELS_PER_METRE,
        PIXELS_PER_METRE,
        0,
        0,
    )
    LOGGER.debug("Encoded %sx%s BMP (%s bytes, stride %s)", width, height, file_size, stride)
    return file_header + info_header + rows.tobytes()


__all__ = [
    "BMP_MIME_TYPE",
    "PIXEL_DATA_OFFSET",
    "encode_bmp",
    "row_stride",
]
