#!/usr/bin/env python3
"""Uncompressed BMP decoding.

``decode_bmp`` runs four stages in order: it reads the headers, classifies
the pixel format into a :class:`PixelLayout`, extracts the pixel rows
(expanding palette indexes through the color table) and finally puts the
rows in top-down order. Pixel work is vectorised with NumPy.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import numpy as np

from BMPParser import BI_RGB, FILE_HEADER_SIZE, FileHeader, InfoHeader, open_bmp_source, read_headers
from bmp_errors import (
    BadColorTable,
    BMPError,
    ColorIndexOutOfRange,
    GeometryOverflow,
    TruncatedPixelData,
    UnsupportedBitCount,
    UnsupportedCompression,
)
from bmpimage import RGB555_MASK, RGB888_MASK, ColorMask, DecodedImage

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 2**31 - 1

INDEXED_BIT_COUNTS = (1, 4, 8)

# bytes per output pixel; indexed formats expand to 32-bit packed colors
PIXEL_SIZES = {1: 4, 4: 4, 8: 4, 16: 2, 24: 3, 32: 4}


@dataclass(frozen=True)
class PixelLayout:
    width: int
    height: int
    bit_count: int
    pixel_size: int
    source_bytes_per_row: int
    bytes_per_row: int
    image_size: int
    data_offset: int
    color_table_entries: int
    color_mask: ColorMask

    @property
    def indexed(self) -> bool:
        return self.bit_count in INDEXED_BIT_COUNTS


def classify_format(
    file_header: FileHeader,
    info: InfoHeader,
    max_image_bytes: int = MAX_IMAGE_BYTES,
) -> PixelLayout:
    """Map the header fields to a pixel layout, repairing missing sizes.

    Raises UnsupportedBitCount, UnsupportedCompression, BadColorTable or
    GeometryOverflow. Nothing is read from the file.
    """
    bit_count = info.bit_count
    pixel_size = PIXEL_SIZES.get(bit_count)
    if pixel_size is None:
        raise UnsupportedBitCount(bit_count)
    if info.compression != BI_RGB:
        raise UnsupportedCompression(info.compression)

    width = info.width
    height = info.abs_height

    # Each source row is padded to a multiple of 4 bytes
    source_bytes_per_row = (width * bit_count + 31) // 32 * 4
    if bit_count == 24:
        # repacked to 3 bytes per pixel without padding
        bytes_per_row = width * 3
    else:
        bytes_per_row = (width * pixel_size + 3) // 4 * 4

    for label, size in (
        ("source pixel data", source_bytes_per_row * height),
        ("decoded pixel buffer", bytes_per_row * height),
        ("declared image size", info.image_size),
    ):
        if size > max_image_bytes:
            raise GeometryOverflow(
                f"{width} x {height} at {bit_count} bpp needs a {label} of "
                f"{size} bytes, limit is {max_image_bytes}"
            )

    color_table_entries = 0
    if bit_count in INDEXED_BIT_COUNTS:
        color_table_entries = info.colors_used or 1 << bit_count
        if color_table_entries > 1 << bit_count:
            raise BadColorTable(
                f"{color_table_entries} color table entries declared "
                f"for a {bit_count}-bit image"
            )

    # Some BMP files are misformatted, guess missing information
    image_size = info.image_size
    if image_size == 0:
        image_size = source_bytes_per_row * height
        logger.warning("Image size missing from header, assuming %d bytes", image_size)

    data_offset = file_header.data_offset
    if data_offset == 0:
        # pixel data starts right after the headers and the color table
        data_offset = FILE_HEADER_SIZE + info.header_size + color_table_entries * 4
        logger.warning("Pixel data offset missing from header, assuming %d", data_offset)

    color_mask = RGB555_MASK if bit_count == 16 else RGB888_MASK

    layout = PixelLayout(
        width=width,
        height=height,
        bit_count=bit_count,
        pixel_size=pixel_size,
        source_bytes_per_row=source_bytes_per_row,
        bytes_per_row=bytes_per_row,
        image_size=image_size,
        data_offset=data_offset,
        color_table_entries=color_table_entries,
        color_mask=color_mask,
    )
    logger.debug("Pixel layout: %s", layout)
    return layout


def read_color_table(stream, layout: PixelLayout) -> np.ndarray:
    """Read the palette that follows the info header as little-endian uint32 colors."""
    size = layout.color_table_entries * 4
    data = stream.read(size)
    if len(data) < size:
        raise BadColorTable(
            f"Color table truncated: expected {size} bytes, got {len(data)}"
        )
    return np.frombuffer(data, dtype="<u4")


def _read_pixel_region(stream, layout: PixelLayout) -> np.ndarray:
    """Read the source rows as a ``(height, source_bytes_per_row)`` uint8 array."""
    end = stream.seek(0, io.SEEK_END)
    available = max(0, end - layout.data_offset)
    if layout.image_size > available:
        raise TruncatedPixelData(
            f"Header declares {layout.image_size} bytes of pixel data at offset "
            f"{layout.data_offset}, only {available} available"
        )

    needed = layout.source_bytes_per_row * layout.height
    if layout.image_size < needed:
        raise TruncatedPixelData(
            f"Declared image size {layout.image_size} is smaller than the "
            f"{needed} bytes the image dimensions require"
        )

    stream.seek(layout.data_offset)
    data = stream.read(needed)
    if len(data) < needed:
        raise TruncatedPixelData(f"Expected {needed} bytes of pixel data, got {len(data)}")
    return np.frombuffer(data, dtype=np.uint8).reshape(layout.height, layout.source_bytes_per_row)


def unpack_indices(rows: np.ndarray, bit_count: int, width: int) -> np.ndarray:
    """Split packed index rows into one palette index per pixel.

    Sub-byte formats are stored most significant bits first. Row padding
    is dropped.
    """
    if bit_count == 8:
        return rows[:, :width]
    if bit_count == 4:
        nibbles = np.empty((rows.shape[0], rows.shape[1] * 2), dtype=np.uint8)
        nibbles[:, 0::2] = rows >> 4
        nibbles[:, 1::2] = rows & 0x0F
        return nibbles[:, :width]
    if bit_count == 1:
        return np.unpackbits(rows, axis=1)[:, :width]
    raise UnsupportedBitCount(bit_count)


def expand_indices(indices: np.ndarray, color_table: np.ndarray) -> np.ndarray:
    """Look up every index in the color table, returning little-endian uint32 colors."""
    if indices.size:
        bad = indices >= len(color_table)
        if bad.any():
            raise ColorIndexOutOfRange(int(indices[bad][0]), len(color_table))
    return color_table[indices]


def extract_pixels(stream, layout: PixelLayout) -> np.ndarray:
    """Return the pixel rows in file order as a ``(height, bytes_per_row)`` uint8 array.

    ``stream`` must be positioned right after the info header so that the
    color table of indexed images can be read.
    """
    if layout.indexed:
        color_table = read_color_table(stream, layout)
        logger.debug("Read %d color table entries", len(color_table))
        rows = _read_pixel_region(stream, layout)
        indices = unpack_indices(rows, layout.bit_count, layout.width)
        colors = expand_indices(indices, color_table).astype("<u4", copy=False)
        return colors.view(np.uint8).reshape(layout.height, layout.bytes_per_row)

    rows = _read_pixel_region(stream, layout)
    if layout.bit_count == 24:
        return rows[:, :layout.bytes_per_row]
    # 16 and 32 bits are used as stored
    return rows


def normalize_orientation(rows: np.ndarray, top_down: bool) -> np.ndarray:
    """Return the rows in top-down order, flipping bottom-up sources."""
    if top_down:
        return rows
    return rows[::-1]


def decode_bmp(source, *, max_image_bytes: int = MAX_IMAGE_BYTES) -> DecodedImage:
    """Decode an uncompressed BMP.

    ``source`` may be a path, a bytes-like object or a seekable binary file
    object. Row 0 of the result is the top of the picture.
    """
    with open_bmp_source(source) as stream:
        file_header, info_header = read_headers(stream)
        layout = classify_format(file_header, info_header, max_image_bytes)
        rows = extract_pixels(stream, layout)

    rows = normalize_orientation(rows, info_header.top_down)
    return DecodedImage(
        width=layout.width,
        height=layout.height,
        bytes_per_row=layout.bytes_per_row,
        pixel_size=layout.pixel_size,
        bits_per_pixel=layout.bit_count,
        color_mask=layout.color_mask,
        data=rows.tobytes(),
    )


def main(argv=None):
    import sys
    argv = sys.argv[1:] if argv is None else argv
    verbose = "-v" in argv
    paths = [arg for arg in argv if arg != "-v"]
    if len(paths) != 1:
        print("Usage: python bmpdecoder.py [-v] <bmp_file>")
        return 2

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        image = decode_bmp(paths[0])
    except (BMPError, OSError) as e:
        print("Error: " + str(e))
        return 1

    print(f"Decoded {paths[0]}")
    print(f"  Dimensions: {image.width} × {image.height} pixels")
    print(f"  Bits per pixel: {image.bits_per_pixel}")
    print(f"  Pixel size: {image.pixel_size} bytes")
    print(f"  Bytes per row: {image.bytes_per_row}")
    print(f"  Buffer size: {len(image.data)} bytes")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
