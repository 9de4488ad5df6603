import struct

import pytest


def build_bmp(
    width,
    height,
    bit_count,
    pixel_data,
    color_table=b"",
    compression=0,
    planes=1,
    data_offset=None,
    image_size=None,
    colors_used=0,
    header_size=40,
    signature=b"BM",
):
    """Assemble a BMP file from its parts.

    ``data_offset`` and ``image_size`` default to the real values; pass 0 to
    leave them unspecified the way some writers do.
    """
    info = struct.pack(
        "<IiiHHIIiiII",
        header_size,
        width,
        height,
        planes,
        bit_count,
        compression,
        len(pixel_data) if image_size is None else image_size,
        2835,
        2835,
        colors_used,
        0,
    )
    info += b"\x00" * (header_size - len(info))
    if data_offset is None:
        data_offset = 14 + header_size + len(color_table)
    body = info + color_table + pixel_data
    file_header = signature + struct.pack("<IHHI", 14 + len(body), 0, 0, data_offset)
    return file_header + body


@pytest.fixture
def make_bmp():
    return build_bmp


@pytest.fixture
def bmp_32bit_2x2():
    # bottom row first, BGRA
    pixels = bytes(range(16))
    return build_bmp(2, 2, 32, pixels), pixels
