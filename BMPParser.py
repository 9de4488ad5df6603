#!/usr/bin/env python3
# BMP Parser - file header and info header reading

from __future__ import annotations

import io
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass

from bmp_errors import (
    BMPError,
    BMPFileNotFound,
    BMPReadError,
    IncorrectFileHeader,
    IncorrectInfoHeader,
    InvalidGeometry,
    UnsupportedCompression,
)
from byte_reader import ByteReader

logger = logging.getLogger(__name__)

FILE_HEADER_SIZE = 14
INFO_HEADER_MIN_SIZE = 40  # BITMAPINFOHEADER
MAX_HEADER_SIZE = 64 * 1024

BMP_SIGNATURE = b"BM"
BI_RGB = 0


@dataclass(frozen=True)
class FileHeader:
    signature: bytes
    file_size: int
    reserved1: int
    reserved2: int
    data_offset: int


@dataclass(frozen=True)
class InfoHeader:
    header_size: int
    width: int
    height: int
    planes: int
    bit_count: int
    compression: int
    image_size: int
    x_pixels_per_meter: int
    y_pixels_per_meter: int
    colors_used: int
    colors_important: int

    @property
    def top_down(self) -> bool:
        """Negative height marks rows stored top to bottom."""
        return self.height < 0

    @property
    def abs_height(self) -> int:
        return abs(self.height)


@contextmanager
def open_bmp_source(source):
    """Yield a seekable binary stream for a path, a buffer or a file object.

    Files opened here are closed when the block exits, whatever the outcome.
    Caller-owned file objects are left open.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        with io.BytesIO(bytes(source)) as stream:
            yield stream
    elif isinstance(source, (str, os.PathLike)):
        try:
            f = open(source, "rb")
        except FileNotFoundError:
            raise BMPFileNotFound(source) from None
        with f:
            yield f
    else:
        if not hasattr(source, "seekable") or not source.seekable():
            raise BMPError(f"Unsupported BMP source: {type(source).__name__}")
        yield source


def read_file_header(stream) -> FileHeader:
    """Read the 14-byte file header from the start of ``stream``."""
    stream.seek(0)
    data = stream.read(FILE_HEADER_SIZE)
    if len(data) < FILE_HEADER_SIZE:
        raise IncorrectFileHeader("Invalid BMP file: too short")

    reader = ByteReader(data)
    # Bytes 0-1: Signature
    signature = reader.read_bytes(0, 2)
    if signature != BMP_SIGNATURE:
        raise IncorrectFileHeader("Not a valid BMP file")

    header = FileHeader(
        signature=signature,
        file_size=reader.read_u32le(2),
        reserved1=reader.read_u16le(6),
        reserved2=reader.read_u16le(8),
        data_offset=reader.read_u32le(10),
    )
    logger.debug("File header: size=%d data_offset=%d", header.file_size, header.data_offset)
    return header


def read_info_header(stream) -> InfoHeader:
    """Read the info header that follows the file header.

    The leading size field is peeked, then the whole header (size field
    included) is read in one go. Fields are not validated here.
    """
    size_data = stream.read(4)
    if len(size_data) < 4:
        raise IncorrectInfoHeader("Invalid BMP file: incomplete info header")

    header_size = ByteReader(size_data).read_u32le(0)
    logger.debug("Info header size = %d", header_size)
    if header_size < INFO_HEADER_MIN_SIZE:
        raise IncorrectInfoHeader(
            f"Unsupported BMP format: info header too small ({header_size} bytes)"
        )
    if header_size > MAX_HEADER_SIZE:
        raise IncorrectInfoHeader(
            f"BMP info header looks too big ({header_size} bytes)"
        )

    stream.seek(-4, io.SEEK_CUR)
    data = stream.read(header_size)
    if len(data) < header_size:
        raise IncorrectInfoHeader("Invalid BMP file: incomplete info header")

    reader = ByteReader(data)
    try:
        return InfoHeader(
            header_size=reader.read_u32le(0x00),
            width=reader.read_i32le(0x04),
            height=reader.read_i32le(0x08),
            planes=reader.read_u16le(0x0C),
            bit_count=reader.read_u16le(0x0E),
            compression=reader.read_u32le(0x10),
            image_size=reader.read_u32le(0x14),
            x_pixels_per_meter=reader.read_i32le(0x18),
            y_pixels_per_meter=reader.read_i32le(0x1C),
            colors_used=reader.read_u32le(0x20),
            colors_important=reader.read_u32le(0x24),
        )
    except BMPReadError as e:
        raise IncorrectInfoHeader(str(e)) from e


def validate_info_header(info: InfoHeader) -> None:
    if info.width <= 0 or info.height == 0:
        raise InvalidGeometry(
            f"Invalid image dimensions: {info.width} x {info.height}"
        )
    if info.planes != 1:
        raise IncorrectInfoHeader(f"Invalid number of color planes: {info.planes}")
    if info.compression != BI_RGB:
        raise UnsupportedCompression(info.compression)


def read_headers(stream) -> tuple[FileHeader, InfoHeader]:
    """Read and validate both headers, leaving ``stream`` after the info header."""
    file_header = read_file_header(stream)
    info_header = read_info_header(stream)
    validate_info_header(info_header)
    logger.debug(
        "INFOHEADER width=%d height=%d bpp=%d compression=%d top_down=%s",
        info_header.width,
        info_header.abs_height,
        info_header.bit_count,
        info_header.compression,
        info_header.top_down,
    )
    return file_header, info_header


class BMPParser:
    """Header inspector: reads both headers without decoding any pixels."""

    def __init__(self, filepath):
        self.filepath = filepath
        self.file_header: FileHeader | None = None
        self.info_header: InfoHeader | None = None
        self.parsed = False

    def get_compression_name(self, compression_code):
        """Convert compression code to readable name"""
        compressions = {
            0: "BI_RGB (No compression)",
            1: "BI_RLE8 (8-bit RLE)",
            2: "BI_RLE4 (4-bit RLE)",
            3: "BI_BITFIELDS",
            4: "BI_JPEG",
            5: "BI_PNG"
        }
        return compressions.get(compression_code, f"Unknown ({compression_code})")

    def format_file_size(self, size_bytes):
        """Format file size in human readable format"""
        if size_bytes < 1024:
            return f"{size_bytes} bytes"
        elif size_bytes < 1024 * 1024:
            return f"{size_bytes:,} bytes ({size_bytes/1024:.1f} KB)"
        else:
            return f"{size_bytes:,} bytes ({size_bytes/1024/1024:.1f} MB)"

    def get_color_depth_description(self, bits_per_pixel):
        """Get description of color depth"""
        descriptions = {
            1: "1-bit (Monochrome)",
            4: "4-bit (16 colors)",
            8: "8-bit (256 colors)",
            16: "16-bit (High Color)",
            24: "24-bit (True Color)",
            32: "32-bit (True Color + Alpha)"
        }
        return descriptions.get(bits_per_pixel, f"{bits_per_pixel}-bit")

    def parse(self):
        """Parse the BMP file and extract header information"""
        with open_bmp_source(self.filepath) as stream:
            self.file_header = read_file_header(stream)
            self.info_header = read_info_header(stream)
        self.parsed = True

    def get_summary(self):
        """Return a dictionary of key-value pairs for display"""
        if not self.parsed:
            raise ValueError("File not parsed yet. Call parse() first.")

        info = self.info_header
        summary = {}
        summary["File Size"] = self.format_file_size(self.file_header.file_size)
        summary["Image Dimensions"] = f"{info.width} × {info.abs_height} pixels"
        summary["Bits per pixel"] = self.get_color_depth_description(info.bit_count)
        summary["Compression"] = self.get_compression_name(info.compression)
        summary["Row order"] = "top-down" if info.top_down else "bottom-up"
        summary["Data offset"] = str(self.file_header.data_offset)
        if info.bit_count <= 8:
            summary["Color table entries"] = str(info.colors_used or 1 << info.bit_count)
        return summary

    def get_raw_data(self):
        """Return raw parsed data for advanced users"""
        if not self.parsed:
            raise ValueError("File not parsed yet. Call parse() first.")

        return {
            'file_header': self.file_header,
            'info_header': self.info_header
        }

    def display_info(self):
        """Display parsed BMP information"""
        if not self.parsed:
            print("Error: File not parsed yet. Call parse() first.")
            return

        filename = os.path.basename(os.fspath(self.filepath))
        print("BMP File Analysis: " + filename)
        print("=" * 50)

        for field, value in self.get_summary().items():
            print(f"  {field}: {value}")


def main(argv=None):
    import sys
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python BMPParser.py <bmp_file>")
        print("Example: python BMPParser.py image.bmp")
        return 2

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    try:
        parser = BMPParser(argv[0])
        parser.parse()
        parser.display_info()
    except (BMPError, OSError) as e:
        print("Error: " + str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
