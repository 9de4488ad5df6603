"""Exceptions raised while reading and decoding BMP files."""

from __future__ import annotations


class BMPError(ValueError):
    """Base class for every BMP decoding failure."""


class BMPFileNotFound(BMPError, FileNotFoundError):
    def __init__(self, path):
        super().__init__("File not found: " + str(path))
        self.path = path


class BMPReadError(BMPError):
    """A read past the end of a buffer or stream."""


class IncorrectFileHeader(BMPError):
    pass


class IncorrectInfoHeader(BMPError):
    pass


class InvalidGeometry(IncorrectInfoHeader):
    pass


class BadColorTable(BMPError):
    pass


class UnsupportedCompression(BMPError):
    def __init__(self, compression: int):
        super().__init__(f"Unsupported compression: {compression}")
        self.compression = compression


class UnsupportedBitCount(BMPError):
    def __init__(self, bit_count: int):
        super().__init__(f"Unsupported bpp: {bit_count}")
        self.bit_count = bit_count


class GeometryOverflow(BMPError):
    pass


class TruncatedPixelData(BMPReadError):
    pass


class ColorIndexOutOfRange(BMPError):
    def __init__(self, index: int, table_length: int):
        super().__init__(
            f"Color index {index} out of range for a table of {table_length} entries"
        )
        self.index = index
        self.table_length = table_length
