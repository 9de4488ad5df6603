"""Bounds-checked little-endian field access over an immutable byte blob."""

from __future__ import annotations

from bmp_errors import BMPReadError


class ByteReader:
    def __init__(self, data: bytes):
        self._data = bytes(data)

    def _check(self, offset: int, size: int) -> None:
        if offset < 0 or offset + size > len(self._data):
            raise BMPReadError(
                f"Read of {size} bytes at offset {offset} exceeds {len(self._data)} bytes"
            )

    def read_bytes(self, offset: int, size: int) -> bytes:
        self._check(offset, size)
        return self._data[offset:offset + size]

    def read_u16le(self, offset: int) -> int:
        """Convert 2 bytes to unsigned 16-bit integer (little-endian)"""
        self._check(offset, 2)
        data = self._data
        return data[offset] + (data[offset + 1] << 8)

    def read_u32le(self, offset: int) -> int:
        """Convert 4 bytes to unsigned 32-bit integer (little-endian)"""
        self._check(offset, 4)
        data = self._data
        return (data[offset] +
                (data[offset + 1] << 8) +
                (data[offset + 2] << 16) +
                (data[offset + 3] << 24))

    def read_i32le(self, offset: int) -> int:
        """Convert 4 bytes to signed 32-bit integer (little-endian)"""
        value = self.read_u32le(offset)
        # two's complement
        if value >= 2**31:
            value -= 2**32
        return value
