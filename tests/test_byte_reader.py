import pytest

from bmp_errors import BMPReadError
from byte_reader import ByteReader


def test_reads_little_endian_fields():
    reader = ByteReader(b"\x01\x02\x03\x04\xff\xff\xff\xff")
    assert reader.read_u16le(0) == 0x0201
    assert reader.read_u32le(0) == 0x04030201
    assert reader.read_u32le(4) == 0xFFFFFFFF
    assert reader.read_i32le(4) == -1
    assert reader.read_bytes(1, 2) == b"\x02\x03"


@pytest.mark.parametrize("offset", [-1, 5, 8])
def test_out_of_bounds_read_raises(offset):
    reader = ByteReader(bytes(8))
    with pytest.raises(BMPReadError):
        reader.read_u32le(offset)


def test_reader_copies_mutable_input():
    data = bytearray(b"\x01\x00")
    reader = ByteReader(data)
    data[0] = 9
    assert reader.read_u16le(0) == 1
