import struct

import pytest

from hdrkit.tiff_tags import (
    HEADER_SIZE,
    DataType,
    IfdEntry,
    Tag,
    TiffError,
    double_to_rational,
    make_entry,
    tiff_header,
    type_size,
)


def test_header_byte_order_marks():
    assert tiff_header(True) == b"MM\x00\x2a"
    assert tiff_header(False) == b"II\x2a\x00"


def test_header_version_is_42_in_its_own_order():
    assert struct.unpack(">H", tiff_header(True)[2:])[0] == 42
    assert struct.unpack("<H", tiff_header(False)[2:])[0] == 42


@pytest.mark.parametrize(
    "data_type, size",
    [
        (DataType.BYTE, 1),
        (DataType.ASCII, 1),
        (DataType.SHORT, 2),
        (DataType.LONG, 4),
        (DataType.RATIONAL, 8),
        (DataType.SLONG, 4),
        (DataType.DOUBLE, 8),
        (DataType.IFD, 4),
        (DataType.LONG8, 1),
    ],
)
def test_type_size_table(data_type, size):
    assert type_size(data_type) == size


@pytest.mark.parametrize(
    "tag, number",
    [
        (Tag.IMAGE_WIDTH, 256),
        (Tag.STRIP_OFFSET, 273),
        (Tag.SAMPLEFORMAT, 339),
    ],
)
def test_encoded_tag_number_follows_the_format(tag, number):
    entry = make_entry(tag, DataType.LONG, 1, struct.pack("<I", 5), bytearray())
    encoded_tag, encoded_type = struct.unpack("<HH", entry.encode(False)[:4])
    assert encoded_tag == number
    assert encoded_type == 4


def test_rational_of_one():
    assert double_to_rational(1.0) == (1.0, 1.0)


def test_rational_of_half():
    assert double_to_rational(0.5) == (1.0, 2.0)


@pytest.mark.parametrize("x", [0.75, 3.0, 1234.5, -6.25, 72.0])
def test_rational_round_trip(x):
    num, den = double_to_rational(x)
    assert num / den == x
    assert num == int(num)
    # denominator is a power of two
    d = int(den)
    assert d > 0 and d & (d - 1) == 0


@pytest.mark.parametrize("x", [float("inf"), float("-inf"), float("nan")])
def test_rational_rejects_non_finite(x):
    with pytest.raises(TiffError):
        double_to_rational(x)


def test_rational_rejects_tiny_values():
    with pytest.raises(TiffError):
        double_to_rational(1e-300)


def test_inline_short_entry_leaves_stream_untouched():
    stream = bytearray(b"abc")
    entry = make_entry(Tag.SAMPLES_PER_PIXEL, DataType.SHORT, 1,
                       struct.pack("<H", 3), stream)
    assert stream == bytearray(b"abc")
    assert entry.byte_length() == 2
    encoded = entry.encode(False)
    assert len(encoded) == 12
    tag, dtype, count, value, pad = struct.unpack("<HHIHH", encoded)
    assert (tag, dtype, count, value, pad) == (277, 3, 1, 3, 0)


def test_inline_long_entry_big_endian():
    entry = make_entry(Tag.IMAGE_WIDTH, DataType.LONG, 1,
                       struct.pack(">I", 640), bytearray())
    tag, dtype, count, value = struct.unpack(">HHII", entry.encode(True))
    assert (tag, dtype, count, value) == (256, 4, 1, 640)


def test_large_entry_goes_to_stream_with_offset():
    stream = bytearray(b"\x01" * 10)
    payload = struct.pack("<II", 72, 1)
    entry = make_entry(Tag.XRESOLUTION, DataType.RATIONAL, 1, payload, stream)
    assert entry.offset == 10 + HEADER_SIZE
    assert bytes(stream[10:]) == payload
    _, _, count, offset = struct.unpack("<HHII", entry.encode(False, 100))
    assert count == 1
    assert offset == 10 + HEADER_SIZE + 100


def test_large_entry_needs_stream():
    with pytest.raises(TiffError):
        make_entry(Tag.ACTIVE_AREA, DataType.LONG, 4, b"\x00" * 16, None)


def test_short_payload_rejected():
    with pytest.raises(TiffError):
        make_entry(Tag.IMAGE_WIDTH, DataType.LONG, 1, b"\x00\x01", bytearray())


def test_zero_count_rejected():
    with pytest.raises(TiffError):
        make_entry(Tag.IMAGE_WIDTH, DataType.LONG, 0, b"", bytearray())


def test_tag_out_of_range_rejected():
    with pytest.raises(TiffError):
        make_entry(70000, DataType.LONG, 1, b"\x00" * 4, bytearray())


def test_byte_entry_is_left_justified():
    entry = make_entry(Tag.SUB_FILETYPE, DataType.BYTE, 1, b"\x07", None)
    assert entry.encode(True)[8:] == b"\x07\x00\x00\x00"


def test_encode_offset_overflow_rejected():
    entry = IfdEntry(Tag.BLACK_LEVEL, DataType.RATIONAL, 1, offset=0xFFFFFFFF)
    with pytest.raises(TiffError):
        entry.encode(False, 1)