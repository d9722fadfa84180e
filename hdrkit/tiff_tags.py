"""TIFF/DNG tag identifiers, field types and IFD entry encoding."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from enum import IntEnum

HEADER_SIZE = 8
"""Size of the TIFF header: byte-order mark, version and first IFD offset."""

_FLT_MANT_DIG = 24
_FLT_MAX_EXP = 128
_DBL_EPSILON = 2.220446049250313e-16

# Byte sizes indexed by field type; unknown types fall back to index 0.
_TYPE_SIZES = (1, 1, 1, 2, 4, 8, 1, 1, 2, 4, 8, 4, 8, 4)


class TiffError(ValueError):
    """Raised when a TIFF field cannot be built or encoded."""


class Tag(IntEnum):
    """TIFF tags, including the DNG extensions the writer knows about."""

    SUB_FILETYPE = 254
    IMAGE_WIDTH = 256
    IMAGE_LENGTH = 257
    BITS_PER_SAMPLE = 258
    COMPRESSION = 259
    PHOTOMETRIC = 262
    IMAGEDESCRIPTION = 270
    STRIP_OFFSET = 273
    ORIENTATION = 274
    SAMPLES_PER_PIXEL = 277
    ROWS_PER_STRIP = 278
    STRIP_BYTE_COUNTS = 279
    XRESOLUTION = 282
    YRESOLUTION = 283
    PLANAR_CONFIG = 284
    RESOLUTION_UNIT = 296
    SAMPLEFORMAT = 339

    CFA_REPEAT_PATTERN_DIM = 33421
    CFA_PATTERN = 33422

    CHROMA_BLUR_RADIUS = 50703
    DNG_VERSION = 50706
    DNG_BACKWARD_VERSION = 50707
    BLACK_LEVEL = 50714
    WHITE_LEVEL = 50717
    COLOR_MATRIX1 = 50721
    COLOR_MATRIX2 = 50722
    ACTIVE_AREA = 50829
    EXTRA_CAMERA_PROFILES = 50933
    AS_SHOT_PROFILE_NAME = 50934
    PROFILE_NAME = 50936
    FORWARD_MATRIX1 = 50964
    FORWARD_MATRIX2 = 50965
    DEFAULT_BLACK_RENDER = 51110


class DataType(IntEnum):
    """TIFF field types."""

    NOTYPE = 0
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13
    LONG8 = 16
    SLONG8 = 17
    IFD8 = 18


def type_size(data_type: int) -> int:
    """Return the byte size of one value of the given field type."""
    index = int(data_type)
    return _TYPE_SIZES[index if 0 <= index < len(_TYPE_SIZES) else 0]


def double_to_rational(x: float) -> tuple[float, float]:
    """Express ``x`` as an exact fraction limited to float precision.

    Returns ``(numerator, denominator)``. Raises :class:`TiffError` when
    ``x`` is not finite or is too small to be represented.
    """
    if not math.isfinite(x):
        raise TiffError(f"cannot express {x!r} as a rational value")

    mantissa, expo = math.frexp(x)
    denominator = 1.0
    numerator = mantissa * 2.0**_FLT_MANT_DIG
    expo -= _FLT_MANT_DIG
    if expo > 0:
        numerator *= 2.0**expo
    elif expo < 0:
        expo = -expo
        if expo >= _FLT_MAX_EXP - 1:
            numerator /= 2.0 ** (expo - (_FLT_MAX_EXP - 1))
            denominator *= 2.0 ** (_FLT_MAX_EXP - 1)
            if abs(numerator) < 1.0:
                raise TiffError(f"{x!r} is too small for a rational value")
            return numerator, denominator
        denominator *= 2.0**expo

    while (
        abs(numerator) > 0.0
        and abs(math.fmod(numerator, 2)) < _DBL_EPSILON
        and abs(math.fmod(denominator, 2)) < _DBL_EPSILON
    ):
        numerator /= 2.0
        denominator /= 2.0
    return numerator, denominator


def tiff_header(big_endian: bool) -> bytes:
    """Return the byte-order mark and version word of a TIFF file."""
    return b"MM\x00\x2a" if big_endian else b"II\x2a\x00"


def _order(big_endian: bool) -> str:
    return ">" if big_endian else "<"


@dataclass
class IfdEntry:
    """One 12-byte IFD entry.

    Values of at most four bytes live in ``inline`` (already in file byte
    order); larger values live in the data area at ``offset``, relative to
    the start of the image's data block plus the TIFF header.
    """

    tag: int
    data_type: int
    count: int
    inline: bytes = b""
    offset: int = 0

    def byte_length(self) -> int:
        """Total byte size of the entry's values."""
        return self.count * type_size(self.data_type)

    def encode(self, big_endian: bool, data_base_offset: int = 0) -> bytes:
        """Serialise the entry as 12 bytes in the given byte order."""
        order = _order(big_endian)
        head = struct.pack(f"{order}HHI", self.tag, self.data_type, self.count)
        if self.byte_length() > 4:
            position = self.offset + data_base_offset
            if not 0 <= position <= 0xFFFFFFFF:
                raise TiffError(f"offset {position} does not fit in 32 bits")
            return head + struct.pack(f"{order}I", position)
        return head + self.inline.ljust(4, b"\x00")


def make_entry(
    tag: int,
    data_type: int,
    count: int,
    payload: bytes,
    data_stream: bytearray | None,
) -> IfdEntry:
    """Build an IFD entry for ``payload``.

    ``payload`` must already be in the file's byte order. Values longer than
    four bytes are appended to ``data_stream`` and referenced by offset.
    """
    if not 0 <= int(tag) <= 0xFFFF:
        raise TiffError(f"tag {tag} does not fit in 16 bits")
    if not 0 <= int(count) <= 0xFFFFFFFF:
        raise TiffError(f"count {count} does not fit in 32 bits")

    entry = IfdEntry(int(tag), int(data_type), int(count))
    length = entry.byte_length()
    if length == 0:
        raise TiffError("an IFD entry needs at least one value")
    payload = bytes(payload)
    if len(payload) < length:
        raise TiffError(
            f"payload holds {len(payload)} bytes, {length} are needed"
        )

    if length > 4:
        if data_stream is None:
            raise TiffError("values longer than 4 bytes need a data stream")
        entry.offset = len(data_stream) + HEADER_SIZE
        data_stream.extend(payload[:length])
    else:
        entry.inline = payload[:length]
    return entry