"""Minimal DNG/TIFF writer: images are stored as single-strip data blocks
followed by their IFD tables."""

from __future__ import annotations

import struct
import sys
from array import array
from os import PathLike
from typing import Iterable, Sequence

from hdrkit.tiff_tags import (
    HEADER_SIZE,
    DataType,
    IfdEntry,
    Tag,
    TiffError,
    double_to_rational,
    make_entry,
    tiff_header,
)

FILETYPE_REDUCEDIMAGE = 1
FILETYPE_PAGE = 2
FILETYPE_MASK = 4

PLANARCONFIG_CONTIG = 1
PLANARCONFIG_SEPARATE = 2

COMPRESSION_NONE = 1

ORIENTATION_TOPLEFT = 1
ORIENTATION_TOPRIGHT = 2
ORIENTATION_BOTRIGHT = 3
ORIENTATION_BOTLEFT = 4
ORIENTATION_LEFTTOP = 5
ORIENTATION_RIGHTTOP = 6
ORIENTATION_RIGHTBOT = 7
ORIENTATION_LEFTBOT = 8

RESUNIT_NONE = 1
RESUNIT_INCH = 2

PHOTOMETRIC_WHITE_IS_ZERO = 0
PHOTOMETRIC_BLACK_IS_ZERO = 1
PHOTOMETRIC_RGB = 2
PHOTOMETRIC_CFA = 32893
PHOTOMETRIC_LINEARRAW = 34892

SAMPLEFORMAT_UINT = 1
SAMPLEFORMAT_INT = 2
SAMPLEFORMAT_IEEEFP = 3

_PHOTOMETRICS = frozenset(
    {
        PHOTOMETRIC_LINEARRAW,
        PHOTOMETRIC_RGB,
        PHOTOMETRIC_WHITE_IS_ZERO,
        PHOTOMETRIC_BLACK_IS_ZERO,
    }
)
_PLANAR_CONFIGS = frozenset({PLANARCONFIG_CONTIG, PLANARCONFIG_SEPARATE})
_COMPRESSIONS = frozenset({COMPRESSION_NONE})
_ORIENTATIONS = frozenset(range(ORIENTATION_TOPLEFT, ORIENTATION_LEFTBOT + 1))
_RESOLUTION_UNITS = frozenset({RESUNIT_NONE, RESUNIT_INCH})
_SAMPLE_FORMATS = frozenset(
    {SAMPLEFORMAT_UINT, SAMPLEFORMAT_INT, SAMPLEFORMAT_IEEEFP}
)
_MAX_DESCRIPTION = 1024 * 1024
_SWAP_TYPECODES = {16: "H", 32: "I", 64: "Q"}


class DNGError(TiffError):
    """Raised when a DNG image or file cannot be built."""


def _host_is_big_endian() -> bool:
    return sys.byteorder == "big"


class DNGImage:
    """One image: its tag list, auxiliary tag data and a single pixel strip.

    Pixel data passed to :meth:`set_image_data` is in the host's byte order;
    it is converted to the file's byte order when the data block is produced.
    """

    def __init__(self, big_endian: bool = True) -> None:
        self.big_endian = big_endian
        self._data = bytearray()
        self._entries: list[IfdEntry] = []
        self._samples_per_pixel = 0
        self._bits_per_sample = 0
        self.strip_offset = 0
        self.strip_bytes = 0

    @property
    def data_size(self) -> int:
        """Size in bytes of the tag data and pixel strip together."""
        return len(self._data)

    def set_big_endian(self, big_endian: bool) -> None:
        """Choose the file byte order; call before setting any field."""
        self.big_endian = big_endian

    # -- helpers ---------------------------------------------------------

    def _pack(self, fmt: str, *values: int) -> bytes:
        order = ">" if self.big_endian else "<"
        try:
            return struct.pack(order + fmt, *values)
        except struct.error as exc:
            raise DNGError(f"value out of range: {exc}") from exc

    def _add(
        self,
        tag: int,
        data_type: int,
        count: int,
        payload: bytes,
        use_stream: bool = True,
    ) -> None:
        stream = self._data if use_stream else None
        try:
            entry = make_entry(tag, data_type, count, payload, stream)
        except DNGError:
            raise
        except TiffError as exc:
            raise DNGError(str(exc)) from exc
        self._entries.append(entry)

    def _check_per_sample(self, values: Sequence[object], what: str) -> None:
        if not values or len(values) != self._samples_per_pixel:
            raise DNGError(
                f"set_samples_per_pixel() must be called before {what}(), "
                "with one value per sample"
            )

    def _rationals(self, values: Iterable[float]) -> bytes:
        parts = []
        for value in values:
            try:
                numerator, denominator = double_to_rational(float(value))
            except TiffError as exc:
                raise DNGError(str(exc)) from exc
            parts.append(self._pack("II", int(numerator), int(denominator)))
        return b"".join(parts)

    # -- fields ----------------------------------------------------------

    def set_subfile_type(
        self, reduced_image: bool = False, page: bool = False, mask: bool = False
    ) -> None:
        """Set the NewSubfileType bit field."""
        bits = 0
        if reduced_image:
            bits |= FILETYPE_REDUCEDIMAGE
        if page:
            bits |= FILETYPE_PAGE
        if mask:
            bits |= FILETYPE_MASK
        self._add(Tag.SUB_FILETYPE, DataType.LONG, 1, self._pack("I", bits))

    def set_image_width(self, value: int) -> None:
        self._add(Tag.IMAGE_WIDTH, DataType.LONG, 1, self._pack("I", value))

    def set_image_length(self, value: int) -> None:
        self._add(Tag.IMAGE_LENGTH, DataType.LONG, 1, self._pack("I", value))

    def set_rows_per_strip(self, value: int) -> None:
        if value == 0:
            raise DNGError("rows per strip must be positive")
        self._add(Tag.ROWS_PER_STRIP, DataType.LONG, 1, self._pack("I", value))

    def set_samples_per_pixel(self, value: int) -> None:
        if value > 4:
            raise DNGError("at most 4 samples per pixel are supported")
        self._add(
            Tag.SAMPLES_PER_PIXEL, DataType.SHORT, 1, self._pack("H", value)
        )
        self._samples_per_pixel = value

    def set_bits_per_sample(self, values: Sequence[int]) -> None:
        """Set bits per sample; one value per sample, all equal."""
        values = list(values)
        self._check_per_sample(values, "set_bits_per_sample")
        if any(v != values[0] for v in values):
            raise DNGError("BitsPerSample must be the same for all samples")
        payload = self._pack(f"{len(values)}H", *values)
        self._add(Tag.BITS_PER_SAMPLE, DataType.SHORT, len(values), payload)
        self._bits_per_sample = values[0]

    def set_photometric(self, value: int) -> None:
        if value not in _PHOTOMETRICS:
            raise DNGError(f"unsupported photometric interpretation {value}")
        self._add(Tag.PHOTOMETRIC, DataType.SHORT, 1, self._pack("H", value))

    def set_planar_config(self, value: int) -> None:
        if value not in _PLANAR_CONFIGS:
            raise DNGError(f"invalid planar configuration {value}")
        self._add(Tag.PLANAR_CONFIG, DataType.SHORT, 1, self._pack("H", value))

    def set_orientation(self, value: int) -> None:
        if value not in _ORIENTATIONS:
            raise DNGError(f"invalid orientation {value}")
        self._add(Tag.ORIENTATION, DataType.SHORT, 1, self._pack("H", value))

    def set_compression(self, value: int) -> None:
        if value not in _COMPRESSIONS:
            raise DNGError(f"unsupported compression {value}")
        self._add(Tag.COMPRESSION, DataType.SHORT, 1, self._pack("H", value))

    def set_sample_format(self, values: Sequence[int]) -> None:
        """Set the sample format; one value per sample, all equal."""
        values = list(values)
        self._check_per_sample(values, "set_sample_format")
        if any(v != values[0] for v in values):
            raise DNGError("SampleFormat must be the same for all samples")
        if values[0] not in _SAMPLE_FORMATS:
            raise DNGError(f"invalid sample format {values[0]}")
        payload = self._pack(f"{len(values)}H", *values)
        self._add(Tag.SAMPLEFORMAT, DataType.SHORT, len(values), payload)

    def set_x_resolution(self, value: float) -> None:
        self._add(Tag.XRESOLUTION, DataType.RATIONAL, 1, self._rationals([value]))

    def set_y_resolution(self, value: float) -> None:
        self._add(Tag.YRESOLUTION, DataType.RATIONAL, 1, self._rationals([value]))

    def set_resolution_unit(self, value: int) -> None:
        if value not in _RESOLUTION_UNITS:
            raise DNGError(f"invalid resolution unit {value}")
        self._add(
            Tag.RESOLUTION_UNIT, DataType.SHORT, 1, self._pack("H", value)
        )

    def set_image_description(self, text: str) -> None:
        try:
            payload = text.encode("ascii") + b"\x00"
        except UnicodeEncodeError as exc:
            raise DNGError("image description must be ASCII") from exc
        if len(payload) < 2:
            raise DNGError("image description is empty")
        if len(payload) > _MAX_DESCRIPTION:
            raise DNGError("image description is too large")
        self._add(Tag.IMAGEDESCRIPTION, DataType.ASCII, len(payload), payload)

    def set_active_area(self, values: Sequence[int]) -> None:
        """Set the active area as (top, left, bottom, right)."""
        values = list(values)
        if len(values) != 4:
            raise DNGError("the active area needs exactly 4 values")
        self._add(Tag.ACTIVE_AREA, DataType.LONG, 4, self._pack("4I", *values))

    def set_black_level_rational(self, values: Sequence[float]) -> None:
        """Set the black level of each sample."""
        values = list(values)
        self._check_per_sample(values, "set_black_level_rational")
        self._add(
            Tag.BLACK_LEVEL, DataType.RATIONAL, len(values), self._rationals(values)
        )

    def set_white_level_rational(self, values: Sequence[float]) -> None:
        """Set the white level of each sample."""
        values = list(values)
        self._check_per_sample(values, "set_white_level_rational")
        self._add(
            Tag.WHITE_LEVEL, DataType.RATIONAL, len(values), self._rationals(values)
        )

    def set_image_data(self, data: bytes) -> None:
        """Store the pixel strip (host byte order) and its byte count."""
        data = bytes(data)
        if not data:
            raise DNGError("image data is empty")
        byte_count = self._pack("I", len(data))
        self.strip_offset = len(self._data)
        self.strip_bytes = len(data)
        self._data.extend(data)
        self._add(
            Tag.STRIP_BYTE_COUNTS, DataType.LONG, 1, byte_count, use_stream=False
        )

    def set_custom_field_long(self, tag: int, value: int) -> None:
        self._add(tag, DataType.SLONG, 1, self._pack("i", value))

    def set_custom_field_ulong(self, tag: int, value: int) -> None:
        self._add(tag, DataType.LONG, 1, self._pack("I", value))

    # -- output ----------------------------------------------------------

    def data_bytes(self) -> bytes:
        """Return the tag data and pixel strip in file byte order."""
        if not self._data:
            raise DNGError("empty IFD data and image data")
        if self._bits_per_sample == 0 or self._samples_per_pixel == 0:
            raise DNGError("both BitsPerSample and SamplesPerPixel must be set")

        data = bytearray(self._data)
        typecode = _SWAP_TYPECODES.get(self._bits_per_sample)
        if (
            self.strip_bytes
            and typecode is not None
            and _host_is_big_endian() != self.big_endian
        ):
            words = array(typecode)
            width = words.itemsize
            usable = self.strip_bytes // width * width
            start = self.strip_offset
            words.frombytes(bytes(data[start : start + usable]))
            words.byteswap()
            data[start : start + usable] = words.tobytes()
        return bytes(data)

    def ifd_bytes(self, data_base_offset: int, strip_offset: int) -> bytes:
        """Return the IFD table (entry count and sorted entries).

        ``data_base_offset`` is where this image's data block starts after
        the header; ``strip_offset`` is where its pixel strip starts.
        """
        if not self._entries:
            raise DNGError("no TIFF tags")
        strip = IfdEntry(
            int(Tag.STRIP_OFFSET),
            int(DataType.LONG),
            1,
            inline=self._pack("I", strip_offset + HEADER_SIZE),
        )
        entries = sorted([*self._entries, strip], key=lambda entry: entry.tag)
        out = bytearray(self._pack("H", len(entries)))
        for entry in entries:
            try:
                out += entry.encode(self.big_endian, data_base_offset)
            except TiffError as exc:
                raise DNGError(str(exc)) from exc
        return bytes(out)


class DNGWriter:
    """Assembles one or more :class:`DNGImage` objects into a TIFF file."""

    def __init__(self, big_endian: bool) -> None:
        self.big_endian = big_endian
        self._images: list[DNGImage] = []

    def add_image(self, image: DNGImage) -> None:
        self._images.append(image)

    def to_bytes(self) -> bytes:
        """Return the complete file: header, data blocks, then IFDs."""
        if not self._images:
            raise DNGError("no image added for writing")
        order = ">" if self.big_endian else "<"

        data_offsets = []
        strip_offsets = []
        data_len = 0
        for image in self._images:
            strip_offsets.append(data_len + image.strip_offset)
            data_offsets.append(data_len)
            data_len += image.data_size

        out = bytearray(tiff_header(self.big_endian))
        try:
            out += struct.pack(order + "I", HEADER_SIZE + data_len)
        except struct.error as exc:
            raise DNGError("file is too large for 32-bit offsets") from exc

        for image in self._images:
            out += image.data_bytes()

        last = len(self._images) - 1
        for index, (image, data_offset, strip_offset) in enumerate(
            zip(self._images, data_offsets, strip_offsets)
        ):
            out += image.ifd_bytes(data_offset, strip_offset)
            next_ifd = 0 if index == last else len(out) + 4
            out += struct.pack(order + "I", next_ifd)
        return bytes(out)

    def write(self, path: str | PathLike[str]) -> None:
        """Write the file to ``path``."""
        blob = self.to_bytes()
        with open(path, "wb") as handle:
            handle.write(blob)