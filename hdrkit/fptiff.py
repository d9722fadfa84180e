"""Build uncompressed 32-bit floating point TIFF files from RGBA-style data."""

from __future__ import annotations

from array import array
from os import PathLike
from typing import Sequence

from hdrkit.dng import (
    COMPRESSION_NONE,
    PHOTOMETRIC_BLACK_IS_ZERO,
    PHOTOMETRIC_RGB,
    PLANARCONFIG_CONTIG,
    RESUNIT_NONE,
    SAMPLEFORMAT_IEEEFP,
    DNGImage,
    DNGWriter,
)

_BITS_PER_FLOAT = 32


def create_float_tiff(
    data: Sequence[float],
    width: int,
    height: int,
    in_channels: int = 4,
    channels: int = 4,
    big_endian: bool = False,
) -> DNGImage:
    """Return a single-strip TIFF image holding ``channels`` floats per pixel.

    ``data`` is interleaved with ``in_channels`` values per pixel. Output
    channel ``c`` takes input channel ``min(c, in_channels - 1)``, so a
    single input channel is replicated into every output channel.
    """
    if in_channels < 1:
        raise ValueError("at least one input channel is required")
    if channels < 1:
        raise ValueError("at least one output channel is required")
    pixel_count = width * height
    if len(data) < pixel_count * in_channels:
        raise ValueError(
            f"expected {pixel_count * in_channels} values, got {len(data)}"
        )

    image = DNGImage(big_endian)
    image.set_image_width(width)
    image.set_image_length(height)
    image.set_rows_per_strip(height)
    image.set_samples_per_pixel(channels)
    image.set_bits_per_sample([_BITS_PER_FLOAT] * channels)
    image.set_planar_config(PLANARCONFIG_CONTIG)
    image.set_compression(COMPRESSION_NONE)
    image.set_photometric(
        PHOTOMETRIC_BLACK_IS_ZERO if channels == 1 else PHOTOMETRIC_RGB
    )
    image.set_x_resolution(1.0)
    image.set_y_resolution(1.0)
    image.set_resolution_unit(RESUNIT_NONE)
    image.set_sample_format([SAMPLEFORMAT_IEEEFP] * channels)

    picks = [min(c, in_channels - 1) for c in range(channels)]
    buffer = array(
        "f",
        (
            data[pixel * in_channels + source]
            for pixel in range(pixel_count)
            for source in picks
        ),
    )
    image.set_image_data(buffer.tobytes())
    return image


def write_float_tiff(
    path: str | PathLike[str],
    data: Sequence[float],
    width: int,
    height: int,
    in_channels: int = 4,
    channels: int = 4,
    big_endian: bool = False,
) -> None:
    """Write ``data`` to ``path`` as a 32-bit floating point TIFF file."""
    image = create_float_tiff(data, width, height, in_channels, channels, big_endian)
    writer = DNGWriter(big_endian)
    writer.add_image(image)
    writer.write(path)