"""Cubemap sampling, RGBM encoding and cubemap to lat-long conversion."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

PI = 3.141592
"""Value of pi used for the lat-long mapping."""

RGBM_RANGE = 16.0
_MIN_M = 1.0 / 16.0


@dataclass
class Image:
    """An interleaved RGB float image."""

    width: int
    height: int
    data: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("image dimensions must not be negative")
        if not self.data:
            self.data = [0.0] * (self.width * self.height * 3)
        elif len(self.data) < self.width * self.height * 3:
            raise ValueError(
                f"expected {self.width * self.height * 3} values, "
                f"got {len(self.data)}"
            )


def rgbm_to_linear(rgbm: Sequence[float]) -> tuple[float, float, float]:
    """Decode an RGBM value (components in [0, 1]) to linear RGB."""
    r, g, b, m = rgbm[0], rgbm[1], rgbm[2], rgbm[3]
    scale = m * RGBM_RANGE
    gamma = (r * scale, g * scale, b * scale)
    return (gamma[0] * gamma[0], gamma[1] * gamma[1], gamma[2] * gamma[2])


def linear_to_rgbm(linear: Sequence[float]) -> tuple[float, float, float, float]:
    """Encode linear RGB as RGBM with every component in [0, 1]."""
    rgb = [c * c / RGBM_RANGE for c in linear[:3]]
    max_component = max(max(rgb[0], rgb[1]), max(rgb[2], 1e-6))
    m = max(_MIN_M, min(max_component, 1.0))
    m = math.ceil(m * 255.0) / 255.0
    r, g, b = (max(0.0, min(1.0, c / m)) for c in rgb)
    return (r, g, b, m)


def file_extension(filename: str) -> str:
    """Return the text after the last dot of ``filename``, or ``""``."""
    _, dot, ext = filename.rpartition(".")
    return ext if dot else ""


def xyz_to_cube_uv(x: float, y: float, z: float) -> tuple[int, float, float]:
    """Map a direction to ``(face, u, v)``.

    Faces are ordered +X, -X, +Y, -Y, +Z, -Z; ``u`` and ``v`` are in [0, 1].
    """
    abs_x, abs_y, abs_z = abs(x), abs(y), abs(z)
    if abs_x == 0.0 and abs_y == 0.0 and abs_z == 0.0:
        raise ValueError("direction must not be the zero vector")

    # Later matches take precedence, as ties are resolved in this order.
    candidates = (
        (x > 0.0 and abs_x >= abs_y and abs_x >= abs_z, 0, abs_x, -z, y),
        (not x > 0.0 and abs_x >= abs_y and abs_x >= abs_z, 1, abs_x, z, y),
        (y > 0.0 and abs_y >= abs_x and abs_y >= abs_z, 2, abs_y, x, -z),
        (not y > 0.0 and abs_y >= abs_x and abs_y >= abs_z, 3, abs_y, x, z),
        (z > 0.0 and abs_z >= abs_x and abs_z >= abs_y, 4, abs_z, x, y),
        (not z > 0.0 and abs_z >= abs_x and abs_z >= abs_y, 5, abs_z, -x, y),
    )
    index, max_axis, uc, vc = next(
        (i, axis, uc, vc)
        for hit, i, axis, uc, vc in reversed(candidates)
        if hit
    )
    u = 0.5 * (uc / max_axis + 1.0)
    v = 0.5 * (vc / max_axis + 1.0)
    return index, u, v


def sample_texture(
    u: float,
    v: float,
    width: int,
    height: int,
    channels: int,
    texels: Sequence[float],
) -> tuple[float, ...]:
    """Bilinearly sample an interleaved texture with repeat wrapping."""
    if width < 1 or height < 1 or channels < 1:
        raise ValueError("texture dimensions and channels must be positive")
    if len(texels) < width * height * channels:
        raise ValueError("texel buffer is too small for the texture size")

    uu = min(max(u - math.floor(u), 0.0), 1.0)
    vv = min(max(v - math.floor(v), 0.0), 1.0)

    px = (width - 1) * uu
    py = (height - 1) * vv

    x0 = max(0, min(int(px), width - 1))
    y0 = max(0, min(int(py), height - 1))
    x1 = max(0, min(x0 + 1, width - 1))
    y1 = max(0, min(y0 + 1, height - 1))

    dx = px - x0
    dy = py - y0

    w00 = (1.0 - dx) * (1.0 - dy)
    w10 = (1.0 - dx) * dy
    w01 = dx * (1.0 - dy)
    w11 = dx * dy

    i00 = channels * (y0 * width + x0)
    i01 = channels * (y0 * width + x1)
    i10 = channels * (y1 * width + x0)
    i11 = channels * (y1 * width + x1)

    return tuple(
        w00 * texels[i00 + c]
        + w10 * texels[i10 + c]
        + w01 * texels[i01 + c]
        + w11 * texels[i11 + c]
        for c in range(channels)
    )


def sample_cubemap(
    faces: Sequence[Image], n: Sequence[float]
) -> tuple[float, float, float]:
    """Return the RGB colour of the cubemap in direction ``n``."""
    face, u, v = xyz_to_cube_uv(n[0], n[1], n[2])
    tex = faces[face]
    r, g, b = sample_texture(u, 1.0 - v, tex.width, tex.height, 3, tex.data)
    return (r, g, b)


def cubemap_to_longlat(
    faces: Sequence[Image], phi_offset: float = 0.0, width: int = 512
) -> Image:
    """Resample six cube faces into a Y-up lat-long image.

    The result is ``width`` by ``width // 2``; ``phi_offset`` is in degrees.
    """
    if len(faces) != 6:
        raise ValueError("a cubemap needs exactly 6 faces")
    if width < 0:
        raise ValueError("output width must not be negative")
    height = width // 2
    offset = phi_offset * PI / 180.0

    data: list[float] = []
    for y in range(height):
        theta = ((y + 0.5) / height) * PI
        sin_theta, cos_theta = math.sin(theta), math.cos(theta)
        for x in range(width):
            phi = ((x + 0.5) / width) * 2.0 * PI + offset
            n = (sin_theta * math.cos(phi), cos_theta, -sin_theta * math.sin(phi))
            data.extend(sample_cubemap(faces, n))
    return Image(width, height, data)


def float_to_byte(f: float) -> int:
    """Scale ``f`` from [0, 1] to a byte, truncating and clamping."""
    if math.isnan(f):
        return 0
    scaled = f * 255.0
    if math.isinf(scaled):
        return 255 if scaled > 0 else 0
    return max(0, min(255, int(scaled)))