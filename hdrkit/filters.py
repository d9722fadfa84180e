"""Pixel filters: clamping HDR values and mapping them to 8-bit LDR."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Sequence

FLT_MAX = sys.float_info.max if False else 3.4028234663852886e38
"""Largest finite 32-bit float, used as the default clamp range."""


@dataclass
class ClipResult:
    """Clamped RGB pixels and the per-channel range found after clamping."""

    rgb: list[float]
    v_min: tuple[float, float, float]
    v_max: tuple[float, float, float]


def _check_pixels(rgba: Sequence[float], width: int, height: int) -> int:
    if width < 0 or height < 0:
        raise ValueError("image dimensions must not be negative")
    count = width * height
    if len(rgba) < count * 4:
        raise ValueError(f"expected {count * 4} RGBA values, got {len(rgba)}")
    return count


def clip_rgb(
    rgba: Sequence[float],
    width: int,
    height: int,
    rgb_min: Sequence[float] = (-FLT_MAX, -FLT_MAX, -FLT_MAX),
    rgb_max: Sequence[float] = (FLT_MAX, FLT_MAX, FLT_MAX),
) -> ClipResult:
    """Clamp each RGB channel of an RGBA image, dropping alpha."""
    count = _check_pixels(rgba, width, height)
    lo = list(rgb_min[:3])
    hi = list(rgb_max[:3])
    v_max = [-FLT_MAX] * 3
    v_min = [FLT_MAX] * 3
    rgb: list[float] = []
    for pixel in range(count):
        for c in range(3):
            value = max(lo[c], min(hi[c], rgba[4 * pixel + c]))
            rgb.append(value)
            v_max[c] = max(value, v_max[c])
            v_min[c] = min(value, v_min[c])
    return ClipResult(rgb, (v_min[0], v_min[1], v_min[2]), (v_max[0], v_max[1], v_max[2]))


def float_to_ldr(f: float, gamma: float = 2.2) -> int:
    """Gamma-encode ``f`` and scale it to a byte, truncating and clamping."""
    if math.isnan(f):
        return 0
    exponent = 1.0 / gamma
    try:
        encoded = math.pow(f, exponent)
    except OverflowError:
        return 255
    except ValueError:
        # Zero raised to a negative power is infinite; negative bases with
        # fractional exponents have no real result.
        return 255 if f == 0.0 else 0
    scaled = 255.0 * encoded
    if math.isnan(scaled):
        return 0
    if math.isinf(scaled):
        return 255 if scaled > 0 else 0
    return max(0, min(255, int(scaled)))


def to_ldr(
    rgba: Sequence[float],
    width: int,
    height: int,
    scale: float = 1.0,
    gamma: float = 2.2,
    ignore_alpha: bool = False,
) -> bytes:
    """Convert float RGBA pixels to 8-bit RGBA.

    Every channel, alpha included, is multiplied by ``scale`` and
    gamma-encoded; with ``ignore_alpha`` the alpha byte is always 255.
    """
    count = _check_pixels(rgba, width, height)
    out = bytearray(count * 4)
    for i in range(count * 4):
        if ignore_alpha and i % 4 == 3:
            out[i] = 255
        else:
            out[i] = float_to_ldr(rgba[i] * scale, gamma)
    return bytes(out)