"""Virtual trackball: turn mouse drags into quaternion rotations.

Points are given in the range (-1.0 ... 1.0). The ball is a sphere near its
centre and deforms into a hyperbolic sheet away from it.
"""

from __future__ import annotations

import math
from typing import Sequence

Vector = tuple[float, float, float]
Quaternion = tuple[float, float, float, float]
Matrix = tuple[
    tuple[float, float, float, float],
    tuple[float, float, float, float],
    tuple[float, float, float, float],
    tuple[float, float, float, float],
]

TRACKBALL_SIZE = 0.8
RENORM_COUNT = 97


def _cross(a: Sequence[float], b: Sequence[float]) -> Vector:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _length(v: Sequence[float]) -> float:
    return math.sqrt(_dot(v, v))


def _project_to_sphere(r: float, x: float, y: float) -> float:
    d = math.hypot(x, y)
    if d < r * math.sqrt(0.5):
        return math.sqrt(r * r - d * d)
    t = r / math.sqrt(2.0)
    return t * t / d


def trackball(p1x: float, p1y: float, p2x: float, p2y: float) -> Quaternion:
    """Return the rotation for a drag from (p1x, p1y) to (p2x, p2y)."""
    if p1x == p2x and p1y == p2y:
        return (0.0, 0.0, 0.0, 1.0)

    p1 = (p1x, p1y, _project_to_sphere(TRACKBALL_SIZE, p1x, p1y))
    p2 = (p2x, p2y, _project_to_sphere(TRACKBALL_SIZE, p2x, p2y))
    axis = _cross(p2, p1)

    d = (p1[0] - p2[0], p1[1] - p2[1], p1[2] - p2[2])
    t = _length(d) / (2.0 * TRACKBALL_SIZE)
    t = max(-1.0, min(1.0, t))
    phi = 2.0 * math.asin(t)
    return axis_to_quat(axis, phi)


def axis_to_quat(axis: Sequence[float], phi: float) -> Quaternion:
    """Return the quaternion rotating by ``phi`` radians about ``axis``.

    The axis need not be normalised; a zero axis raises ZeroDivisionError.
    """
    scale = 1.0 / _length(axis)
    s = math.sin(phi / 2.0)
    return (
        axis[0] * scale * s,
        axis[1] * scale * s,
        axis[2] * scale * s,
        math.cos(phi / 2.0),
    )


def add_quats(q1: Sequence[float], q2: Sequence[float]) -> Quaternion:
    """Compose two rotations: apply ``q1`` after ``q2``... as one quaternion."""
    c = _cross(q2, q1)
    return (
        q1[0] * q2[3] + q2[0] * q1[3] + c[0],
        q1[1] * q2[3] + q2[1] * q1[3] + c[1],
        q1[2] * q2[3] + q2[2] * q1[3] + c[2],
        q1[3] * q2[3] - _dot(q1, q2),
    )


def normalize_quat(q: Sequence[float]) -> Quaternion:
    """Divide each component by the sum of the squared components."""
    mag = q[0] * q[0] + q[1] * q[1] + q[2] * q[2] + q[3] * q[3]
    return (q[0] / mag, q[1] / mag, q[2] / mag, q[3] / mag)


def build_rotmatrix(q: Sequence[float]) -> Matrix:
    """Return the 4x4 rotation matrix of quaternion ``q``."""
    return (
        (
            1.0 - 2.0 * (q[1] * q[1] + q[2] * q[2]),
            2.0 * (q[0] * q[1] - q[2] * q[3]),
            2.0 * (q[2] * q[0] + q[1] * q[3]),
            0.0,
        ),
        (
            2.0 * (q[0] * q[1] + q[2] * q[3]),
            1.0 - 2.0 * (q[2] * q[2] + q[0] * q[0]),
            2.0 * (q[1] * q[2] - q[0] * q[3]),
            0.0,
        ),
        (
            2.0 * (q[2] * q[0] - q[1] * q[3]),
            2.0 * (q[1] * q[2] + q[0] * q[3]),
            1.0 - 2.0 * (q[1] * q[1] + q[0] * q[0]),
            0.0,
        ),
        (0.0, 0.0, 0.0, 1.0),
    )


class QuaternionAccumulator:
    """Composes rotations and renormalises every so often to limit drift."""

    def __init__(self) -> None:
        self.count = 0

    def add(self, q1: Sequence[float], q2: Sequence[float]) -> Quaternion:
        """Compose ``q1`` and ``q2``; every 98th call also normalises."""
        dest = add_quats(q1, q2)
        self.count += 1
        if self.count > RENORM_COUNT:
            self.count = 0
            dest = normalize_quat(dest)
        return dest