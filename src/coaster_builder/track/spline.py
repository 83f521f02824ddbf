"""Cubic spline helpers shared by loop synthesis and ride playback."""

from __future__ import annotations

import math
from collections.abc import Sequence

from coaster_builder.track.models import Vec3


def hermite_basis(t: float) -> tuple[float, float, float, float]:
    """Return the cubic Hermite basis ``(h00, h10, h01, h11)`` at *t*."""
    t2 = t * t
    t3 = t2 * t
    h00 = 2 * t3 - 3 * t2 + 1
    h10 = t3 - 2 * t2 + t
    h01 = -2 * t3 + 3 * t2
    h11 = t3 - t2
    return h00, h10, h01, h11


def hermite_point(p0: Vec3, m0: Vec3, p1: Vec3, m1: Vec3, t: float) -> Vec3:
    """Evaluate the Hermite segment from *p0* (tangent *m0*) to *p1* (tangent *m1*).

    Tangents are used as given; scale them before calling.
    """
    h00, h10, h01, h11 = hermite_basis(t)
    return p0 * h00 + m0 * h10 + p1 * h01 + m1 * h11


def catmull_rom_point(p0: Vec3, p1: Vec3, p2: Vec3, p3: Vec3, t: float) -> Vec3:
    """Uniform Catmull-Rom between *p1* and *p2*.

    Equivalent to a Hermite segment with tangents ``(p2 - p0) / 2`` and
    ``(p3 - p1) / 2``.
    """
    m1 = (p2 - p0) * 0.5
    m2 = (p3 - p1) * 0.5
    return hermite_point(p1, m1, p2, m2, t)


def path_length(positions: Sequence[Vec3], closed: bool = False) -> float:
    """Polyline length through *positions*; ``closed`` adds the last→first leg."""
    if len(positions) < 2:
        return 0.0
    total = sum(a.distance_to(b) for a, b in zip(positions, positions[1:]))
    if closed:
        total += positions[-1].distance_to(positions[0])
    return total


def sample_path(positions: Sequence[Vec3], u: float, closed: bool = False) -> Vec3:
    """Position at normalized parameter *u* along a Catmull-Rom curve.

    Segments are weighted equally (uniform parameterization), matching how the
    ride progress is advanced.  Open curves clamp the end tangents by
    repeating the first/last point; closed curves wrap around.

    Raises:
        ValueError: If *positions* is empty.
    """
    n = len(positions)
    if n == 0:
        raise ValueError("Cannot sample an empty path")
    if n == 1:
        return positions[0]

    segments = n if closed else n - 1
    if closed:
        u = u % 1.0
    else:
        u = min(max(u, 0.0), 1.0)

    scaled = u * segments
    seg = min(int(math.floor(scaled)), segments - 1)
    t = scaled - seg

    def at(i: int) -> Vec3:
        if closed:
            return positions[i % n]
        return positions[min(max(i, 0), n - 1)]

    return catmull_rom_point(at(seg - 1), at(seg), at(seg + 1), at(seg + 2), t)
