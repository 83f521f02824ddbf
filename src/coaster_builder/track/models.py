"""Track data structures: vectors, loop frames and the two point variants."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Vec3:
    """Immutable world-space 3D vector.

    ``y`` is the vertical axis.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, k: float) -> Vec3:
        return Vec3(self.x * k, self.y * k, self.z * k)

    __rmul__ = __mul__

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def dot(self, other: Vec3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vec3) -> Vec3:
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> Vec3:
        """Return the unit vector; the zero vector normalizes to itself."""
        n = self.length()
        if n == 0.0:
            return Vec3()
        return Vec3(self.x / n, self.y / n, self.z / n)

    def distance_to(self, other: Vec3) -> float:
        return (self - other).length()

    def horizontal(self) -> Vec3:
        """Projection onto the ground plane (``y`` zeroed)."""
        return Vec3(self.x, 0.0, self.z)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


WORLD_UP = Vec3(0.0, 1.0, 0.0)
WORLD_FORWARD = Vec3(1.0, 0.0, 0.0)


@dataclass(frozen=True)
class LoopFrame:
    """Local orthonormal frame a loop was built in."""

    entry_position: Vec3
    forward: Vec3
    up: Vec3
    right: Vec3


@dataclass(frozen=True)
class LoopMetadata:
    """Geometry a loop point was generated from.

    Kept for consumers that rebuild banking/orientation along the loop; the
    synthesizer never reads it back.
    """

    frame: LoopFrame
    radius: float
    theta: float
    """Angular position in ``[0, 2π)``.

    The loop's last point (a full revolution) wraps to ``0``; it is told apart
    from the entry by its index in the loop or by its lateral offset along
    ``frame.right``.
    """


@dataclass(frozen=True)
class PlainPoint:
    """An ordinary control point placed by the user or a transition."""

    id: str
    position: Vec3
    tilt: float = 0.0
    """Roll about the forward axis, radians."""


@dataclass(frozen=True)
class LoopPoint:
    """A control point synthesized as part of a loop feature."""

    id: str
    position: Vec3
    loop: LoopMetadata
    tilt: float = 0.0


TrackPoint = PlainPoint | LoopPoint
