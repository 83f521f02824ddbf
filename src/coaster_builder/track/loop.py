"""Vertical loop synthesis with helical exit separation.

Given an anchor point in a track, build a full-revolution loop that starts at
the anchor, drifts sideways by a fixed separation while it turns (so entry and
exit tubes do not overlap), then blends back into the existing path with a
short cubic Hermite transition.

Layout in the loop's local frame (``forward`` horizontal, ``up`` = +Y)::

                 ___
               /     \\        height 2R at θ = π
              |       |
               \\_____/
    prev ──► anchor    exit ──► bridge ~~ blend ~~► target

The exit sits ``S`` to the right of the anchor; the bridge point pushes it a
little further forward/right before the Hermite blend starts.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from coaster_builder.track.models import (
    WORLD_FORWARD,
    WORLD_UP,
    LoopFrame,
    LoopMetadata,
    LoopPoint,
    PlainPoint,
    TrackPoint,
    Vec3,
)
from coaster_builder.track.spline import hermite_point

_logger = logging.getLogger(__name__)

_TWO_PI = 2 * math.pi
_BLEND_SAMPLES = (0.25, 0.5, 0.75)


@dataclass(frozen=True)
class LoopConfig:
    """Loop geometry constants (track units)."""

    radius: float = 8.0
    point_count: int = 20
    helix_separation: float = 2.5
    exit_forward_offset: float = 3.0
    exit_lateral_offset: float = 1.0
    tangent_scale: float = 0.4
    frame_epsilon: float = 0.1  # below this the prev→anchor heading is unreliable

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError("radius must be > 0")
        if self.point_count < 1:
            raise ValueError("point_count must be >= 1")
        if self.helix_separation < 0:
            raise ValueError("helix_separation must be >= 0")
        if self.tangent_scale < 0:
            raise ValueError("tangent_scale must be >= 0")
        if self.frame_epsilon <= 0:
            raise ValueError("frame_epsilon must be > 0")


@dataclass(frozen=True)
class LoopInsertion:
    """Synthesized replacement for the range ``[anchor + 1, anchor + skip_count)``."""

    frame: LoopFrame
    loop_points: tuple[LoopPoint, ...]
    transition_points: tuple[PlainPoint, ...] = field(default=())
    skip_count: int = 1

    @property
    def points(self) -> tuple[TrackPoint, ...]:
        return self.loop_points + self.transition_points


class LoopSynthesizer:
    """Build loop features for a track.

    Args:
        config: Geometry constants; defaults to :class:`LoopConfig`.
    """

    def __init__(self, config: LoopConfig | None = None) -> None:
        self.config = config or LoopConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def local_frame(self, points: Sequence[TrackPoint], anchor_index: int) -> LoopFrame:
        """Frame at the anchor: horizontal heading from the previous point.

        Falls back to world +X for the first point or when the previous point
        is (nearly) on top of or straight below/above the anchor.
        """
        entry = points[anchor_index].position
        forward = WORLD_FORWARD
        if anchor_index > 0:
            heading = (entry - points[anchor_index - 1].position).horizontal()
            if heading.length() >= self.config.frame_epsilon:
                forward = heading.normalized()
        up = WORLD_UP
        right = forward.cross(up).normalized()
        return LoopFrame(entry_position=entry, forward=forward, up=up, right=right)

    def synthesize(
        self,
        points: Sequence[TrackPoint],
        anchor_index: int,
        new_id: Callable[[], str],
    ) -> LoopInsertion:
        """Compute the loop and transition for the point at *anchor_index*.

        Args:
            points: Current track, in traversal order.
            anchor_index: Index of the anchor point.
            new_id: Called once per synthesized point to mint its id.

        Raises:
            IndexError: If *anchor_index* is outside *points*.
        """
        if not 0 <= anchor_index < len(points):
            raise IndexError(f"anchor index {anchor_index} out of range")

        frame = self.local_frame(points, anchor_index)
        loop_points = self._loop_body(frame, new_id)

        target_index = self._reentry_index(points, anchor_index)
        if target_index is None:
            return LoopInsertion(frame=frame, loop_points=loop_points, skip_count=1)

        transition = self._transition(frame, points, target_index, new_id)
        return LoopInsertion(
            frame=frame,
            loop_points=loop_points,
            transition_points=transition,
            skip_count=target_index - anchor_index,
        )

    def insert(
        self,
        points: Sequence[TrackPoint],
        anchor_index: int,
        new_id: Callable[[], str],
    ) -> tuple[TrackPoint, ...]:
        """Return a new track with a loop spliced in at *anchor_index*."""
        insertion = self.synthesize(points, anchor_index, new_id)
        _logger.info(
            "Loop at index %d: %d loop points, %d transition points, skip %d",
            anchor_index,
            len(insertion.loop_points),
            len(insertion.transition_points),
            insertion.skip_count,
        )
        return splice(points, anchor_index, insertion)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _loop_body(
        self, frame: LoopFrame, new_id: Callable[[], str]
    ) -> tuple[LoopPoint, ...]:
        cfg = self.config
        r = cfg.radius
        n = cfg.point_count
        body: list[LoopPoint] = []
        for i in range(1, n + 1):
            t = i / n
            theta = _TWO_PI * t
            offset = (
                frame.forward * (math.sin(theta) * r)
                + frame.up * ((1 - math.cos(theta)) * r)
                + frame.right * (t * cfg.helix_separation)
            )
            body.append(LoopPoint(
                id=new_id(),
                position=frame.entry_position + offset,
                loop=LoopMetadata(frame=frame, radius=r, theta=theta % _TWO_PI),
            ))
        return tuple(body)

    @staticmethod
    def _reentry_index(points: Sequence[TrackPoint], anchor_index: int) -> int | None:
        # Aim one point further than the neighbour: rejoining k+1 right after
        # the exit bridge makes an S-kink on dense paths.
        for candidate in (anchor_index + 2, anchor_index + 1):
            if candidate < len(points):
                return candidate
        return None

    def _exit_bridge(self, frame: LoopFrame) -> Vec3:
        cfg = self.config
        raw_exit = frame.entry_position + frame.right * cfg.helix_separation
        return (
            raw_exit
            + frame.forward * cfg.exit_forward_offset
            + frame.right * cfg.exit_lateral_offset
        )

    def _transition(
        self,
        frame: LoopFrame,
        points: Sequence[TrackPoint],
        target_index: int,
        new_id: Callable[[], str],
    ) -> tuple[PlainPoint, ...]:
        start = self._exit_bridge(frame)
        target = points[target_index].position

        if target_index + 1 < len(points):
            end_dir = (points[target_index + 1].position - target).normalized()
        else:
            end_dir = (target - start).normalized()

        scale = self.config.tangent_scale * start.distance_to(target)
        m0 = frame.forward * scale
        m1 = end_dir * scale

        transition = [PlainPoint(id=new_id(), position=start)]
        for t in _BLEND_SAMPLES:
            transition.append(
                PlainPoint(id=new_id(), position=hermite_point(start, m0, target, m1, t))
            )
        return tuple(transition)


def splice(
    points: Sequence[TrackPoint], anchor_index: int, insertion: LoopInsertion
) -> tuple[TrackPoint, ...]:
    """``points[:k+1] + loop + transition + points[k+skip:]`` as a new tuple.

    The suffix index is taken against the original *points*, so the re-entry
    target is always the first point after the transition.
    """
    prefix = tuple(points[: anchor_index + 1])
    suffix = tuple(points[anchor_index + insertion.skip_count:])
    return prefix + insertion.points + suffix
