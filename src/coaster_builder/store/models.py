"""Session state snapshots for the path store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from coaster_builder.track.models import TrackPoint, Vec3


class CoasterMode(str, Enum):
    BUILD = "build"
    RIDE = "ride"
    PREVIEW = "preview"


@dataclass(frozen=True)
class TrackState:
    """Immutable snapshot of the track and session flags.

    A new snapshot is produced by every store mutation; holders of an older
    snapshot keep a consistent view.
    """

    points: tuple[TrackPoint, ...] = ()
    mode: CoasterMode = CoasterMode.BUILD
    selected_point_id: str | None = None
    ride_progress: float = 0.0
    """Normalized position along the track, conventionally ``[0, 1)``."""
    is_riding: bool = False
    ride_speed: float = 1.0
    is_dragging_point: bool = False
    is_adding_points: bool = True
    is_looped: bool = False
    has_chain_lift: bool = True
    show_wood_supports: bool = False
    is_night_mode: bool = False
    camera_target: Vec3 | None = None

    @property
    def point_ids(self) -> list[str]:
        return [p.id for p in self.points]

    @property
    def can_ride(self) -> bool:
        return len(self.points) >= 2


INSUFFICIENT_POINTS = "insufficient-points"


@dataclass(frozen=True)
class RideStartResult:
    """Outcome of :meth:`PathStore.start_ride`.

    ``reason`` is ``None`` on success, ``"insufficient-points"`` otherwise.
    """

    ok: bool
    state: TrackState
    reason: str | None = None
