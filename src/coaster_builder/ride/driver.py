"""RideDriver — advances ride progress once per frame."""

from __future__ import annotations

import logging

from coaster_builder.store.store import PathStore
from coaster_builder.track.models import Vec3
from coaster_builder.track.spline import sample_path

_logger = logging.getLogger(__name__)


class RideDriver:
    """Moves the train along the track stored in *store*.

    Parameters
    ----------
    store:
        The :class:`~coaster_builder.store.PathStore` to read flags from and
        write ``ride_progress`` to.
    lap_seconds:
        Time for one full traversal at ``ride_speed == 1``.
    """

    def __init__(self, store: PathStore, lap_seconds: float = 20.0) -> None:
        if lap_seconds <= 0:
            raise ValueError("lap_seconds must be > 0")
        self._store = store
        self._lap_seconds = lap_seconds

    def tick(self, dt: float) -> float | None:
        """Advance the ride by *dt* seconds.

        Returns the new progress, or None if no ride is running.  Open tracks
        stop the ride on reaching the end; looped tracks wrap around.
        """
        s = self._store.state
        if not s.is_riding:
            return None
        if not s.can_ride:
            _logger.warning("Track shrank below 2 points mid-ride; stopping")
            self._store.stop_ride()
            return None

        progress = s.ride_progress + s.ride_speed * dt / self._lap_seconds
        if s.is_looped:
            progress %= 1.0
        elif progress >= 1.0:
            _logger.info("Ride reached end of track")
            self._store.stop_ride()
            return None

        self._store.set_ride_progress(progress)
        return progress

    def position(self) -> Vec3 | None:
        """Train position for the current progress, or None on an empty track."""
        s = self._store.state
        if not s.points:
            return None
        return sample_path(
            [p.position for p in s.points], s.ride_progress, closed=s.is_looped
        )
