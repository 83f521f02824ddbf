"""PathStore — owner of the ordered track and session flags.

Every operation runs to completion under a single lock and publishes a new
:class:`TrackState` snapshot; nothing is patched in place, so a reader holding
a snapshot never sees a half-applied change (e.g. mid-splice during loop
insertion).
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Callable, Iterable

from coaster_builder.store.ids import CounterIdGenerator
from coaster_builder.store.models import (
    INSUFFICIENT_POINTS,
    CoasterMode,
    RideStartResult,
    TrackState,
)
from coaster_builder.track.loop import LoopSynthesizer
from coaster_builder.track.models import PlainPoint, TrackPoint, Vec3

_logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 1000

Listener = Callable[[TrackState], None]


class PathStore:
    """Atomic mutations over the track.

    Parameters
    ----------
    id_generator:
        Zero-argument callable returning a new point id.  Defaults to a
        per-store :class:`~coaster_builder.store.ids.CounterIdGenerator`.
        Ids already present in the track are skipped, so a generator may be
        reused after loading a saved track.
    loop_synthesizer:
        Used by :meth:`create_loop_at_point`.
    initial_state:
        Starting snapshot, mainly for tests.
    """

    def __init__(
        self,
        id_generator: Callable[[], str] | None = None,
        loop_synthesizer: LoopSynthesizer | None = None,
        initial_state: TrackState | None = None,
    ) -> None:
        self._next_id = id_generator or CounterIdGenerator()
        self._synth = loop_synthesizer or LoopSynthesizer()
        self._state = initial_state or TrackState()
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackState:
        """Current snapshot."""
        return self._state

    def find_index(self, point_id: str) -> int | None:
        """Index of *point_id* in the current track, or None."""
        for i, p in enumerate(self._state.points):
            if p.id == point_id:
                return i
        return None

    def has_point(self, point_id: str) -> bool:
        return self.find_index(point_id) is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with each new snapshot; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Track mutations
    # ------------------------------------------------------------------

    def add_track_point(self, position: Vec3) -> TrackState:
        """Append a new untilted point at *position*."""

        def apply(s: TrackState) -> TrackState:
            point = PlainPoint(id=self._mint_id({p.id for p in s.points}), position=position)
            return dataclasses.replace(s, points=s.points + (point,))

        return self._update(apply)

    def update_track_point(self, point_id: str, position: Vec3) -> TrackState:
        """Move *point_id*; no-op if absent."""
        return self._update(
            lambda s: self._replace_point(s, point_id, position=position)
        )

    def update_track_point_tilt(self, point_id: str, tilt: float) -> TrackState:
        """Set the tilt of *point_id*; no-op if absent."""
        return self._update(lambda s: self._replace_point(s, point_id, tilt=tilt))

    def update_track_point_fields(
        self,
        point_id: str,
        position: Vec3 | None = None,
        tilt: float | None = None,
    ) -> TrackState:
        """Move and/or tilt *point_id* as one change; None leaves a field as is."""
        changes: dict = {}
        if position is not None:
            changes["position"] = position
        if tilt is not None:
            changes["tilt"] = tilt
        if not changes:
            return self._state
        return self._update(lambda s: self._replace_point(s, point_id, **changes))

    def remove_track_point(self, point_id: str) -> TrackState:
        """Delete *point_id*, clearing selection if it was selected; no-op if absent."""

        def apply(s: TrackState) -> TrackState:
            remaining = tuple(p for p in s.points if p.id != point_id)
            if len(remaining) == len(s.points):
                _logger.debug("remove_track_point: %r not found", point_id)
                return s
            selected = None if s.selected_point_id == point_id else s.selected_point_id
            return dataclasses.replace(s, points=remaining, selected_point_id=selected)

        return self._update(apply)

    def create_loop_at_point(self, point_id: str) -> TrackState:
        """Splice a loop in at *point_id*; unchanged snapshot if absent."""

        def apply(s: TrackState) -> TrackState:
            index = next((i for i, p in enumerate(s.points) if p.id == point_id), None)
            if index is None:
                _logger.debug("create_loop_at_point: %r not found", point_id)
                return s

            taken = {p.id for p in s.points}

            def new_id() -> str:
                pid = self._mint_id(taken)
                taken.add(pid)
                return pid

            points = self._synth.insert(s.points, index, new_id)
            selected = s.selected_point_id
            if selected is not None and all(p.id != selected for p in points):
                selected = None
            return dataclasses.replace(s, points=points, selected_point_id=selected)

        return self._update(apply)

    def load_points(self, points: Iterable[TrackPoint]) -> TrackState:
        """Replace the whole track (e.g. from storage) and reset ride fields.

        Raises:
            ValueError: If *points* contains duplicate ids.
        """
        loaded = tuple(points)
        ids = [p.id for p in loaded]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate point ids in loaded track")
        return self._update(
            lambda s: dataclasses.replace(
                s,
                points=loaded,
                selected_point_id=None,
                ride_progress=0.0,
                is_riding=False,
            )
        )

    def select_point(self, point_id: str | None) -> TrackState:
        """Select *point_id* (or clear with None).

        Unknown ids leave the selection unchanged so it never dangles.
        """

        def apply(s: TrackState) -> TrackState:
            if point_id is not None and all(p.id != point_id for p in s.points):
                _logger.debug("select_point: %r not found", point_id)
                return s
            if s.selected_point_id == point_id:
                return s
            return dataclasses.replace(s, selected_point_id=point_id)

        return self._update(apply)

    def clear_track(self) -> TrackState:
        """Empty the track and reset ride fields; mode and toggles are kept."""
        return self._update(
            lambda s: dataclasses.replace(
                s, points=(), selected_point_id=None, ride_progress=0.0, is_riding=False
            )
        )

    # ------------------------------------------------------------------
    # Ride
    # ------------------------------------------------------------------

    def start_ride(self) -> RideStartResult:
        """Enter ride mode if the track has at least two points."""
        with self._lock:
            s = self._state
            if not s.can_ride:
                _logger.warning(
                    "Ride not started: track has %d point(s), need 2", len(s.points)
                )
                return RideStartResult(ok=False, state=s, reason=INSUFFICIENT_POINTS)
            new = dataclasses.replace(
                s, mode=CoasterMode.RIDE, is_riding=True, ride_progress=0.0
            )
            self._state = new
            listeners = list(self._listeners)
        _logger.info("Ride started on %d points", len(new.points))
        self._notify(listeners, new)
        return RideStartResult(ok=True, state=new)

    def stop_ride(self) -> TrackState:
        """Return to build mode and rewind the ride."""
        new = self._update(
            lambda s: dataclasses.replace(
                s, mode=CoasterMode.BUILD, is_riding=False, ride_progress=0.0
            )
        )
        _logger.info("Ride stopped")
        return new

    # ------------------------------------------------------------------
    # Plain setters
    # ------------------------------------------------------------------

    def set_mode(self, mode: CoasterMode | str) -> TrackState:
        """Raises ValueError for an unknown mode name."""
        m = CoasterMode(mode)
        return self._set(mode=m)

    def set_camera_target(self, target: Vec3 | None) -> TrackState:
        return self._set(camera_target=target)

    def set_ride_progress(self, progress: float) -> TrackState:
        return self._set(ride_progress=float(progress))

    def set_is_riding(self, riding: bool) -> TrackState:
        return self._set(is_riding=riding)

    def set_ride_speed(self, speed: float) -> TrackState:
        """Raises ValueError unless *speed* > 0."""
        if speed <= 0:
            raise ValueError("ride_speed must be > 0")
        return self._set(ride_speed=float(speed))

    def set_is_dragging_point(self, dragging: bool) -> TrackState:
        return self._set(is_dragging_point=dragging)

    def set_is_adding_points(self, adding: bool) -> TrackState:
        return self._set(is_adding_points=adding)

    def set_is_looped(self, looped: bool) -> TrackState:
        return self._set(is_looped=looped)

    def set_has_chain_lift(self, has_chain: bool) -> TrackState:
        return self._set(has_chain_lift=has_chain)

    def set_show_wood_supports(self, show: bool) -> TrackState:
        return self._set(show_wood_supports=show)

    def set_is_night_mode(self, night: bool) -> TrackState:
        return self._set(is_night_mode=night)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _set(self, **changes) -> TrackState:
        return self._update(lambda s: dataclasses.replace(s, **changes))

    def _update(self, apply: Callable[[TrackState], TrackState]) -> TrackState:
        """Run *apply* on the current snapshot under the lock and publish the result.

        *apply* returns its argument unchanged to signal a no-op.
        """
        with self._lock:
            old = self._state
            new = apply(old)
            if new is old:
                return old
            self._state = new
            listeners = list(self._listeners)
        self._notify(listeners, new)
        return new

    @staticmethod
    def _notify(listeners: list[Listener], state: TrackState) -> None:
        for listener in listeners:
            listener(state)

    @staticmethod
    def _replace_point(s: TrackState, point_id: str, **changes) -> TrackState:
        for i, p in enumerate(s.points):
            if p.id == point_id:
                updated = dataclasses.replace(p, **changes)
                return dataclasses.replace(
                    s, points=s.points[:i] + (updated,) + s.points[i + 1:]
                )
        _logger.debug("point %r not found", point_id)
        return s

    def _mint_id(self, taken: set[str]) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            pid = self._next_id()
            if pid not in taken:
                return pid
        raise RuntimeError(
            f"id generator produced {_MAX_ID_ATTEMPTS} ids already in use"
        )
