"""Path store: the single owner of track state."""

from coaster_builder.store.ids import CounterIdGenerator, UUIDIdGenerator
from coaster_builder.store.models import CoasterMode, RideStartResult, TrackState
from coaster_builder.store.store import PathStore

__all__ = [
    "CoasterMode",
    "CounterIdGenerator",
    "PathStore",
    "RideStartResult",
    "TrackState",
    "UUIDIdGenerator",
]
