"""Track geometry: point models, loop synthesis, splines and serialization."""

from coaster_builder.track.loop import LoopConfig, LoopInsertion, LoopSynthesizer, splice
from coaster_builder.track.models import (
    LoopFrame,
    LoopMetadata,
    LoopPoint,
    PlainPoint,
    TrackPoint,
    Vec3,
)
from coaster_builder.track.serialization import TrackFormatError, track_from_dict, track_to_dict

__all__ = [
    "LoopConfig",
    "LoopFrame",
    "LoopInsertion",
    "LoopMetadata",
    "LoopPoint",
    "LoopSynthesizer",
    "PlainPoint",
    "TrackFormatError",
    "TrackPoint",
    "Vec3",
    "splice",
    "track_from_dict",
    "track_to_dict",
]
