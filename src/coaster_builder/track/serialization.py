"""JSON-compatible (de)serialization of track points.

Loop metadata is structural (it drives banking along loops), so it is always
written out and restored, never dropped.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from coaster_builder.track.models import (
    LoopFrame,
    LoopMetadata,
    LoopPoint,
    PlainPoint,
    TrackPoint,
    Vec3,
)

FORMAT_VERSION = 1


class TrackFormatError(ValueError):
    """Raised when a serialized track cannot be decoded."""


def _vec_to_list(v: Vec3) -> list[float]:
    return [v.x, v.y, v.z]


def _vec_from_list(raw: Any) -> Vec3:
    if not isinstance(raw, (list, tuple)) or len(raw) != 3:
        raise TrackFormatError(f"Expected a 3-element vector, got {raw!r}")
    return Vec3(float(raw[0]), float(raw[1]), float(raw[2]))


def point_to_dict(point: TrackPoint) -> dict[str, Any]:
    """Encode one point; ``kind`` tags the variant."""
    match point:
        case LoopPoint(id=pid, position=pos, tilt=tilt, loop=meta):
            frame = meta.frame
            return {
                "kind": "loop",
                "id": pid,
                "position": _vec_to_list(pos),
                "tilt": tilt,
                "loop": {
                    "entry_position": _vec_to_list(frame.entry_position),
                    "forward": _vec_to_list(frame.forward),
                    "up": _vec_to_list(frame.up),
                    "right": _vec_to_list(frame.right),
                    "radius": meta.radius,
                    "theta": meta.theta,
                },
            }
        case PlainPoint(id=pid, position=pos, tilt=tilt):
            return {
                "kind": "plain",
                "id": pid,
                "position": _vec_to_list(pos),
                "tilt": tilt,
            }
    raise TypeError(f"Not a track point: {point!r}")


def point_from_dict(data: dict[str, Any]) -> TrackPoint:
    """Decode one point produced by :func:`point_to_dict`."""
    try:
        kind = data.get("kind", "plain")
        pid = str(data["id"])
        position = _vec_from_list(data["position"])
        tilt = float(data.get("tilt", 0.0))
        if kind == "plain":
            return PlainPoint(id=pid, position=position, tilt=tilt)
        if kind == "loop":
            raw = data["loop"]
            frame = LoopFrame(
                entry_position=_vec_from_list(raw["entry_position"]),
                forward=_vec_from_list(raw["forward"]),
                up=_vec_from_list(raw["up"]),
                right=_vec_from_list(raw["right"]),
            )
            meta = LoopMetadata(
                frame=frame, radius=float(raw["radius"]), theta=float(raw["theta"])
            )
            return LoopPoint(id=pid, position=position, tilt=tilt, loop=meta)
    except TrackFormatError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise TrackFormatError(f"Malformed track point: {exc}") from exc
    raise TrackFormatError(f"Unknown point kind {kind!r}")


def track_to_dict(points: Iterable[TrackPoint]) -> dict[str, Any]:
    return {"version": FORMAT_VERSION, "points": [point_to_dict(p) for p in points]}


def track_from_dict(data: dict[str, Any]) -> tuple[TrackPoint, ...]:
    """Decode a whole track.

    Raises:
        TrackFormatError: On unknown version, malformed points or duplicate ids.
    """
    if not isinstance(data, dict):
        raise TrackFormatError("Track payload must be an object")
    version = data.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise TrackFormatError(f"Unsupported track format version {version!r}")
    raw_points = data.get("points")
    if not isinstance(raw_points, list):
        raise TrackFormatError("Track payload has no 'points' list")

    points = tuple(point_from_dict(p) for p in raw_points)
    ids = [p.id for p in points]
    if len(set(ids)) != len(ids):
        raise TrackFormatError("Duplicate point ids in track payload")
    return points
