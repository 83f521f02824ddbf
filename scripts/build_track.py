"""Build a track from the command line, optionally with loops.

Usage:
  uv run python scripts/build_track.py --points 6 --loop 2
  uv run python scripts/build_track.py --points 8 --zigzag 4 --loop 1 --loop 5 --db tracks.db --name demo

Without ``--db`` the resulting track is printed as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from coaster_builder.storage.track_storage import TrackStorage
from coaster_builder.store.store import PathStore
from coaster_builder.track.loop import LoopConfig, LoopSynthesizer
from coaster_builder.track.models import Vec3
from coaster_builder.track.serialization import track_to_dict

_logger = logging.getLogger("build_track")


def insert_loops(store: PathStore, anchor_indices: list[int]) -> list[int]:
    """Insert a loop at each original point index; return the indices skipped.

    Indices refer to the track before any loop is added.  An index is skipped
    when it is out of range or when an earlier loop already replaced that
    point (each loop drops the point right after its anchor).
    """
    original_ids = store.state.point_ids
    skipped: list[int] = []
    for i in anchor_indices:
        if not 0 <= i < len(original_ids):
            _logger.warning(
                "Loop index %d out of range (track has %d points)", i, len(original_ids)
            )
            skipped.append(i)
            continue
        pid = original_ids[i]
        if not store.has_point(pid):
            _logger.warning("Loop index %d was replaced by an earlier loop", i)
            skipped.append(i)
            continue
        store.create_loop_at_point(pid)
    return skipped


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Build a coaster track with loops")
    ap.add_argument("--points", type=int, default=5, help="Number of control points")
    ap.add_argument("--spacing", type=float, default=10.0, help="Distance between points")
    ap.add_argument("--zigzag", type=float, default=0.0, help="Alternating lateral offset")
    ap.add_argument(
        "--loop", type=int, action="append", default=[],
        help="Index of an anchor point for a loop (repeatable)",
    )
    ap.add_argument("--radius", type=float, default=LoopConfig.radius, help="Loop radius")
    ap.add_argument("--db", default=None, help="Save to this SQLite file instead of printing")
    ap.add_argument("--name", default="untitled", help="Track name when saving")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    store = PathStore(loop_synthesizer=LoopSynthesizer(LoopConfig(radius=args.radius)))
    for i in range(args.points):
        z = args.zigzag if i % 2 else 0.0
        store.add_track_point(Vec3(i * args.spacing, 0.0, z))

    skipped = insert_loops(store, args.loop)
    if skipped:
        print(f"× Loops not inserted at indices: {skipped}", file=sys.stderr)
        return 1

    points = store.state.points
    if args.db is None:
        print(json.dumps(track_to_dict(points), indent=2))
        return 0

    storage = TrackStorage(args.db)
    try:
        track_id = storage.save_track(args.name, points)
    finally:
        storage.close()
    print(f"Saved {len(points)} points as track {track_id} ({args.name!r}) in {args.db}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
