"""TrackStorage — persists named tracks to SQLite.

Each track is one row holding the serialized point list (see
:mod:`coaster_builder.track.serialization`); ``point_count`` is denormalized
so listings do not need to parse the JSON.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass

from coaster_builder.track.models import TrackPoint
from coaster_builder.track.serialization import track_from_dict, track_to_dict

_DDL = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous  = NORMAL;

CREATE TABLE IF NOT EXISTS tracks (
    id          INTEGER PRIMARY KEY,
    name        TEXT    NOT NULL,
    point_count INTEGER NOT NULL,
    created_at  TEXT    NOT NULL
                DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    track_json  TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tracks_name
    ON tracks (name);
"""


@dataclass
class SavedTrack:
    """A track loaded back from storage."""

    id: int
    name: str
    created_at: str
    points: tuple[TrackPoint, ...]


class TrackStorage:
    """Stores and retrieves tracks from a SQLite database.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Pass ``":memory:"`` for in-process testing.
    """

    def __init__(self, db_path: str = "tracks.db") -> None:
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        for stmt in _DDL.strip().split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)
        self._conn.commit()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def save_track(self, name: str, points: Sequence[TrackPoint]) -> int:
        """Persist *points* under *name* and return the new row id."""
        cursor = self._conn.execute(
            "INSERT INTO tracks (name, point_count, track_json) VALUES (?, ?, ?)",
            (name, len(points), json.dumps(track_to_dict(points))),
        )
        self._conn.commit()
        return cursor.lastrowid  # type: ignore[return-value]

    def get_track(self, track_id: int) -> SavedTrack | None:
        """Return the track with *track_id*, or None if not found.

        Raises:
            ValueError: If the stored JSON is corrupt.
        """
        row = self._conn.execute(
            "SELECT id, name, created_at, track_json FROM tracks WHERE id = ?",
            (track_id,),
        ).fetchone()
        if row is None:
            return None
        return SavedTrack(
            id=row["id"],
            name=row["name"],
            created_at=row["created_at"],
            points=track_from_dict(json.loads(row["track_json"])),
        )

    def list_tracks(self, name: str = "") -> list[dict]:
        """Return track summaries (no points), newest first.

        An empty *name* lists every track.
        """
        query = "SELECT id, name, point_count, created_at FROM tracks"
        params: tuple = ()
        if name:
            query += " WHERE name = ?"
            params = (name,)
        query += " ORDER BY created_at DESC, id DESC"
        return [dict(r) for r in self._conn.execute(query, params).fetchall()]

    def delete_track(self, track_id: int) -> bool:
        """Delete *track_id*; returns False if it did not exist."""
        cursor = self._conn.execute("DELETE FROM tracks WHERE id = ?", (track_id,))
        self._conn.commit()
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
