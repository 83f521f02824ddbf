"""SQLite persistence for tracks."""

from coaster_builder.storage.track_storage import SavedTrack, TrackStorage

__all__ = ["SavedTrack", "TrackStorage"]
