"""FastAPI application exposing the path store to the editor front end."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request

from coaster_builder.storage.track_storage import TrackStorage
from coaster_builder.store.store import PathStore
from coaster_builder.web.schemas import (
    AddPointRequest,
    HealthResponse,
    ProgressRequest,
    SaveTrackRequest,
    SelectRequest,
    SettingsRequest,
    TrackStateResponse,
    TrackSummary,
    TracksResponse,
    UpdatePointRequest,
)

load_dotenv()  # loads .env from project root; must run before env vars are consumed

_logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(title="Coaster Builder", version="0.1.0")

# The application root owns the one store for the session.
app.state.store = PathStore()

_DEFAULT_DB = os.environ.get("COASTER_DB", "tracks.db")

_SETTERS = {
    "mode": "set_mode",
    "ride_speed": "set_ride_speed",
    "is_dragging_point": "set_is_dragging_point",
    "is_adding_points": "set_is_adding_points",
    "is_looped": "set_is_looped",
    "has_chain_lift": "set_has_chain_lift",
    "show_wood_supports": "set_show_wood_supports",
    "is_night_mode": "set_is_night_mode",
}


def _store(request: Request) -> PathStore:
    return request.app.state.store


def _storage(db_path: str | None = None) -> TrackStorage:
    return TrackStorage(db_path or _DEFAULT_DB)


def _require_point(store: PathStore, point_id: str) -> None:
    if not store.has_point(point_id):
        raise HTTPException(status_code=404, detail=f"Point {point_id!r} not found")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version="0.1.0")


@app.get("/api/track", response_model=TrackStateResponse)
def get_track(request: Request) -> TrackStateResponse:
    return TrackStateResponse.from_state(_store(request).state)


@app.post("/api/points", response_model=TrackStateResponse)
def add_point(request: Request, req: AddPointRequest) -> TrackStateResponse:
    state = _store(request).add_track_point(req.position.to_vec())
    return TrackStateResponse.from_state(state)


@app.patch("/api/points/{point_id}", response_model=TrackStateResponse)
def update_point(
    request: Request, point_id: str, req: UpdatePointRequest
) -> TrackStateResponse:
    """Move and/or tilt a point."""
    store = _store(request)
    _require_point(store, point_id)
    position = req.position.to_vec() if req.position is not None else None
    state = store.update_track_point_fields(point_id, position=position, tilt=req.tilt)
    return TrackStateResponse.from_state(state)


@app.delete("/api/points/{point_id}", response_model=TrackStateResponse)
def delete_point(request: Request, point_id: str) -> TrackStateResponse:
    store = _store(request)
    _require_point(store, point_id)
    return TrackStateResponse.from_state(store.remove_track_point(point_id))


@app.post("/api/points/{point_id}/loop", response_model=TrackStateResponse)
def create_loop(request: Request, point_id: str) -> TrackStateResponse:
    """Insert a loop anchored at *point_id*."""
    store = _store(request)
    _require_point(store, point_id)
    return TrackStateResponse.from_state(store.create_loop_at_point(point_id))


@app.post("/api/selection", response_model=TrackStateResponse)
def select(request: Request, req: SelectRequest) -> TrackStateResponse:
    store = _store(request)
    if req.point_id is not None:
        _require_point(store, req.point_id)
    return TrackStateResponse.from_state(store.select_point(req.point_id))


@app.post("/api/track/clear", response_model=TrackStateResponse)
def clear(request: Request) -> TrackStateResponse:
    return TrackStateResponse.from_state(_store(request).clear_track())


@app.post("/api/ride/start", response_model=TrackStateResponse)
def start_ride(request: Request) -> TrackStateResponse:
    """409 with the failure reason when the track is too short to ride."""
    result = _store(request).start_ride()
    if not result.ok:
        raise HTTPException(status_code=409, detail=result.reason)
    return TrackStateResponse.from_state(result.state)


@app.post("/api/ride/stop", response_model=TrackStateResponse)
def stop_ride(request: Request) -> TrackStateResponse:
    return TrackStateResponse.from_state(_store(request).stop_ride())


@app.post("/api/ride/progress", response_model=TrackStateResponse)
def ride_progress(request: Request, req: ProgressRequest) -> TrackStateResponse:
    return TrackStateResponse.from_state(_store(request).set_ride_progress(req.progress))


@app.patch("/api/settings", response_model=TrackStateResponse)
def update_settings(request: Request, req: SettingsRequest) -> TrackStateResponse:
    """Apply the session flags present in the request body."""
    store = _store(request)
    state = store.state
    for name in req.model_fields_set:
        value = getattr(req, name)
        if name == "camera_target":
            state = store.set_camera_target(value.to_vec() if value is not None else None)
        elif value is not None:
            state = getattr(store, _SETTERS[name])(value)
    return TrackStateResponse.from_state(state)


@app.get("/api/tracks", response_model=TracksResponse)
def list_tracks(name: str = "", db: str | None = None) -> TracksResponse:
    """Return saved tracks, optionally filtered by name."""
    storage = _storage(db)
    try:
        rows = storage.list_tracks(name)
    finally:
        storage.close()
    return TracksResponse(tracks=[TrackSummary(**r) for r in rows])


@app.post("/api/tracks", response_model=TrackSummary)
def save_track(request: Request, req: SaveTrackRequest, db: str | None = None) -> TrackSummary:
    """Save the current track under *name*."""
    points = _store(request).state.points
    storage = _storage(db)
    try:
        track_id = storage.save_track(req.name, points)
        saved = storage.get_track(track_id)
    finally:
        storage.close()
    _logger.info("Saved track %r (%d points) as id %d", req.name, len(points), track_id)
    return TrackSummary(
        id=track_id, name=req.name, point_count=len(points), created_at=saved.created_at
    )


@app.post("/api/tracks/{track_id}/load", response_model=TrackStateResponse)
def load_track(request: Request, track_id: int, db: str | None = None) -> TrackStateResponse:
    storage = _storage(db)
    try:
        saved = storage.get_track(track_id)
        if saved is None:
            raise HTTPException(status_code=404, detail="Track not found")
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    finally:
        storage.close()
    return TrackStateResponse.from_state(_store(request).load_points(saved.points))
