"""Shared fixtures for web tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from coaster_builder.store.ids import CounterIdGenerator
from coaster_builder.store.store import PathStore
from coaster_builder.web.app import app


@pytest.fixture
def client():
    """FastAPI test client over a fresh store."""
    app.state.store = PathStore(id_generator=CounterIdGenerator())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(tmp_path) -> str:
    return str(tmp_path / "web_tracks.db")


def add_points(client, *coords: tuple[float, float, float]) -> list[str]:
    """POST each coordinate and return the resulting point ids."""
    data = None
    for x, y, z in coords:
        resp = client.post("/api/points", json={"position": {"x": x, "y": y, "z": z}})
        assert resp.status_code == 200
        data = resp.json()
    return [p["id"] for p in data["points"]] if data else []
