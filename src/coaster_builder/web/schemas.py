"""Pydantic request/response schemas for the Web API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from coaster_builder.store.models import CoasterMode, TrackState
from coaster_builder.track.models import LoopPoint, TrackPoint, Vec3


class Vec3Model(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_vec(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)

    @classmethod
    def from_vec(cls, v: Vec3) -> Vec3Model:
        return cls(x=v.x, y=v.y, z=v.z)


class LoopMetadataModel(BaseModel):
    entry_position: Vec3Model
    forward: Vec3Model
    up: Vec3Model
    right: Vec3Model
    radius: float
    theta: float


class PointModel(BaseModel):
    kind: Literal["plain", "loop"]
    id: str
    position: Vec3Model
    tilt: float
    loop: LoopMetadataModel | None = None

    @classmethod
    def from_point(cls, p: TrackPoint) -> PointModel:
        loop = None
        if isinstance(p, LoopPoint):
            f = p.loop.frame
            loop = LoopMetadataModel(
                entry_position=Vec3Model.from_vec(f.entry_position),
                forward=Vec3Model.from_vec(f.forward),
                up=Vec3Model.from_vec(f.up),
                right=Vec3Model.from_vec(f.right),
                radius=p.loop.radius,
                theta=p.loop.theta,
            )
        return cls(
            kind="loop" if loop else "plain",
            id=p.id,
            position=Vec3Model.from_vec(p.position),
            tilt=p.tilt,
            loop=loop,
        )


class TrackStateResponse(BaseModel):
    points: list[PointModel]
    mode: CoasterMode
    selected_point_id: str | None
    ride_progress: float
    is_riding: bool
    ride_speed: float
    is_dragging_point: bool
    is_adding_points: bool
    is_looped: bool
    has_chain_lift: bool
    show_wood_supports: bool
    is_night_mode: bool
    camera_target: Vec3Model | None

    @classmethod
    def from_state(cls, s: TrackState) -> TrackStateResponse:
        return cls(
            points=[PointModel.from_point(p) for p in s.points],
            mode=s.mode,
            selected_point_id=s.selected_point_id,
            ride_progress=s.ride_progress,
            is_riding=s.is_riding,
            ride_speed=s.ride_speed,
            is_dragging_point=s.is_dragging_point,
            is_adding_points=s.is_adding_points,
            is_looped=s.is_looped,
            has_chain_lift=s.has_chain_lift,
            show_wood_supports=s.show_wood_supports,
            is_night_mode=s.is_night_mode,
            camera_target=Vec3Model.from_vec(s.camera_target) if s.camera_target else None,
        )


class HealthResponse(BaseModel):
    status: str
    version: str


class AddPointRequest(BaseModel):
    position: Vec3Model


class UpdatePointRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    position: Vec3Model | None = None
    tilt: float | None = None


class SelectRequest(BaseModel):
    point_id: str | None = None


class ProgressRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    progress: float


class SettingsRequest(BaseModel):
    """Only fields present in the request body are applied.

    Sending ``"camera_target": null`` clears the target.
    """

    model_config = ConfigDict(allow_inf_nan=False)

    mode: CoasterMode | None = None
    camera_target: Vec3Model | None = None
    ride_speed: float | None = Field(default=None, gt=0)
    is_dragging_point: bool | None = None
    is_adding_points: bool | None = None
    is_looped: bool | None = None
    has_chain_lift: bool | None = None
    show_wood_supports: bool | None = None
    is_night_mode: bool | None = None


class SaveTrackRequest(BaseModel):
    name: str = Field(min_length=1)


class TrackSummary(BaseModel):
    id: int
    name: str
    point_count: int
    created_at: str


class TracksResponse(BaseModel):
    tracks: list[TrackSummary]
