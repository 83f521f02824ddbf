"""Tests for loop synthesis and splicing."""

from __future__ import annotations

import math

import pytest

from coaster_builder.track.loop import LoopConfig, LoopSynthesizer, splice
from coaster_builder.track.models import LoopPoint, PlainPoint, Vec3
from coaster_builder.track.spline import hermite_point

N_LOOP = LoopConfig().point_count

# ---------------------------------------------------------------------------
# Test-data helpers
# ---------------------------------------------------------------------------


def make_track(*coords: tuple[float, float, float]) -> list[PlainPoint]:
    return [PlainPoint(id=f"p{i}", position=Vec3(*c)) for i, c in enumerate(coords)]


def straight_track(n: int, spacing: float = 10.0) -> list[PlainPoint]:
    return make_track(*[(i * spacing, 0.0, 0.0) for i in range(n)])


class IdCounter:
    def __init__(self) -> None:
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"new-{self.n}"


def _approx_vec(v: Vec3, expected: tuple[float, float, float], abs_tol: float = 1e-9):
    assert v.x == pytest.approx(expected[0], abs=abs_tol)
    assert v.y == pytest.approx(expected[1], abs=abs_tol)
    assert v.z == pytest.approx(expected[2], abs=abs_tol)


# ---------------------------------------------------------------------------
# Local frame
# ---------------------------------------------------------------------------


class TestLocalFrame:
    def test_forward_follows_previous_point(self):
        track = make_track((0, 0, 0), (0, 0, 10))
        frame = LoopSynthesizer().local_frame(track, 1)
        _approx_vec(frame.forward, (0, 0, 1))
        _approx_vec(frame.up, (0, 1, 0))
        _approx_vec(frame.right, (-1, 0, 0))

    def test_forward_ignores_height_difference(self):
        track = make_track((0, 0, 0), (10, 7, 0))
        frame = LoopSynthesizer().local_frame(track, 1)
        _approx_vec(frame.forward, (1, 0, 0))

    def test_first_point_falls_back_to_world_x(self):
        track = make_track((0, 0, 0), (0, 0, 10))
        frame = LoopSynthesizer().local_frame(track, 0)
        _approx_vec(frame.forward, (1, 0, 0))
        _approx_vec(frame.right, (0, 0, 1))

    def test_stacked_points_fall_back_to_world_x(self):
        """Previous point straight below the anchor has no usable heading."""
        track = make_track((0, 0, 0), (0.01, 5, 0.02))
        frame = LoopSynthesizer().local_frame(track, 1)
        _approx_vec(frame.forward, (1, 0, 0))

    def test_frame_vectors_are_orthonormal(self):
        track = make_track((0, 0, 0), (3, 1, 4))
        f = LoopSynthesizer().local_frame(track, 1)
        for v in (f.forward, f.up, f.right):
            assert v.length() == pytest.approx(1.0)
        assert f.forward.dot(f.right) == pytest.approx(0.0, abs=1e-12)
        assert f.up.dot(f.right) == pytest.approx(0.0, abs=1e-12)


# ---------------------------------------------------------------------------
# Loop body geometry
# ---------------------------------------------------------------------------


class TestLoopBody:
    def test_loop_has_fixed_point_count(self):
        ins = LoopSynthesizer().synthesize(straight_track(4), 1, IdCounter())
        assert len(ins.loop_points) == N_LOOP
        assert all(isinstance(p, LoopPoint) for p in ins.loop_points)

    def test_exit_returns_to_anchor_height_with_helix_separation(self):
        cfg = LoopConfig()
        track = straight_track(4)
        ins = LoopSynthesizer(cfg).synthesize(track, 1, IdCounter())
        anchor = track[1].position
        last = ins.loop_points[-1].position
        rel = last - anchor

        assert rel.y == pytest.approx(0.0, abs=1e-9)
        assert rel.dot(ins.frame.right) == cfg.helix_separation
        assert rel.dot(ins.frame.forward) == pytest.approx(0.0, abs=1e-9)

    def test_top_of_loop_is_two_radii_high(self):
        cfg = LoopConfig(radius=6.0, point_count=20)
        track = straight_track(3)
        ins = LoopSynthesizer(cfg).synthesize(track, 1, IdCounter())
        top = ins.loop_points[9]  # i = 10 of 20 → θ = π
        assert top.loop.theta == pytest.approx(math.pi)
        assert top.position.y == pytest.approx(12.0)

    def test_points_stay_on_circle_in_forward_up_plane(self):
        cfg = LoopConfig()
        track = straight_track(3)
        ins = LoopSynthesizer(cfg).synthesize(track, 1, IdCounter())
        centre_height = cfg.radius
        for p in ins.loop_points:
            rel = p.position - track[1].position
            fwd = rel.dot(ins.frame.forward)
            up = rel.dot(ins.frame.up) - centre_height
            assert math.hypot(fwd, up) == pytest.approx(cfg.radius)

    def test_lateral_drift_is_linear(self):
        cfg = LoopConfig(point_count=10, helix_separation=5.0)
        track = straight_track(3)
        ins = LoopSynthesizer(cfg).synthesize(track, 1, IdCounter())
        lateral = [(p.position - track[1].position).dot(ins.frame.right) for p in ins.loop_points]
        assert lateral == pytest.approx([0.5 * (i + 1) for i in range(10)])

    def test_metadata_records_frame_radius_and_theta(self):
        cfg = LoopConfig()
        track = straight_track(3)
        ins = LoopSynthesizer(cfg).synthesize(track, 1, IdCounter())
        for p in ins.loop_points:
            assert p.loop.frame == ins.frame
            assert p.loop.radius == cfg.radius
            assert 0.0 <= p.loop.theta < 2 * math.pi
            assert p.tilt == 0.0
        assert ins.loop_points[-1].loop.theta == pytest.approx(0.0)
        assert ins.frame.entry_position == track[1].position


# ---------------------------------------------------------------------------
# Transition + re-entry policy
# ---------------------------------------------------------------------------


class TestTransition:
    def test_targets_point_after_next_when_available(self):
        ins = LoopSynthesizer().synthesize(straight_track(5), 1, IdCounter())
        assert ins.skip_count == 2
        assert len(ins.transition_points) == 4

    def test_falls_back_to_next_point(self):
        ins = LoopSynthesizer().synthesize(straight_track(3), 1, IdCounter())
        assert ins.skip_count == 1
        assert len(ins.transition_points) == 4

    def test_no_transition_at_end_of_track(self):
        ins = LoopSynthesizer().synthesize(straight_track(3), 2, IdCounter())
        assert ins.transition_points == ()
        assert ins.skip_count == 1

    def test_exit_bridge_is_offset_from_loop_exit(self):
        cfg = LoopConfig()
        track = make_track((0, 0, 0), (5, 0, 0), (10, 0, 0))
        ins = LoopSynthesizer(cfg).synthesize(track, 1, IdCounter())
        # forward = +X, right = +Z; exit at (5, 0, 2.5) → bridge (8, 0, 3.5)
        _approx_vec(ins.transition_points[0].position, (8.0, 0.0, 3.5))
        assert isinstance(ins.transition_points[0], PlainPoint)

    def test_hermite_midpoint_without_point_after_target(self):
        """End tangent falls back to bridge→target, both scaled by 0.4·distance."""
        track = make_track((0, 0, 0), (5, 0, 0), (10, 0, 0))
        ins = LoopSynthesizer().synthesize(track, 1, IdCounter())
        # dist = |(2, 0, -3.5)|; m0 = (0.4·dist, 0, 0); m1 = 0.4·(2, 0, -3.5)
        dist = math.hypot(2.0, 3.5)
        expected_x = 0.5 * 8 + 0.125 * 0.4 * dist + 0.5 * 10 - 0.125 * 0.8
        expected_z = 0.5 * 3.5 + 0.125 * 1.4
        _approx_vec(ins.transition_points[2].position, (expected_x, 0.0, expected_z))

    def test_end_tangent_follows_existing_path(self):
        track = make_track((0, 0, 0), (10, 0, 0), (20, 0, 0), (30, 0, 0), (30, 0, 10))
        synth = LoopSynthesizer()
        ins = synth.synthesize(track, 1, IdCounter())
        start = ins.transition_points[0].position
        target = track[3].position
        scale = 0.4 * start.distance_to(target)
        m0 = Vec3(1, 0, 0) * scale
        m1 = Vec3(0, 0, 1) * scale
        for p, t in zip(ins.transition_points[1:], (0.25, 0.5, 0.75)):
            _approx_vec(p.position, hermite_point(start, m0, target, m1, t).as_tuple())

    def test_all_new_points_get_fresh_ids(self):
        ids = IdCounter()
        ins = LoopSynthesizer().synthesize(straight_track(5), 1, ids)
        assert ids.n == N_LOOP + 4
        assert [p.id for p in ins.points] == [f"new-{i}" for i in range(1, N_LOOP + 5)]

    def test_out_of_range_anchor_raises(self):
        with pytest.raises(IndexError):
            LoopSynthesizer().synthesize(straight_track(2), 5, IdCounter())


# ---------------------------------------------------------------------------
# Splice
# ---------------------------------------------------------------------------


class TestSplice:
    def test_splice_length_with_skip_two(self):
        track = straight_track(6)
        k = 2
        result = LoopSynthesizer().insert(track, k, IdCounter())
        assert len(result) == (k + 1) + N_LOOP + 4 + (len(track) - (k + 2))

    def test_superseded_point_is_dropped(self):
        track = straight_track(5)
        result = LoopSynthesizer().insert(track, 1, IdCounter())
        ids = [p.id for p in result]
        assert "p2" not in ids
        assert ids[:2] == ["p0", "p1"]
        assert ids[-2:] == ["p3", "p4"]

    def test_three_point_scenario(self):
        """Anchor at the middle of three points rejoins the last point."""
        track = make_track((0, 0, 0), (5, 0, 0), (10, 0, 0))
        result = LoopSynthesizer().insert(track, 1, IdCounter())
        assert len(result) == 2 + N_LOOP + 4 + 1
        assert result[-1] is track[2]
        assert result[:2] == tuple(track[:2])

    def test_loop_on_last_point_appends_only_loop(self):
        track = straight_track(3)
        result = LoopSynthesizer().insert(track, 2, IdCounter())
        assert len(result) == 3 + N_LOOP
        assert all(isinstance(p, LoopPoint) for p in result[3:])

    def test_single_point_track(self):
        track = straight_track(1)
        result = LoopSynthesizer().insert(track, 0, IdCounter())
        assert len(result) == 1 + N_LOOP

    def test_points_outside_range_are_untouched(self):
        track = straight_track(6)
        result = LoopSynthesizer().insert(track, 2, IdCounter())
        for original in track[:3] + track[4:]:
            assert any(p is original for p in result)

    def test_splice_does_not_modify_input(self):
        track = straight_track(4)
        before = list(track)
        ins = LoopSynthesizer().synthesize(track, 1, IdCounter())
        splice(track, 1, ins)
        assert track == before


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "kwargs",
    [
        {"radius": 0.0},
        {"point_count": 0},
        {"helix_separation": -1.0},
        {"tangent_scale": -0.1},
        {"frame_epsilon": 0.0},
    ],
)
def test_invalid_config_raises(kwargs):
    with pytest.raises(ValueError):
        LoopConfig(**kwargs)


def test_wrapped_exit_theta_distinguished_by_lateral_offset():
    """The exit point shares theta 0 with the entry but sits S to the right."""
    cfg = LoopConfig()
    track = straight_track(3)
    ins = LoopSynthesizer(cfg).synthesize(track, 1, IdCounter())
    exit_point = ins.loop_points[-1]
    rel = exit_point.position - exit_point.loop.frame.entry_position
    assert exit_point.loop.theta == pytest.approx(0.0)
    assert rel.dot(exit_point.loop.frame.right) == pytest.approx(cfg.helix_separation)
