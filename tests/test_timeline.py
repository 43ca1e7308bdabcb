"""Tests for trajectory time parametrisation."""

import math

import pytest

from aeb_variants.data import Trajectory
from aeb_variants.timeline import TrajectoryTimeline


def _l_shape(speed: list[float], wait_time: list[float] | None = None) -> TrajectoryTimeline:
    """Timeline along (0, 0) -> (10, 0) -> (10, 10)."""
    return TrajectoryTimeline(
        Trajectory(
            waypoints=[(0.0, 0.0, 0.0), (10.0, 0.0, 0.0), (10.0, 10.0, 0.0)],
            speed=speed,
            wait_time=wait_time or [0.0, 0.0, 0.0],
        ),
        actor_id=7,
    )


class TestConstantSpeed:
    """Tests for constant speed trajectories."""

    def test_distance_and_speed(self) -> None:
        """Test distance travelled at constant speed."""
        timeline = _l_shape([2.0, 2.0, 2.0])

        assert timeline.total_length == pytest.approx(20.0)
        assert timeline.end_time == pytest.approx(10.0)
        assert timeline.distance_at(2.5) == pytest.approx(5.0)
        assert timeline.speed_at(2.5) == pytest.approx(2.0)

    def test_state_on_second_segment(self) -> None:
        """Test position and heading after the corner."""
        timeline = _l_shape([2.0, 2.0, 2.0])

        state = timeline.state_at(7.5)

        assert state.actor_id == 7
        assert state.x == pytest.approx(10.0)
        assert state.y == pytest.approx(5.0)
        assert state.yaw == pytest.approx(math.pi / 2)
        assert state.vx == pytest.approx(0.0, abs=1e-9)
        assert state.vy == pytest.approx(2.0)

    def test_holds_final_waypoint(self) -> None:
        """Test that the actor stays at its last waypoint after the end."""
        timeline = _l_shape([2.0, 2.0, 2.0])

        state = timeline.state_at(100.0)

        assert state.x == pytest.approx(10.0)
        assert state.y == pytest.approx(10.0)
        assert state.speed == 0.0

    def test_holds_start_before_zero(self) -> None:
        """Test that negative times map to the start."""
        timeline = _l_shape([2.0, 2.0, 2.0])
        assert timeline.distance_at(-1.0) == pytest.approx(0.0)


class TestAcceleration:
    """Tests for segments with changing speed."""

    def test_accelerating_segment(self) -> None:
        """Test constant acceleration from rest."""
        timeline = _l_shape([0.0, 2.0, 2.0])

        # 10 m from 0 to 2 m/s takes 10 s at 0.2 m/s^2
        assert timeline.seg_durations[0] == pytest.approx(10.0)
        assert timeline.distance_at(5.0) == pytest.approx(2.5)
        assert timeline.speed_at(5.0) == pytest.approx(1.0)

    def test_time_at_distance_accelerating(self) -> None:
        """Test inverse lookup on an accelerating segment."""
        timeline = _l_shape([0.0, 2.0, 2.0])

        assert timeline.time_at_distance(2.5) == pytest.approx(5.0)
        assert timeline.time_at_distance(15.0) == pytest.approx(12.5)

    def test_zero_speed_segment_rejected(self) -> None:
        """Test that a segment with zero speed at both ends cannot be travelled."""
        with pytest.raises(ValueError, match="zero speed"):
            _l_shape([0.0, 0.0, 2.0])


class TestWaitTime:
    """Tests for wait times at waypoints."""

    def test_wait_at_start(self) -> None:
        """Test that the actor waits before leaving the first waypoint."""
        timeline = _l_shape([2.0, 2.0, 2.0], wait_time=[1.0, 0.0, 0.0])

        waiting = timeline.state_at(0.5)
        assert waiting.x == pytest.approx(0.0)
        assert waiting.speed == 0.0
        assert timeline.distance_at(3.5) == pytest.approx(5.0)
        assert timeline.time_at_distance(5.0) == pytest.approx(3.5)

    def test_wait_at_corner(self) -> None:
        """Test waiting at an intermediate waypoint."""
        timeline = _l_shape([2.0, 2.0, 2.0], wait_time=[0.0, 2.0, 0.0])

        assert timeline.arrivals[1] == pytest.approx(5.0)
        assert timeline.departures[1] == pytest.approx(7.0)
        assert timeline.distance_at(6.0) == pytest.approx(10.0)
        assert timeline.speed_at(6.0) == 0.0
        assert timeline.end_time == pytest.approx(12.0)

    def test_wait_boundaries(self) -> None:
        """Test states exactly at arrival and departure times."""
        timeline = _l_shape([2.0, 2.0, 2.0], wait_time=[0.0, 2.0, 0.0])

        assert timeline.speed_at(0.0) == pytest.approx(2.0)
        # Arrival starts the wait
        assert timeline.speed_at(5.0) == 0.0
        assert timeline.distance_at(5.0) == pytest.approx(10.0)
        # Departure starts the next segment
        assert timeline.speed_at(7.0) == pytest.approx(2.0)
        assert timeline.distance_at(7.0) == pytest.approx(10.0)
        assert timeline.distance_at(7.5) == pytest.approx(11.0)

    def test_time_beyond_path_rejected(self) -> None:
        """Test inverse lookup past the end of the path."""
        timeline = _l_shape([2.0, 2.0, 2.0])
        with pytest.raises(ValueError):
            timeline.time_at_distance(25.0)
