"""Tests for scenario collision repair."""

import pytest

from aeb_variants.catalog import cpnc_nearside_child_scenario
from aeb_variants.checks import check_scenario
from aeb_variants.collision import (
    REPAIR_EGO_SPEED,
    ScenarioCollisionError,
    extend_stop_time,
    perform_scenario_collision,
    shift_start,
    solve_contact,
)
from aeb_variants.data import ScenarioDescriptor, Trajectory
from aeb_variants.scenario import DrivingScenario


class TestSolveContact:
    """Tests for contact geometry."""

    def test_centre_contact(self, crossing: ScenarioDescriptor) -> None:
        """Test contact with the pedestrian centred on the ego front."""
        contact = solve_contact(crossing.ego, crossing.actor(2), collision_point=0.5)

        assert contact.target_station == pytest.approx(4.0)
        # Crossing at x=20 minus pedestrian half width and ego front edge
        assert contact.ego_station == pytest.approx(16.075)
        assert contact.target_time == pytest.approx(2.0)
        assert contact.ego_time == pytest.approx(1.6075)
        assert contact.delay == pytest.approx(-0.3925)

    def test_front_left_contact(self, crossing: ScenarioDescriptor) -> None:
        """Test that the front-left corner needs the pedestrian further along."""
        contact = solve_contact(crossing.ego, crossing.actor(2), collision_point=0.0)
        assert contact.target_station == pytest.approx(4.9)

    def test_parallel_paths(self, crossing: ScenarioDescriptor) -> None:
        """Test that paths that never cross are rejected."""
        target = crossing.actor(2).with_trajectory(
            Trajectory(
                waypoints=[(0.0, 5.0, 0.0), (10.0, 5.0, 0.0), (20.0, 5.0, 0.0)],
                speed=[1.0, 1.0, 1.0],
                wait_time=[0.0, 0.0, 0.0],
            )
        )
        with pytest.raises(ScenarioCollisionError, match="do not intersect"):
            solve_contact(crossing.ego, target)

    def test_contact_outside_target_path(self, make_crossing) -> None:
        """Test a collision point the pedestrian never reaches."""
        descriptor = make_crossing(target_end_y=0.2)
        with pytest.raises(ScenarioCollisionError, match="outside its path"):
            solve_contact(descriptor.ego, descriptor.actor(2), collision_point=0.0)


class TestHelpers:
    """Tests for trajectory and timing helpers."""

    def test_shift_start_backwards(self, crossing: ScenarioDescriptor) -> None:
        """Test moving the start back along the first segment."""
        shifted = shift_start(crossing.ego.trajectory, 5.0)

        assert shifted.waypoints[0] == pytest.approx((-5.0, 0.0, 0.0))
        assert shifted.waypoints[1:] == crossing.ego.trajectory.waypoints[1:]

    def test_shift_start_past_second_waypoint(self, crossing: ScenarioDescriptor) -> None:
        """Test that the start cannot move past the second waypoint."""
        with pytest.raises(ScenarioCollisionError):
            shift_start(crossing.ego.trajectory, -40.0)

    def test_extend_stop_time(self, make_crossing) -> None:
        """Test that the stop time covers one second past the collision."""
        descriptor = make_crossing(stop_time=2.0)

        assert extend_stop_time(descriptor, 0.5) is descriptor
        assert extend_stop_time(descriptor, 1.52).stop_time == pytest.approx(2.55)


class TestPerformScenarioCollision:
    """Tests for perform_scenario_collision."""

    def test_colliding_scenario_unchanged(self, crossing: ScenarioDescriptor) -> None:
        """Test that a colliding seed keeps its timing."""
        result = perform_scenario_collision(1, 2, crossing)

        assert result is not crossing
        assert result.actor(2).trajectory.wait_time == [0.0, 0.0, 0.0]
        assert DrivingScenario(result).first_collision(1, 2) == pytest.approx(1.6075, abs=0.01)

    def test_wait_time_repair(self, make_crossing) -> None:
        """Test that the pedestrian is delayed until the ego arrives."""
        descriptor = make_crossing(ego_start_x=-40.0)
        assert DrivingScenario(descriptor).first_collision(1, 2) is None

        result = perform_scenario_collision(1, 2, descriptor)

        assert result.actor(2).trajectory.wait_time[0] == pytest.approx(3.6075)
        assert DrivingScenario(result).first_collision(1, 2) == pytest.approx(5.6075, abs=0.01)
        assert descriptor.actor(2).trajectory.wait_time[0] == 0.0

    def test_wait_time_impossible(self, make_crossing) -> None:
        """Test that a pedestrian arriving after the ego cannot be fixed by waiting."""
        descriptor = make_crossing(target_start_y=-20.0, stop_time=5.0)

        with pytest.raises(ScenarioCollisionError, match="no wait time"):
            perform_scenario_collision(1, 2, descriptor)

    def test_start_position_repair(self, make_crossing) -> None:
        """Test that the ego start moves back until the actors meet."""
        descriptor = make_crossing(target_start_y=-20.0, stop_time=5.0)

        result = perform_scenario_collision(1, 2, descriptor, method="start_position")

        assert result.ego.trajectory.waypoints[0][0] == pytest.approx(-83.925, abs=1e-3)
        assert result.roads[0].centers[0][0] == pytest.approx(-84.925, abs=1e-3)
        collision_time = DrivingScenario(result).first_collision(1, 2)
        assert collision_time == pytest.approx(10.0, abs=0.01)
        assert result.stop_time >= collision_time + 1.0

    def test_constant_speed_repair(self, make_crossing) -> None:
        """Test that a varying ego speed is replaced by the repair speed."""
        descriptor = make_crossing(ego_start_x=-40.0)
        ego = descriptor.ego
        trajectory = ego.trajectory.model_copy(update={"speed": [10.0, 12.0, 10.0]})
        descriptor = descriptor.replace_actor(ego.with_trajectory(trajectory))

        result = perform_scenario_collision(1, 2, descriptor)

        assert result.ego.trajectory.speed == pytest.approx([REPAIR_EGO_SPEED] * 3)
        assert check_scenario(1, 2, result).passed

    def test_adds_waypoints(self) -> None:
        """Test that two-waypoint trajectories get a midpoint."""
        descriptor = cpnc_nearside_child_scenario()

        result = perform_scenario_collision(2, 1, descriptor)

        assert len(result.actor(2).trajectory) == 3
        assert result.actor(2).trajectory.waypoints[1] == pytest.approx((23.55, 0.0, 0.0))
        assert check_scenario(2, 1, result).passed

    def test_unknown_method(self, crossing: ScenarioDescriptor) -> None:
        """Test that unknown repair methods are rejected."""
        with pytest.raises(ValueError, match="Unknown collision method"):
            perform_scenario_collision(1, 2, crossing, method="teleport")
