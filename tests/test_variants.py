"""Tests for scenario variant generation."""

import pytest

from aeb_variants.collision import ScenarioCollisionError
from aeb_variants.data import ScenarioDescriptor
from aeb_variants.scenario import DrivingScenario
from aeb_variants.variants import (
    VariantGrid,
    VariantParameters,
    generate_scenario_variant,
    generate_variant_descriptor,
    kmh_to_mps,
)


@pytest.fixture
def seed(make_crossing) -> ScenarioDescriptor:
    """Crossing seed with the ego starting 40 m behind the origin."""
    return make_crossing(ego_start_x=-40.0)


class TestVariantGrid:
    """Tests for VariantGrid."""

    def test_default_grid(self) -> None:
        """Test the default 10-50 km/h by four collision points grid."""
        grid = VariantGrid.default()

        assert grid.shape == (9, 4)
        assert len(grid) == 36
        assert grid.speeds[0] == pytest.approx(kmh_to_mps(10.0))
        assert grid.speeds[-1] == pytest.approx(kmh_to_mps(50.0))
        assert grid.collision_points == [0.2, 0.3, 0.5, 0.7]

    def test_iteration_order(self) -> None:
        """Test that iteration runs collision points within each speed."""
        grid = VariantGrid([5.0, 10.0], [0.2, 0.8])

        params = list(grid)

        assert params[0] == VariantParameters(ego_speed=5.0, collision_point=0.2)
        assert params[1] == VariantParameters(ego_speed=5.0, collision_point=0.8)
        assert params[2] == VariantParameters(ego_speed=10.0, collision_point=0.2)
        assert grid.index_of(params[3]) == (1, 1)

    def test_empty_grid_rejected(self) -> None:
        """Test that an empty grid is invalid."""
        with pytest.raises(ValueError):
            VariantGrid([], [0.5])

    def test_label(self) -> None:
        """Test variant labels."""
        params = VariantParameters(ego_speed=kmh_to_mps(35.0), collision_point=0.3)
        assert params.label == "v35_cp0.30"


class TestGenerateScenarioVariant:
    """Tests for generate_scenario_variant."""

    def test_delays_target(self, seed: ScenarioDescriptor) -> None:
        """Test that a slow ego is met by delaying the pedestrian."""
        scenario = generate_scenario_variant(seed, 1, 2, 20.0, 0.5)

        target = scenario.descriptor.actor(2)
        # Ego reaches contact at 56.075 / 20 s, the pedestrian at 2 s
        assert target.trajectory.wait_time[0] == pytest.approx(0.80375)
        assert scenario.ego.trajectory.speed == [20.0, 20.0, 20.0]
        assert scenario.first_collision(1, 2) == pytest.approx(2.80375, abs=0.01)

    def test_moves_ego_back(self, seed: ScenarioDescriptor) -> None:
        """Test that a fast ego starts further back instead of a negative wait."""
        scenario = generate_scenario_variant(seed, 1, 2, 30.0, 0.5)

        target = scenario.descriptor.actor(2)
        assert target.trajectory.wait_time[0] == 0.0
        # 56.075 m at 30 m/s is 0.13083 s early
        assert scenario.ego.trajectory.waypoints[0][0] == pytest.approx(-43.925, abs=1e-3)
        assert scenario.first_collision(1, 2) == pytest.approx(2.0, abs=0.01)

    @pytest.mark.parametrize("collision_point", [0.2, 0.5, 0.7])
    def test_collision_point(self, seed: ScenarioDescriptor, collision_point: float) -> None:
        """Test that the variant collides at the requested point."""
        scenario = generate_scenario_variant(seed, 1, 2, 15.0, collision_point)

        collision_time = scenario.first_collision(1, 2)

        assert collision_time is not None
        assert scenario.collision_point(1, 2, collision_time) == pytest.approx(
            collision_point, abs=0.01
        )
        assert scenario.stop_time >= collision_time + 1.0

    def test_name(self, seed: ScenarioDescriptor) -> None:
        """Test that the variant name encodes speed and collision point."""
        scenario = generate_scenario_variant(seed, 1, 2, kmh_to_mps(40.0), 0.2)
        assert scenario.name == "Crossing_v40_cp0.20"

    def test_seed_untouched(self, seed: ScenarioDescriptor) -> None:
        """Test that the seed descriptor is not modified."""
        generate_variant_descriptor(seed, 1, 2, 30.0, 0.5)

        assert seed.ego.trajectory.speed == [10.0, 10.0, 10.0]
        assert seed.ego.trajectory.waypoints[0][0] == -40.0
        assert seed.actor(2).trajectory.wait_time[0] == 0.0

    def test_invalid_parameters(self, seed: ScenarioDescriptor) -> None:
        """Test that out-of-range speeds and collision points are rejected."""
        with pytest.raises(ValueError, match="speed"):
            generate_variant_descriptor(seed, 1, 2, 0.0, 0.5)
        with pytest.raises(ValueError, match="Collision point"):
            generate_variant_descriptor(seed, 1, 2, 10.0, 1.5)

    def test_unreachable_collision_point(self, make_crossing) -> None:
        """Test that a collision point beyond the pedestrian path fails."""
        descriptor = make_crossing(ego_start_x=-40.0, target_end_y=0.2)
        with pytest.raises(ScenarioCollisionError):
            generate_scenario_variant(descriptor, 1, 2, 10.0, 0.0)

    def test_variants_are_valid_seeds(self, seed: ScenarioDescriptor) -> None:
        """Test that a variant can itself be varied again."""
        first = generate_variant_descriptor(seed, 1, 2, 25.0, 0.3)
        second = generate_scenario_variant(first, 1, 2, 12.0, 0.6)

        collision_time = second.first_collision(1, 2)
        assert collision_time is not None
        assert second.collision_point(1, 2, collision_time) == pytest.approx(0.6, abs=0.01)
        assert isinstance(second, DrivingScenario)
