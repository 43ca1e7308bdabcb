"""Scenario variant generation.

A variant keeps the seed scenario's geometry and changes the ego speed and
the point on the ego front edge where the target is hit. Timing is restored
either by delaying the target or by moving the ego start backwards.
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np

from aeb_variants.collision import (
    _require_trajectory,
    extend_stop_time,
    move_ego_start,
    solve_contact,
)
from aeb_variants.data import ScenarioDescriptor
from aeb_variants.scenario import DrivingScenario

logger = logging.getLogger(__name__)

DEFAULT_SPEEDS_KMH = tuple(float(v) for v in range(10, 55, 5))
DEFAULT_COLLISION_POINTS = (0.2, 0.3, 0.5, 0.7)


def kmh_to_mps(speed: float) -> float:
    return speed / 3.6


def mps_to_kmh(speed: float) -> float:
    return speed * 3.6


@dataclass(frozen=True)
class VariantParameters:
    """Parameters of one scenario variant."""

    ego_speed: float  # [m/s]
    collision_point: float  # 0 = front-left, 1 = front-right

    @property
    def ego_speed_kmh(self) -> float:
        return mps_to_kmh(self.ego_speed)

    @property
    def label(self) -> str:
        return f"v{self.ego_speed_kmh:.0f}_cp{self.collision_point:.2f}"


class VariantGrid:
    """Cartesian product of ego speeds and collision points."""

    def __init__(
        self,
        speeds: Sequence[float],
        collision_points: Sequence[float],
    ) -> None:
        """Initialize grid.

        Args:
            speeds: Ego speeds [m/s]
            collision_points: Collision points in [0, 1]
        """
        if not speeds or not collision_points:
            msg = "Variant grid needs at least one speed and one collision point"
            raise ValueError(msg)
        self.speeds = [float(v) for v in speeds]
        self.collision_points = [float(c) for c in collision_points]

    @classmethod
    def from_kmh(
        cls, speeds_kmh: Sequence[float], collision_points: Sequence[float]
    ) -> "VariantGrid":
        return cls([kmh_to_mps(v) for v in speeds_kmh], collision_points)

    @classmethod
    def default(cls) -> "VariantGrid":
        """10-50 km/h in 5 km/h steps by collision points 0.2, 0.3, 0.5 and 0.7."""
        return cls.from_kmh(DEFAULT_SPEEDS_KMH, DEFAULT_COLLISION_POINTS)

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.speeds), len(self.collision_points)

    def __len__(self) -> int:
        return len(self.speeds) * len(self.collision_points)

    def __iter__(self) -> Iterator[VariantParameters]:
        for speed in self.speeds:
            for point in self.collision_points:
                yield VariantParameters(ego_speed=speed, collision_point=point)

    def index_of(self, params: VariantParameters) -> tuple[int, int]:
        """Row (speed) and column (collision point) of a variant in the grid."""
        row = int(np.argmin([abs(v - params.ego_speed) for v in self.speeds]))
        col = int(np.argmin([abs(c - params.collision_point) for c in self.collision_points]))
        return row, col


def generate_variant_descriptor(
    descriptor: ScenarioDescriptor,
    ego_id: int,
    target_id: int,
    new_speed: float,
    new_collision_point: float,
) -> ScenarioDescriptor:
    """Create the descriptor of a scenario variant.

    Args:
        descriptor: Seed scenario descriptor (left untouched)
        ego_id: Ego actor ID
        target_id: Target actor ID
        new_speed: New constant ego speed [m/s]
        new_collision_point: New collision point in [0, 1]

    Returns:
        Variant descriptor

    Raises:
        ValueError: If the speed or collision point is out of range
        ScenarioCollisionError: If the collision cannot be placed as requested
    """
    if new_speed <= 0.0:
        msg = f"Ego speed must be positive, got {new_speed}"
        raise ValueError(msg)
    if not 0.0 <= new_collision_point <= 1.0:
        msg = f"Collision point must be within [0, 1], got {new_collision_point}"
        raise ValueError(msg)

    variant = descriptor.model_copy(deep=True)
    ego = variant.actor(ego_id)
    ego = ego.with_trajectory(_require_trajectory(ego).with_speed(new_speed))
    variant = variant.replace_actor(ego)

    contact = solve_contact(ego, variant.actor(target_id), new_collision_point)
    if contact.ego_time is None:
        # Contact lies behind the ego start
        variant = move_ego_start(variant, ego, -contact.ego_station)
        ego = variant.actor(ego_id)
        contact = solve_contact(ego, variant.actor(target_id), new_collision_point)

    target = variant.actor(target_id)
    target_traj = _require_trajectory(target)
    delay = contact.delay or 0.0
    wait = target_traj.wait_time[0] + delay

    if wait >= 0.0:
        variant = variant.replace_actor(target.with_trajectory(target_traj.with_wait(0, wait)))
        collision_time = contact.ego_time or 0.0
    else:
        # Target cannot leave earlier; start the ego further back instead
        variant = variant.replace_actor(target.with_trajectory(target_traj.with_wait(0, 0.0)))
        variant = move_ego_start(variant, ego, -wait * new_speed)
        collision_time = contact.target_time - target_traj.wait_time[0]

    name = f"{descriptor.name}_v{mps_to_kmh(new_speed):.0f}_cp{new_collision_point:.2f}"
    variant = variant.model_copy(update={"name": name})
    logger.debug(f"Generated variant '{name}' with expected collision at t={collision_time:.2f}s")
    return extend_stop_time(variant, collision_time)


def generate_scenario_variant(
    descriptor: ScenarioDescriptor,
    ego_id: int,
    target_id: int,
    new_speed: float,
    new_collision_point: float,
) -> DrivingScenario:
    """Generate a scenario variant with a new ego speed and collision point.

    Args:
        descriptor: Seed scenario descriptor
        ego_id: Ego actor ID
        target_id: Target actor ID
        new_speed: New constant ego speed [m/s]
        new_collision_point: Position of the target centre across the ego
            front edge at impact (0 = front-left corner, 1 = front-right)

    Returns:
        DrivingScenario of the variant
    """
    return DrivingScenario(
        generate_variant_descriptor(descriptor, ego_id, target_id, new_speed, new_collision_point)
    )
