"""Driving scenario runtime: actor motion, sampling and collision detection."""

import logging
from typing import TYPE_CHECKING

import numpy as np

from aeb_variants.data import (
    ActorSpec,
    ActorState,
    CollisionEvent,
    ScenarioDescriptor,
    ScenarioLog,
    ScenarioStep,
)
from aeb_variants.geometry import get_actor_polygon, to_local
from aeb_variants.timeline import TrajectoryTimeline

if TYPE_CHECKING:
    from shapely.geometry import Polygon

logger = logging.getLogger(__name__)


class DrivingScenario:
    """Open-loop driving scenario built from a descriptor."""

    def __init__(self, descriptor: ScenarioDescriptor) -> None:
        """Initialize scenario.

        Args:
            descriptor: Scenario descriptor (kept as an independent copy)
        """
        self.descriptor = descriptor.model_copy(deep=True)
        self.timelines: dict[int, TrajectoryTimeline] = {}
        for spec in self.descriptor.actors:
            if spec.trajectory is not None:
                self.timelines[spec.actor_id] = TrajectoryTimeline(
                    spec.trajectory, actor_id=spec.actor_id
                )

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def ego(self) -> ActorSpec:
        return self.descriptor.ego

    @property
    def stop_time(self) -> float:
        return self.descriptor.stop_time

    @property
    def sample_time(self) -> float:
        return self.descriptor.sample_time

    def sample_times(self) -> np.ndarray:
        """Sample instants from 0 to ``stop_time`` inclusive."""
        n = int(round(self.stop_time / self.sample_time))
        return np.arange(n + 1) * self.sample_time

    def actor_state(self, actor_id: int, time: float) -> ActorState:
        """State of an actor at ``time``.

        Raises:
            KeyError: If the actor does not exist
        """
        spec = self.descriptor.actor(actor_id)
        timeline = self.timelines.get(actor_id)
        if timeline is not None:
            return timeline.state_at(time)
        return ActorState(
            actor_id=actor_id,
            x=spec.position[0],
            y=spec.position[1],
            yaw=spec.yaw,
            timestamp=time,
        )

    def actor_polygon(self, actor_id: int, time: float) -> "Polygon":
        """Footprint of an actor at ``time``."""
        state = self.actor_state(actor_id, time)
        return get_actor_polygon(self.descriptor.actor(actor_id), state.x, state.y, state.yaw)

    def _collides(self, a: int, b: int, time: float) -> bool:
        return self.actor_polygon(a, time).intersects(self.actor_polygon(b, time))

    def first_collision(self, actor_a: int, actor_b: int) -> float | None:
        """Earliest time at which the footprints of two actors intersect.

        The sampled grid is scanned first and the first hit is refined by
        bisection down to a millisecond.

        Returns:
            Collision time [s], or None if the actors never touch before stop time
        """
        prev = None
        for t in self.sample_times():
            if self._collides(actor_a, actor_b, float(t)):
                if prev is None:
                    return float(t)
                lo, hi = prev, float(t)
                while hi - lo > 1e-3:
                    mid = 0.5 * (lo + hi)
                    if self._collides(actor_a, actor_b, mid):
                        hi = mid
                    else:
                        lo = mid
                return hi
            prev = float(t)
        return None

    def collision_point(self, ego_id: int, target_id: int, time: float) -> float:
        """Normalised position of the target centre across the ego front.

        Args:
            ego_id: Ego actor ID
            target_id: Target actor ID
            time: Collision time [s]

        Returns:
            0.0 at the front-left corner, 1.0 at the front-right corner
            (clipped to [0, 1])
        """
        ego_spec = self.descriptor.actor(ego_id)
        target_spec = self.descriptor.actor(target_id)
        ego = self.actor_state(ego_id, time)
        target = self.actor_state(target_id, time)
        # Footprint centre of the target
        offset = (target_spec.front_edge - target_spec.rear_edge) / 2.0
        cx = target.x + offset * np.cos(target.yaw)
        cy = target.y + offset * np.sin(target.yaw)
        _, lateral = to_local(cx, cy, ego.x, ego.y, ego.yaw)
        point = (ego_spec.width / 2.0 - lateral) / ego_spec.width
        return float(np.clip(point, 0.0, 1.0))

    def simulate(self) -> ScenarioLog:
        """Run the scenario open loop from 0 to ``stop_time``.

        Returns:
            Log of sampled actor states and the first collision of every
            ego/actor pair
        """
        log = ScenarioLog()
        ego_id = self.descriptor.ego_id
        others = [a.actor_id for a in self.descriptor.actors if a.actor_id != ego_id]
        collided: set[int] = set()

        for t in self.sample_times():
            time = float(t)
            states = {
                spec.actor_id: self.actor_state(spec.actor_id, time)
                for spec in self.descriptor.actors
            }
            log.add_step(ScenarioStep(timestamp=time, actor_states=states))

            ego_poly = self.actor_polygon(ego_id, time)
            for other in others:
                if other in collided:
                    continue
                if ego_poly.intersects(self.actor_polygon(other, time)):
                    collided.add(other)
                    log.collisions.append(CollisionEvent(time=time, actor_ids=(ego_id, other)))
                    logger.debug(f"Ego collides with actor {other} at t={time:.2f}s")

        return log


def get_scenario_descriptor(scenario: DrivingScenario) -> ScenarioDescriptor:
    """Extract an editable descriptor from a scenario.

    Args:
        scenario: Source scenario

    Returns:
        Deep copy of the scenario's descriptor; edits do not affect the scenario
    """
    return scenario.descriptor.model_copy(deep=True)
