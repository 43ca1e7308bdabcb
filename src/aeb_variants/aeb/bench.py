"""Closed-loop AEB test bench.

The ego vehicle follows the path of its scenario trajectory under closed-loop
longitudinal control and sees other actors through a forward sensor that
other actors can occlude. All other actors replay their scenario trajectories.
"""

import logging
import math

from aeb_variants.aeb.config import AEBConfig
from aeb_variants.aeb.controller import AEBController, AEBDecisionLogic, AEBStage
from aeb_variants.aeb.dynamics import LongitudinalState, update_longitudinal
from aeb_variants.aeb.perception import ObjectTracker, find_mio
from aeb_variants.data import ActorState, BenchStep, ClosedLoopResult
from aeb_variants.geometry import get_actor_polygon
from aeb_variants.scenario import DrivingScenario
from aeb_variants.timeline import TrajectoryTimeline

logger = logging.getLogger(__name__)


class AEBTestBench:
    """Simulate a scenario with the AEB system in the loop."""

    def __init__(self, config: AEBConfig | None = None) -> None:
        """Initialize test bench.

        Args:
            config: Test bench configuration (defaults when omitted)
        """
        self.config = config or AEBConfig()

    def run(self, scenario: DrivingScenario, target_id: int | None = None) -> ClosedLoopResult:
        """Run the scenario closed loop.

        The run ends on the first ego collision, when the ego comes to a
        standstill after braking, or at the scenario stop time.

        Args:
            scenario: Scenario to simulate
            target_id: Actor used for the minimum gap metric (any actor when omitted)

        Returns:
            ClosedLoopResult

        Raises:
            ValueError: If the ego has no trajectory
        """
        descriptor = scenario.descriptor
        ego_spec = descriptor.ego
        if ego_spec.trajectory is None:
            msg = f"Ego {ego_spec.actor_id} has no trajectory to follow"
            raise ValueError(msg)

        path = TrajectoryTimeline(ego_spec.trajectory, actor_id=ego_spec.actor_id)
        test_speed = ego_spec.trajectory.speed[0]
        dt = self.config.step_time or scenario.sample_time
        n_steps = int(round(scenario.stop_time / dt))

        decision = AEBDecisionLogic(self.config.decision)
        controller = AEBController(test_speed, self.config.vehicle)
        tracker = ObjectTracker(self.config.perception)
        others = [a for a in descriptor.actors if a.actor_id != ego_spec.actor_id]
        gap_ids = [target_id] if target_id is not None else [a.actor_id for a in others]

        state = LongitudinalState(station=0.0, velocity=test_speed)
        result = ClosedLoopResult(test_speed=test_speed, impact_speed=0.0, collision=False)
        min_gap = math.inf

        for k in range(n_steps + 1):
            time = k * dt
            ego = self._ego_state(path, state, ego_spec.actor_id, time)
            ego_poly = get_actor_polygon(ego_spec, ego.x, ego.y, ego.yaw)

            detections = []
            hit = None
            for spec in others:
                other = scenario.actor_state(spec.actor_id, time)
                poly = get_actor_polygon(spec, other.x, other.y, other.yaw)
                detections.append((spec, other, poly))
                if spec.actor_id in gap_ids:
                    min_gap = min(min_gap, ego_poly.distance(poly))
                if hit is None and ego_poly.intersects(poly):
                    hit = spec.actor_id

            confirmed = tracker.update(ego_spec, ego, detections, time)
            mio = find_mio(ego_spec, ego, confirmed, self.config.perception)
            ttc = mio.ttc if mio is not None else None
            stage = decision.update(ttc, state.velocity)
            if stage >= AEBStage.FCW and result.fcw_time is None:
                result.fcw_time = time
            if stage.is_braking and result.aeb_time is None:
                result.aeb_time = time

            accel_cmd = controller.compute(stage, state.velocity, decision.deceleration())
            result.steps.append(
                BenchStep(
                    timestamp=time,
                    ego=ego,
                    acceleration=accel_cmd,
                    ttc=ttc,
                    mio_id=mio.actor_id if mio is not None else None,
                    stage=stage.name.lower(),
                )
            )

            if hit is not None:
                result.collision = True
                result.collision_time = time
                result.collided_with = hit
                result.impact_speed = state.velocity
                logger.info(
                    f"Collision with actor {hit} at t={time:.2f}s, "
                    f"impact speed {state.velocity * 3.6:.1f} km/h"
                )
                break

            if stage.is_braking and state.velocity <= self.config.standstill_speed:
                result.stop_time = time
                logger.info(f"Ego stopped at t={time:.2f}s without collision")
                break

            if state.station >= path.total_length:
                break

            state = update_longitudinal(
                state, accel_cmd, dt, self.config.vehicle.brake_time_constant
            )

        if not result.collision and not result.intervened:
            logger.warning(f"Run of '{descriptor.name}' ended without collision or AEB braking")
        result.min_gap = min_gap if math.isfinite(min_gap) else None
        return result

    @staticmethod
    def _ego_state(
        path: TrajectoryTimeline, state: LongitudinalState, actor_id: int, time: float
    ) -> ActorState:
        x, y, yaw, _ = path.position_at_distance(state.station)
        return ActorState(
            actor_id=actor_id,
            x=x,
            y=y,
            yaw=yaw,
            speed=state.velocity,
            vx=state.velocity * math.cos(yaw),
            vy=state.velocity * math.sin(yaw),
            timestamp=time,
        )
