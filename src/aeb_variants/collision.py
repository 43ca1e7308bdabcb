"""Scenario repair to produce an ego/target collision.

Also holds the crossing geometry shared with variant generation: where the
ego and target paths cross, where each actor has to be at the moment of
contact, and when each of them gets there.
"""

import logging
import math
from dataclasses import dataclass
from typing import Literal

from aeb_variants.checks import is_constant_speed
from aeb_variants.data import ActorSpec, ScenarioDescriptor, Trajectory
from aeb_variants.geometry import half_extent_along, normalize_angle, path_line
from aeb_variants.scenario import DrivingScenario
from aeb_variants.timeline import TrajectoryTimeline

logger = logging.getLogger(__name__)

REPAIR_EGO_SPEED = 80.0 / 3.6  # [m/s]
REPAIR_TARGET_SPEED = 10.0 / 3.6  # [m/s]
POST_COLLISION_TIME = 1.0  # [s]
MIN_CROSSING_SIN = 0.1

CollisionMethod = Literal["wait_time", "start_position"]


class ScenarioCollisionError(ValueError):
    """Raised when a scenario cannot be modified to produce a collision."""


@dataclass
class ContactSolution:
    """Where and when the ego and target meet.

    Attributes:
        target_station: Target origin arc length at contact [m]
        ego_station: Ego origin arc length at contact [m] (negative when the
            contact lies behind the ego start)
        target_time: Time the target reaches ``target_station`` [s]
        ego_time: Time the ego reaches ``ego_station`` [s] (None when negative)
    """

    target_station: float
    ego_station: float
    target_time: float
    ego_time: float | None

    @property
    def delay(self) -> float | None:
        """Ego arrival minus target arrival [s]."""
        if self.ego_time is None:
            return None
        return self.ego_time - self.target_time


def _require_trajectory(spec: ActorSpec) -> Trajectory:
    if spec.trajectory is None:
        msg = f"Actor {spec.actor_id} ('{spec.name}') has no trajectory"
        raise ScenarioCollisionError(msg)
    return spec.trajectory


def solve_contact(
    ego: ActorSpec, target: ActorSpec, collision_point: float = 0.5
) -> ContactSolution:
    """Solve the contact geometry between the ego front and a crossing target.

    Args:
        ego: Ego actor
        target: Target actor
        collision_point: Position of the target centre across the ego front
            (0 = front-left corner, 1 = front-right corner)

    Returns:
        ContactSolution

    Raises:
        ScenarioCollisionError: If the paths do not cross at a usable angle or
            the contact lies outside the target path
    """
    ego_traj = _require_trajectory(ego)
    target_traj = _require_trajectory(target)
    ego_line = path_line(ego_traj)
    target_line = path_line(target_traj)

    crossing = ego_line.intersection(target_line)
    points = [g for g in getattr(crossing, "geoms", [crossing]) if g.geom_type == "Point"]
    points = [p for p in points if not p.is_empty]
    if not points:
        msg = f"Paths of ego {ego.actor_id} and target {target.actor_id} do not intersect"
        raise ScenarioCollisionError(msg)

    crossing_point = min(points, key=target_line.project)
    target_tl = TrajectoryTimeline(target_traj, target.actor_id)
    ego_tl = TrajectoryTimeline(ego_traj, ego.actor_id)
    s_target = float(target_line.project(crossing_point))
    s_ego = float(ego_line.project(crossing_point))
    target_heading = target_tl.position_at_distance(s_target)[2]
    ego_heading = ego_tl.position_at_distance(s_ego)[2]

    relative = normalize_angle(target_heading - ego_heading)
    sin_rel = math.sin(relative)
    if abs(sin_rel) < MIN_CROSSING_SIN:
        msg = (
            f"Target {target.actor_id} crosses the ego path at too shallow an angle "
            f"({math.degrees(relative):.1f} deg)"
        )
        raise ScenarioCollisionError(msg)

    # Target footprint centre relative to its origin, along its heading
    centre_offset = (target.front_edge - target.rear_edge) / 2.0
    lateral = (0.5 - collision_point) * ego.width
    along_target = lateral / sin_rel
    target_station = s_target + along_target - centre_offset
    if target_station < -1e-6 or target_station > target_tl.total_length + 1e-6:
        msg = (
            f"Collision point {collision_point:.2f} requires target {target.actor_id} "
            f"at station {target_station:.2f} m outside its path "
            f"(0 - {target_tl.total_length:.2f} m)"
        )
        raise ScenarioCollisionError(msg)
    target_station = min(max(target_station, 0.0), target_tl.total_length)

    centre_station = s_ego + along_target * math.cos(relative)
    ego_station = centre_station - half_extent_along(target, relative) - ego.front_edge
    if ego_station > ego_tl.total_length:
        msg = f"Ego {ego.actor_id} trajectory ends before reaching the contact point"
        raise ScenarioCollisionError(msg)

    ego_time = ego_tl.time_at_distance(ego_station) if ego_station >= 0.0 else None
    return ContactSolution(
        target_station=target_station,
        ego_station=ego_station,
        target_time=target_tl.time_at_distance(target_station),
        ego_time=ego_time,
    )


def shift_start(trajectory: Trajectory, distance: float) -> Trajectory:
    """Move the first waypoint along the first segment.

    Args:
        trajectory: Trajectory to modify
        distance: Distance to move backwards [m] (negative moves forwards)

    Raises:
        ScenarioCollisionError: If moving forwards would pass the second waypoint
    """
    (x0, y0, z0), (x1, y1, _) = trajectory.waypoints[0], trajectory.waypoints[1]
    length = math.hypot(x1 - x0, y1 - y0)
    if -distance >= length:
        msg = (
            f"Cannot move trajectory start {-distance:.2f} m forward "
            f"(first segment {length:.2f} m)"
        )
        raise ScenarioCollisionError(msg)
    ux, uy = (x1 - x0) / length, (y1 - y0) / length
    start = (x0 - ux * distance, y0 - uy * distance, z0)
    return trajectory.model_copy(update={"waypoints": [start, *trajectory.waypoints[1:]]})


def extend_stop_time(descriptor: ScenarioDescriptor, collision_time: float) -> ScenarioDescriptor:
    """Make sure the scenario runs at least POST_COLLISION_TIME past the collision."""
    required = collision_time + POST_COLLISION_TIME
    if descriptor.stop_time >= required:
        return descriptor
    steps = math.ceil(required / descriptor.sample_time)
    return descriptor.model_copy(update={"stop_time": steps * descriptor.sample_time})


def move_ego_start(
    descriptor: ScenarioDescriptor, ego: ActorSpec, distance: float
) -> ScenarioDescriptor:
    """Move the ego start backwards by ``distance`` and extend the roads to cover it."""
    trajectory = shift_start(_require_trajectory(ego), distance)
    descriptor = descriptor.replace_actor(ego.with_trajectory(trajectory))
    start = trajectory.waypoints[0]
    roads = [road.extend_to_cover(start) for road in descriptor.roads]
    return descriptor.model_copy(update={"roads": roads})


def _ensure_waypoints(spec: ActorSpec) -> ActorSpec:
    trajectory = _require_trajectory(spec)
    if len(trajectory) >= 3:
        return spec
    logger.info(f"Adding midpoint waypoint to actor {spec.actor_id}")
    return spec.with_trajectory(trajectory.insert_midpoint(0))


def perform_scenario_collision(
    ego_id: int,
    target_id: int,
    descriptor: ScenarioDescriptor,
    method: CollisionMethod = "wait_time",
) -> ScenarioDescriptor:
    """Modify a scenario so that the ego collides with the target.

    1. Trajectories with two waypoints get a third one at their midpoint.
    2. A non-constant ego speed becomes 80 km/h and a non-constant target
       speed 10 km/h.
    3. When the actors still do not collide, the target wait time
       (``method="wait_time"``) or the ego start position
       (``method="start_position"``) is adjusted so that they meet.

    Args:
        ego_id: Ego actor ID
        target_id: Target actor ID
        descriptor: Scenario descriptor (left untouched)
        method: Adjustment used to create the collision

    Returns:
        Modified copy of the descriptor

    Raises:
        ScenarioCollisionError: If no adjustment produces a collision
    """
    if method not in ("wait_time", "start_position"):
        msg = f"Unknown collision method: {method}"
        raise ValueError(msg)

    result = descriptor.model_copy(deep=True)

    ego = _ensure_waypoints(result.actor(ego_id))
    target = _ensure_waypoints(result.actor(target_id))

    if not is_constant_speed(ego):
        logger.info(f"Setting ego {ego_id} to constant {REPAIR_EGO_SPEED:.2f} m/s")
        ego = ego.with_trajectory(_require_trajectory(ego).with_speed(REPAIR_EGO_SPEED))
    if not is_constant_speed(target, allow_standing_start=True):
        logger.info(f"Setting target {target_id} to constant {REPAIR_TARGET_SPEED:.2f} m/s")
        target = target.with_trajectory(
            _require_trajectory(target).with_speed(REPAIR_TARGET_SPEED)
        )
    result = result.replace_actor(ego).replace_actor(target)

    collision_time = DrivingScenario(result).first_collision(ego_id, target_id)
    if collision_time is None:
        result = _restore_collision(result, ego_id, target_id, method)
        collision_time = DrivingScenario(result).first_collision(ego_id, target_id)
        if collision_time is None:
            result = extend_stop_time(result, _expected_collision_time(result, ego_id, target_id))
            collision_time = DrivingScenario(result).first_collision(ego_id, target_id)
        if collision_time is None:
            msg = f"Could not create a collision between ego {ego_id} and target {target_id}"
            raise ScenarioCollisionError(msg)

    logger.info(f"Ego {ego_id} collides with target {target_id} at t={collision_time:.2f}s")
    return extend_stop_time(result, collision_time)


def _expected_collision_time(descriptor: ScenarioDescriptor, ego_id: int, target_id: int) -> float:
    contact = solve_contact(descriptor.actor(ego_id), descriptor.actor(target_id))
    return max(contact.target_time, contact.ego_time or 0.0)


def _restore_collision(
    descriptor: ScenarioDescriptor, ego_id: int, target_id: int, method: CollisionMethod
) -> ScenarioDescriptor:
    ego = descriptor.actor(ego_id)
    target = descriptor.actor(target_id)
    contact = solve_contact(ego, target)
    target_traj = _require_trajectory(target)

    if method == "wait_time":
        if contact.delay is None:
            msg = f"Contact with target {target_id} lies behind the ego start"
            raise ScenarioCollisionError(msg)
        wait = target_traj.wait_time[0] + contact.delay
        if wait < 0.0:
            msg = (
                f"Target {target_id} reaches the ego path {-contact.delay:.2f}s before the ego; "
                "no wait time can produce a collision"
            )
            raise ScenarioCollisionError(msg)
        logger.info(f"Setting target {target_id} wait time to {wait:.2f}s")
        return descriptor.replace_actor(target.with_trajectory(target_traj.with_wait(0, wait)))

    ego_speed = _require_trajectory(ego).speed[0]
    if ego_speed <= 0.0:
        msg = f"Ego {ego_id} starts at rest; cannot move its start position"
        raise ScenarioCollisionError(msg)
    if contact.ego_time is None:
        distance = -contact.ego_station + ego_speed * contact.target_time
    else:
        distance = -ego_speed * (contact.ego_time - contact.target_time)
    logger.info(f"Moving ego {ego_id} start by {distance:.2f} m")
    return move_ego_start(descriptor, ego, distance)
