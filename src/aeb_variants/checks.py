"""Seed scenario checks for variant generation."""

import logging
from dataclasses import dataclass, field

from aeb_variants.data import ActorSpec, ScenarioDescriptor
from aeb_variants.scenario import DrivingScenario
from aeb_variants.timeline import TrajectoryTimeline

logger = logging.getLogger(__name__)

MIN_WAYPOINTS = 3


@dataclass
class ScenarioCheck:
    """Result of checking a seed scenario."""

    collides: bool
    consistent_motion: bool
    enough_waypoints: bool
    constant_speed: bool
    collision_time: float | None = None
    messages: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return (
            self.collides
            and self.consistent_motion
            and self.enough_waypoints
            and self.constant_speed
        )

    @property
    def failures(self) -> list[str]:
        """Names of the failed checks."""
        names = ["collides", "consistent_motion", "enough_waypoints", "constant_speed"]
        return [name for name in names if not getattr(self, name)]

    def __bool__(self) -> bool:
        return self.passed


def has_consistent_motion(spec: ActorSpec) -> tuple[bool, str]:
    """Whether an actor's trajectory can be followed as specified.

    Returns:
        (ok, reason) where reason is empty when ok
    """
    if spec.trajectory is None:
        return False, f"actor {spec.actor_id} has no trajectory"
    points = spec.trajectory.waypoints
    for i in range(len(points) - 1):
        if points[i][:2] == points[i + 1][:2]:
            return False, f"actor {spec.actor_id} repeats waypoint {i}"
    try:
        TrajectoryTimeline(spec.trajectory, actor_id=spec.actor_id)
    except ValueError as e:
        return False, str(e)
    return True, ""


def is_constant_speed(spec: ActorSpec, allow_standing_start: bool = False) -> bool:
    """Whether an actor travels at a single constant speed.

    Args:
        spec: Actor definition
        allow_standing_start: Accept actors that start from rest and then keep
            a constant speed
    """
    if spec.trajectory is None:
        return False
    start = spec.trajectory.first_moving_index() if allow_standing_start else 0
    return spec.trajectory.is_constant_speed(start)


def check_scenario(ego_id: int, target_id: int, descriptor: ScenarioDescriptor) -> ScenarioCheck:
    """Check whether a seed scenario can be used for variant generation.

    The ego vehicle must collide with the target, both actors must have
    consistent motion and at least three waypoints, and the ego must travel at
    a constant speed. The target may start from rest.

    Args:
        ego_id: Ego actor ID
        target_id: Target actor ID
        descriptor: Scenario descriptor

    Returns:
        ScenarioCheck with one flag per criterion
    """
    ego = descriptor.actor(ego_id)
    target = descriptor.actor(target_id)
    messages: list[str] = []

    consistent = True
    for spec in (ego, target):
        ok, reason = has_consistent_motion(spec)
        if not ok:
            consistent = False
            messages.append(reason)

    enough = all(
        spec.trajectory is not None and len(spec.trajectory) >= MIN_WAYPOINTS
        for spec in (ego, target)
    )
    if not enough:
        messages.append(f"ego and target need at least {MIN_WAYPOINTS} waypoints")

    constant = is_constant_speed(ego) and is_constant_speed(target, allow_standing_start=True)
    if not constant:
        messages.append("ego or target speed is not constant")

    collision_time = None
    if consistent:
        collision_time = DrivingScenario(descriptor).first_collision(ego_id, target_id)
    if collision_time is None:
        messages.append(f"ego {ego_id} does not collide with target {target_id}")

    result = ScenarioCheck(
        collides=collision_time is not None,
        consistent_motion=consistent,
        enough_waypoints=enough,
        constant_speed=constant,
        collision_time=collision_time,
        messages=messages,
    )
    for message in messages:
        logger.warning(f"Scenario check '{descriptor.name}': {message}")
    return result
