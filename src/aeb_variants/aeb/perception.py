"""Forward sensor, object tracking and most important object (MIO) selection."""

import math
from dataclasses import dataclass

from shapely.geometry import LineString, Polygon

from aeb_variants.aeb.config import PerceptionConfig
from aeb_variants.data import ActorSpec, ActorState
from aeb_variants.geometry import half_extent_along, normalize_angle, to_local

# Actor definition, state and footprint
Detection = tuple[ActorSpec, ActorState, Polygon]


@dataclass
class TrackedObject:
    """Object relative to the ego vehicle.

    Attributes:
        actor_id: Actor ID
        gap: Distance from the ego front to the near side of the object [m]
        lateral: Lateral offset of the object centre (left positive) [m]
        relative_speed: Longitudinal speed of the object relative to the ego [m/s]
        lateral_speed: Lateral speed of the object in the ego frame [m/s]
        half_width: Half extent of the object across the ego heading [m]
    """

    actor_id: int
    gap: float
    lateral: float
    relative_speed: float
    lateral_speed: float
    half_width: float

    @property
    def closing_speed(self) -> float:
        return -self.relative_speed

    @property
    def ttc(self) -> float | None:
        """Time to collision [s], None when the gap is not closing."""
        if self.closing_speed <= 1e-6:
            return None
        return max(self.gap, 0.0) / self.closing_speed


def actor_center(spec: ActorSpec, state: ActorState) -> tuple[float, float]:
    """Centre of an actor's footprint."""
    offset = (spec.front_edge - spec.rear_edge) / 2.0
    return state.x + offset * math.cos(state.yaw), state.y + offset * math.sin(state.yaw)


def sensor_position(ego_spec: ActorSpec, ego: ActorState) -> tuple[float, float]:
    """Sensor mounting point at the centre of the ego front edge."""
    return (
        ego.x + ego_spec.front_edge * math.cos(ego.yaw),
        ego.y + ego_spec.front_edge * math.sin(ego.yaw),
    )


def is_detectable(
    ego_spec: ActorSpec,
    ego: ActorState,
    spec: ActorSpec,
    state: ActorState,
    occluders: list[Polygon],
    config: PerceptionConfig,
) -> bool:
    """Whether the sensor sees the centre of an actor.

    Args:
        ego_spec: Ego actor definition
        ego: Ego state
        spec: Definition of the actor to detect
        state: State of the actor to detect
        occluders: Footprints that block the line of sight
        config: Perception configuration

    Returns:
        True if the actor centre is within range and field of view and no
        occluder crosses the line of sight
    """
    sensor_x, sensor_y = sensor_position(ego_spec, ego)
    cx, cy = actor_center(spec, state)

    if math.hypot(cx - sensor_x, cy - sensor_y) > config.max_range:
        return False
    bearing = normalize_angle(math.atan2(cy - sensor_y, cx - sensor_x) - ego.yaw)
    if abs(bearing) > math.radians(config.field_of_view) / 2.0:
        return False
    if not config.occlusion:
        return True

    sight = LineString([(sensor_x, sensor_y), (cx, cy)])
    return not any(sight.intersects(polygon) for polygon in occluders)


class ObjectTracker:
    """Report detections once they have been seen continuously.

    An object is confirmed after ``confirmation_time`` of uninterrupted
    detection. Losing sight of it restarts its confirmation.
    """

    def __init__(self, config: PerceptionConfig) -> None:
        self.config = config
        self._first_seen: dict[int, float] = {}

    def reset(self) -> None:
        self._first_seen.clear()

    def update(
        self,
        ego_spec: ActorSpec,
        ego: ActorState,
        detections: list[Detection],
        time: float,
    ) -> list[tuple[ActorSpec, ActorState]]:
        """Update the tracks with the actors around the ego.

        Args:
            ego_spec: Ego actor definition
            ego: Ego state
            detections: Every actor other than the ego with its footprint
            time: Current time [s]

        Returns:
            Definitions and states of the confirmed actors
        """
        confirmed = []
        for spec, state, _ in detections:
            occluders = [poly for other, _, poly in detections if other.actor_id != spec.actor_id]
            if not is_detectable(ego_spec, ego, spec, state, occluders, self.config):
                self._first_seen.pop(spec.actor_id, None)
                continue
            first_seen = self._first_seen.setdefault(spec.actor_id, time)
            if time - first_seen >= self.config.confirmation_time - 1e-9:
                confirmed.append((spec, state))
        return confirmed


def track_object(
    ego_spec: ActorSpec,
    ego: ActorState,
    spec: ActorSpec,
    state: ActorState,
) -> TrackedObject:
    """Express an actor relative to the ego vehicle."""
    cx, cy = actor_center(spec, state)
    lon, lat = to_local(cx, cy, ego.x, ego.y, ego.yaw)

    relative_yaw = normalize_angle(state.yaw - ego.yaw)
    v_lon, v_lat = to_local(state.vx, state.vy, 0.0, 0.0, ego.yaw)

    return TrackedObject(
        actor_id=spec.actor_id,
        gap=lon - ego_spec.front_edge - half_extent_along(spec, relative_yaw),
        lateral=lat,
        relative_speed=v_lon - ego.speed,
        lateral_speed=v_lat,
        half_width=half_extent_along(spec, relative_yaw + math.pi / 2.0),
    )


def is_in_path(
    obj: TrackedObject, ego_spec: ActorSpec, ego_speed: float, config: PerceptionConfig
) -> bool:
    """Whether an object will be inside the ego corridor when the ego reaches it.

    The object's lateral motion is extrapolated at constant velocity over the
    time the ego needs to close the gap.
    """
    if obj.gap < -ego_spec.length or obj.gap > config.max_range:
        return False
    if abs(obj.lateral) > config.max_lateral:
        return False
    arrival = max(obj.gap, 0.0) / ego_speed if ego_speed > 1e-6 else 0.0
    predicted = obj.lateral + obj.lateral_speed * arrival
    corridor = ego_spec.width / 2.0 + config.lateral_margin + obj.half_width
    return abs(predicted) <= corridor


def find_mio(
    ego_spec: ActorSpec,
    ego: ActorState,
    others: list[tuple[ActorSpec, ActorState]],
    config: PerceptionConfig,
) -> TrackedObject | None:
    """Select the nearest in-path object ahead of the ego.

    Args:
        ego_spec: Ego actor definition
        ego: Ego state
        others: Definitions and states of the other actors
        config: Perception configuration

    Returns:
        The most important object, or None
    """
    candidates = []
    for spec, state in others:
        obj = track_object(ego_spec, ego, spec, state)
        if obj.gap + ego_spec.front_edge < 0.0:
            # Behind the ego origin
            continue
        if is_in_path(obj, ego_spec, ego.speed, config):
            candidates.append(obj)
    if not candidates:
        return None
    return min(candidates, key=lambda o: o.gap)
