"""Scenario descriptor definitions.

A scenario is a road plus a set of actors. Moving actors carry a trajectory
defined by parallel waypoint, speed and wait-time sequences.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from aeb_variants.geometry import heading, project_on_segment

Point3 = tuple[float, float, float]


class ActorClass(IntEnum):
    """Actor class identifiers."""

    CAR = 1
    TRUCK = 2
    BICYCLE = 3
    PEDESTRIAN = 4
    BARRIER = 5


class LaneSpec(BaseModel):
    """Lane specification of a road."""

    num_lanes: int = Field(1, ge=1, description="Number of lanes")
    width: float = Field(3.6, gt=0, description="Lane width [m]")
    marking: Literal["unmarked", "solid", "dashed"] = Field(
        "solid", description="Lane marking style"
    )


class RoadSpec(BaseModel):
    """Road defined by a polyline of road centers."""

    name: str = Field("Road", description="Road name")
    centers: list[Point3] = Field(..., min_length=2, description="Road centers (x, y, z) [m]")
    lanes: LaneSpec = Field(default_factory=LaneSpec, description="Lane specification")

    @property
    def width(self) -> float:
        """Total road width [m]."""
        return self.lanes.num_lanes * self.lanes.width

    def extend_to_cover(self, point: Point3) -> "RoadSpec":
        """Extend the road backwards so that it starts behind ``point``.

        Args:
            point: Point that must lie on or after the road start

        Returns:
            The same road when no extension is needed, otherwise a copy with a
            new first center on the extension of the first segment.
        """
        (x0, y0, z0), (x1, y1, _) = self.centers[0], self.centers[1]
        station, _ = project_on_segment(point[0], point[1], x0, y0, x1, y1)
        if station >= 0.0:
            return self

        seg_len = ((x1 - x0) ** 2 + (y1 - y0) ** 2) ** 0.5
        ux, uy = (x1 - x0) / seg_len, (y1 - y0) / seg_len
        # One meter of margin behind the point
        back = station - 1.0
        new_start = (x0 + ux * back, y0 + uy * back, z0)
        return self.model_copy(update={"centers": [new_start, *self.centers]})


class Trajectory(BaseModel):
    """Waypoint/speed/wait-time trajectory."""

    waypoints: list[Point3] = Field(..., min_length=2, description="Waypoints (x, y, z) [m]")
    speed: list[float] = Field(..., description="Speed at each waypoint [m/s]")
    wait_time: list[float] = Field(..., description="Wait time at each waypoint [s]")

    @model_validator(mode="after")
    def _check_lengths(self) -> "Trajectory":
        n = len(self.waypoints)
        if len(self.speed) != n or len(self.wait_time) != n:
            msg = (
                "Trajectory waypoints, speed and wait_time must have equal lengths "
                f"(got {n}, {len(self.speed)}, {len(self.wait_time)})"
            )
            raise ValueError(msg)
        if any(v < 0 for v in self.speed):
            msg = f"Trajectory speeds must be non-negative: {self.speed}"
            raise ValueError(msg)
        if any(w < 0 for w in self.wait_time):
            msg = f"Trajectory wait times must be non-negative: {self.wait_time}"
            raise ValueError(msg)
        return self

    def __len__(self) -> int:
        return len(self.waypoints)

    def is_constant_speed(self, start_index: int = 0, tol: float = 1e-6) -> bool:
        """Whether the speed is the same positive value from ``start_index`` on."""
        speeds = self.speed[start_index:]
        if not speeds or speeds[0] <= tol:
            return False
        return all(abs(v - speeds[0]) <= tol for v in speeds)

    def first_moving_index(self) -> int:
        """Index of the first waypoint with a positive speed (0 when none)."""
        for i, v in enumerate(self.speed):
            if v > 0.0:
                return i
        return 0

    def with_speed(self, speed: float) -> "Trajectory":
        """Copy of this trajectory with a constant speed at every waypoint."""
        return self.model_copy(update={"speed": [float(speed)] * len(self.waypoints)})

    def with_wait(self, index: int, wait: float) -> "Trajectory":
        """Copy of this trajectory with the wait time at ``index`` replaced."""
        wait_time = list(self.wait_time)
        wait_time[index] = float(wait)
        return self.model_copy(update={"wait_time": wait_time})

    def insert_midpoint(self, index: int) -> "Trajectory":
        """Insert a waypoint halfway between ``index`` and ``index + 1``.

        The new waypoint takes the speed of the preceding waypoint and no wait.
        """
        if not 0 <= index < len(self.waypoints) - 1:
            msg = f"Cannot insert a midpoint after waypoint {index}"
            raise ValueError(msg)
        p, q = self.waypoints[index], self.waypoints[index + 1]
        mid = ((p[0] + q[0]) / 2.0, (p[1] + q[1]) / 2.0, (p[2] + q[2]) / 2.0)
        return Trajectory(
            waypoints=[*self.waypoints[: index + 1], mid, *self.waypoints[index + 1 :]],
            speed=[*self.speed[: index + 1], self.speed[index], *self.speed[index + 1 :]],
            wait_time=[*self.wait_time[: index + 1], 0.0, *self.wait_time[index + 1 :]],
        )


class ActorSpec(BaseModel):
    """Actor definition.

    The actor origin sits ``rear_overhang`` meters ahead of the rear edge of
    its footprint. Vehicles use the rear axle as origin; other actors use the
    footprint centre when ``rear_overhang`` is omitted.
    """

    actor_id: int = Field(..., ge=1, description="Unique actor ID")
    class_id: ActorClass = Field(ActorClass.CAR, description="Actor class")
    name: str = Field("", description="Actor name")
    length: float = Field(4.7, gt=0, description="Length [m]")
    width: float = Field(1.8, gt=0, description="Width [m]")
    height: float = Field(1.4, gt=0, description="Height [m]")
    position: Point3 = Field((0.0, 0.0, 0.0), description="Initial position (x, y, z) [m]")
    yaw: float = Field(0.0, description="Initial yaw [rad]")
    front_overhang: float = Field(0.0, ge=0, description="Front overhang [m]")
    rear_overhang: float | None = Field(None, ge=0, description="Origin offset from rear [m]")
    is_vehicle: bool = Field(False, description="Whether the actor is a vehicle")
    trajectory: Trajectory | None = Field(None, description="Trajectory (moving actors)")

    @property
    def rear_edge(self) -> float:
        """Distance from the origin to the rear edge [m]."""
        if self.rear_overhang is None:
            return self.length / 2.0
        return self.rear_overhang

    @property
    def front_edge(self) -> float:
        """Distance from the origin to the front edge [m]."""
        return self.length - self.rear_edge

    @property
    def is_moving(self) -> bool:
        return self.trajectory is not None

    @property
    def initial_speed(self) -> float:
        if self.trajectory is None:
            return 0.0
        return self.trajectory.speed[0]

    def with_trajectory(self, trajectory: Trajectory) -> "ActorSpec":
        """Copy of this actor following ``trajectory`` from its first waypoint."""
        (x0, y0, z0), (x1, y1, _) = trajectory.waypoints[0], trajectory.waypoints[1]
        return self.model_copy(
            update={
                "trajectory": trajectory,
                "position": (x0, y0, z0),
                "yaw": heading(x0, y0, x1, y1),
            }
        )


def vehicle(actor_id: int, **kwargs) -> ActorSpec:
    """Create a passenger-car actor with default vehicle dimensions."""
    defaults = {
        "class_id": ActorClass.CAR,
        "length": 4.7,
        "width": 1.8,
        "height": 1.4,
        "front_overhang": 0.9,
        "rear_overhang": 1.0,
        "is_vehicle": True,
    }
    defaults.update(kwargs)
    actor = ActorSpec(actor_id=actor_id, **defaults)
    if actor.trajectory is not None:
        actor = actor.with_trajectory(actor.trajectory)
    return actor


def actor(actor_id: int, **kwargs) -> ActorSpec:
    """Create a generic (non-vehicle) actor."""
    spec = ActorSpec(actor_id=actor_id, **kwargs)
    if spec.trajectory is not None:
        spec = spec.with_trajectory(spec.trajectory)
    return spec


class ScenarioDescriptor(BaseModel):
    """Complete, editable description of a driving scenario."""

    model_config = ConfigDict(validate_assignment=True)

    name: str = Field("scenario", description="Scenario name")
    stop_time: float = Field(..., gt=0, description="Simulation stop time [s]")
    sample_time: float = Field(..., gt=0, description="Simulation sample time [s]")
    roads: list[RoadSpec] = Field(default_factory=list, description="Roads")
    actors: list[ActorSpec] = Field(default_factory=list, description="Actors")
    ego_id: int = Field(..., description="Actor ID of the ego vehicle")

    @model_validator(mode="after")
    def _check_actors(self) -> "ScenarioDescriptor":
        ids = [a.actor_id for a in self.actors]
        if len(ids) != len(set(ids)):
            msg = f"Duplicate actor IDs: {ids}"
            raise ValueError(msg)
        if self.ego_id not in ids:
            msg = f"Ego actor {self.ego_id} not found in actors {ids}"
            raise ValueError(msg)
        return self

    @property
    def ego(self) -> ActorSpec:
        return self.actor(self.ego_id)

    def actor(self, actor_id: int) -> ActorSpec:
        """Look up an actor by ID.

        Raises:
            KeyError: If no actor has this ID
        """
        for spec in self.actors:
            if spec.actor_id == actor_id:
                return spec
        msg = f"Unknown actor ID {actor_id}"
        raise KeyError(msg)

    def replace_actor(self, spec: ActorSpec) -> "ScenarioDescriptor":
        """Copy of this descriptor with the actor of the same ID replaced."""
        self.actor(spec.actor_id)
        actors = [spec if a.actor_id == spec.actor_id else a for a in self.actors]
        return self.model_copy(update={"actors": actors})
