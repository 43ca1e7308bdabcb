"""Scenario and result data structures."""

from aeb_variants.data.scenario import (
    ActorClass,
    ActorSpec,
    LaneSpec,
    RoadSpec,
    ScenarioDescriptor,
    Trajectory,
    actor,
    vehicle,
)
from aeb_variants.data.state import (
    ActorState,
    BenchStep,
    ClosedLoopResult,
    CollisionEvent,
    ScenarioLog,
    ScenarioStep,
)

__all__ = [
    "ActorClass",
    "ActorSpec",
    "ActorState",
    "BenchStep",
    "ClosedLoopResult",
    "CollisionEvent",
    "LaneSpec",
    "RoadSpec",
    "ScenarioDescriptor",
    "ScenarioLog",
    "ScenarioStep",
    "Trajectory",
    "actor",
    "vehicle",
]
