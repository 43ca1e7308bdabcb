"""Scenario catalog.

Scenarios are registered by name so that configuration files can refer to
them.
"""

import logging
from collections.abc import Callable

from aeb_variants.checks import check_scenario
from aeb_variants.collision import perform_scenario_collision
from aeb_variants.data import (
    ActorClass,
    ActorSpec,
    LaneSpec,
    RoadSpec,
    ScenarioDescriptor,
    Trajectory,
    actor,
    vehicle,
)
from aeb_variants.scenario import DrivingScenario
from aeb_variants.variants import generate_scenario_variant

logger = logging.getLogger(__name__)

SEED_EGO_SPEED = 60.0 / 3.6  # [m/s]
SEED_COLLISION_POINT = 0.0  # Front-left corner

_REGISTRY: dict[str, Callable[[], ScenarioDescriptor]] = {}


def register_scenario(name: str) -> Callable:
    """Register a descriptor factory under ``name``."""

    def decorator(factory: Callable[[], ScenarioDescriptor]) -> Callable[[], ScenarioDescriptor]:
        _REGISTRY[name] = factory
        return factory

    return decorator


def available_scenarios() -> list[str]:
    return sorted(_REGISTRY)


def get_scenario(name: str) -> ScenarioDescriptor:
    """Build a registered scenario descriptor.

    Raises:
        KeyError: If no scenario is registered under ``name``
    """
    if name not in _REGISTRY:
        msg = f"Unknown scenario '{name}'. Available: {available_scenarios()}"
        raise KeyError(msg)
    return _REGISTRY[name]()


@register_scenario("cpnc_nearside_child")
def cpnc_nearside_child_scenario() -> ScenarioDescriptor:
    """Euro NCAP Car-to-Pedestrian Nearside Child scenario.

    A child runs from behind two parked cars into the path of the vehicle
    under test travelling at 20 km/h on a straight road.
    """
    road = RoadSpec(
        name="Road",
        centers=[(0.0, 0.0, 0.0), (1000.0, 0.0, 0.0)],
        lanes=LaneSpec(num_lanes=1, width=10.0, marking="unmarked"),
    )

    pedestrian = actor(
        1,
        class_id=ActorClass.PEDESTRIAN,
        name="Euro NCAP Pedestrian Target",
        length=0.24,
        width=0.298,
        height=1.154,
        position=(32.0, -4.0, 0.0),
        trajectory=Trajectory(
            waypoints=[(32.0, -4.0, 0.0), (32.0, -3.0, 0.0), (32.0, 4.0, 0.0)],
            speed=[0.0, 1.39, 1.39],
            wait_time=[0.0, 0.0, 0.0],
        ),
    )

    ego = vehicle(
        2,
        name="Vehicle Under Test",
        position=(8.3, 0.0, 0.0),
        front_overhang=0.9,
        trajectory=Trajectory(
            waypoints=[(8.3, 0.0, 0.0), (38.8, 0.0, 0.0)],
            speed=[5.55, 5.55],
            wait_time=[0.0, 0.0],
        ),
    )

    small_obstruction = vehicle(
        3,
        name="Small Obstruction Vehicle",
        length=4.4,
        position=(27.4, -2.8, 0.0),
        front_overhang=0.6,
    )

    large_obstruction = vehicle(
        4,
        name="Large Obstruction Vehicle",
        position=(21.8, -2.8, 0.0),
        front_overhang=0.9,
    )

    return ScenarioDescriptor(
        name="AEB_PedestrianChild_Nearside_50width",
        stop_time=5.0,
        sample_time=0.05,
        roads=[road],
        actors=[pedestrian, ego, small_obstruction, large_obstruction],
        ego_id=2,
    )


def _renumber(descriptor: ScenarioDescriptor, order: list[int]) -> ScenarioDescriptor:
    """Reassign actor IDs 1..n following ``order`` (old IDs)."""
    mapping = {old: new for new, old in enumerate(order, start=1)}
    actors = sorted(
        (a.model_copy(update={"actor_id": mapping[a.actor_id]}) for a in descriptor.actors),
        key=lambda a: a.actor_id,
    )
    return ScenarioDescriptor(
        name=descriptor.name,
        stop_time=descriptor.stop_time,
        sample_time=descriptor.sample_time,
        roads=descriptor.roads,
        actors=actors,
        ego_id=mapping[descriptor.ego_id],
    )


@register_scenario("cpnc_seed")
def seed_scenario_descriptor() -> ScenarioDescriptor:
    """Seed scenario for CPNC variant generation.

    The designer scenario with the ego renumbered to ID 1 and the pedestrian to
    ID 2, repaired for variant generation and varied to 60 km/h with the
    collision at the front-left corner of the ego.
    """
    base = cpnc_nearside_child_scenario()
    descriptor = _renumber(base, order=[2, 1, 3, 4])
    descriptor = descriptor.model_copy(update={"name": "CPNC_Seed"})

    ego_id, target_id = 1, 2
    if not check_scenario(ego_id, target_id, descriptor):
        descriptor = perform_scenario_collision(ego_id, target_id, descriptor)

    scenario = generate_scenario_variant(
        descriptor, ego_id, target_id, SEED_EGO_SPEED, SEED_COLLISION_POINT
    )
    return scenario.descriptor


def create_seed_scenario() -> tuple[DrivingScenario, ActorSpec]:
    """Create the CPNC seed scenario.

    Returns:
        Tuple of (scenario, ego vehicle)
    """
    scenario = DrivingScenario(seed_scenario_descriptor())
    logger.info(
        f"Created seed scenario '{scenario.name}' with {len(scenario.descriptor.actors)} actors"
    )
    return scenario, scenario.ego
