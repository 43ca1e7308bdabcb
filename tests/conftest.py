from collections.abc import Callable

import matplotlib
import pytest

from aeb_variants.data import (
    ActorClass,
    LaneSpec,
    RoadSpec,
    ScenarioDescriptor,
    Trajectory,
    actor,
    vehicle,
)

matplotlib.use("Agg")


@pytest.fixture
def make_crossing() -> Callable[..., ScenarioDescriptor]:
    """Factory of a straight-road scenario with a pedestrian crossing at x=20.

    The ego (ID 1) drives along the x axis, the pedestrian (ID 2) walks along
    +y from ``target_start_y`` to ``target_end_y``.
    """

    def factory(
        ego_start_x: float = 0.0,
        ego_speed: float = 10.0,
        target_start_y: float = -4.0,
        target_end_y: float = 4.0,
        target_speed: float = 2.0,
        target_wait: float = 0.0,
        stop_time: float = 10.0,
    ) -> ScenarioDescriptor:
        ego = vehicle(
            1,
            name="Ego",
            trajectory=Trajectory(
                waypoints=[(ego_start_x, 0.0, 0.0), (30.0, 0.0, 0.0), (60.0, 0.0, 0.0)],
                speed=[ego_speed] * 3,
                wait_time=[0.0] * 3,
            ),
        )
        mid_y = (target_start_y + target_end_y) / 2.0
        pedestrian = actor(
            2,
            class_id=ActorClass.PEDESTRIAN,
            name="Pedestrian",
            length=0.24,
            width=0.45,
            height=1.2,
            trajectory=Trajectory(
                waypoints=[
                    (20.0, target_start_y, 0.0),
                    (20.0, mid_y, 0.0),
                    (20.0, target_end_y, 0.0),
                ],
                speed=[target_speed] * 3,
                wait_time=[target_wait, 0.0, 0.0],
            ),
        )
        return ScenarioDescriptor(
            name="Crossing",
            stop_time=stop_time,
            sample_time=0.05,
            roads=[
                RoadSpec(
                    centers=[(-50.0, 0.0, 0.0), (100.0, 0.0, 0.0)],
                    lanes=LaneSpec(num_lanes=2, width=3.5),
                )
            ],
            actors=[ego, pedestrian],
            ego_id=1,
        )

    return factory


@pytest.fixture
def crossing(make_crossing: Callable[..., ScenarioDescriptor]) -> ScenarioDescriptor:
    """Crossing scenario in which the ego hits the pedestrian."""
    return make_crossing()
