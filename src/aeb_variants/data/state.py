"""Runtime state and log structures."""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class ActorState:
    """Actor state at a specific time."""

    actor_id: int
    x: float  # X coordinate [m]
    y: float  # Y coordinate [m]
    yaw: float  # Yaw angle [rad]
    speed: float = 0.0  # Speed along the path [m/s]
    vx: float = 0.0  # Global X velocity [m/s]
    vy: float = 0.0  # Global Y velocity [m/s]
    timestamp: float = 0.0  # Time [s]


@dataclass
class CollisionEvent:
    """First contact between two actors."""

    time: float
    actor_ids: tuple[int, int]


@dataclass
class ScenarioStep:
    """Single sampled step of an open-loop scenario run."""

    timestamp: float
    actor_states: dict[int, ActorState]


@dataclass
class ScenarioLog:
    """Log of an open-loop scenario run."""

    steps: list[ScenarioStep] = field(default_factory=list)
    collisions: list[CollisionEvent] = field(default_factory=list)

    def add_step(self, step: ScenarioStep) -> None:
        self.steps.append(step)

    def trajectory_of(self, actor_id: int) -> list[ActorState]:
        """Sampled states of one actor."""
        return [s.actor_states[actor_id] for s in self.steps if actor_id in s.actor_states]


@dataclass
class BenchStep:
    """Single step of a closed-loop AEB test bench run.

    Attributes:
        timestamp: Time [s]
        ego: Ego state
        acceleration: Commanded acceleration [m/s^2]
        ttc: Time to collision with the MIO [s] (None when no MIO)
        mio_id: Actor ID of the most important object
        stage: Active AEB stage name
    """

    timestamp: float
    ego: ActorState
    acceleration: float
    ttc: float | None = None
    mio_id: int | None = None
    stage: str = "inactive"


@dataclass
class ClosedLoopResult:
    """Outcome of a closed-loop AEB test bench run."""

    test_speed: float  # Initial ego speed [m/s]
    impact_speed: float  # Ego speed at collision, 0 when avoided [m/s]
    collision: bool
    collision_time: float | None = None
    collided_with: int | None = None
    fcw_time: float | None = None
    aeb_time: float | None = None
    min_gap: float | None = None
    stop_time: float | None = None
    steps: list[BenchStep] = field(default_factory=list)

    @property
    def intervened(self) -> bool:
        """Whether the AEB system braked."""
        return self.aeb_time is not None

    @property
    def avoided(self) -> bool:
        return not self.collision and self.intervened

    @property
    def speed_reduction(self) -> float:
        """Test speed minus impact speed [m/s]."""
        return self.test_speed - self.impact_speed

    def to_dict(self, include_steps: bool = False) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        data = asdict(self)
        if not include_steps:
            data.pop("steps")
        data["speed_reduction"] = self.speed_reduction
        return data
