"""AEB decision logic and longitudinal controller."""

import logging
from enum import IntEnum

from aeb_variants.aeb.config import DecisionConfig, VehicleConfig

logger = logging.getLogger(__name__)


class AEBStage(IntEnum):
    """AEB states, ordered by severity."""

    INACTIVE = 0
    FCW = 1
    PB1 = 2
    PB2 = 3
    FB = 4

    @property
    def is_braking(self) -> bool:
        return self >= AEBStage.PB1


class AEBDecisionLogic:
    """Time-to-collision based warning and braking cascade.

    A stage becomes active when the time to collision drops below the time the
    ego would need to stop with that stage's deceleration (the FCW stage adds
    the driver reaction time). Active stages only escalate until the ego
    comes to a standstill.
    """

    def __init__(self, config: DecisionConfig) -> None:
        self.config = config
        self.stage = AEBStage.INACTIVE

    def reset(self) -> None:
        self.stage = AEBStage.INACTIVE

    def thresholds(self, ego_speed: float) -> dict[AEBStage, float]:
        """TTC activation threshold of each stage at ``ego_speed`` [s]."""
        cfg = self.config
        return {
            AEBStage.FCW: cfg.react_time + ego_speed / cfg.driver_decel,
            AEBStage.PB1: ego_speed / cfg.pb1_decel,
            AEBStage.PB2: ego_speed / cfg.pb2_decel,
            AEBStage.FB: ego_speed / cfg.fb_decel,
        }

    def update(self, ttc: float | None, ego_speed: float) -> AEBStage:
        """Update the active stage.

        Args:
            ttc: Time to collision with the MIO [s] (None when not closing)
            ego_speed: Ego speed [m/s]

        Returns:
            Active stage
        """
        if ttc is None:
            return self.stage

        requested = AEBStage.INACTIVE
        for stage, threshold in self.thresholds(ego_speed).items():
            if ttc < threshold:
                requested = max(requested, stage)

        if requested > self.stage:
            logger.debug(f"AEB stage {self.stage.name} -> {requested.name} (TTC={ttc:.2f}s)")
            self.stage = requested
        return self.stage

    def deceleration(self) -> float:
        """Deceleration demanded by the active stage [m/s^2]."""
        return {
            AEBStage.PB1: self.config.pb1_decel,
            AEBStage.PB2: self.config.pb2_decel,
            AEBStage.FB: self.config.fb_decel,
        }.get(self.stage, 0.0)


class AEBController:
    """Speed-holding controller overridden by AEB braking."""

    def __init__(self, set_speed: float, config: VehicleConfig) -> None:
        """Initialize controller.

        Args:
            set_speed: Cruise speed to hold [m/s]
            config: Vehicle configuration
        """
        self.set_speed = set_speed
        self.config = config

    def compute(self, stage: AEBStage, ego_speed: float, decel: float) -> float:
        """Commanded acceleration [m/s^2]."""
        if stage.is_braking:
            return -decel
        accel = self.config.speed_gain * (self.set_speed - ego_speed)
        return max(min(accel, self.config.max_acceleration), -self.config.max_acceleration)
