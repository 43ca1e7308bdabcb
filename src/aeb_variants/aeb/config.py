"""Configuration of the closed-loop AEB test bench."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DecisionConfig(BaseModel):
    """Forward collision warning and braking stage thresholds."""

    model_config = ConfigDict(extra="forbid")

    react_time: float = Field(1.2, ge=0, description="Driver reaction time for FCW [s]")
    driver_decel: float = Field(4.0, gt=0, description="Assumed driver deceleration [m/s^2]")
    pb1_decel: float = Field(3.8, gt=0, description="Partial braking stage 1 [m/s^2]")
    pb2_decel: float = Field(5.3, gt=0, description="Partial braking stage 2 [m/s^2]")
    fb_decel: float = Field(9.8, gt=0, description="Full braking [m/s^2]")

    @model_validator(mode="after")
    def _check_order(self) -> "DecisionConfig":
        if not self.pb1_decel <= self.pb2_decel <= self.fb_decel:
            msg = "Braking stages must satisfy pb1_decel <= pb2_decel <= fb_decel"
            raise ValueError(msg)
        return self


class PerceptionConfig(BaseModel):
    """Forward sensor and most important object selection.

    The sensor sits at the centre of the ego front edge. An actor is detected
    when its centre lies within range and field of view and the line of sight
    to it does not cross another actor's footprint.
    """

    model_config = ConfigDict(extra="forbid")

    lateral_margin: float = Field(0.3, ge=0, description="Margin added to the ego half width [m]")
    max_range: float = Field(100.0, gt=0, description="Maximum sensor range [m]")
    max_lateral: float = Field(10.0, gt=0, description="Maximum lateral offset considered [m]")
    field_of_view: float = Field(
        90.0, gt=0, le=360, description="Horizontal field of view of the sensor [deg]"
    )
    occlusion: bool = Field(True, description="Block the line of sight with actor footprints")
    confirmation_time: float = Field(
        0.5, ge=0, description="Continuous detection time before an object is reported [s]"
    )


class VehicleConfig(BaseModel):
    """Longitudinal ego dynamics."""

    model_config = ConfigDict(extra="forbid")

    brake_time_constant: float = Field(
        0.2, ge=0, description="First-order actuator lag of the acceleration [s]"
    )
    speed_gain: float = Field(0.5, ge=0, description="Cruise speed controller gain [1/s]")
    max_acceleration: float = Field(2.0, gt=0, description="Maximum drive acceleration [m/s^2]")


class AEBConfig(BaseModel):
    """Configuration for AEBTestBench."""

    model_config = ConfigDict(extra="forbid")

    decision: DecisionConfig = Field(default_factory=DecisionConfig)
    perception: PerceptionConfig = Field(default_factory=PerceptionConfig)
    vehicle: VehicleConfig = Field(default_factory=VehicleConfig)
    step_time: float | None = Field(
        None, gt=0, description="Simulation step [s]; scenario sample time when omitted"
    )
    standstill_speed: float = Field(0.01, gt=0, description="Speed treated as standstill [m/s]")
