"""Configuration schema for variant test runs."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from aeb_variants.aeb import AEBConfig
from aeb_variants.assessment import SpeedReductionTable
from aeb_variants.collision import CollisionMethod
from aeb_variants.variants import DEFAULT_COLLISION_POINTS, DEFAULT_SPEEDS_KMH, VariantGrid


class ScenarioConfig(BaseModel):
    """Seed scenario selection."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field("cpnc_seed", description="Registered scenario name")
    file: Path | None = Field(
        None, description="Descriptor file overriding the registered scenario"
    )
    ego_id: int = Field(1, ge=1, description="Ego actor ID")
    target_id: int = Field(2, ge=1, description="Target actor ID")
    collision_method: CollisionMethod = Field(
        "wait_time", description="Repair method used when the seed does not collide"
    )


class GridConfig(BaseModel):
    """Variant grid definition."""

    model_config = ConfigDict(extra="forbid")

    speeds_kmh: list[float] = Field(
        default_factory=lambda: list(DEFAULT_SPEEDS_KMH),
        min_length=1,
        description="Ego speeds [km/h]",
    )
    collision_points: list[float] = Field(
        default_factory=lambda: list(DEFAULT_COLLISION_POINTS),
        min_length=1,
        description="Collision points on the ego front (0 left, 1 right)",
    )

    @field_validator("speeds_kmh")
    @classmethod
    def _positive_speeds(cls, v: list[float]) -> list[float]:
        if any(s <= 0 for s in v):
            msg = f"Grid speeds must be positive: {v}"
            raise ValueError(msg)
        return v

    @field_validator("collision_points")
    @classmethod
    def _unit_interval(cls, v: list[float]) -> list[float]:
        if any(not 0.0 <= c <= 1.0 for c in v):
            msg = f"Collision points must lie in [0, 1]: {v}"
            raise ValueError(msg)
        return v

    def to_grid(self) -> VariantGrid:
        return VariantGrid.from_kmh(self.speeds_kmh, self.collision_points)


class OutputConfig(BaseModel):
    """Result output settings."""

    model_config = ConfigDict(extra="forbid")

    dir: Path = Field(Path("output"), description="Output directory")
    save_json: bool = Field(True, description="Write iteration results as JSON")
    save_csv: bool = Field(True, description="Write the iteration table as CSV")
    save_plots: bool = Field(True, description="Write scenario and result figures")
    save_seed: bool = Field(True, description="Write the seed descriptor as YAML")
    include_steps: bool = Field(False, description="Include bench step logs in the JSON output")
    progress: bool = Field(True, description="Show a progress bar during the grid run")


class RunConfig(BaseModel):
    """Complete configuration of a variant test run."""

    model_config = ConfigDict(extra="forbid")

    scenario: ScenarioConfig = Field(default_factory=ScenarioConfig)
    grid: GridConfig = Field(default_factory=GridConfig)
    bench: AEBConfig = Field(default_factory=AEBConfig)
    assessment: SpeedReductionTable = Field(default_factory=SpeedReductionTable)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunConfig":
        """Validate a plain configuration dictionary (e.g. from OmegaConf)."""
        return cls.model_validate(data)
