"""Speed reduction assessment of closed-loop results."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SpeedReductionBand(BaseModel):
    """Band of the speed reduction lookup table."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    min_reduction: float = Field(..., ge=0, le=1, description="Lower bound of reduction fraction")
    color: str = Field(..., description="Matplotlib color of the band")
    passed: bool = Field(..., description="Whether the band counts as a pass")


def _default_bands() -> list[SpeedReductionBand]:
    return [
        SpeedReductionBand(name="avoided", min_reduction=1.0, color="#1a9641", passed=True),
        SpeedReductionBand(name="high", min_reduction=0.75, color="#a6d96a", passed=True),
        SpeedReductionBand(name="moderate", min_reduction=0.5, color="#ffffbf", passed=True),
        SpeedReductionBand(name="low", min_reduction=0.25, color="#fdae61", passed=False),
        SpeedReductionBand(name="none", min_reduction=0.0, color="#d7191c", passed=False),
    ]


class SpeedReductionTable(BaseModel):
    """Lookup from test speed and impact speed to an assessment band.

    Bands are matched on the fraction ``(test - impact) / test``, from the
    highest lower bound down.
    """

    model_config = ConfigDict(extra="forbid")

    bands: list[SpeedReductionBand] = Field(default_factory=_default_bands)

    @model_validator(mode="after")
    def _sort_bands(self) -> "SpeedReductionTable":
        if not self.bands:
            msg = "Speed reduction table needs at least one band"
            raise ValueError(msg)
        self.bands.sort(key=lambda b: b.min_reduction, reverse=True)
        if self.bands[-1].min_reduction > 0.0:
            msg = "The lowest speed reduction band must start at 0"
            raise ValueError(msg)
        return self

    @staticmethod
    def reduction_fraction(test_speed: float, impact_speed: float) -> float:
        if test_speed <= 0.0:
            msg = f"Test speed must be positive, got {test_speed}"
            raise ValueError(msg)
        return min(max((test_speed - impact_speed) / test_speed, 0.0), 1.0)

    def grade(self, test_speed: float, impact_speed: float) -> SpeedReductionBand:
        """Band of a test run.

        Args:
            test_speed: Initial ego speed [m/s]
            impact_speed: Ego speed at impact, 0 when the collision was avoided [m/s]

        Returns:
            Matching band
        """
        fraction = self.reduction_fraction(test_speed, impact_speed)
        for band in self.bands:
            if fraction >= band.min_reduction - 1e-9:
                return band
        return self.bands[-1]

    @property
    def lowest(self) -> SpeedReductionBand:
        """Band starting at zero speed reduction."""
        return self.bands[-1]

    def band(self, name: str) -> SpeedReductionBand:
        for band in self.bands:
            if band.name == name:
                return band
        msg = f"Unknown band '{name}'"
        raise KeyError(msg)
