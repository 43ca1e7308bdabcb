"""Tests for run configuration."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from aeb_variants.config import GridConfig, RunConfig
from aeb_variants.variants import kmh_to_mps

CONF_DIR = Path(__file__).parent.parent / "conf"


class TestRunConfig:
    """Tests for RunConfig."""

    def test_defaults(self) -> None:
        """Test default configuration."""
        config = RunConfig()

        assert config.scenario.name == "cpnc_seed"
        assert config.scenario.ego_id == 1
        assert config.scenario.target_id == 2
        assert len(config.grid.to_grid()) == 36
        assert config.bench.decision.fb_decel == 9.8
        assert len(config.assessment.bands) == 5

    def test_extra_fields_forbidden(self) -> None:
        """Test that unknown keys are rejected."""
        with pytest.raises(ValidationError):
            RunConfig.from_dict({"scenario": {"name": "cpnc_seed", "speed": 10}})
        with pytest.raises(ValidationError):
            RunConfig.from_dict({"unknown": {}})

    def test_invalid_collision_method(self) -> None:
        """Test that only known repair methods are accepted."""
        with pytest.raises(ValidationError):
            RunConfig.from_dict({"scenario": {"collision_method": "teleport"}})

    def test_repository_config_file(self) -> None:
        """Test that the shipped Hydra config validates once resolved."""
        with open(CONF_DIR / "config.yaml") as f:
            data = yaml.safe_load(f)
        data["output"]["dir"] = "output"

        config = RunConfig.from_dict(data)

        assert config.grid.to_grid().shape == (9, 4)
        assert config.assessment.band("moderate").passed
        assert config.output.dir == Path("output")


class TestGridConfig:
    """Tests for GridConfig."""

    def test_to_grid(self) -> None:
        """Test conversion of km/h speeds."""
        grid = GridConfig(speeds_kmh=[20, 40], collision_points=[0.5]).to_grid()

        assert grid.speeds == pytest.approx([kmh_to_mps(20), kmh_to_mps(40)])
        assert grid.collision_points == [0.5]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"speeds_kmh": [0.0]},
            {"speeds_kmh": []},
            {"collision_points": [1.2]},
            {"collision_points": [-0.1]},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        """Test that invalid grids are rejected."""
        with pytest.raises(ValidationError):
            GridConfig(**kwargs)
