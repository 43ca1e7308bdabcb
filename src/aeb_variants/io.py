"""Persistence of scenario descriptors and test results."""

import csv
import json
from pathlib import Path
from typing import Any

import yaml

from aeb_variants.data import ClosedLoopResult, ScenarioDescriptor
from aeb_variants.runner import IterationResult
from aeb_variants.variants import VariantParameters


def save_descriptor(descriptor: ScenarioDescriptor, file_path: str | Path) -> Path:
    """Save a scenario descriptor as YAML (``.yaml``/``.yml``) or JSON.

    Args:
        descriptor: Scenario descriptor
        file_path: Output file path

    Returns:
        Path written
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = descriptor.model_dump(mode="json")
    with open(path, "w") as f:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(data, f, sort_keys=False)
        else:
            json.dump(data, f, indent=2)
    return path


def load_descriptor(file_path: str | Path) -> ScenarioDescriptor:
    """Load a scenario descriptor from YAML or JSON.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(file_path)
    if not path.exists():
        msg = f"Scenario file not found: {path}"
        raise FileNotFoundError(msg)
    with open(path) as f:
        data = yaml.safe_load(f) if path.suffix in (".yaml", ".yml") else json.load(f)
    return ScenarioDescriptor.model_validate(data)


class JsonResultRepository:
    """JSON storage of iteration results.

    Per-step bench logs are only written when ``include_steps`` is set and are
    never read back.
    """

    def __init__(self, include_steps: bool = False) -> None:
        self.include_steps = include_steps

    def save(self, iterations: list[IterationResult], file_path: str | Path) -> bool:
        """Save iteration results to a JSON file.

        Args:
            iterations: Iteration results
            file_path: Output file path

        Returns:
            True if saved
        """
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"iterations": [self._to_dict(it) for it in iterations]}
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        return True

    def load(self, file_path: str | Path) -> list[IterationResult]:
        """Load iteration results from a JSON file.

        Args:
            file_path: Input file path

        Returns:
            Iteration results
        """
        with open(file_path) as f:
            data = json.load(f)

        iterations = []
        for item in data.get("iterations", []):
            result_data = item.get("result")
            result = None
            if result_data is not None:
                result_data = dict(result_data)
                result_data.pop("speed_reduction", None)
                result_data.pop("steps", None)
                result = ClosedLoopResult(**result_data)
            iterations.append(
                IterationResult(
                    params=VariantParameters(
                        ego_speed=item["ego_speed"], collision_point=item["collision_point"]
                    ),
                    scenario_name=item.get("scenario_name", ""),
                    result=result,
                    band=item.get("band"),
                    passed=item.get("passed", False),
                    error=item.get("error"),
                    duration=item.get("duration", 0.0),
                )
            )
        return iterations

    def _to_dict(self, iteration: IterationResult) -> dict[str, Any]:
        data = iteration.to_dict()
        if self.include_steps and iteration.result is not None:
            data["result"] = iteration.result.to_dict(include_steps=True)
        return data


CSV_FIELDS = [
    "ego_speed_kmh",
    "collision_point",
    "scenario_name",
    "collision",
    "impact_speed_kmh",
    "speed_reduction_kmh",
    "fcw_time",
    "aeb_time",
    "min_gap",
    "band",
    "passed",
    "error",
]


def export_csv(iterations: list[IterationResult], file_path: str | Path) -> Path:
    """Write one CSV row per iteration."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for it in iterations:
            res = it.result
            writer.writerow(
                {
                    "ego_speed_kmh": round(it.params.ego_speed_kmh, 3),
                    "collision_point": it.params.collision_point,
                    "scenario_name": it.scenario_name,
                    "collision": res.collision if res else "",
                    "impact_speed_kmh": round(res.impact_speed * 3.6, 3) if res else "",
                    "speed_reduction_kmh": round(res.speed_reduction * 3.6, 3) if res else "",
                    "fcw_time": res.fcw_time if res else "",
                    "aeb_time": res.aeb_time if res else "",
                    "min_gap": res.min_gap if res else "",
                    "band": it.band or "",
                    "passed": it.passed,
                    "error": it.error or "",
                }
            )
    return path
