"""Iterative testing of scenario variants."""

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from tqdm import tqdm

from aeb_variants.aeb import AEBConfig, AEBTestBench
from aeb_variants.assessment import SpeedReductionTable
from aeb_variants.data import ClosedLoopResult, ScenarioDescriptor
from aeb_variants.variants import VariantGrid, VariantParameters, generate_scenario_variant

logger = logging.getLogger(__name__)


@dataclass
class IterationResult:
    """Outcome of one test iteration."""

    params: VariantParameters
    scenario_name: str = ""
    result: ClosedLoopResult | None = None
    band: str | None = None
    passed: bool = False
    error: str | None = None
    duration: float = 0.0

    @property
    def impact_speed(self) -> float | None:
        return self.result.impact_speed if self.result is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ego_speed": self.params.ego_speed,
            "ego_speed_kmh": self.params.ego_speed_kmh,
            "collision_point": self.params.collision_point,
            "scenario_name": self.scenario_name,
            "result": self.result.to_dict() if self.result is not None else None,
            "band": self.band,
            "passed": self.passed,
            "error": self.error,
            "duration": self.duration,
        }


@dataclass
class RunSummary:
    """Aggregated results of a variant test run."""

    grid: VariantGrid
    iterations: list[IterationResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.iterations)

    @property
    def passed(self) -> int:
        return sum(1 for it in self.iterations if it.passed)

    @property
    def errors(self) -> int:
        return sum(1 for it in self.iterations if it.error is not None)

    @property
    def failed(self) -> int:
        return self.total - self.passed - self.errors

    @property
    def pass_rate(self) -> float:
        return self.passed / self.total if self.total else 0.0

    def impact_speed_matrix(self) -> np.ndarray:
        """Impact speeds [m/s] by (speed row, collision point column); NaN for errors."""
        matrix = np.full(self.grid.shape, np.nan)
        for it in self.iterations:
            if it.result is not None:
                matrix[self.grid.index_of(it.params)] = it.result.impact_speed
        return matrix

    def band_matrix(self) -> list[list[str | None]]:
        """Band names by (speed row, collision point column)."""
        rows, cols = self.grid.shape
        matrix: list[list[str | None]] = [[None] * cols for _ in range(rows)]
        for it in self.iterations:
            row, col = self.grid.index_of(it.params)
            matrix[row][col] = it.band
        return matrix


class VariantTestRunner:
    """Generate variants of a seed scenario and test each one closed loop."""

    def __init__(
        self,
        seed: ScenarioDescriptor,
        ego_id: int,
        target_id: int,
        bench_config: AEBConfig | None = None,
        table: SpeedReductionTable | None = None,
    ) -> None:
        """Initialize runner.

        Args:
            seed: Seed scenario descriptor
            ego_id: Ego actor ID
            target_id: Target actor ID
            bench_config: AEB test bench configuration
            table: Speed reduction lookup table
        """
        self.seed = seed
        self.ego_id = ego_id
        self.target_id = target_id
        self.bench = AEBTestBench(bench_config)
        self.table = table or SpeedReductionTable()

    def run_iteration(self, params: VariantParameters) -> IterationResult:
        """Generate and test a single variant.

        Variants that cannot be generated or simulated are recorded with an
        error message instead of raising.
        """
        start = time.perf_counter()
        iteration = IterationResult(params=params)
        try:
            scenario = generate_scenario_variant(
                self.seed, self.ego_id, self.target_id, params.ego_speed, params.collision_point
            )
            iteration.scenario_name = scenario.name
            result = self.bench.run(scenario, target_id=self.target_id)
        except ValueError as e:
            iteration.error = str(e)
            iteration.duration = time.perf_counter() - start
            logger.warning(f"Variant {params.label} could not be tested: {e}")
            return iteration

        if result.collision or result.intervened:
            band = self.table.grade(result.test_speed, result.impact_speed)
        else:
            # Neither hit nor braked: the run never exercised the AEB system
            band = self.table.lowest
            logger.warning(
                f"Variant {params.label} ended without collision or AEB braking, "
                f"graded '{band.name}'"
            )
        iteration.result = result
        iteration.band = band.name
        iteration.passed = band.passed
        iteration.duration = time.perf_counter() - start
        return iteration

    def run(
        self,
        grid: VariantGrid | Iterable[VariantParameters] | None = None,
        progress: bool = True,
    ) -> RunSummary:
        """Run every variant of a grid.

        Args:
            grid: Variants to test (default grid when omitted)
            progress: Show a progress bar

        Returns:
            RunSummary
        """
        if grid is None:
            grid = VariantGrid.default()
        variants = list(grid)
        if not isinstance(grid, VariantGrid):
            grid = VariantGrid(
                sorted({p.ego_speed for p in variants}),
                sorted({p.collision_point for p in variants}),
            )
        summary = RunSummary(grid=grid)

        n = len(variants)
        with tqdm(
            total=n, desc="Variants", unit="variant", ncols=100, disable=not progress
        ) as pbar:
            for i, params in enumerate(variants):
                iteration = self.run_iteration(params)
                summary.iterations.append(iteration)

                if iteration.error is not None:
                    status = "ERROR"
                elif iteration.passed:
                    status = "PASS"
                else:
                    status = "FAIL"
                impact = iteration.impact_speed
                impact_str = f"{impact * 3.6:.1f} km/h" if impact is not None else "-"
                logger.info(
                    f"Iteration {i + 1}/{n} {params.label}: {status} "
                    f"(impact speed {impact_str}, band {iteration.band})"
                )
                pbar.update(1)

        logger.info(
            f"Variant test run finished: {summary.passed}/{summary.total} passed, "
            f"{summary.errors} errors"
        )
        return summary
