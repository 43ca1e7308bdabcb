#!/usr/bin/env python3
"""Run the scenario variant workflow from Hydra configuration."""

import logging
from pathlib import Path

import hydra
import matplotlib
from omegaconf import DictConfig, OmegaConf

from aeb_variants.catalog import get_scenario
from aeb_variants.checks import check_scenario
from aeb_variants.collision import perform_scenario_collision
from aeb_variants.config import RunConfig
from aeb_variants.data import ScenarioDescriptor
from aeb_variants.io import JsonResultRepository, export_csv, load_descriptor, save_descriptor
from aeb_variants.runner import RunSummary, VariantTestRunner
from aeb_variants.scenario import DrivingScenario

logger = logging.getLogger(__name__)


def load_seed(config: RunConfig) -> ScenarioDescriptor:
    """Load the seed scenario and repair it when it is unsuitable.

    Args:
        config: Run configuration

    Returns:
        Seed scenario descriptor in which the ego collides with the target
    """
    scenario_cfg = config.scenario
    if scenario_cfg.file is not None:
        descriptor = load_descriptor(scenario_cfg.file)
    else:
        descriptor = get_scenario(scenario_cfg.name)
    logger.info(f"Loaded seed scenario '{descriptor.name}'")

    check = check_scenario(scenario_cfg.ego_id, scenario_cfg.target_id, descriptor)
    if not check:
        logger.info(f"Repairing seed scenario ({len(check.failures)} failed checks)")
        descriptor = perform_scenario_collision(
            scenario_cfg.ego_id,
            scenario_cfg.target_id,
            descriptor,
            method=scenario_cfg.collision_method,
        )
    return descriptor


def run_workflow(config: RunConfig) -> RunSummary:
    """Seed, variant grid run, result files and figures.

    Args:
        config: Run configuration

    Returns:
        RunSummary
    """
    output_dir = Path(config.output.dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    seed = load_seed(config)
    if config.output.save_seed:
        save_descriptor(seed, output_dir / "seed_scenario.yaml")

    runner = VariantTestRunner(
        seed,
        ego_id=config.scenario.ego_id,
        target_id=config.scenario.target_id,
        bench_config=config.bench,
        table=config.assessment,
    )
    summary = runner.run(config.grid.to_grid(), progress=config.output.progress)

    if config.output.save_json:
        repository = JsonResultRepository(include_steps=config.output.include_steps)
        repository.save(summary.iterations, output_dir / "results.json")
    if config.output.save_csv:
        export_csv(summary.iterations, output_dir / "results.csv")
    if config.output.save_plots:
        matplotlib.use("Agg")
        from aeb_variants.visualization import plot_scenario, plot_variant_results

        plot_scenario(
            DrivingScenario(seed),
            target_id=config.scenario.target_id,
            filename=output_dir / "seed_scenario.png",
        )
        plot_variant_results(summary, config.assessment, filename=output_dir / "results.png")

    logger.info(f"Results written to {output_dir}")
    return summary


@hydra.main(
    version_base=None,
    config_path=str(Path(__file__).parent.parent.parent / "conf"),
    config_name="config",
)
def main(cfg: DictConfig) -> None:
    """Run the variant workflow with Hydra configuration.

    Args:
        cfg: Hydra configuration object
    """
    print("=" * 80)
    print("Running AEB scenario variants with Hydra configuration")
    print("=" * 80)
    print(OmegaConf.to_yaml(cfg))
    print("=" * 80)

    config = RunConfig.from_dict(OmegaConf.to_container(cfg, resolve=True))
    summary = run_workflow(config)

    print(
        f"Passed {summary.passed}/{summary.total} variants "
        f"({summary.pass_rate:.0%}), {summary.failed} failed, {summary.errors} errors"
    )


if __name__ == "__main__":
    main()
